"""Command line entry point for the ladder backtest.

Commands:
- show-settings: resolved :class:`~ladder_quant.config.Settings`
- backtest: validate (dry run) or execute a ladder backtest from a YAML config
- eligibility: number of eligible instruments per trading date

Exit codes: 0 on success, 2 when a file is missing, 3 for invalid
configuration or input tables, 4 for fatal simulation errors.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Iterable

from ladder_quant.backtesting import run_ladder_backtest
from ladder_quant.backtesting.engine import load_market
from ladder_quant.config import (
    ConfigError,
    LadderBacktestConfig,
    Settings,
    configure_logging,
    get_settings,
    load_config,
    resolve_config_path,
)
from ladder_quant.data.tables import TableSchemaError
from ladder_quant.errors import LadderError
from ladder_quant.reports import export_results

__all__ = ["build_parser", "main"]

EXIT_OK = 0
EXIT_MISSING_FILE = 2
EXIT_CONFIG_ERROR = 3
EXIT_SIMULATION_ERROR = 4


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ladder_quant CLI")
    parser.add_argument(
        "--structured-logs",
        dest="structured_logs",
        action="store_true",
        help="força logs estruturados em JSON",
    )
    parser.add_argument(
        "--plain-logs",
        dest="structured_logs",
        action="store_false",
        help="força logs texto simples",
    )
    parser.set_defaults(structured_logs=None)

    subparsers = parser.add_subparsers(dest="command", required=True)

    show = subparsers.add_parser("show-settings", help="Exibe as Settings resolvidas")
    show.add_argument("--json", action="store_true", help="Formato JSON")

    back = subparsers.add_parser("backtest", help="Executa (ou valida) o backtest do ladder")
    back.add_argument("--config", type=str, help="Arquivo de configuração YAML")
    back.add_argument(
        "--no-dry-run",
        action="store_false",
        dest="dry_run",
        help="Executa a simulação completa",
    )
    back.add_argument("--json", action="store_true", help="Mostra resultado em JSON")
    back.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Diretório para exportar CSV/JSON (sobrepõe output_dir do YAML)",
    )
    back.set_defaults(dry_run=True)

    elig = subparsers.add_parser(
        "eligibility", help="Conta instrumentos elegíveis por data de negociação"
    )
    elig.add_argument("--config", type=str, required=True, help="Arquivo de configuração YAML")
    elig.add_argument("--json", action="store_true", help="Mostra resultado em JSON")

    return parser


def _configure_logging(
    structured: bool | None, settings: Settings, command: str
) -> None:
    configure_logging(
        settings=settings, structured=structured, context={"command": command}
    )


def _print_payload(payload: dict[str, Any], *, as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, indent=2, sort_keys=True, default=str))
    else:
        for key, value in payload.items():
            print(f"{key}: {value}")


def _resolve_output_dir(
    cli_value: str | None, config: LadderBacktestConfig | None, config_path: Path
) -> Path | None:
    """CLI value as given, else ``output_dir`` relative to the YAML like its data paths."""
    if cli_value is not None:
        return Path(cli_value)
    if config is None or config.output_dir is None:
        return None
    output_dir = Path(config.output_dir).expanduser()
    if not output_dir.is_absolute():
        output_dir = config_path.parent / output_dir
    return output_dir


def _run_backtest(args: argparse.Namespace, settings: Settings) -> int:
    result = run_ladder_backtest(args.config, dry_run=args.dry_run, settings=settings)
    payload = result.to_dict(include_timeseries=args.json)

    output_dir = _resolve_output_dir(args.output_dir, result.config, result.config_path)
    if result.simulation is not None and output_dir is not None:
        paths = export_results(result.simulation, output_dir, config_path=result.config_path)
        payload["outputs"] = {name: str(path) for name, path in paths.items()}

    _print_payload(payload, as_json=args.json)
    return EXIT_OK


def _run_eligibility(args: argparse.Namespace, settings: Settings) -> int:
    resolved = resolve_config_path(args.config, settings.project_root)
    config = load_config(resolved, LadderBacktestConfig)
    market = load_market(config, base=resolved.parent)
    strategy = config.strategy
    counts = market.eligible_counts(
        min_days=strategy.min_days,
        max_days=strategy.max_days,
        excluded_types=strategy.excluded_types,
    )

    payload: dict[str, Any] = {
        "config_path": str(resolved),
        "n_dates": int(len(counts)),
        "min_eligible": int(counts.min()) if len(counts) else 0,
        "max_eligible": int(counts.max()) if len(counts) else 0,
        "dates_without_eligible": int((counts == 0).sum()),
    }
    if args.json:
        payload["counts"] = {
            date.strftime("%Y-%m-%d"): int(value) for date, value in counts.items()
        }
    _print_payload(payload, as_json=args.json)
    return EXIT_OK


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    settings = get_settings()
    _configure_logging(args.structured_logs, settings, args.command)

    try:
        if args.command == "show-settings":
            _print_payload(settings.to_dict(), as_json=args.json)
        elif args.command == "backtest":
            return _run_backtest(args, settings)
        elif args.command == "eligibility":
            return _run_eligibility(args, settings)
        else:  # pragma: no cover - argparse restringe os comandos
            parser.error(f"Unknown command: {args.command}")

    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_MISSING_FILE
    except (ConfigError, TableSchemaError) as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except LadderError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return EXIT_SIMULATION_ERROR

    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

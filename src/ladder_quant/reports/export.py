"""Persist simulation outputs as CSV tables and a JSON summary.

Files written to ``output_dir``:

- ``positions.csv``: one row per instrument per date
- ``ledger.csv``: one row per date (opening cash, coupons, transactions, closing cash)
- ``portfolio_values.csv``: market value, cash and total value per date
- ``trades.csv``: executed buys and sells
- ``metrics.json``: performance metrics, run summary and parameters
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

from ..backtesting.engine import SimulationResult
from ..config.constants import COLUMN_DATE
from ..utils.logging_config import get_logger

__all__ = ["OUTPUT_FILES", "export_results", "hash_file"]

logger = get_logger(__name__)

OUTPUT_FILES = {
    "positions": "positions.csv",
    "ledger": "ledger.csv",
    "values": "portfolio_values.csv",
    "trades": "trades.csv",
    "metrics": "metrics.json",
}


def hash_file(path: Path) -> str:
    """SHA256 hex digest of ``path``.

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    return hashlib.sha256(path.read_bytes()).hexdigest()


def _params_payload(result: SimulationResult) -> dict[str, Any]:
    params = result.params.to_dict()
    if params["start_date"] is not None:
        params["start_date"] = params["start_date"].strftime("%Y-%m-%d")
    params["excluded_types"] = list(params["excluded_types"])
    return params


def export_results(
    result: SimulationResult,
    output_dir: str | Path,
    *,
    config_path: Path | None = None,
) -> dict[str, Path]:
    """Write the tables of ``result`` to ``output_dir``.

    Args:
        result: Output of :meth:`RebalancingEngine.run`
        output_dir: Target directory (created if needed)
        config_path: Configuration file whose checksum is stored in
            ``metrics.json``

    Returns:
        Mapping of output name to written path
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = {name: output_dir / filename for name, filename in OUTPUT_FILES.items()}

    result.positions.to_csv(paths["positions"], index=False, date_format="%Y-%m-%d")
    result.ledger.reset_index().to_csv(paths["ledger"], index=False, date_format="%Y-%m-%d")
    values = result.values.copy()
    values.index.name = COLUMN_DATE
    values.reset_index().to_csv(paths["values"], index=False, date_format="%Y-%m-%d")
    result.trades.to_csv(paths["trades"], index=False, date_format="%Y-%m-%d")

    payload: dict[str, Any] = {
        "metrics": dict(result.metrics.as_dict()),
        "summary": result.summary(),
        "params": _params_payload(result),
    }
    if config_path is not None:
        payload["config_path"] = str(config_path)
        payload["config_sha256"] = hash_file(Path(config_path))
    paths["metrics"].write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")

    logger.info("Exported simulation results to %s", output_dir)
    return paths

"""Configurações globais do laboratório de *ladder*.

As configurações dizem *onde* ficam as coisas (tabelas de entrada, YAMLs,
relatórios, logs) e *como* registrar a execução. Parâmetros da estratégia
ficam em :mod:`ladder_quant.config.params_default`.

Precedência: ``defaults < .env < variáveis de ambiente < overrides``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, MutableMapping

from .constants import DEFAULT_BASE_CURRENCY, DEFAULT_CONFIG_NAME

__all__ = [
    "ENV_PREFIX",
    "Settings",
    "get_settings",
    "load_env_file",
    "reset_settings_cache",
]


ENV_PREFIX = "LADDER_QUANT_"
"""Prefixo utilizado para todas as variáveis de ambiente do projeto."""

# (atributo, default); a variável de ambiente é ENV_PREFIX + atributo em maiúsculas.
_PATH_FIELDS: tuple[tuple[str, str], ...] = (
    ("data_dir", "data"),
    ("configs_dir", "configs"),
    ("reports_dir", "reports"),
    ("logs_dir", "logs"),
)
_TEXT_FIELDS: tuple[tuple[str, str], ...] = (
    ("environment", "development"),
    ("base_currency", DEFAULT_BASE_CURRENCY),
    ("default_config", DEFAULT_CONFIG_NAME),
)
_FLAG_FIELDS: tuple[tuple[str, bool], ...] = (("structured_logging", False),)

_BOOL_WORDS = {
    "1": True,
    "true": True,
    "yes": True,
    "on": True,
    "0": False,
    "false": False,
    "no": False,
    "off": False,
}


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    try:
        return _BOOL_WORDS[str(value).strip().lower()]
    except KeyError:
        raise ValueError(f"Cannot interpret '{value}' as boolean") from None


def _as_path(value: Any, *, root: Path) -> Path:
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else root / path


def load_env_file(path: Path) -> Mapping[str, str]:
    """Parse a ``.env`` file into a mapping.

    Comments, blank lines and lines without ``=`` are skipped. A leading
    ``export`` and matching quotes around the value are stripped.
    """

    entries: MutableMapping[str, str] = {}
    if not path.exists():
        return entries

    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        key, value = (part.strip() for part in line.split("=", 1))
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
            value = value[1:-1]
        entries[key] = value
    return entries


def _default_project_root() -> Path:
    return Path(__file__).resolve().parents[3]


@dataclass(slots=True, frozen=True)
class Settings:
    """Conjunto imutável de configurações globais.

    ``default_config`` é o nome do YAML procurado em ``configs_dir`` quando
    nenhum arquivo é informado ao backtest.
    """

    project_root: Path
    data_dir: Path
    configs_dir: Path
    reports_dir: Path
    logs_dir: Path
    environment: str
    base_currency: str
    default_config: str
    structured_logging: bool

    @property
    def default_config_path(self) -> Path:
        return _as_path(self.default_config, root=self.configs_dir)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"project_root": str(self.project_root)}
        for name, _ in _PATH_FIELDS:
            payload[name] = str(getattr(self, name))
        for name, _ in _TEXT_FIELDS + _FLAG_FIELDS:
            payload[name] = getattr(self, name)
        return payload

    @classmethod
    def from_env(
        cls,
        *,
        overrides: Mapping[str, Any] | None = None,
        env_file: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "Settings":
        """Build settings from defaults, ``.env``, the environment and ``overrides``.

        Override keys may be given as attribute names (``project_root``) or
        as the environment suffix (``LOGS_DIR``).
        """

        pending = {str(key).upper(): value for key, value in (overrides or {}).items()}
        system_environ = dict(os.environ if environ is None else environ)

        file_values: dict[str, str] = {}
        if env_file is not None:
            file_values.update(load_env_file(Path(env_file).expanduser()))

        root_key = f"{ENV_PREFIX}PROJECT_ROOT"
        root_value = pending.pop(
            "PROJECT_ROOT", file_values.get(root_key, system_environ.get(root_key))
        )
        project_root = (
            _default_project_root()
            if root_value is None
            else Path(str(root_value)).expanduser().resolve()
        )

        if env_file is None:
            file_values.update(load_env_file(project_root / ".env"))
        sources = {**file_values, **system_environ}

        def lookup(name: str, default: Any) -> Any:
            suffix = name.upper()
            if suffix in pending:
                return pending.pop(suffix)
            return sources.get(f"{ENV_PREFIX}{suffix}", default)

        values: dict[str, Any] = {"project_root": project_root}
        for name, default in _PATH_FIELDS:
            values[name] = _as_path(lookup(name, default), root=project_root)
        for name, default in _TEXT_FIELDS:
            values[name] = str(lookup(name, default))
        for name, default in _FLAG_FIELDS:
            values[name] = _as_bool(lookup(name, default))

        if pending:
            raise KeyError(f"Unknown override(s): {', '.join(sorted(pending))}")
        return cls(**values)


_SETTINGS_CACHE: Settings | None = None


def get_settings(**kwargs: Any) -> Settings:
    """Return the cached settings; keyword arguments bypass the cache."""

    global _SETTINGS_CACHE
    if kwargs:
        return Settings.from_env(**kwargs)
    if _SETTINGS_CACHE is None:
        _SETTINGS_CACHE = Settings.from_env()
    return _SETTINGS_CACHE


def reset_settings_cache() -> None:
    global _SETTINGS_CACHE
    _SETTINGS_CACHE = None

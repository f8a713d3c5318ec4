"""YAML configuration files validated by Pydantic schemas.

Example
-------
>>> from ladder_quant.config.loader import load_config
>>> from ladder_quant.config.schemas import LadderBacktestConfig
>>>
>>> config = load_config("configs/ladder_7_10.yaml", LadderBacktestConfig)
>>> print(config.strategy.transaction_cost)
0.3
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Type, TypeVar, Union

import yaml
from pydantic import BaseModel, ValidationError

__all__ = ["load_config", "save_config", "resolve_config_path", "ConfigError"]

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_CONFIGS_SUBDIR = "configs"


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or validated."""


def _default_root() -> Path:
    return Path(__file__).resolve().parents[3]


def resolve_config_path(
    file_path: Union[str, Path], project_root: Optional[Path] = None
) -> Path:
    """Locate a configuration file.

    Lookup order for relative paths: ``project_root``, ``project_root/configs``
    and finally the current working directory. Absolute paths are only
    checked for existence.

    Raises
    ------
    FileNotFoundError
        If no candidate exists.
    """
    path = Path(file_path).expanduser()
    if path.is_absolute():
        candidates = [path]
    else:
        root = project_root or _default_root()
        candidates = [root / path, root / _CONFIGS_SUBDIR / path, Path.cwd() / path]

    for candidate in candidates:
        if candidate.is_file():
            return candidate
    raise FileNotFoundError(f"Config file not found: {file_path}")


def _read_mapping(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML syntax in {path}: {exc}") from exc
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")
    if not isinstance(data, dict):
        raise ConfigError(f"YAML root must be a mapping in {path}")
    return data


def _describe(exc: ValidationError) -> str:
    lines = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "<root>"
        lines.append(f"  {location}: {error['msg']}")
    return "\n".join(lines)


def load_config(
    file_path: Union[str, Path],
    schema: Type[T],
    *,
    project_root: Optional[Path] = None,
    strict: bool = True,
) -> T:
    """Load ``file_path`` and validate it against ``schema``.

    With ``strict=False`` failures are logged and ``schema()`` is returned,
    which only works for schemas whose fields all have defaults.

    Raises
    ------
    ConfigError
        Missing file, invalid YAML or failed validation (``strict`` only).
    """
    try:
        resolved = resolve_config_path(file_path, project_root)
        config = schema.model_validate(_read_mapping(resolved))
    except FileNotFoundError as exc:
        message = f"Configuration file not found: {file_path}"
        cause: Exception = exc
    except ValidationError as exc:
        message = f"Configuration validation failed for {file_path}:\n{_describe(exc)}"
        cause = exc
    except ConfigError as exc:
        message = str(exc)
        cause = exc
    else:
        logger.info("Loaded %s config from %s", schema.__name__, resolved)
        return config

    if strict:
        raise ConfigError(message) from cause
    logger.warning("%s; using %s defaults", message, schema.__name__)
    return schema()


def save_config(
    config: BaseModel, file_path: Union[str, Path], *, project_root: Optional[Path] = None
) -> Path:
    """Write ``config`` as YAML, keeping the field order of the schema."""
    path = Path(file_path)
    if not path.is_absolute():
        path = (project_root or _default_root()) / path
    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json", exclude_none=True)
    path.write_text(
        yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True),
        encoding="utf-8",
    )
    logger.info("Saved configuration to %s", path)
    return path

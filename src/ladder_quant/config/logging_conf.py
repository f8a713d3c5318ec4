"""Configuração de *logging* do backtest.

Dois formatos são suportados: texto (uma linha por evento) e JSON, em que
os campos passados via ``extra`` (por exemplo pelo
:func:`ladder_quant.utils.logging_config.log_dict`) viram chaves próprias.
Cada execução escreve no terminal e em ``logs_dir / ladder_quant.log``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any, Mapping

from .settings import Settings, get_settings

__all__ = ["JSONFormatter", "configure_logging", "LOG_FILE_NAME", "TEXT_FORMAT"]

LOG_FILE_NAME = "ladder_quant.log"
TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Atributos padrão de um LogRecord; o restante veio de ``extra``.
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))) | {
    "message",
    "asctime",
}


class JSONFormatter(logging.Formatter):
    """Serializa cada ``LogRecord`` como um objeto JSON por linha."""

    def __init__(self, *, default_context: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self._default_context = dict(default_context or {})

    def _extra_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        return {
            key: value for key, value in vars(record).items() if key not in _STANDARD_ATTRS
        }

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **self._default_context,
        }
        for key, value in self._extra_fields(record).items():
            payload.setdefault(key, value)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        # Datas da simulação (pd.Timestamp) não são nativas de JSON.
        return json.dumps(payload, ensure_ascii=False, default=str)


def _make_formatter(structured: bool, context: Mapping[str, Any] | None) -> logging.Formatter:
    if structured:
        return JSONFormatter(default_context=context)
    return logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def _reset_root(root: logging.Logger) -> None:
    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)


def _file_handler(path: Path) -> logging.Handler | None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(path, encoding="utf-8")
    except OSError:  # pragma: no cover - depende do sistema de arquivos
        logging.getLogger(__name__).warning("Cannot open log file %s", path)
        return None


def configure_logging(
    *,
    settings: Settings | None = None,
    level: int | str = logging.INFO,
    structured: bool | None = None,
    module_levels: Mapping[str, int | str] | None = None,
    stream: IO[str] | None = None,
    context: Mapping[str, Any] | None = None,
    log_file: Path | None = None,
) -> None:
    """(Re)configura o *root logger*.

    Parameters
    ----------
    settings:
        Fonte de ``logs_dir`` e do formato padrão; usa :func:`get_settings`
        quando ``None``.
    level:
        Nível dos *handlers* de terminal e arquivo.
    structured:
        ``True`` para JSON, ``False`` para texto; ``None`` segue
        ``settings.structured_logging``.
    module_levels:
        Ajustes ``logger -> level``, por exemplo o motor em ``DEBUG``.
    stream:
        Destino do terminal; ``sys.stderr`` por padrão.
    context:
        Campos fixos anexados a cada registro JSON (ex.: ``{"command": "backtest"}``).
    log_file:
        Arquivo de log; ``settings.logs_dir / LOG_FILE_NAME`` por padrão.
    """

    settings = settings or get_settings()
    if structured is None:
        structured = settings.structured_logging
    formatter = _make_formatter(structured, context)

    root = logging.getLogger()
    _reset_root(root)
    root.setLevel(logging.DEBUG)

    handlers: list[logging.Handler | None] = [
        logging.StreamHandler(stream),
        _file_handler(log_file or settings.logs_dir / LOG_FILE_NAME),
    ]
    for handler in handlers:
        if handler is None:
            continue
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for logger_name, logger_level in (module_levels or {}).items():
        logging.getLogger(logger_name).setLevel(logger_level)

"""Small shared helpers (logging, table IO)."""

from .data_loading import read_table
from .logging_config import get_logger, log_dict

__all__ = ["get_logger", "log_dict", "read_table"]

"""Lightweight helpers to load the external input tables."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

__all__ = ["read_table"]


def read_table(path: str | Path) -> pd.DataFrame:
    """Read a long-format table keeping columns as stored (no index parsing)."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    suffix = path.suffix.lower()
    if suffix in {".parquet", ".pq"}:
        return pd.read_parquet(path)
    if suffix in {".csv"}:
        return pd.read_csv(path)
    if suffix in {".pkl", ".pickle"}:
        return pd.read_pickle(path)
    if suffix in {".feather"}:
        return pd.read_feather(path)
    raise ValueError(f"Unsupported data format for {path}")

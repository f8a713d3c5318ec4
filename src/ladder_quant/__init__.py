"""Ladder Quant Lab: backtest of a rolling 7-10 year bond ladder.

O código-fonte vive em `src/ladder_quant/` e é consumido principalmente via
CLI (`ladder-quant backtest --config configs/ladder_7_10.yaml --no-dry-run`)
ou pela API :func:`ladder_quant.backtesting.run_ladder_backtest`.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:  # pragma: no cover - depende de instalação do pacote
    __version__ = version("ladder-quant-lab")
except PackageNotFoundError:  # pragma: no cover - fallback para ambiente sem install
    __version__ = "0.0.0"

__all__ = ["__version__"]

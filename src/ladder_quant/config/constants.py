"""Constantes centrais utilizadas em múltiplos módulos.

O arquivo consolida nomes de colunas das tabelas de entrada, os parâmetros
da estratégia padrão de *ladder* (7 a 10 anos, apenas *notes*) e
tolerâncias numéricas para comparações de caixa.
"""

from __future__ import annotations

from typing import Final

__all__ = [
    "CASH_TOLERANCE",
    "COLUMN_BASIS",
    "COLUMN_COUPON_PERIOD",
    "COLUMN_COUPON_RATE",
    "COLUMN_DATE",
    "COLUMN_INSTRUMENT",
    "COLUMN_INSTRUMENT_TYPE",
    "COLUMN_ISSUE_DATE",
    "COLUMN_MATURITY",
    "COLUMN_PAYMENT",
    "COLUMN_PRICE",
    "COLUMN_TTM",
    "DAYS_IN_YEAR",
    "DEFAULT_BASE_CURRENCY",
    "DEFAULT_CONFIG_NAME",
    "DEFAULT_EXCLUDED_TYPES",
    "DEFAULT_GRACE_DAYS",
    "DEFAULT_GRID_OFFSET_YEARS",
    "DEFAULT_GRID_POINTS",
    "DEFAULT_GRID_STEP_MONTHS",
    "DEFAULT_INITIAL_WEALTH",
    "DEFAULT_MAX_DAYS",
    "DEFAULT_MIN_DAYS",
    "DEFAULT_TRANSACTION_COST",
    "TRADING_DAYS_IN_YEAR",
]


# Numeric constants ---------------------------------------------------------

DAYS_IN_YEAR: Final[int] = 365
"""Número de dias-calendário em um ano."""

TRADING_DAYS_IN_YEAR: Final[int] = 252
"""Número típico de pregões por ano, usado na anualização de métricas."""

CASH_TOLERANCE: Final[float] = 1e-6
"""Tolerância absoluta (em unidades monetárias) para conferência de caixa."""


# Column names --------------------------------------------------------------

COLUMN_DATE: Final[str] = "date"
COLUMN_INSTRUMENT: Final[str] = "instrument_id"
COLUMN_PRICE: Final[str] = "price"
COLUMN_MATURITY: Final[str] = "maturity"
COLUMN_ISSUE_DATE: Final[str] = "issue_date"
COLUMN_COUPON_RATE: Final[str] = "coupon_rate"
COLUMN_COUPON_PERIOD: Final[str] = "coupon_period"
COLUMN_BASIS: Final[str] = "basis"
COLUMN_INSTRUMENT_TYPE: Final[str] = "instrument_type"
COLUMN_PAYMENT: Final[str] = "payment"
COLUMN_TTM: Final[str] = "ttm_days"


# Strategy defaults ---------------------------------------------------------

DEFAULT_BASE_CURRENCY: Final[str] = "USD"

DEFAULT_CONFIG_NAME: Final[str] = "ladder_7_10.yaml"
"""Arquivo YAML usado quando o backtest é chamado sem ``--config``."""

DEFAULT_INITIAL_WEALTH: Final[float] = 10_000.0

DEFAULT_MIN_DAYS: Final[int] = 7 * DAYS_IN_YEAR + 2
"""Limite inferior da banda de vencimentos; exclui as *notes* de 7 anos."""

DEFAULT_MAX_DAYS: Final[int] = 10 * DAYS_IN_YEAR

DEFAULT_GRACE_DAYS: Final[int] = 5
"""Dias adicionais abaixo de ``min_days`` que antecipam a venda."""

DEFAULT_TRANSACTION_COST: Final[float] = 0.3
"""Custo fixo por unidade negociada (somado na compra, subtraído na venda)."""

DEFAULT_EXCLUDED_TYPES: Final[tuple[str, ...]] = ("30-Year BOND",)

DEFAULT_GRID_OFFSET_YEARS: Final[int] = 7
DEFAULT_GRID_STEP_MONTHS: Final[int] = 3
DEFAULT_GRID_POINTS: Final[int] = 12

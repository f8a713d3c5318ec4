from .transaction_costs import PRICE_DECIMALS, SIDES, cost_paid, trade_price, trade_prices

__all__ = ["PRICE_DECIMALS", "SIDES", "cost_paid", "trade_price", "trade_prices"]

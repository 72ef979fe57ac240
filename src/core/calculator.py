from __future__ import annotations

import math
from typing import List, Optional

from src.core.errors import InvalidInputError, UndefinedRatioError
from src.models.trade import TradeRequest, TradeResult

DIRECTION_VIOLATION = (
    "Invalid trade parameters: For long positions, Take Profit > Entry > Stop Loss. "
    "For short positions, Take Profit < Entry < Stop Loss."
)


def _is_positive(value: Optional[float]) -> bool:
    return value is not None and value > 0


def validate_trade(request: TradeRequest) -> List[str]:
    """Return every violation found in ``request``; an empty list means valid."""
    errors: List[str] = []

    if not _is_positive(request.entry_price):
        errors.append("Entry price must be positive")
    if not _is_positive(request.stop_loss):
        errors.append("Stop loss must be positive")
    if not _is_positive(request.take_profit):
        errors.append("Take profit must be positive")
    if not _is_positive(request.position_size):
        errors.append("Position size must be positive")

    if request.leverage is not None and request.leverage < 1:
        errors.append("Leverage must be at least 1")

    entry, sl, tp = request.entry_price, request.stop_loss, request.take_profit
    if entry is not None and sl is not None and tp is not None:
        is_long_valid = tp > entry and entry > sl
        is_short_valid = tp < entry and entry < sl
        if not is_long_valid and not is_short_valid:
            errors.append(DIRECTION_VIOLATION)

    return errors


def calculate_trade(request: TradeRequest) -> TradeResult:
    """Leveraged linear P&L for the take-profit and stop-loss legs.

    profit/loss are the relative price move from entry times notional size
    times leverage, signed from the trader's side (a short profits when the
    target is below entry). They are rounded with the builtin ``round``
    (half-to-even) to 2 decimals; the risk-reward ratio to 4 decimals.

    Raises InvalidInputError on non-positive or non-finite prices/size or
    leverage below 1 or results too large to represent, and
    UndefinedRatioError when the stop equals entry.
    """
    prices = (request.entry_price, request.stop_loss, request.take_profit, request.position_size)
    if any(p is None or not math.isfinite(p) or p <= 0 for p in prices):
        raise InvalidInputError("All prices and position size must be positive")

    leverage = 1.0 if request.leverage is None else float(request.leverage)
    if not math.isfinite(leverage) or leverage < 1:
        raise InvalidInputError("Leverage must be at least 1")

    entry = float(request.entry_price)
    size = float(request.position_size)

    price_delta_tp = float(request.take_profit) - entry
    price_delta_sl = float(request.stop_loss) - entry

    # A short gains as price falls: flip the sign so profit/loss read the same for both sides.
    direction = -1.0 if price_delta_tp < 0 else 1.0

    profit = direction * (price_delta_tp / entry) * size * leverage
    loss = direction * (price_delta_sl / entry) * size * leverage

    if loss == 0:
        raise UndefinedRatioError("Risk-reward ratio is undefined when stop loss equals entry price")

    risk_reward_ratio = abs(profit / loss)

    if not all(math.isfinite(v) for v in (profit, loss, risk_reward_ratio)):
        raise InvalidInputError("Trade size overflows: profit/loss are not finite")

    return TradeResult(
        profit=round(profit, 2),
        loss=round(loss, 2),
        risk_reward_ratio=round(risk_reward_ratio, 4),
        position_size=request.position_size,
        leverage=leverage,
        currency_pair=request.currency_pair,
    )

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TradeRequest:
    entry_price: Optional[float] = None
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    position_size: Optional[float] = None
    leverage: Optional[float] = 1.0
    currency_pair: str = ""


@dataclass(frozen=True)
class TradeResult:
    profit: float
    loss: float
    risk_reward_ratio: float
    position_size: float
    leverage: float
    currency_pair: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "profit": self.profit,
            "loss": self.loss,
            "riskRewardRatio": self.risk_reward_ratio,
            "positionSize": self.position_size,
            "leverage": self.leverage,
            "currencyPair": self.currency_pair,
        }


@dataclass(frozen=True)
class TradingSession:
    """A persisted calculation, as read back for history listings."""

    id: int
    entry_price: float
    stop_loss: float
    take_profit: float
    position_size: float
    leverage: float
    currency_pair: str
    profit: float
    loss: float
    risk_reward_ratio: float
    created_at: datetime
    wallet_address: Optional[str] = None

    def to_dict(self, *, include_wallet: bool = False) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "entryPrice": self.entry_price,
            "stopLoss": self.stop_loss,
            "takeProfit": self.take_profit,
            "positionSize": self.position_size,
            "leverage": self.leverage,
            "currencyPair": self.currency_pair,
            "profit": self.profit,
            "loss": self.loss,
            "riskRewardRatio": self.risk_reward_ratio,
            "createdAt": self.created_at.isoformat(),
        }
        if include_wallet:
            out["walletAddress"] = self.wallet_address
        return out

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class PriceQuote:
    currency_pair: str
    price: float
    source: str
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "currencyPair": self.currency_pair,
            "price": self.price,
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
        }


@dataclass(frozen=True)
class PriceSample:
    currency_pair: str
    price: float
    source: str
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "currency_pair": self.currency_pair,
            "price": self.price,
            "source": self.source,
            "timestamp": self.timestamp.isoformat(),
        }

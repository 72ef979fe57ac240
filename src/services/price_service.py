from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Protocol, Sequence

from src.connectors.price_sources import PriceSource, StaticPriceSource
from src.models.market import PriceQuote, PriceSample


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Logger(Protocol):
    def log_error(self, message: str) -> None: ...

    def log_info(self, message: str) -> None: ...

    def log_price(self, currency_pair: str, price: float, source: str) -> None: ...

    def log_source_failed(self, source: str, error: str) -> None: ...


class PriceRepository(Protocol):
    def record_price(self, currency_pair: str, price: float, source: str) -> int: ...

    def fetch_price_history(self, currency_pair: str, hours: float = 24) -> List[PriceSample]: ...


@dataclass
class PriceService:
    """Current price lookup across ordered sources with a static fallback.

    Sources are tried one at a time, in order. The first positive price wins;
    a raising or non-positive source is logged and skipped. The fallback table
    always answers, so get_price never fails on source errors.
    """

    sources: Sequence[PriceSource]
    repository: PriceRepository
    logger: Logger

    fallback: PriceSource = field(default_factory=StaticPriceSource)
    clock: Callable[[], datetime] = _utcnow

    async def get_price(self, currency_pair: str) -> PriceQuote:
        price, source = await self._fetch_from_sources(currency_pair)

        quote = PriceQuote(
            currency_pair=currency_pair,
            price=price,
            source=source,
            timestamp=self.clock(),
        )
        await self._save(quote)
        return quote

    async def get_history(self, currency_pair: str, hours: float = 24) -> List[PriceSample]:
        return await asyncio.to_thread(self.repository.fetch_price_history, currency_pair, hours)

    async def _fetch_from_sources(self, currency_pair: str) -> tuple[float, str]:
        for source in self.sources:
            try:
                price = await source.fetch(currency_pair)
            except Exception as e:
                self.logger.log_source_failed(source.name, str(e))
                continue

            if price > 0:
                self.logger.log_price(currency_pair, price, source.name)
                return price, source.name

            self.logger.log_source_failed(source.name, f"non-positive price {price}")

        price = await self.fallback.fetch(currency_pair)
        self.logger.log_price(currency_pair, price, self.fallback.name)
        return price, self.fallback.name

    async def _save(self, quote: PriceQuote) -> None:
        try:
            await asyncio.to_thread(
                self.repository.record_price, quote.currency_pair, quote.price, quote.source.lower()
            )
        except Exception as e:
            self.logger.log_error(f"Error saving price feed: {e}")

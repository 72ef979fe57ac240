from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import List, Optional, Protocol

from src.core.calculator import calculate_trade, validate_trade
from src.core.errors import ValidationFailure
from src.models.trade import TradeRequest, TradeResult, TradingSession
from src.storage.database import HISTORY_LIMIT


class Logger(Protocol):
    def log_error(self, message: str) -> None: ...

    def log_info(self, message: str) -> None: ...

    def log_trade_calculated(self, currency_pair: str, profit: float, loss: float, ratio: float) -> None: ...

    def log_session_saved(self, wallet_address: str) -> None: ...


class SessionRepository(Protocol):
    def save_trading_session(self, wallet_address: str, request: TradeRequest, result: TradeResult) -> int: ...

    def fetch_history(self, wallet_address: str, limit: int = HISTORY_LIMIT) -> List[TradingSession]: ...

    def fetch_recent(self, limit: int = 20) -> List[TradingSession]: ...


@dataclass
class TradeService:
    repository: SessionRepository
    logger: Logger

    async def calculate(self, request: TradeRequest, wallet_address: Optional[str] = None) -> TradeResult:
        violations = validate_trade(request)
        if violations:
            raise ValidationFailure(violations)

        result = calculate_trade(request)
        self.logger.log_trade_calculated(
            result.currency_pair, result.profit, result.loss, result.risk_reward_ratio
        )

        if wallet_address:
            try:
                await asyncio.to_thread(self.repository.save_trading_session, wallet_address, request, result)
            except Exception as e:
                self.logger.log_error(f"Error saving trading session: {e}")
                raise
            self.logger.log_session_saved(wallet_address)

        return result

    async def history(self, wallet_address: str) -> List[TradingSession]:
        return await asyncio.to_thread(self.repository.fetch_history, wallet_address, HISTORY_LIMIT)

    async def recent(self, limit: int = 20) -> List[TradingSession]:
        return await asyncio.to_thread(self.repository.fetch_recent, limit)

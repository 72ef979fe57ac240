from dataclasses import dataclass, field
from typing import List, Tuple

import pytest


@dataclass
class StubLogger:
    infos: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    prices: List[Tuple[str, float, str]] = field(default_factory=list)
    saved_wallets: List[str] = field(default_factory=list)

    def log_info(self, message: str) -> None:
        self.infos.append(message)

    def log_warning(self, message: str) -> None:
        self.warnings.append(message)

    def log_error(self, message: str) -> None:
        self.errors.append(message)

    def log_price(self, currency_pair: str, price: float, source: str) -> None:
        self.prices.append((currency_pair, price, source))

    def log_source_failed(self, source: str, error: str) -> None:
        self.warnings.append(f"{source} failed: {error}")

    def log_trade_calculated(self, currency_pair: str, profit: float, loss: float, ratio: float) -> None:
        self.infos.append(f"{currency_pair} {profit} {loss} {ratio}")

    def log_session_saved(self, wallet_address: str) -> None:
        self.saved_wallets.append(wallet_address)

    def log_request_rejected(self, path: str, reasons: List[str]) -> None:
        self.warnings.append(f"{path}: {'; '.join(reasons)}")


@pytest.fixture
def stub_logger() -> StubLogger:
    return StubLogger()

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv


def _getenv_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _getenv_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return float(raw)


def _getenv_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return int(raw)


def _getenv_list(name: str, default: str) -> Tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Config:
    host: str
    port: int
    environment: str

    db_path: str

    web3_provider_url: str
    chainlink_rpc_url: str

    binance_api_key: str
    binance_api_secret: str
    coingecko_host: str
    price_timeout_seconds: float
    coingecko_rps: int
    mock_prices: bool

    rate_limit_max: int
    rate_limit_window_seconds: float
    cors_origins: Tuple[str, ...]

    log_dir: str
    log_level: str

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def load(cls, dotenv_path: Optional[str] = None) -> "Config":
        load_dotenv(dotenv_path=dotenv_path)

        web3_url = os.getenv("WEB3_PROVIDER_URL", "http://localhost:8545")

        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=_getenv_int("PORT", 3001),
            environment=os.getenv("APP_ENV", os.getenv("NODE_ENV", "development")),
            db_path=os.getenv("DB_PATH", "data/trading_calculator.db"),
            web3_provider_url=web3_url,
            chainlink_rpc_url=os.getenv("CHAINLINK_RPC_URL") or web3_url,
            binance_api_key=os.getenv("BINANCE_API_KEY", ""),
            binance_api_secret=os.getenv("BINANCE_API_SECRET", ""),
            coingecko_host=os.getenv("COINGECKO_HOST", "https://api.coingecko.com"),
            price_timeout_seconds=_getenv_float("PRICE_TIMEOUT_SECONDS", 10.0),
            coingecko_rps=_getenv_int("COINGECKO_RPS", 5),
            mock_prices=_getenv_bool("MOCK_PRICES", False),
            rate_limit_max=_getenv_int("RATE_LIMIT_MAX", 100),
            rate_limit_window_seconds=_getenv_float("RATE_LIMIT_WINDOW_SECONDS", 15 * 60.0),
            cors_origins=_getenv_list("CORS_ORIGINS", "*"),
            log_dir=os.getenv("LOG_DIR", "logs"),
            log_level=os.getenv("LOG_LEVEL", "info"),
        )

    def validate(self) -> None:
        if not (0 < self.port < 65536):
            raise ValueError("PORT must be between 1 and 65535")
        if not self.db_path:
            raise ValueError("DB_PATH must not be empty")
        if self.price_timeout_seconds <= 0:
            raise ValueError("PRICE_TIMEOUT_SECONDS must be > 0")
        if self.coingecko_rps < 0:
            raise ValueError("COINGECKO_RPS must be >= 0")
        if self.rate_limit_max < 0:
            raise ValueError("RATE_LIMIT_MAX must be >= 0")
        if self.rate_limit_window_seconds <= 0:
            raise ValueError("RATE_LIMIT_WINDOW_SECONDS must be > 0")

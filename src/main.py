from __future__ import annotations

import os
import sys
from typing import List

import uvicorn

if __package__ is None or __package__ == "":
    # Allow running via: python src/main.py
    sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from src.api.app import AppServices, create_app
from src.connectors.price_sources import (
    BinancePriceSource,
    ChainlinkPriceSource,
    CoinGeckoPriceSource,
    PriceSource,
)
from src.connectors.web3_rpc import Web3RpcClient
from src.core.config import Config
from src.core.rate_limiter import AsyncRateLimiter, ClientRateLimiter
from src.logger.console_logger import ConsoleLogger
from src.services.price_service import PriceService
from src.services.trade_service import TradeService
from src.storage.database import TradeDatabase


def build_price_sources(cfg: Config) -> List[PriceSource]:
    if cfg.mock_prices:
        return []

    chainlink_rpc = Web3RpcClient(url=cfg.chainlink_rpc_url, timeout=cfg.price_timeout_seconds)
    return [
        ChainlinkPriceSource(rpc=chainlink_rpc),
        BinancePriceSource(api_key=cfg.binance_api_key, api_secret=cfg.binance_api_secret),
        CoinGeckoPriceSource(
            host=cfg.coingecko_host,
            timeout=cfg.price_timeout_seconds,
            rate_limiter=AsyncRateLimiter(max_calls=cfg.coingecko_rps, period_seconds=1.0),
        ),
    ]


def check_database_connection(db: TradeDatabase, logger: ConsoleLogger) -> bool:
    try:
        now = db.ping()
    except Exception as e:
        logger.log_error(f"Database connection failed: {e}")
        logger.log_info("💡 Check DB_PATH in your .env file")
        return False

    logger.log_info("✅ Database connected successfully")
    logger.log_info(f"📊 Database time: {now}")
    return True


def main() -> None:
    cfg = Config.load()
    cfg.validate()

    logger = ConsoleLogger(log_dir=cfg.log_dir, log_level=cfg.log_level)

    logger.log_info("🔌 Testing database connection...")
    try:
        db = TradeDatabase(cfg.db_path)
    except Exception as e:
        logger.log_error(f"Cannot open database at {cfg.db_path}: {e}")
        sys.exit(1)

    if not check_database_connection(db, logger):
        logger.log_error("Cannot start server without database connection")
        sys.exit(1)

    services = AppServices(
        config=cfg,
        trade_service=TradeService(repository=db, logger=logger),
        price_service=PriceService(sources=build_price_sources(cfg), repository=db, logger=logger),
        rpc=Web3RpcClient(url=cfg.web3_provider_url, timeout=cfg.price_timeout_seconds),
        logger=logger,
        rate_limiter=ClientRateLimiter(max_calls=cfg.rate_limit_max, period_seconds=cfg.rate_limit_window_seconds),
        db_ping=db.ping,
    )
    app = create_app(services)

    logger.log_startup(cfg.host, cfg.port, cfg.environment)
    try:
        uvicorn.run(app, host=cfg.host, port=cfg.port, log_level="warning")
    finally:
        db.close()


if __name__ == "__main__":
    main()

"""
FastAPI application exposing trade calculations, price lookups and Web3 status.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.connectors.web3_rpc import Web3RpcClient
from src.core.config import Config
from src.core.errors import InvalidInputError, ValidationFailure
from src.core.rate_limiter import ClientRateLimiter
from src.core.validation import (
    is_in_range,
    is_valid_address,
    is_valid_currency_pair,
    normalize_currency_pair,
    validate_request_fields,
)
from src.core.web3_utils import generate_nonce, get_balance_ether, validate_address, verify_signature
from src.logger.console_logger import ConsoleLogger
from src.models.trade import TradeRequest
from src.services.price_service import PriceService
from src.services.trade_service import TradeService

REQUIRED_TRADE_FIELDS = ["entryPrice", "stopLoss", "takeProfit", "positionSize", "currencyPair"]

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-DNS-Prefetch-Control": "off",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
}

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."
MAX_HISTORY_HOURS = 720


class CalculateTradeBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    entry_price: Optional[float] = Field(default=None, alias="entryPrice")
    stop_loss: Optional[float] = Field(default=None, alias="stopLoss")
    take_profit: Optional[float] = Field(default=None, alias="takeProfit")
    position_size: Optional[float] = Field(default=None, alias="positionSize")
    leverage: Optional[float] = None
    currency_pair: Optional[str] = Field(default=None, alias="currencyPair")
    wallet_address: Optional[str] = Field(default=None, alias="walletAddress")

    def missing_fields(self) -> List[str]:
        values = {
            "entryPrice": self.entry_price,
            "stopLoss": self.stop_loss,
            "takeProfit": self.take_profit,
            "positionSize": self.position_size,
            "currencyPair": self.currency_pair or None,
        }
        return [name for name in REQUIRED_TRADE_FIELDS if values[name] is None]

    def to_trade_request(self) -> TradeRequest:
        return TradeRequest(
            entry_price=self.entry_price,
            stop_loss=self.stop_loss,
            take_profit=self.take_profit,
            position_size=self.position_size,
            leverage=1.0 if self.leverage is None else self.leverage,
            currency_pair=(self.currency_pair or "").strip(),
        )


class VerifySignatureBody(BaseModel):
    message: str
    signature: str
    address: str


@dataclass
class AppServices:
    config: Config
    trade_service: TradeService
    price_service: PriceService
    rpc: Web3RpcClient
    logger: ConsoleLogger
    rate_limiter: ClientRateLimiter
    db_ping: Optional[Callable[[], Any]] = None


def _error_message(config: Config, exc: Exception) -> str:
    return str(exc) if config.is_development else "Something went wrong"


def create_app(services: AppServices) -> FastAPI:
    config = services.config
    logger = services.logger

    app = FastAPI(title="Trading Calculator API")
    app.state.services = services

    @app.middleware("http")
    async def rate_limit_and_headers(request: Request, call_next):
        client_id = request.client.host if request.client else "unknown"
        if not await services.rate_limiter.try_acquire(client_id):
            retry_after = int(services.rate_limiter.retry_after(client_id)) + 1
            response = JSONResponse(
                status_code=429,
                content={"error": RATE_LIMIT_MESSAGE},
                headers={"Retry-After": str(retry_after)},
            )
        else:
            response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        return response

    # Must stay outermost: 429 responses need CORS headers too.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        details = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
            details.append(f"{loc}: {err.get('msg', 'invalid value')}" if loc else err.get("msg", "invalid value"))
        logger.log_request_rejected(request.url.path, details)
        return JSONResponse(status_code=400, content={"error": "Validation failed", "details": details})

    @app.exception_handler(ValidationFailure)
    async def handle_validation_failure(request: Request, exc: ValidationFailure):
        logger.log_request_rejected(request.url.path, exc.violations)
        return JSONResponse(status_code=400, content={"error": "Validation failed", "details": exc.violations})

    @app.exception_handler(InvalidInputError)
    async def handle_invalid_input(request: Request, exc: InvalidInputError):
        return JSONResponse(status_code=400, content={"error": "Invalid trade input", "message": str(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={"error": "Route not found", "path": request.url.path, "method": request.method},
            )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.log_error(f"Error: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "message": _error_message(config, exc)},
        )

    def _internal_error(context: str, exc: Exception) -> JSONResponse:
        logger.log_error(f"{context}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "message": _error_message(config, exc)},
        )

    # --- trades ---

    @app.post("/api/trades/calculate")
    async def calculate_trade(body: CalculateTradeBody):
        missing = body.missing_fields()
        if missing:
            logger.log_request_rejected("/api/trades/calculate", [f"missing {name}" for name in missing])
            return JSONResponse(
                status_code=400,
                content={"error": "Missing required fields", "required": REQUIRED_TRADE_FIELDS},
            )

        field_errors = validate_request_fields(body.model_dump(by_alias=True))
        if field_errors:
            raise ValidationFailure(field_errors)

        try:
            result = await services.trade_service.calculate(body.to_trade_request(), body.wallet_address)
        except (ValidationFailure, InvalidInputError):
            raise
        except Exception as e:
            return _internal_error("Trade calculation error", e)

        return {
            "success": True,
            "data": result.to_dict(),
            "message": "Trade calculated successfully",
        }

    @app.get("/api/trades/history/{wallet_address}")
    async def trade_history(wallet_address: str):
        if not is_valid_address(wallet_address):
            return JSONResponse(status_code=400, content={"error": "Invalid wallet address"})

        try:
            sessions = await services.trade_service.history(wallet_address)
        except Exception as e:
            return _internal_error("Trade history error", e)

        return {
            "success": True,
            "data": [s.to_dict() for s in sessions],
            "count": len(sessions),
        }

    @app.get("/api/trades/recent")
    async def recent_trades(limit: int = Query(20)):
        limit = max(1, min(100, limit))
        try:
            sessions = await services.trade_service.recent(limit)
        except Exception as e:
            return _internal_error("Recent trades error", e)

        return {
            "success": True,
            "data": [s.to_dict(include_wallet=True) for s in sessions],
        }

    # --- prices ---

    def _pair_or_error(raw: str) -> tuple[Optional[str], Optional[JSONResponse]]:
        pair = normalize_currency_pair(raw)
        if not is_valid_currency_pair(pair):
            return None, JSONResponse(
                status_code=400,
                content={"error": "Invalid currency pair", "message": "Expected BASE/QUOTE, e.g. BTC/USD"},
            )
        return pair, None

    @app.get("/api/prices/history/{currency_pair:path}")
    async def price_history(currency_pair: str, hours: int = Query(24)):
        pair, error = _pair_or_error(currency_pair)
        if error is not None:
            return error
        if not is_in_range(hours, 1, MAX_HISTORY_HOURS):
            return JSONResponse(
                status_code=400,
                content={"error": "Invalid hours", "message": f"hours must be between 1 and {MAX_HISTORY_HOURS}"},
            )

        try:
            samples = await services.price_service.get_history(pair, hours=hours)
        except Exception as e:
            return _internal_error("Price history error", e)

        return {"success": True, "data": [s.to_dict() for s in samples]}

    @app.get("/api/prices/{currency_pair:path}")
    async def current_price(currency_pair: str):
        pair, error = _pair_or_error(currency_pair)
        if error is not None:
            return error

        try:
            quote = await services.price_service.get_price(pair)
        except Exception as e:
            logger.log_error(f"Price fetch error: {e}")
            return JSONResponse(status_code=500, content={"error": "Failed to fetch price", "message": str(e)})

        return {"success": True, "data": quote.to_dict()}

    # --- health / web3 ---

    @app.get("/api/health")
    async def health_check():
        database = "connected"
        if services.db_ping is not None:
            try:
                await asyncio.to_thread(services.db_ping)
            except Exception as e:
                logger.log_error(f"Database ping failed: {e}")
                database = "disconnected"

        return {
            "status": "OK",
            "message": "Trading Calculator API is running!",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": config.environment,
            "services": {"database": database, "web3": "available"},
        }

    @app.get("/api/web3/status")
    async def web3_status():
        try:
            block_number = await asyncio.to_thread(services.rpc.block_number)
            chain_id = await asyncio.to_thread(services.rpc.chain_id)
        except Exception as e:
            logger.log_error(f"Web3 connection error: {e}")
            return {"connected": False, "error": str(e)}

        return {
            "connected": True,
            "blockNumber": block_number,
            "network": {"chainId": chain_id},
            "provider": config.web3_provider_url,
        }

    @app.get("/api/web3/nonce")
    async def web3_nonce():
        return {"nonce": generate_nonce()}

    @app.get("/api/web3/balance/{address}")
    async def web3_balance(address: str):
        if not validate_address(address):
            return JSONResponse(status_code=400, content={"error": "Invalid wallet address"})
        try:
            balance = await asyncio.to_thread(get_balance_ether, services.rpc, address)
        except RuntimeError as e:
            logger.log_error(f"Error getting balance: {e.__cause__ or e}")
            return JSONResponse(status_code=502, content={"error": str(e)})
        return {"address": address, "balance": balance, "unit": "ETH"}

    @app.post("/api/web3/verify")
    async def web3_verify(body: VerifySignatureBody):
        if not validate_address(body.address):
            return JSONResponse(status_code=400, content={"error": "Invalid wallet address"})
        return {"valid": verify_signature(body.message, body.signature, body.address)}

    return app

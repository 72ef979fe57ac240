from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

import requests
from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError

from src.connectors.web3_rpc import Web3RpcClient
from src.core.errors import PriceSourceError
from src.core.rate_limiter import AsyncRateLimiter

CHAINLINK_FEEDS: Dict[str, str] = {
    "BTC/USD": "0xF4030086522a5bEEa4988F8cA5B36dbC97BeE88c",
    "ETH/USD": "0x5f4eC3Df9cbd43714FE2740f5E3616155c5b8419",
    "SOL/USD": "0x4ffC43a60e009B551865A93d232E1F8dAa817A03",
}

COINGECKO_IDS: Dict[str, str] = {
    "BTC/USD": "bitcoin",
    "ETH/USD": "ethereum",
    "SOL/USD": "solana",
}

STATIC_PRICES: Dict[str, float] = {
    "BTC/USD": 45_000.0,
    "ETH/USD": 3_000.0,
    "SOL/USD": 100.0,
}

# latestRoundData() -> (uint80 roundId, int256 answer, uint256 startedAt, uint256 updatedAt, uint80 answeredInRound)
LATEST_ROUND_DATA_SELECTOR = "0xfeaf968c"
LATEST_ROUND_DATA_TYPES = ["uint80", "int256", "uint256", "uint256", "uint80"]
CHAINLINK_DECIMALS = 8


class PriceSource(Protocol):
    name: str

    async def fetch(self, currency_pair: str) -> float: ...


def decode_latest_round_answer(result_hex: str) -> int:
    data = result_hex[2:] if result_hex.startswith("0x") else result_hex
    try:
        _round_id, answer, _started_at, _updated_at, _answered_in_round = abi_decode(
            LATEST_ROUND_DATA_TYPES, bytes.fromhex(data)
        )
    except DecodingError as e:
        raise ValueError(f"Cannot decode latestRoundData: {e}") from e
    return answer


@dataclass
class ChainlinkPriceSource:
    rpc: Web3RpcClient
    feeds: Dict[str, str] = field(default_factory=lambda: dict(CHAINLINK_FEEDS))
    name: str = "Chainlink"

    async def fetch(self, currency_pair: str) -> float:
        feed = self.feeds.get(currency_pair)
        if feed is None:
            raise PriceSourceError(self.name, f"No Chainlink feed for {currency_pair}")

        def _do() -> str:
            return self.rpc.call(feed, LATEST_ROUND_DATA_SELECTOR)

        try:
            raw = await asyncio.to_thread(_do)
            answer = decode_latest_round_answer(raw)
        except (requests.RequestException, RuntimeError, ValueError) as e:
            raise PriceSourceError(self.name, str(e)) from e

        return answer / 10**CHAINLINK_DECIMALS


def to_binance_symbol(currency_pair: str) -> str:
    base, _, quote = currency_pair.upper().partition("/")
    if quote == "USD":
        quote = "USDT"
    return f"{base}/{quote}"


@dataclass
class BinancePriceSource:
    api_key: str = ""
    api_secret: str = ""
    name: str = "Binance"

    _exchange: Any = field(default=None, init=False, repr=False)

    def _client(self) -> Any:
        if self._exchange is None:
            import ccxt

            self._exchange = ccxt.binance(
                {
                    "enableRateLimit": True,
                    "apiKey": self.api_key,
                    "secret": self.api_secret,
                }
            )
        return self._exchange

    async def fetch(self, currency_pair: str) -> float:
        symbol = to_binance_symbol(currency_pair)

        def _do() -> Any:
            return self._client().fetch_ticker(symbol)

        try:
            ticker = await asyncio.to_thread(_do)
            return float(ticker["last"])
        except Exception as e:
            # ccxt raises its own hierarchy; any failure hands over to the next source
            raise PriceSourceError(self.name, str(e)) from e


@dataclass
class CoinGeckoPriceSource:
    host: str = "https://api.coingecko.com"
    timeout: float = 10.0
    coin_ids: Dict[str, str] = field(default_factory=lambda: dict(COINGECKO_IDS))
    name: str = "CoinGecko"

    rate_limiter: AsyncRateLimiter = field(default_factory=lambda: AsyncRateLimiter(max_calls=5, period_seconds=1.0))

    async def fetch(self, currency_pair: str) -> float:
        coin_id = self.coin_ids.get(currency_pair)
        if coin_id is None:
            raise PriceSourceError(self.name, f"No CoinGecko ID for {currency_pair}")

        payload = await self._get_json("/api/v3/simple/price", params={"ids": coin_id, "vs_currencies": "usd"})
        try:
            return float(payload[coin_id]["usd"])
        except (KeyError, TypeError, ValueError) as e:
            raise PriceSourceError(self.name, f"Unexpected response: {e}") from e

    async def _get_json(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> Any:
        await self.rate_limiter.acquire()

        def _do() -> Any:
            resp = requests.get(f"{self.host}{path}", params=params, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()

        try:
            return await asyncio.to_thread(_do)
        except requests.RequestException as e:
            raise PriceSourceError(self.name, str(e)) from e


@dataclass
class StaticPriceSource:
    """Terminal source; never fails."""

    prices: Dict[str, float] = field(default_factory=lambda: dict(STATIC_PRICES))
    default: float = 1.0
    name: str = "Static"

    async def fetch(self, currency_pair: str) -> float:
        return float(self.prices.get(currency_pair, self.default))

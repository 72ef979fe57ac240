from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional

import requests


class RpcError(RuntimeError):
    pass


@dataclass
class Web3RpcClient:
    """Minimal Ethereum JSON-RPC client over HTTP."""

    url: str = "http://localhost:8545"
    timeout: float = 10.0

    session: requests.Session = field(default_factory=requests.Session, repr=False)
    _ids: Iterator[int] = field(default_factory=lambda: itertools.count(1), init=False, repr=False)

    def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params or []}
        resp = self.session.post(self.url, json=payload, timeout=self.timeout)
        resp.raise_for_status()
        body = resp.json()
        if not isinstance(body, dict):
            raise RpcError(f"Malformed JSON-RPC response for {method}")
        if body.get("error"):
            err = body["error"]
            message = err.get("message") if isinstance(err, dict) else str(err)
            raise RpcError(f"{method} failed: {message}")
        if "result" not in body:
            raise RpcError(f"{method} returned no result")
        return body["result"]

    def block_number(self) -> int:
        return int(self.request("eth_blockNumber"), 16)

    def chain_id(self) -> int:
        return int(self.request("eth_chainId"), 16)

    def get_balance(self, address: str) -> int:
        """Balance in wei at the latest block."""
        return int(self.request("eth_getBalance", [address, "latest"]), 16)

    def call(self, to: str, data: str) -> str:
        return str(self.request("eth_call", [{"to": to, "data": data}, "latest"]))

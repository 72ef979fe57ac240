from __future__ import annotations

import re
from typing import Any, List, Mapping

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_PAIR_RE = re.compile(r"^[A-Z]{3,10}/[A-Z]{3,10}$")


def is_valid_address(address: Any) -> bool:
    return isinstance(address, str) and _ADDRESS_RE.match(address) is not None


def is_valid_currency_pair(pair: Any) -> bool:
    return isinstance(pair, str) and _PAIR_RE.match(pair) is not None


def normalize_currency_pair(raw: str) -> str:
    pair = sanitize_input(raw).upper()
    for sep in ("-", "_"):
        pair = pair.replace(sep, "/")
    return pair


def sanitize_input(text: str) -> str:
    return text.strip().replace("<", "").replace(">", "")


def is_in_range(value: float, lo: float, hi: float) -> bool:
    return lo <= value <= hi


def validate_request_fields(payload: Mapping[str, Any]) -> List[str]:
    """HTTP-level checks that sit in front of the trade validator."""
    errors: List[str] = []

    pair = payload.get("currencyPair")
    if not isinstance(pair, str) or not pair.strip():
        errors.append("Valid currency pair is required")

    wallet = payload.get("walletAddress")
    if wallet and not is_valid_address(wallet):
        errors.append("Invalid wallet address")

    return errors

from __future__ import annotations

import secrets
from decimal import Decimal

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import is_address

from src.connectors.web3_rpc import Web3RpcClient

WEI_PER_ETHER = Decimal(10) ** 18


def validate_address(address: str) -> bool:
    """Hex address check; mixed-case input must carry a valid checksum."""
    try:
        return bool(is_address(address))
    except (TypeError, ValueError):
        return False


def verify_signature(message: str, signature: str, address: str) -> bool:
    try:
        recovered = Account.recover_message(encode_defunct(text=message), signature=signature)
    except Exception:
        # malformed signature bytes or unrecoverable point
        return False
    return recovered.lower() == address.lower()


def generate_nonce() -> str:
    return "0x" + secrets.token_hex(32)


def format_number(value: float, decimals: int = 2) -> str:
    return f"{value:,.{decimals}f}"


def wei_to_ether(wei: int) -> str:
    ether = Decimal(wei) / WEI_PER_ETHER
    text = format(ether.normalize(), "f")
    return text if "." in text else f"{text}.0"


def get_balance_ether(client: Web3RpcClient, address: str) -> str:
    try:
        wei = client.get_balance(address)
    except Exception as e:
        raise RuntimeError("Failed to fetch wallet balance") from e
    return wei_to_ether(wei)

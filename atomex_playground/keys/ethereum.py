from __future__ import annotations

from typing import Any

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys import keys

from atomex_playground.core.errors import ConfigurationError


def _normalize_private_key(secret_key: str) -> bytes:
    raw = str(secret_key or "").strip().lower()
    if raw.startswith("0x"):
        raw = raw[2:]
    try:
        key_bytes = bytes.fromhex(raw)
    except ValueError as exc:
        raise ConfigurationError("ethereum secret key must be hex encoded") from exc
    if len(key_bytes) != 32:
        raise ConfigurationError("ethereum secret key must be 32 bytes")
    return key_bytes


class EthereumSigner:
    def __init__(self, secret_key: str) -> None:
        key_bytes = _normalize_private_key(secret_key)
        try:
            self._account = Account.from_key(key_bytes)
            self._private_key = keys.PrivateKey(key_bytes)
        except Exception as exc:
            raise ConfigurationError(f"invalid ethereum secret key: {exc}") from exc

    async def address(self) -> str:
        return self._account.address

    async def public_key(self) -> str:
        return self._private_key.public_key.to_bytes().hex()

    async def sign_message(self, text: str) -> bytes:
        signed = self._account.sign_message(encode_defunct(text=text))
        return bytes(signed.signature)

    def sign_transaction(self, transaction: dict[str, Any]) -> bytes:
        signed = self._account.sign_transaction(transaction)
        return bytes(signed.raw_transaction)

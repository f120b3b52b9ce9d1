"""In-memory Tezos ed25519 signer and base58check encodings."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

import base58
import nacl.signing

from atomex_playground.core.errors import ConfigurationError

# base58check prefixes for the ed25519 curve
PREFIX_EDSK_SEED = bytes([13, 15, 58, 7])
PREFIX_EDSK = bytes([43, 246, 78, 7])
PREFIX_EDPK = bytes([13, 15, 37, 217])
PREFIX_TZ1 = bytes([6, 161, 159])
PREFIX_EDSIG = bytes([9, 245, 205, 134, 18])
PREFIX_BLOCK = bytes([1, 52])

GENERIC_OPERATION_WATERMARK = b"\x03"


def b58check_encode(prefix: bytes, payload: bytes) -> str:
    return base58.b58encode_check(prefix + payload).decode("ascii")


def b58check_decode(prefix: bytes, value: str) -> bytes:
    try:
        decoded = base58.b58decode_check(value.strip())
    except ValueError as exc:
        raise ValueError(f"invalid base58check value: {value[:8]}...") from exc
    if not decoded.startswith(prefix):
        raise ValueError(f"unexpected base58check prefix for {value[:8]}...")
    return decoded[len(prefix) :]


def blake2b_digest(data: bytes, *, digest_size: int = 32) -> bytes:
    return hashlib.blake2b(data, digest_size=digest_size).digest()


def encode_public_key_hash(public_key: bytes) -> str:
    return b58check_encode(PREFIX_TZ1, blake2b_digest(public_key, digest_size=20))


@dataclass(frozen=True, slots=True)
class TezosSignature:
    payload_hex: str
    sig: str
    prefix_sig: str


def _decode_secret_key(secret_key: str) -> bytes:
    raw = str(secret_key or "").strip()
    if not raw.startswith("edsk"):
        raise ConfigurationError("tezos secret key must be an unencrypted edsk key")
    try:
        if len(raw) == 54:
            seed = b58check_decode(PREFIX_EDSK_SEED, raw)
        else:
            seed = b58check_decode(PREFIX_EDSK, raw)[:32]
    except ValueError as exc:
        raise ConfigurationError(f"invalid tezos secret key: {exc}") from exc
    if len(seed) != 32:
        raise ConfigurationError("invalid tezos secret key length")
    return seed


def encode_secret_key_seed(seed: bytes) -> str:
    if len(seed) != 32:
        raise ValueError("ed25519 seed must be 32 bytes")
    return b58check_encode(PREFIX_EDSK_SEED, seed)


class TezosInMemorySigner:
    """Signs Tezos payloads with an ed25519 key held in memory.

    Signatures cover ``blake2b_256(watermark || payload)``, which is what the
    Tezos node and the exchange expect for both operations and raw messages.
    """

    def __init__(self, secret_key: str) -> None:
        self._signing_key = nacl.signing.SigningKey(_decode_secret_key(secret_key))
        self._public_key_bytes = self._signing_key.verify_key.encode()

    @property
    def public_key_bytes(self) -> bytes:
        return self._public_key_bytes

    async def public_key(self) -> str:
        return b58check_encode(PREFIX_EDPK, self._public_key_bytes)

    async def public_key_hash(self) -> str:
        return encode_public_key_hash(self._public_key_bytes)

    async def sign(self, payload_hex: str, watermark: bytes | None = None) -> TezosSignature:
        payload = bytes.fromhex(payload_hex)
        if watermark:
            payload = watermark + payload
        signature = self._signing_key.sign(blake2b_digest(payload)).signature
        return TezosSignature(
            payload_hex=payload_hex,
            sig=signature.hex(),
            prefix_sig=b58check_encode(PREFIX_EDSIG, signature),
        )

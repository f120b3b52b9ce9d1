from __future__ import annotations

import datetime as dt
import hashlib
import secrets
from decimal import Decimal, InvalidOperation
from typing import Any

DEFAULT_EXPIRATION_MINUTES = 60
SECRET_NBYTES = 20  # token_urlsafe(20) yields a 27-character secret


def generate_secret() -> str:
    return secrets.token_urlsafe(SECRET_NBYTES)


def hash_secret(secret: str) -> str:
    """Return hex sha256(sha256(secret)) over the UTF-8 bytes of the secret."""
    first = hashlib.sha256(secret.encode("utf-8")).digest()
    return hashlib.sha256(first).hexdigest()


def resolve_expiration_minutes(value: Any) -> int:
    if value is None:
        return DEFAULT_EXPIRATION_MINUTES
    raw = str(value).strip()
    try:
        minutes = int(raw)
    except ValueError:
        try:
            minutes = int(Decimal(raw))
        except (InvalidOperation, ValueError, OverflowError):
            return DEFAULT_EXPIRATION_MINUTES
    if minutes <= 0:
        return DEFAULT_EXPIRATION_MINUTES
    return minutes


def compute_refund_timestamp_ms(swap_timestamp_ms: int, expiration_minutes: Any = None) -> int:
    return int(swap_timestamp_ms) + resolve_expiration_minutes(expiration_minutes) * 60_000


def parse_timestamp_ms(value: Any) -> int:
    """Accept epoch milliseconds or an ISO-8601 timestamp and return epoch milliseconds."""
    if isinstance(value, bool):
        raise ValueError(f"invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    raw = str(value or "").strip()
    if not raw:
        raise ValueError("timestamp is required")
    if raw.isdigit():
        return int(raw)
    if raw.endswith("Z"):
        raw = f"{raw[:-1]}+00:00"
    try:
        parsed = dt.datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ValueError(f"invalid timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.UTC)
    return int(parsed.timestamp() * 1000)


def split_symbol(symbol: str) -> tuple[str, str]:
    base, sep, quote = str(symbol).strip().partition("/")
    if not sep or not base or not quote or "/" in quote:
        raise ValueError(f"symbol must be in BASE/QUOTE form: {symbol!r}")
    return base, quote


def proof_of_funds_currency(symbol: str, side: str) -> str:
    base, quote = split_symbol(symbol)
    return base if side == "Sell" else quote


def outgoing_amount(*, side: str, qty: Decimal, price: Decimal) -> Decimal:
    if side == "Sell":
        return Decimal(qty)
    return Decimal(qty) * Decimal(price)

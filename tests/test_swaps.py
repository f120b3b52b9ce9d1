from __future__ import annotations

import hashlib
from decimal import Decimal

import pytest

from atomex_playground.core.swaps import (
    DEFAULT_EXPIRATION_MINUTES,
    compute_refund_timestamp_ms,
    generate_secret,
    hash_secret,
    outgoing_amount,
    parse_timestamp_ms,
    proof_of_funds_currency,
    resolve_expiration_minutes,
    split_symbol,
)


def test_hash_secret_is_double_sha256_hex() -> None:
    expected = hashlib.sha256(hashlib.sha256(b"secret").digest()).hexdigest()
    assert hash_secret("secret") == expected
    assert len(hash_secret("secret")) == 64


def test_hash_secret_is_deterministic_and_distinct() -> None:
    assert hash_secret("abc") == hash_secret("abc")
    assert hash_secret("abc") != hash_secret("abd")


def test_hash_secret_uses_utf8_bytes() -> None:
    expected = hashlib.sha256(hashlib.sha256("süß".encode()).digest()).hexdigest()
    assert hash_secret("süß") == expected


def test_generate_secret_is_random_url_safe_27_chars() -> None:
    first = generate_secret()
    second = generate_secret()
    assert len(first) == 27
    assert first != second
    assert all(ch.isalnum() or ch in "-_" for ch in first)


@pytest.mark.parametrize("value", [None, "", "abc", "0", "-5", 0, -1, "nan"])
def test_resolve_expiration_minutes_defaults(value) -> None:
    assert resolve_expiration_minutes(value) == DEFAULT_EXPIRATION_MINUTES


def test_resolve_expiration_minutes_accepts_positive_values() -> None:
    assert resolve_expiration_minutes(30) == 30
    assert resolve_expiration_minutes("90") == 90
    assert resolve_expiration_minutes("15.9") == 15


def test_compute_refund_timestamp_ms() -> None:
    assert compute_refund_timestamp_ms(1_700_000_000_000, 30) == 1_700_000_000_000 + 30 * 60_000
    assert compute_refund_timestamp_ms(1_000, None) == 1_000 + 60 * 60_000
    assert compute_refund_timestamp_ms(1_000, "soon") == 1_000 + 60 * 60_000


def test_parse_timestamp_ms_accepts_epoch_and_iso() -> None:
    assert parse_timestamp_ms(1_700_000_000_123) == 1_700_000_000_123
    assert parse_timestamp_ms("1700000000123") == 1_700_000_000_123
    assert parse_timestamp_ms("2024-01-01T00:00:00Z") == 1_704_067_200_000
    assert parse_timestamp_ms("2024-01-01T00:00:00") == 1_704_067_200_000
    assert parse_timestamp_ms("2024-01-01T01:00:00+01:00") == 1_704_067_200_000


@pytest.mark.parametrize("value", [None, "", "yesterday", True])
def test_parse_timestamp_ms_rejects_invalid(value) -> None:
    with pytest.raises(ValueError):
        parse_timestamp_ms(value)


def test_split_symbol() -> None:
    assert split_symbol("XTZ/ETH") == ("XTZ", "ETH")
    with pytest.raises(ValueError, match="BASE/QUOTE"):
        split_symbol("XTZETH")
    with pytest.raises(ValueError, match="BASE/QUOTE"):
        split_symbol("XTZ/ETH/BTC")


def test_proof_of_funds_currency_is_the_outgoing_currency() -> None:
    assert proof_of_funds_currency("XTZ/ETH", "Sell") == "XTZ"
    assert proof_of_funds_currency("XTZ/ETH", "Buy") == "ETH"


def test_outgoing_amount() -> None:
    assert outgoing_amount(side="Sell", qty=Decimal("10"), price=Decimal("0.002")) == Decimal("10")
    assert outgoing_amount(side="Buy", qty=Decimal("10"), price=Decimal("0.002")) == Decimal("0.020")

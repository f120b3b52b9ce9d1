from __future__ import annotations

from decimal import Decimal

import pytest

from atomex_playground.cli.commands import (
    Argument,
    Command,
    CommandTable,
    parse_arguments,
    parse_chain,
    parse_expiration_minutes,
    parse_order_type,
    parse_positive_decimal,
    parse_side,
)
from atomex_playground.core.errors import CommandArgumentError


def _noop(*_args) -> None:
    return None


def _order_command() -> Command:
    return Command(
        ("createOrder",),
        _noop,
        "Create a user order",
        (
            Argument("userId"),
            Argument("price", parse_positive_decimal),
            Argument("side", parse_side),
            Argument("receivingAddress", required=False),
        ),
    )


def test_usage_marks_optional_arguments() -> None:
    assert _order_command().usage == "createOrder <userId> <price> <side> [receivingAddress]"


def test_parse_arguments_converts_and_fills_defaults() -> None:
    values = parse_arguments(_order_command(), ["mm0", "0.5", "sell"])
    assert values == ["mm0", Decimal("0.5"), "Sell", None]


def test_parse_arguments_reports_missing_argument() -> None:
    with pytest.raises(CommandArgumentError, match="missing argument side"):
        parse_arguments(_order_command(), ["mm0", "1"])


def test_parse_arguments_reports_too_many_arguments() -> None:
    with pytest.raises(CommandArgumentError, match="too many arguments for createOrder"):
        parse_arguments(_order_command(), ["mm0", "1", "Buy", "addr", "extra"])


@pytest.mark.parametrize("price", ["abc", "0", "-1", "NaN", "Infinity"])
def test_parse_arguments_rejects_bad_price(price: str) -> None:
    with pytest.raises(CommandArgumentError, match="invalid price"):
        parse_arguments(_order_command(), ["mm0", price, "Buy"])


def test_parse_side_and_order_type_are_case_insensitive() -> None:
    assert parse_side("BUY") == "Buy"
    assert parse_order_type("fillorkill") == "FillOrKill"
    with pytest.raises(ValueError):
        parse_order_type("Market")


def test_parse_chain_accepts_only_supported_chains() -> None:
    assert parse_chain("TEZ") == "tez"
    assert parse_chain("eth") == "eth"
    with pytest.raises(ValueError, match="expected one of: tez, eth"):
        parse_chain("btc")


def test_parse_expiration_minutes_is_lenient() -> None:
    assert parse_expiration_minutes("30") == 30
    assert parse_expiration_minutes("soon") == 60
    assert parse_expiration_minutes("-10") == 60


def test_command_table_resolves_every_alias() -> None:
    auth = Command(("auth", "authenticate"), _noop)
    table = CommandTable([auth, Command(("exit",), _noop)])
    assert table.resolve("auth") is auth
    assert table.resolve("authenticate") is auth
    assert table.resolve("Auth") is None
    assert auth.name == "authenticate"
    assert [command.name for command in table] == ["authenticate", "exit"]


def test_command_table_rejects_duplicate_aliases() -> None:
    with pytest.raises(ValueError, match="duplicate command alias: h"):
        CommandTable([Command(("h",), _noop), Command(("h", "help"), _noop)])

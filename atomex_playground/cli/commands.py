from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from atomex_playground.config.models import SUPPORTED_CHAINS
from atomex_playground.core.errors import CommandArgumentError
from atomex_playground.core.swaps import resolve_expiration_minutes
from atomex_playground.core.types import ORDER_SIDES, ORDER_TYPES

Handler = Callable[..., Awaitable[None] | None]


@dataclass(frozen=True, slots=True)
class Argument:
    name: str
    parse: Callable[[str], Any] = str
    required: bool = True
    default: Any = None


@dataclass(frozen=True, slots=True)
class Command:
    aliases: tuple[str, ...]
    handler: Handler
    description: str = ""
    arguments: tuple[Argument, ...] = ()

    @property
    def name(self) -> str:
        return self.aliases[-1]

    @property
    def usage(self) -> str:
        parts = [self.name]
        for argument in self.arguments:
            parts.append(f"<{argument.name}>" if argument.required else f"[{argument.name}]")
        return " ".join(parts)


def _decimal(raw: str) -> Decimal:
    try:
        value = Decimal(raw.strip())
    except InvalidOperation as exc:
        raise ValueError("expected a number") from exc
    if not value.is_finite():
        raise ValueError("expected a finite number")
    return value


def parse_positive_decimal(raw: str) -> Decimal:
    value = _decimal(raw)
    if value <= 0:
        raise ValueError("expected a positive number")
    return value


def parse_non_negative_decimal(raw: str) -> Decimal:
    value = _decimal(raw)
    if value < 0:
        raise ValueError("expected a non-negative number")
    return value


def parse_positive_int(raw: str) -> int:
    value = int(raw.strip())
    if value <= 0:
        raise ValueError("expected a positive integer")
    return value


def parse_side(raw: str) -> str:
    lookup = {side.lower(): side for side in ORDER_SIDES}
    side = lookup.get(raw.strip().lower())
    if side is None:
        raise ValueError(f"expected one of: {', '.join(ORDER_SIDES)}")
    return side


def parse_order_type(raw: str) -> str:
    lookup = {order_type.lower(): order_type for order_type in ORDER_TYPES}
    order_type = lookup.get(raw.strip().lower())
    if order_type is None:
        raise ValueError(f"expected one of: {', '.join(ORDER_TYPES)}")
    return order_type


def parse_chain(raw: str) -> str:
    chain_name = raw.strip().lower()
    if chain_name not in SUPPORTED_CHAINS:
        raise ValueError(f"expected one of: {', '.join(SUPPORTED_CHAINS)}")
    return chain_name


def parse_expiration_minutes(raw: str) -> int:
    return resolve_expiration_minutes(raw)


def parse_arguments(command: Command, tokens: Sequence[str]) -> list[Any]:
    if len(tokens) > len(command.arguments):
        raise CommandArgumentError(f"too many arguments for {command.name}")
    values: list[Any] = []
    for index, argument in enumerate(command.arguments):
        if index >= len(tokens):
            if argument.required:
                raise CommandArgumentError(f"missing argument {argument.name}")
            values.append(argument.default)
            continue
        raw = tokens[index]
        try:
            values.append(argument.parse(raw))
        except (ValueError, ArithmeticError) as exc:
            raise CommandArgumentError(f"invalid {argument.name} {raw!r}: {exc}") from exc
    return values


class CommandTable:
    def __init__(self, commands: Sequence[Command]) -> None:
        self._commands = tuple(commands)
        self._by_alias: dict[str, Command] = {}
        for command in self._commands:
            for alias in command.aliases:
                if alias in self._by_alias:
                    raise ValueError(f"duplicate command alias: {alias}")
                self._by_alias[alias] = command

    def __iter__(self):
        return iter(self._commands)

    def resolve(self, name: str) -> Command | None:
        return self._by_alias.get(name)

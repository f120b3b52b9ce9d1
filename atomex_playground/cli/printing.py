from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from rich.console import Console
from rich.table import Table


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def _qty_total(qty_profile: Any) -> str:
    if not isinstance(qty_profile, list):
        return ""
    total = Decimal(0)
    for qty in qty_profile:
        total += Decimal(str(qty))
    return str(total)


def print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def print_table(
    rows: Sequence[Mapping[str, Any]],
    *,
    title: str | None = None,
    console: Console | None = None,
) -> None:
    out = console or Console()
    if not rows:
        out.print(f"{title}: no rows" if title else "No rows")
        return
    columns: list[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(str(key))
    table = Table(title=title)
    for column in columns:
        table.add_column(column, overflow="fold")
    for row in rows:
        table.add_row(*(_cell(row.get(column)) for column in columns))
    out.print(table)


def print_order_book(order_book: Mapping[str, Any], *, console: Console | None = None) -> None:
    entries = order_book.get("entries") or []
    rows = [
        {
            "side": entry.get("side"),
            "price": entry.get("price"),
            "qty": _qty_total(entry.get("qtyProfile")),
            "qtyProfile": entry.get("qtyProfile"),
        }
        for entry in entries
        if isinstance(entry, Mapping)
    ]
    title = f"{order_book.get('symbol', '')} order book (update {order_book.get('updateId', '-')})"
    print_table(rows, title=title, console=console)

from __future__ import annotations

import asyncio
import dataclasses
import inspect
import logging
import sys
import threading
import uuid
from collections.abc import Callable, Mapping
from decimal import Decimal
from typing import Any

from atomex_playground.adapters.atomex import AtomexAdapter
from atomex_playground.chains.registry import chain_for_currency
from atomex_playground.cli.commands import (
    Argument,
    Command,
    CommandTable,
    parse_arguments,
    parse_chain,
    parse_expiration_minutes,
    parse_non_negative_decimal,
    parse_order_type,
    parse_positive_decimal,
    parse_positive_int,
    parse_side,
)
from atomex_playground.cli.printing import print_json, print_order_book, print_table
from atomex_playground.config.models import NetworkConfig
from atomex_playground.core.client import AtomexClient
from atomex_playground.core.errors import CommandArgumentError
from atomex_playground.core.swaps import split_symbol
from atomex_playground.core.types import User

PROMPT = "cmd > "

_playground_logger = logging.getLogger("atomex_playground.playground")

_USER_ID = Argument("userId")
_CHAIN = Argument("blockchainName", parse_chain)


class Playground:
    def __init__(
        self,
        network_config: NetworkConfig,
        users: Mapping[str, User],
        *,
        atomex_factory: Callable[[], AtomexAdapter] | None = None,
        client_factory: Callable[[User, str], AtomexClient] | None = None,
        input_fn: Callable[[str], str] = input,
    ) -> None:
        self.network_config = network_config
        self.network = network_config.network
        self.users: Mapping[str, User] = dict(users)
        self._atomex_factory = atomex_factory or (
            lambda: AtomexAdapter(network_config.atomex_api_base)
        )
        self._client_factory = client_factory or (
            lambda user, chain_name: AtomexClient(user, chain_name, network_config)
        )
        self._input_fn = input_fn
        self._anonymous_atomex: AtomexAdapter | None = None
        self._atomex_clients: dict[str, AtomexClient] | None = None
        self.commands = CommandTable(
            [
                Command(("h", "help"), self._help, "Help"),
                Command(("exit",), self._exit, "Exiting the program"),
                Command(
                    ("getOrderBook",),
                    self._get_order_book,
                    "Get order book and print it",
                    (Argument("symbol"),),
                ),
                Command(("getSymbols",), self._get_symbols, "Get the exchange symbols"),
                Command(("getOrders",), self._get_orders, "Get user orders", (_USER_ID, _CHAIN)),
                Command(
                    ("getOrder",),
                    self._get_order,
                    "Get a user order",
                    (_USER_ID, _CHAIN, Argument("orderId")),
                ),
                Command(
                    ("createOrder",),
                    self._create_order,
                    "Create a user order",
                    (
                        _USER_ID,
                        _CHAIN,
                        Argument("symbol"),
                        Argument("price", parse_positive_decimal),
                        Argument("qty", parse_positive_decimal),
                        Argument("side", parse_side),
                        Argument("orderType", parse_order_type),
                        Argument("receivingAddress", required=False),
                        Argument("rewardForRedeem", parse_non_negative_decimal, required=False),
                        Argument("lockTime", parse_positive_int, required=False),
                    ),
                ),
                Command(
                    ("cancelOrder",),
                    self._cancel_order,
                    "Cancel a user order",
                    (_USER_ID, _CHAIN, Argument("orderId")),
                ),
                Command(("getSwaps",), self._get_swaps, "Get user swaps", (_USER_ID, _CHAIN)),
                Command(
                    ("getSwap",),
                    self._get_swap,
                    "Get a user swap",
                    (_USER_ID, _CHAIN, Argument("swapId")),
                ),
                Command(
                    ("initiateSwap",),
                    self._initiate_swap,
                    "Initiate a swap on chain (lock funds in the swap contract)",
                    (
                        _USER_ID,
                        _CHAIN,
                        Argument("swapId"),
                        Argument("rewardForRedeem", parse_non_negative_decimal, required=False),
                        Argument("expirationMinutes", parse_expiration_minutes, required=False),
                        Argument("secret", required=False),
                    ),
                ),
                Command(("printUsers",), self._print_users, "Print a list of the current users"),
                Command(
                    ("printAtomexClients",),
                    self._print_atomex_clients,
                    "Print a list of the atomex clients",
                ),
                Command(
                    ("auth", "authenticate"),
                    self._authenticate,
                    "Authenticate a user",
                    (_USER_ID, _CHAIN),
                ),
            ]
        )

    @property
    def anonymous_atomex(self) -> AtomexAdapter:
        if self._anonymous_atomex is None:
            raise RuntimeError("Playground is not launched.")
        return self._anonymous_atomex

    @property
    def atomex_clients(self) -> Mapping[str, AtomexClient]:
        if self._atomex_clients is None:
            raise RuntimeError("Playground is not launched.")
        return self._atomex_clients

    async def launch(self) -> None:
        print("Launching...")
        await self.prepare()
        await self.run()

    async def prepare(self) -> None:
        self._anonymous_atomex = self._atomex_factory()
        clients: dict[str, AtomexClient] = {}
        for user in self.users.values():
            for chain_name in user.chain_names:
                client = self._client_factory(user, chain_name)
                clients[client.id] = client
        await asyncio.gather(*(client.initialize() for client in clients.values()))
        self._atomex_clients = clients
        _playground_logger.info(
            "playground_launched network=%s clients=%s",
            self.network,
            ",".join(clients) or "-",
        )

    async def run(self) -> None:
        while True:
            try:
                line = await self._read_line()
            except EOFError:
                print("\nExiting...")
                return
            await self.dispatch(line)

    async def _read_line(self) -> str:
        # Reads run on a daemon thread: a pending read must not block loop
        # shutdown on Ctrl-C.
        loop = asyncio.get_running_loop()
        future: asyncio.Future[str] = loop.create_future()

        def _reader() -> None:
            try:
                line = self._input_fn(PROMPT)
            except Exception as exc:
                _resolve_threadsafe(loop, future, exception=exc)
            else:
                _resolve_threadsafe(loop, future, result=line)

        threading.Thread(target=_reader, name="playground-input", daemon=True).start()
        return await future

    async def dispatch(self, line: str) -> None:
        tokens = line.split()
        if not tokens:
            return
        name, *raw_args = tokens
        command = self.commands.resolve(name)
        if command is None:
            print(f"Unknown command: {name}")
            return
        try:
            args = parse_arguments(command, raw_args)
        except CommandArgumentError as exc:
            _print_command_error(f"Invalid arguments: {exc}\nUsage: {command.usage}")
            return
        try:
            result = command.handler(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            _playground_logger.exception("command_failed command=%s", command.name)
            _print_command_error(f"Error: {exc}")

    def exit(self) -> None:
        print("Exiting...")
        raise SystemExit(0)

    def get_client(self, user_id: str, chain_name: str) -> AtomexClient | None:
        return self.atomex_clients.get(f"{user_id}_{chain_name}")

    def _require_client(self, user_id: str, chain_name: str) -> AtomexClient | None:
        client = self.get_client(user_id, chain_name)
        if client is None:
            _print_command_error(f"Client not found by the {user_id}_{chain_name} id")
        return client

    def _default_receiving_address(self, user_id: str, symbol: str, side: str) -> str | None:
        base, quote = split_symbol(symbol)
        receiving_currency = quote if side == "Sell" else base
        chain_name = chain_for_currency(receiving_currency)
        if chain_name is None:
            return None
        client = self.get_client(user_id, chain_name)
        if client is None or not client.is_initialized:
            return None
        return client.user_address

    def _help(self) -> None:
        print("\nAvailable commands:")
        for command in self.commands:
            print(" *", ", ".join(command.aliases).ljust(20), command.description)
            if command.arguments:
                print(" " * 24, "usage:", command.usage)
        print("")

    def _exit(self) -> None:
        self.exit()

    async def _get_order_book(self, symbol: str) -> None:
        print_order_book(await self.anonymous_atomex.get_order_book(symbol))

    async def _get_symbols(self) -> None:
        print_table(await self.anonymous_atomex.get_symbols(), title="Symbols")

    async def _authenticate(self, user_id: str, chain_name: str) -> None:
        client = self._require_client(user_id, chain_name)
        if client is None:
            return
        authentication = await client.authenticate()
        print(f"The {client.user.name} [{client.user.id}] user is authenticated on {chain_name}")
        print_json(
            {
                "request": authentication.request.to_payload(),
                "response": dataclasses.asdict(authentication.response),
            }
        )

    async def _get_orders(self, user_id: str, chain_name: str) -> None:
        client = self._require_client(user_id, chain_name)
        if client is None:
            return
        print_table(await client.get_orders(), title=f"{client.id} orders")

    async def _get_order(self, user_id: str, chain_name: str, order_id: str) -> None:
        client = self._require_client(user_id, chain_name)
        if client is None:
            return
        print_json(await client.get_order(order_id))

    async def _create_order(
        self,
        user_id: str,
        chain_name: str,
        symbol: str,
        price: Decimal,
        qty: Decimal,
        side: str,
        order_type: str,
        receiving_address: str | None,
        reward_for_redeem: Decimal | None,
        lock_time: int | None,
    ) -> None:
        client = self._require_client(user_id, chain_name)
        if client is None:
            return
        requisites: dict[str, Any] = {
            "secretHash": None,
            "receivingAddress": receiving_address
            or self._default_receiving_address(user_id, symbol, side),
            "rewardForRedeem": float(reward_for_redeem or 0),
        }
        if lock_time is not None:
            requisites["lockTime"] = lock_time
        draft = {
            "clientOrderId": uuid.uuid4().hex,
            "symbol": symbol,
            "price": float(price),
            "qty": float(qty),
            "side": side,
            "type": order_type,
            "requisites": requisites,
        }
        order_id = await client.create_order(draft)
        print(f"The {order_id} order is created (client order id {draft['clientOrderId']})")

    async def _cancel_order(self, user_id: str, chain_name: str, order_id: str) -> None:
        client = self._require_client(user_id, chain_name)
        if client is None:
            return
        result = await client.cancel_order(order_id)
        print(f"Result: Is the {order_id} order canceled? {result}")

    async def _get_swaps(self, user_id: str, chain_name: str) -> None:
        client = self._require_client(user_id, chain_name)
        if client is None:
            return
        swaps = await client.get_swaps()
        print_table([_swap_summary(swap) for swap in swaps], title=f"{client.id} swaps")

    async def _get_swap(self, user_id: str, chain_name: str, swap_id: str) -> None:
        client = self._require_client(user_id, chain_name)
        if client is None:
            return
        print_json(await client.get_swap(swap_id))

    async def _initiate_swap(
        self,
        user_id: str,
        chain_name: str,
        swap_id: str,
        reward_for_redeem: Decimal | None,
        expiration_minutes: int | None,
        secret: str | None,
    ) -> None:
        client = self._require_client(user_id, chain_name)
        if client is None:
            return
        initiation = await client.initiate_swap(
            swap_id,
            reward_for_redeem=reward_for_redeem,
            expiration_minutes=expiration_minutes,
            secret=secret,
        )
        print(f"The {swap_id} swap is initiated. Keep the secret to redeem it.")
        print_json(dataclasses.asdict(initiation))

    def _print_users(self) -> None:
        print_table(
            [
                {
                    "id": user.id,
                    "name": user.name,
                    "blockchains": ", ".join(user.chain_names) or "-",
                }
                for user in self.users.values()
            ],
            title="Users",
        )

    def _print_atomex_clients(self) -> None:
        print_table(
            [
                {
                    "id": client.id,
                    "userId": client.user.id,
                    "blockchainName": client.chain_name,
                    "authenticated": client.is_authenticated,
                    "user.address": client.user_address if client.is_initialized else "",
                }
                for client in self.atomex_clients.values()
            ],
            title="Atomex clients",
        )


def _swap_summary(swap: Mapping[str, Any]) -> dict[str, Any]:
    user = swap.get("user") or {}
    counter_party = swap.get("counterParty") or {}
    return {
        "id": swap.get("id"),
        "symbol": swap.get("symbol"),
        "side": swap.get("side"),
        "price": swap.get("price"),
        "qty": swap.get("qty"),
        "timeStamp": swap.get("timeStamp"),
        "isInitiator": swap.get("isInitiator"),
        "status": user.get("status"),
        "counterPartyStatus": counter_party.get("status"),
    }


def _print_command_error(message: str) -> None:
    print(message, file=sys.stderr)


def _resolve_threadsafe(
    loop: asyncio.AbstractEventLoop,
    future: asyncio.Future[str],
    *,
    result: str | None = None,
    exception: BaseException | None = None,
) -> None:
    def _apply() -> None:
        if future.done():
            return
        if exception is not None:
            future.set_exception(exception)
        else:
            future.set_result(result or "")

    try:
        loop.call_soon_threadsafe(_apply)
    except RuntimeError:
        # Loop closed: the session ended while this read was pending.
        return

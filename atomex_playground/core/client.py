from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from atomex_playground.adapters.atomex import AtomexAdapter
from atomex_playground.chains.registry import create_chain_adapter
from atomex_playground.chains.base import ChainAdapter, ChainHelpers, ChainIdentity
from atomex_playground.config.models import NetworkConfig
from atomex_playground.core.errors import (
    ClientNotAuthenticatedError,
    ClientNotInitializedError,
    ConfigurationError,
)
from atomex_playground.core.swaps import (
    compute_refund_timestamp_ms,
    generate_secret,
    hash_secret,
    outgoing_amount,
    parse_timestamp_ms,
    proof_of_funds_currency,
)
from atomex_playground.core.types import (
    ORDER_SIDES,
    AtomexAuthentication,
    AuthenticationRequest,
    SwapInitiation,
    User,
)

logger = logging.getLogger(__name__)

AUTHENTICATION_MESSAGE = "Signing in "


@dataclass(frozen=True, slots=True)
class Uninitialized:
    pass


@dataclass(frozen=True, slots=True)
class Initialized:
    identity: ChainIdentity
    helpers: ChainHelpers


@dataclass(frozen=True, slots=True)
class Authenticated:
    identity: ChainIdentity
    helpers: ChainHelpers
    authentication: AtomexAuthentication


ClientState = Uninitialized | Initialized | Authenticated


def _to_decimal(value: Any, name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"{name} must be numeric, got {value!r}") from exc


class AtomexClient:
    """Atomex session for one user on one blockchain.

    Lifecycle is ``Uninitialized -> Initialized -> Authenticated``. Identity
    accessors need ``initialize()``; every trading call needs
    ``authenticate()`` and carries the issued session token.
    """

    def __init__(
        self,
        user: User,
        chain_name: str,
        network_config: NetworkConfig,
        *,
        atomex: AtomexAdapter | None = None,
        chain_adapter: ChainAdapter | None = None,
    ) -> None:
        secret_key = str(user.secret_keys.get(chain_name) or "").strip()
        if not secret_key:
            raise ConfigurationError(f"user {user.id} has no secret key for the {chain_name} blockchain")
        self.user = user
        self.chain_name = chain_name
        self.network = network_config.network
        self.id = f"{user.id}_{chain_name}"
        self.atomex = atomex or AtomexAdapter(network_config.atomex_api_base)
        self._chain = chain_adapter or create_chain_adapter(
            chain_name,
            secret_key=secret_key,
            network_config=network_config,
        )
        self._state: ClientState = Uninitialized()

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def is_initialized(self) -> bool:
        return not isinstance(self._state, Uninitialized)

    @property
    def is_authenticated(self) -> bool:
        return isinstance(self._state, Authenticated)

    @property
    def user_public_key(self) -> str:
        return self._require_initialized().identity.public_key

    @property
    def user_address(self) -> str:
        return self._require_initialized().identity.address

    @property
    def atomex_helpers(self) -> ChainHelpers:
        return self._require_initialized().helpers

    @property
    def atomex_authentication(self) -> AtomexAuthentication:
        return self._require_authenticated().authentication

    async def initialize(self) -> None:
        identity, helpers = await asyncio.gather(
            self._chain.derive_identity(),
            self._chain.load_helpers(),
        )
        self._state = Initialized(identity=identity, helpers=helpers)
        logger.info("client_initialized id=%s address=%s", self.id, identity.address)

    async def authenticate(self) -> AtomexAuthentication:
        state = self._require_initialized()
        helpers = state.helpers
        auth_message = helpers.get_auth_message(AUTHENTICATION_MESSAGE, state.identity.address)
        signature = await self._chain.sign_message(auth_message.msg_to_sign)
        request = AuthenticationRequest(
            timestamp=auth_message.timestamp,
            message=auth_message.message,
            algorithm=auth_message.algorithm,
            public_key=helpers.encode_public_key(state.identity.public_key),
            signature=helpers.encode_signature(signature),
        )
        response = await self.atomex.get_auth_token(request)
        authentication = AtomexAuthentication(request=request, response=response)
        self._state = Authenticated(
            identity=state.identity,
            helpers=helpers,
            authentication=authentication,
        )
        logger.info("client_authenticated id=%s token_id=%s", self.id, response.id)
        return authentication

    async def get_orders(self) -> list[dict[str, Any]]:
        return await self.atomex.get_orders(auth_token=self._auth_token())

    async def get_order(self, order_id: str) -> dict[str, Any]:
        return await self.atomex.get_order(order_id, auth_token=self._auth_token())

    async def cancel_order(self, order_id: str) -> bool:
        token = self._auth_token()
        order = await self.atomex.get_order(order_id, auth_token=token)
        result = await self.atomex.cancel_order(
            order_id,
            str(order.get("symbol", "")),
            str(order.get("side", "")),
            auth_token=token,
        )
        logger.info("order_cancel id=%s order_id=%s result=%s", self.id, order_id, result)
        return result

    async def get_swaps(self) -> list[dict[str, Any]]:
        return await self.atomex.get_swaps(auth_token=self._auth_token())

    async def get_swap(self, swap_id: str) -> dict[str, Any]:
        return await self.atomex.get_swap(swap_id, auth_token=self._auth_token())

    async def create_order(self, draft: dict[str, Any]) -> str:
        state = self._require_authenticated()
        symbol = str(draft.get("symbol", "")).strip()
        side = str(draft.get("side", "")).strip()
        if side not in ORDER_SIDES:
            raise ValueError(f"order side must be one of: {', '.join(ORDER_SIDES)}")
        request = state.authentication.request
        order = dict(draft)
        order["proofsOfFunds"] = [
            {
                "address": state.identity.address,
                "currency": proof_of_funds_currency(symbol, side),
                "timeStamp": request.timestamp,
                "message": request.message,
                "publicKey": request.public_key,
                "signature": request.signature,
                "algorithm": request.algorithm,
            }
        ]
        requisites = dict(order.get("requisites") or {})
        if not requisites.get("refundAddress"):
            requisites["refundAddress"] = state.identity.address
        order["requisites"] = requisites
        order_id = await self.atomex.add_order(order, auth_token=state.authentication.response.token)
        logger.info("order_created id=%s order_id=%s symbol=%s side=%s", self.id, order_id, symbol, side)
        return order_id

    async def initiate_swap(
        self,
        swap_id: str,
        reward_for_redeem: Decimal | None = None,
        expiration_minutes: Any = None,
        secret: str | None = None,
    ) -> SwapInitiation:
        state = self._require_authenticated()
        swap = await self.atomex.get_swap(swap_id, auth_token=state.authentication.response.token)

        secret_value = secret or generate_secret()
        secret_hash = hash_secret(secret_value)
        swap_timestamp_ms = parse_timestamp_ms(swap.get("timeStamp", swap.get("timestamp")))
        refund_timestamp_ms = compute_refund_timestamp_ms(swap_timestamp_ms, expiration_minutes)

        symbol = str(swap.get("symbol", ""))
        side = str(swap.get("side", ""))
        if side not in ORDER_SIDES:
            raise ValueError(f"swap {swap_id} has unexpected side {side!r}")
        amount = outgoing_amount(
            side=side,
            qty=_to_decimal(swap.get("qty"), "swap qty"),
            price=_to_decimal(swap.get("price"), "swap price"),
        )
        counter_party = swap.get("counterParty") or {}
        participant = str((counter_party.get("requisites") or {}).get("receivingAddress") or "")

        escrow = state.helpers.build_escrow_initiation(
            currency=proof_of_funds_currency(symbol, side),
            amount=amount,
            participant=participant,
            secret_hash=secret_hash,
            refund_timestamp_ms=refund_timestamp_ms,
            reward_for_redeem=reward_for_redeem,
        )
        transaction_hash = await self._chain.submit_escrow_initiation(escrow, source=state.identity.address)
        logger.info(
            "swap_initiated id=%s swap_id=%s refund_timestamp_ms=%s tx=%s",
            self.id,
            swap_id,
            refund_timestamp_ms,
            transaction_hash,
        )
        return SwapInitiation(
            swap_id=str(swap_id),
            secret=secret_value,
            secret_hash=secret_hash,
            refund_timestamp_ms=refund_timestamp_ms,
            amount=escrow.amount,
            participant=participant,
            transaction_hash=transaction_hash,
        )

    def _auth_token(self) -> str:
        return self._require_authenticated().authentication.response.token

    def _require_initialized(self) -> Initialized | Authenticated:
        state = self._state
        if isinstance(state, Uninitialized):
            raise ClientNotInitializedError()
        return state

    def _require_authenticated(self) -> Authenticated:
        state = self._state
        if not isinstance(state, Authenticated):
            if isinstance(state, Uninitialized):
                raise ClientNotInitializedError()
            raise ClientNotAuthenticatedError()
        return state

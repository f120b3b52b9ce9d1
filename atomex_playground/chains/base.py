from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from typing import ClassVar

from atomex_playground.config.models import ChainConfig
from atomex_playground.core.errors import ConfigurationError, UnsupportedOperationError

INITIATE_ENTRYPOINT = "initiate"


@dataclass(frozen=True, slots=True)
class ChainIdentity:
    public_key: str
    address: str


@dataclass(frozen=True, slots=True)
class AuthMessage:
    message: str
    timestamp: int
    msg_to_sign: str
    algorithm: str


@dataclass(frozen=True, slots=True)
class EscrowInitiation:
    contract_address: str
    entrypoint: str
    amount: int
    participant: str
    secret_hash: str
    refund_timestamp_seconds: int
    reward_for_redeem: int


class ChainHelpers(ABC):
    """Chain-specific knowledge needed to talk to Atomex and the swap contract."""

    chain_name: ClassVar[str]
    currency: ClassVar[str]
    decimals: ClassVar[int]
    auth_algorithm: ClassVar[str]

    def __init__(self, *, network: str, swap_contract_address: str) -> None:
        self.network = network
        self.swap_contract_address = swap_contract_address

    def get_auth_message(self, message: str, address: str, *, now_ms: int | None = None) -> AuthMessage:
        _ = address
        timestamp = int(now_ms if now_ms is not None else time.time() * 1000)
        return AuthMessage(
            message=message,
            timestamp=timestamp,
            msg_to_sign=f"{message}{timestamp}",
            algorithm=self.auth_algorithm,
        )

    @abstractmethod
    def encode_signature(self, signature: bytes) -> str: ...

    @abstractmethod
    def encode_public_key(self, public_key: str) -> str: ...

    def to_base_units(self, amount: Decimal) -> int:
        scaled = Decimal(amount).scaleb(self.decimals)
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))

    def build_escrow_initiation(
        self,
        *,
        currency: str,
        amount: Decimal,
        participant: str,
        secret_hash: str,
        refund_timestamp_ms: int,
        reward_for_redeem: Decimal | None = None,
    ) -> EscrowInitiation:
        if currency.upper() != self.currency:
            raise UnsupportedOperationError(
                f"{self.chain_name} swaps of {currency} are not implemented; only {self.currency} is supported"
            )
        if not self.swap_contract_address:
            raise ConfigurationError(
                f"swap_contract is not configured for {self.chain_name} on {self.network}"
            )
        if not participant:
            raise ValueError("counterparty receiving address is required")
        amount_units = self.to_base_units(amount)
        reward_units = self.to_base_units(reward_for_redeem) if reward_for_redeem else 0
        if amount_units <= 0:
            raise ValueError(f"swap amount must be positive, got {amount}")
        if reward_units < 0 or reward_units > amount_units:
            raise ValueError("reward for redeem must be between zero and the swap amount")
        return EscrowInitiation(
            contract_address=self.swap_contract_address,
            entrypoint=INITIATE_ENTRYPOINT,
            amount=amount_units,
            participant=participant,
            secret_hash=secret_hash,
            refund_timestamp_seconds=int(refund_timestamp_ms) // 1000,
            reward_for_redeem=reward_units,
        )


class ChainAdapter(ABC):
    """Per-chain capability: identity, signing and escrow submission."""

    chain_name: ClassVar[str]
    helpers_cls: ClassVar[type[ChainHelpers]]

    def __init__(self, *, chain_config: ChainConfig, network: str) -> None:
        self.chain_config = chain_config
        self.network = network

    @abstractmethod
    async def derive_identity(self) -> ChainIdentity: ...

    @abstractmethod
    async def load_helpers(self) -> ChainHelpers: ...

    @abstractmethod
    async def sign_message(self, text: str) -> bytes: ...

    @abstractmethod
    async def submit_escrow_initiation(self, escrow: EscrowInitiation, *, source: str) -> str: ...

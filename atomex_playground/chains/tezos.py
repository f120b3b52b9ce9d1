from __future__ import annotations

import asyncio
import logging
from typing import Any

from atomex_playground.adapters.tezos_rpc import TezosRpcAdapter
from atomex_playground.chains.base import (
    ChainAdapter,
    ChainHelpers,
    ChainIdentity,
    EscrowInitiation,
)
from atomex_playground.config.models import ChainConfig
from atomex_playground.core.errors import ContractEntrypointError, UnsupportedOperationError
from atomex_playground.keys.tezos import (
    GENERIC_OPERATION_WATERMARK,
    PREFIX_EDPK,
    TezosInMemorySigner,
    b58check_decode,
)

logger = logging.getLogger(__name__)

DEFAULT_FEE_MUTEZ = 10_000
DEFAULT_GAS_LIMIT = 15_400
DEFAULT_STORAGE_LIMIT = 257


class TezosHelpers(ChainHelpers):
    chain_name = "tez"
    currency = "XTZ"
    decimals = 6
    auth_algorithm = "Ed25519:Blake2b"

    def encode_signature(self, signature: bytes) -> str:
        return bytes(signature).hex()

    def encode_public_key(self, public_key: str) -> str:
        return b58check_decode(PREFIX_EDPK, public_key).hex()


def build_initiate_parameters(escrow: EscrowInitiation) -> dict[str, Any]:
    """Micheline value for ``initiate(participant, ((hashed_secret, refund_time), payoff))``."""
    return {
        "entrypoint": escrow.entrypoint,
        "value": {
            "prim": "Pair",
            "args": [
                {"string": escrow.participant},
                {
                    "prim": "Pair",
                    "args": [
                        {
                            "prim": "Pair",
                            "args": [
                                {"bytes": escrow.secret_hash},
                                {"int": str(escrow.refund_timestamp_seconds)},
                            ],
                        },
                        {"int": str(escrow.reward_for_redeem)},
                    ],
                },
            ],
        },
    }


class TezosChainAdapter(ChainAdapter):
    chain_name = "tez"
    helpers_cls = TezosHelpers

    def __init__(
        self,
        *,
        secret_key: str,
        chain_config: ChainConfig,
        network: str,
        rpc: TezosRpcAdapter | None = None,
    ) -> None:
        super().__init__(chain_config=chain_config, network=network)
        self._signer = TezosInMemorySigner(secret_key)
        self._rpc = rpc or TezosRpcAdapter(chain_config.rpc_url)

    async def derive_identity(self) -> ChainIdentity:
        public_key, address = await asyncio.gather(
            self._signer.public_key(),
            self._signer.public_key_hash(),
        )
        return ChainIdentity(public_key=public_key, address=address)

    async def load_helpers(self) -> TezosHelpers:
        return TezosHelpers(
            network=self.network,
            swap_contract_address=self.chain_config.swap_contract,
        )

    async def sign_message(self, text: str) -> bytes:
        signature = await self._signer.sign(text.encode("utf-8").hex())
        return bytes.fromhex(signature.sig)

    async def submit_escrow_initiation(self, escrow: EscrowInitiation, *, source: str) -> str:
        entrypoints = await self._rpc.get_entrypoints(escrow.contract_address)
        if escrow.entrypoint not in entrypoints:
            raise ContractEntrypointError(escrow.contract_address, escrow.entrypoint)
        manager_key = await self._rpc.get_manager_key(source)
        if manager_key is None:
            raise UnsupportedOperationError(
                f"tezos account {source} is not revealed; reveal it before initiating swaps"
            )
        branch, counter = await asyncio.gather(
            self._rpc.get_head_hash(),
            self._rpc.get_counter(source),
        )
        config = self.chain_config
        contents = [
            {
                "kind": "transaction",
                "source": source,
                "fee": str(config.fee if config.fee is not None else DEFAULT_FEE_MUTEZ),
                "counter": str(counter + 1),
                "gas_limit": str(config.gas_limit if config.gas_limit is not None else DEFAULT_GAS_LIMIT),
                "storage_limit": str(
                    config.storage_limit if config.storage_limit is not None else DEFAULT_STORAGE_LIMIT
                ),
                "amount": str(escrow.amount),
                "destination": escrow.contract_address,
                "parameters": build_initiate_parameters(escrow),
            }
        ]
        forged = await self._rpc.forge_operations(branch=branch, contents=contents)
        signature = await self._signer.sign(forged, watermark=GENERIC_OPERATION_WATERMARK)
        op_hash = await self._rpc.inject_operation(forged + signature.sig)
        logger.info(
            "tezos_initiate_injected contract=%s source=%s amount_mutez=%s op_hash=%s",
            escrow.contract_address,
            source,
            escrow.amount,
            op_hash,
        )
        return op_hash

from __future__ import annotations

import asyncio
import logging
from typing import Any

from web3 import Web3

from atomex_playground.chains.base import (
    ChainAdapter,
    ChainHelpers,
    ChainIdentity,
    EscrowInitiation,
)
from atomex_playground.config.models import ChainConfig
from atomex_playground.core.errors import ContractEntrypointError
from atomex_playground.keys.ethereum import EthereumSigner

logger = logging.getLogger(__name__)

INITIATE_SIGNATURE = "initiate(bytes32,address,uint256,uint256)"

# Minimal ABI of the Atomex ETH swap contract (only what we call)
SWAP_ABI: list[dict[str, Any]] = [
    {
        "name": "initiate",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [
            {"name": "_hashedSecret", "type": "bytes32"},
            {"name": "_participant", "type": "address"},
            {"name": "_refundTimestamp", "type": "uint256"},
            {"name": "_payoff", "type": "uint256"},
        ],
        "outputs": [],
    }
]


class EthereumHelpers(ChainHelpers):
    chain_name = "eth"
    currency = "ETH"
    decimals = 18
    auth_algorithm = "Keccak256WithEcdsa:Geth2"

    def __init__(self, *, network: str, swap_contract_address: str, chain_id: int | None = None) -> None:
        super().__init__(network=network, swap_contract_address=swap_contract_address)
        self.chain_id = chain_id

    def encode_signature(self, signature: bytes) -> str:
        return bytes(signature).hex()

    def encode_public_key(self, public_key: str) -> str:
        raw = public_key.strip().lower()
        return raw[2:] if raw.startswith("0x") else raw


def initiate_selector() -> bytes:
    return bytes(Web3.keccak(text=INITIATE_SIGNATURE)[:4])


class EthereumChainAdapter(ChainAdapter):
    chain_name = "eth"
    helpers_cls = EthereumHelpers

    def __init__(
        self,
        *,
        secret_key: str,
        chain_config: ChainConfig,
        network: str,
        web3: Any | None = None,
    ) -> None:
        super().__init__(chain_config=chain_config, network=network)
        self._signer = EthereumSigner(secret_key)
        self._web3 = web3

    def _w3(self) -> Any:
        if self._web3 is None:
            self._web3 = Web3(Web3.HTTPProvider(self.chain_config.rpc_url))
        return self._web3

    async def derive_identity(self) -> ChainIdentity:
        public_key, address = await asyncio.gather(
            self._signer.public_key(),
            self._signer.address(),
        )
        return ChainIdentity(public_key=public_key, address=address)

    async def load_helpers(self) -> EthereumHelpers:
        return EthereumHelpers(
            network=self.network,
            swap_contract_address=self.chain_config.swap_contract,
            chain_id=self.chain_config.chain_id,
        )

    async def sign_message(self, text: str) -> bytes:
        return await self._signer.sign_message(text)

    async def submit_escrow_initiation(self, escrow: EscrowInitiation, *, source: str) -> str:
        return await asyncio.to_thread(self._send_initiate, escrow, source)

    def _send_initiate(self, escrow: EscrowInitiation, source: str) -> str:
        w3 = self._w3()
        contract_address = Web3.to_checksum_address(escrow.contract_address)
        code = bytes(w3.eth.get_code(contract_address))
        if initiate_selector() not in code:
            raise ContractEntrypointError(escrow.contract_address, escrow.entrypoint)

        contract = w3.eth.contract(address=contract_address, abi=SWAP_ABI)
        sender = Web3.to_checksum_address(source)
        tx_params: dict[str, Any] = {
            "from": sender,
            "value": escrow.amount,
            "nonce": w3.eth.get_transaction_count(sender),
            "chainId": self.chain_config.chain_id or w3.eth.chain_id,
        }
        if self.chain_config.gas_limit:
            tx_params["gas"] = self.chain_config.gas_limit
        tx = contract.functions.initiate(
            bytes.fromhex(escrow.secret_hash),
            Web3.to_checksum_address(escrow.participant),
            escrow.refund_timestamp_seconds,
            escrow.reward_for_redeem,
        ).build_transaction(tx_params)
        raw_tx = self._signer.sign_transaction(tx)
        tx_hash = Web3.to_hex(w3.eth.send_raw_transaction(raw_tx))
        logger.info(
            "ethereum_initiate_sent contract=%s source=%s amount_wei=%s tx_hash=%s",
            contract_address,
            sender,
            escrow.amount,
            tx_hash,
        )
        return tx_hash

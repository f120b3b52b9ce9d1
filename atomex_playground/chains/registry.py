from __future__ import annotations

from atomex_playground.chains.base import ChainAdapter
from atomex_playground.chains.ethereum import EthereumChainAdapter
from atomex_playground.chains.tezos import TezosChainAdapter
from atomex_playground.config.models import NetworkConfig
from atomex_playground.core.errors import ConfigurationError, UnsupportedChainError

CHAIN_ADAPTERS: dict[str, type[ChainAdapter]] = {
    TezosChainAdapter.chain_name: TezosChainAdapter,
    EthereumChainAdapter.chain_name: EthereumChainAdapter,
}


def create_chain_adapter(chain_name: str, *, secret_key: str, network_config: NetworkConfig) -> ChainAdapter:
    adapter_cls = CHAIN_ADAPTERS.get(chain_name)
    if adapter_cls is None:
        raise UnsupportedChainError(chain_name)
    chain_config = network_config.chains.get(chain_name)
    if chain_config is None:
        raise ConfigurationError(
            f"network {network_config.network} has no configuration for chain {chain_name}"
        )
    return adapter_cls(
        secret_key=secret_key,
        chain_config=chain_config,
        network=network_config.network,
    )


def chain_for_currency(currency: str) -> str | None:
    """Return the chain whose native currency is ``currency``."""
    wanted = str(currency or "").strip().upper()
    for chain_name, adapter_cls in CHAIN_ADAPTERS.items():
        if adapter_cls.helpers_cls.currency == wanted:
            return chain_name
    return None

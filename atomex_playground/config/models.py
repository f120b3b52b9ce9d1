from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

SUPPORTED_NETWORKS = ("mainnet", "testnet")
SUPPORTED_CHAINS = ("tez", "eth")


@dataclass(frozen=True, slots=True)
class ChainConfig:
    chain_name: str
    rpc_url: str
    swap_contract: str = ""
    chain_id: int | None = None
    fee: int | None = None
    gas_limit: int | None = None
    storage_limit: int | None = None


@dataclass(frozen=True, slots=True)
class NetworkConfig:
    network: str
    atomex_api_base: str
    chains: dict[str, ChainConfig] = field(default_factory=dict)

    def chain(self, chain_name: str) -> ChainConfig:
        chain = self.chains.get(chain_name)
        if chain is None:
            raise ValueError(f"network {self.network} has no configuration for chain {chain_name}")
        return chain


@dataclass(slots=True)
class ProgramConfig:
    app_network: str
    home_dir: str
    app_log_level: str
    user_ids: list[str]
    networks: dict[str, NetworkConfig] = field(default_factory=dict)
    app_log_level_was_missing: bool = False

    @property
    def active_network(self) -> NetworkConfig:
        return self.networks[self.app_network]


def _req(mapping: dict[str, Any], key: str) -> Any:
    if key not in mapping:
        raise ValueError(f"Missing required field: {key}")
    return mapping[key]


def _optional_int(mapping: dict[str, Any], key: str, *, context: str) -> int | None:
    raw = mapping.get(key)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{context}: {key} must be an integer") from exc
    if value < 0:
        raise ValueError(f"{context}: {key} must be non-negative")
    return value


def parse_chain_config(chain_name: str, raw: dict[str, Any], *, network: str) -> ChainConfig:
    context = f"networks.{network}.chains.{chain_name}"
    if not isinstance(raw, dict):
        raise ValueError(f"{context} must be a mapping")
    rpc_url = str(_req(raw, "rpc_url")).strip()
    if not rpc_url:
        raise ValueError(f"{context}: rpc_url must be non-empty")
    return ChainConfig(
        chain_name=chain_name,
        rpc_url=rpc_url,
        swap_contract=str(raw.get("swap_contract") or "").strip(),
        chain_id=_optional_int(raw, "chain_id", context=context),
        fee=_optional_int(raw, "fee", context=context),
        gas_limit=_optional_int(raw, "gas_limit", context=context),
        storage_limit=_optional_int(raw, "storage_limit", context=context),
    )


def parse_network_config(network: str, raw: dict[str, Any]) -> NetworkConfig:
    if not isinstance(raw, dict):
        raise ValueError(f"networks.{network} must be a mapping")
    api_base = str(_req(raw, "atomex_api_base")).strip().rstrip("/")
    if not api_base:
        raise ValueError(f"networks.{network}: atomex_api_base must be non-empty")
    chains_raw = raw.get("chains") or {}
    if not isinstance(chains_raw, dict):
        raise ValueError(f"networks.{network}.chains must be a mapping")
    chains: dict[str, ChainConfig] = {}
    for chain_name, chain_raw in chains_raw.items():
        name = str(chain_name).strip().lower()
        if name not in SUPPORTED_CHAINS:
            raise ValueError(
                f"networks.{network}.chains: unsupported chain {name}; "
                f"expected one of: {', '.join(SUPPORTED_CHAINS)}"
            )
        chains[name] = parse_chain_config(name, chain_raw, network=network)
    return NetworkConfig(network=network, atomex_api_base=api_base, chains=chains)


def parse_program_config(raw: dict[str, Any]) -> ProgramConfig:
    app = _req(raw, "app")
    network = str(_req(app, "network")).strip().lower()
    if network not in SUPPORTED_NETWORKS:
        raise ValueError(f"app.network must be one of: {', '.join(SUPPORTED_NETWORKS)}")
    log_level_raw = app.get("log_level")
    log_level_was_missing = log_level_raw is None or not str(log_level_raw).strip()
    log_level = "INFO" if log_level_was_missing else str(log_level_raw).strip().upper()

    user_rows = raw.get("users", [])
    if user_rows is None:
        user_rows = []
    if not isinstance(user_rows, list):
        raise ValueError("users must be a list")
    user_ids: list[str] = []
    for row in user_rows:
        user_id = str(row).strip()
        if not user_id:
            raise ValueError("users entries must be non-empty")
        if user_id in user_ids:
            raise ValueError(f"duplicate user id in users: {user_id}")
        user_ids.append(user_id)

    networks_raw = _req(raw, "networks")
    if not isinstance(networks_raw, dict):
        raise ValueError("networks must be a mapping")
    networks = {
        str(name).strip().lower(): parse_network_config(str(name).strip().lower(), value)
        for name, value in networks_raw.items()
    }
    if network not in networks:
        raise ValueError(f"networks.{network} is required for app.network={network}")

    return ProgramConfig(
        app_network=network,
        home_dir=str(_req(app, "home_dir")),
        app_log_level=log_level,
        user_ids=user_ids,
        networks=networks,
        app_log_level_was_missing=log_level_was_missing,
    )

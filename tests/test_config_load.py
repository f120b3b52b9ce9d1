from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from atomex_playground.config.io import default_program_config_path, load_program_config
from atomex_playground.config.models import parse_program_config


def _program_raw() -> dict:
    return {
        "app": {"network": "testnet", "home_dir": "~/.atomex-playground", "log_level": "debug"},
        "users": ["mm0", "client0"],
        "networks": {
            "testnet": {
                "atomex_api_base": "https://api.test.atomex.me/",
                "chains": {
                    "tez": {
                        "rpc_url": "https://rpc.example/ghostnet",
                        "swap_contract": "KT1Test",
                        "fee": 12000,
                    },
                    "eth": {"rpc_url": "https://rpc.example/sepolia", "chain_id": "11155111"},
                },
            }
        },
    }


def test_load_repo_program_config() -> None:
    cfg = load_program_config(Path("config/program.yaml"))
    assert cfg.app_network == "testnet"
    assert cfg.app_log_level == "INFO"
    assert cfg.user_ids == ["mm0", "client0"]
    assert set(cfg.networks) == {"testnet", "mainnet"}
    assert cfg.active_network.atomex_api_base == "https://api.test.atomex.me"
    assert cfg.networks["mainnet"].chain("eth").chain_id == 1


def test_parse_program_config_normalizes_values() -> None:
    cfg = parse_program_config(_program_raw())
    network = cfg.active_network
    assert cfg.app_log_level == "DEBUG"
    assert network.atomex_api_base == "https://api.test.atomex.me"
    assert network.chain("tez").swap_contract == "KT1Test"
    assert network.chain("tez").fee == 12000
    assert network.chain("tez").gas_limit is None
    assert network.chain("eth").chain_id == 11155111
    assert network.chain("eth").swap_contract == ""


def test_parse_program_config_rejects_unknown_network() -> None:
    raw = _program_raw()
    raw["app"]["network"] = "devnet"
    with pytest.raises(ValueError, match="app.network"):
        parse_program_config(raw)


def test_parse_program_config_requires_active_network_entry() -> None:
    raw = _program_raw()
    raw["app"]["network"] = "mainnet"
    with pytest.raises(ValueError, match="networks.mainnet is required"):
        parse_program_config(raw)


def test_parse_program_config_rejects_unsupported_chain() -> None:
    raw = _program_raw()
    raw["networks"]["testnet"]["chains"]["btc"] = {"rpc_url": "https://rpc.example/btc"}
    with pytest.raises(ValueError, match="unsupported chain btc"):
        parse_program_config(raw)


def test_parse_program_config_rejects_duplicate_users() -> None:
    raw = _program_raw()
    raw["users"] = ["mm0", "mm0"]
    with pytest.raises(ValueError, match="duplicate user id"):
        parse_program_config(raw)


def test_parse_program_config_requires_rpc_url() -> None:
    raw = _program_raw()
    del raw["networks"]["testnet"]["chains"]["eth"]["rpc_url"]
    with pytest.raises(ValueError, match="Missing required field: rpc_url"):
        parse_program_config(raw)


def test_parse_program_config_rejects_negative_fee() -> None:
    raw = _program_raw()
    raw["networks"]["testnet"]["chains"]["tez"]["fee"] = -1
    with pytest.raises(ValueError, match="fee must be non-negative"):
        parse_program_config(raw)


def test_network_config_chain_lookup_raises_for_missing_chain() -> None:
    raw = _program_raw()
    del raw["networks"]["testnet"]["chains"]["eth"]
    cfg = parse_program_config(raw)
    with pytest.raises(ValueError, match="no configuration for chain eth"):
        cfg.active_network.chain("eth")


def test_load_program_config_heals_missing_log_level(tmp_path: Path) -> None:
    raw = _program_raw()
    del raw["app"]["log_level"]
    path = tmp_path / "program.yaml"
    path.write_text(yaml.safe_dump(raw), encoding="utf-8")

    cfg = load_program_config(path)

    assert cfg.app_log_level == "INFO"
    assert cfg.app_log_level_was_missing is True
    healed = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert healed["app"]["log_level"] == "INFO"


def test_default_program_config_path_falls_back_to_repo_config(monkeypatch) -> None:
    monkeypatch.setattr(Path, "exists", lambda self: False)
    assert default_program_config_path() == "config/program.yaml"


def test_default_program_config_path_prefers_home(monkeypatch) -> None:
    monkeypatch.setattr(
        Path, "exists", lambda self: str(self).endswith("/.atomex-playground/config/program.yaml")
    )
    assert default_program_config_path().endswith("/.atomex-playground/config/program.yaml")

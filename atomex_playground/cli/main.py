from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import os
import sys
from pathlib import Path

from atomex_playground.cli.playground import Playground
from atomex_playground.config.io import default_program_config_path, load_program_config
from atomex_playground.config.models import SUPPORTED_NETWORKS, ProgramConfig
from atomex_playground.config.users import load_env_file, load_users
from atomex_playground.core.errors import PlaygroundError
from atomex_playground.logging_setup import attach_file_handler, parse_log_level

_main_logger = logging.getLogger("atomex_playground.main")


def _initialize_playground_file_logging(home_dir: str, *, log_level: str | None) -> None:
    handler = attach_file_handler(home_dir, level=parse_log_level(log_level))
    _main_logger.debug("file_logging_ready path=%s", handler.baseFilename)


def _warn_if_log_level_auto_healed(*, program: ProgramConfig, program_path: Path) -> None:
    if program.app_log_level_was_missing:
        _main_logger.warning(
            "program config missing app.log_level; wrote default INFO to %s",
            os.fspath(program_path),
        )


def _select_network(program: ProgramConfig, network_override: str) -> ProgramConfig:
    network = network_override.strip().lower()
    if not network or network == program.app_network:
        return program
    if network not in program.networks:
        raise ValueError(f"networks.{network} is not configured in the program config")
    return dataclasses.replace(program, app_network=network)


def main() -> None:
    parser = argparse.ArgumentParser(description="Interactive Atomex playground")
    parser.add_argument(
        "--program-config",
        default=default_program_config_path(),
        help="Path to program.yaml",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Optional .env file with USER_<ID>_* variables. Ignored when it does not exist.",
    )
    parser.add_argument(
        "--network",
        default="",
        choices=("", *SUPPORTED_NETWORKS),
        help="Override app.network from the program config",
    )
    args = parser.parse_args()

    program_path = Path(args.program_config)
    try:
        program = _select_network(load_program_config(program_path), args.network)
    except (OSError, ValueError) as exc:
        print(f"Failed to load program config {os.fspath(program_path)}: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    _initialize_playground_file_logging(program.home_dir, log_level=program.app_log_level)
    _warn_if_log_level_auto_healed(program=program, program_path=program_path)

    env_path = Path(args.env_file) if str(args.env_file).strip() else None
    env_loaded = load_env_file(env_path)
    users = load_users(program.user_ids)
    _main_logger.info(
        "playground_starting network=%s program_config=%s env_loaded=%s users=%s",
        program.app_network,
        os.fspath(program_path),
        env_loaded,
        ",".join(users) or "-",
    )

    playground = Playground(program.active_network, users)
    exit_code = 0
    try:
        asyncio.run(playground.launch())
    except KeyboardInterrupt:
        print("\nExiting...")
    except PlaygroundError as exc:
        _main_logger.exception("playground_failed")
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1
    _main_logger.info("playground_stopped exit_code=%s", exit_code)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable, Mapping
from pathlib import Path

from dotenv import load_dotenv

from atomex_playground.config.models import SUPPORTED_CHAINS
from atomex_playground.core.types import User

_users_logger = logging.getLogger("atomex_playground.config")


def env_prefix(user_id: str) -> str:
    return "USER_" + re.sub(r"[^A-Za-z0-9]", "_", user_id).upper()


def load_env_file(path: Path | None) -> bool:
    """Load a .env file into the process environment without overriding set values."""
    if path is None or not path.exists():
        return False
    return bool(load_dotenv(path, override=False))


def load_users(user_ids: Iterable[str], environ: Mapping[str, str] | None = None) -> dict[str, User]:
    env = os.environ if environ is None else environ
    users: dict[str, User] = {}
    for user_id in user_ids:
        prefix = env_prefix(user_id)
        name = str(env.get(f"{prefix}_NAME", "")).strip() or user_id
        secret_keys: dict[str, str] = {}
        for chain_name in SUPPORTED_CHAINS:
            value = str(env.get(f"{prefix}_SECRET_KEYS_{chain_name.upper()}", "")).strip()
            if value:
                secret_keys[chain_name] = value
        if not secret_keys:
            _users_logger.warning("user %s has no secret keys configured (%s_SECRET_KEYS_*)", user_id, prefix)
        users[user_id] = User(id=user_id, name=name, secret_keys=secret_keys)
    return users

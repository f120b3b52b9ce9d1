from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

ORDER_SIDES = ("Buy", "Sell")
ORDER_TYPES = ("Return", "FillOrKill", "SolidFillOrKill", "ImmediateOrCancel")


@dataclass(frozen=True, slots=True)
class User:
    id: str
    name: str
    secret_keys: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "secret_keys", MappingProxyType(dict(self.secret_keys)))

    @property
    def chain_names(self) -> tuple[str, ...]:
        return tuple(self.secret_keys)


@dataclass(frozen=True, slots=True)
class AuthenticationRequest:
    timestamp: int
    message: str
    algorithm: str
    public_key: str
    signature: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "timeStamp": self.timestamp,
            "message": self.message,
            "algorithm": self.algorithm,
            "publicKey": self.public_key,
            "signature": self.signature,
        }


@dataclass(frozen=True, slots=True)
class AuthenticationResponse:
    id: str
    token: str
    expires: int | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> AuthenticationResponse:
        if not isinstance(payload, dict):
            raise ValueError("atomex token response must be a mapping")
        token = str(payload.get("token") or "").strip()
        if not token:
            raise ValueError("atomex token response is missing token")
        expires_raw = payload.get("expires")
        return cls(
            id=str(payload.get("id") or ""),
            token=token,
            expires=int(expires_raw) if expires_raw is not None else None,
        )


@dataclass(frozen=True, slots=True)
class AtomexAuthentication:
    request: AuthenticationRequest
    response: AuthenticationResponse


@dataclass(frozen=True, slots=True)
class SwapInitiation:
    swap_id: str
    secret: str
    secret_hash: str
    refund_timestamp_ms: int
    amount: int
    participant: str
    transaction_hash: str

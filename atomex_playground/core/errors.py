from __future__ import annotations


class PlaygroundError(Exception):
    """Base class for errors raised by the playground itself."""


class ConfigurationError(PlaygroundError, ValueError):
    pass


class UnsupportedChainError(ConfigurationError):
    def __init__(self, chain_name: str) -> None:
        super().__init__(f"unsupported blockchain: {chain_name}")
        self.chain_name = chain_name


class ClientNotInitializedError(PlaygroundError, RuntimeError):
    def __init__(self, message: str = "Atomex client is not initialized.") -> None:
        super().__init__(message)


class ClientNotAuthenticatedError(ClientNotInitializedError):
    def __init__(self, message: str = "Atomex client is not authenticated.") -> None:
        super().__init__(message)


class UnsupportedOperationError(PlaygroundError, NotImplementedError):
    pass


class ContractEntrypointError(PlaygroundError, RuntimeError):
    def __init__(self, contract_address: str, entrypoint: str) -> None:
        super().__init__(
            f"contract {contract_address or '<unset>'} has no {entrypoint} entry point"
        )
        self.contract_address = contract_address
        self.entrypoint = entrypoint


class CommandArgumentError(PlaygroundError, ValueError):
    pass


class AtomexApiError(PlaygroundError, RuntimeError):
    def __init__(self, status: int, body: str = "") -> None:
        snippet = body.strip()[:500]
        message = f"atomex_http_error:{status}"
        if snippet:
            message = f"{message}:{snippet}"
        super().__init__(message)
        self.status = status
        self.body = body

"""Custom exception classes for cosmwasm-orchestrator library."""

from typing import Optional


class OrchestratorError(Exception):
    """Base exception for contract orchestration errors."""

    pass


class AddressNotSetError(OrchestratorError, LookupError):
    """Raised when no contract address is stored for a contract name."""

    pass


class CodeIdNotSetError(OrchestratorError, LookupError):
    """Raised when no code id is stored for a contract name."""

    pass


class UnsupportedCodeReferenceError(OrchestratorError, TypeError):
    """Raised when a code reference variant does not match the active backend."""

    pass


class TransportError(OrchestratorError, ConnectionError):
    """Raised when a network request to the node fails."""

    pass


class SerializationError(OrchestratorError, ValueError):
    """Raised when a payload or response cannot be encoded or decoded."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


class BackendRejectionError(OrchestratorError, RuntimeError):
    """Raised when the chain or ledger executed a message and returned a failure."""

    def __init__(self, message: str, raw_log: str = "", code: Optional[int] = None):
        super().__init__(message)
        self.raw_log = raw_log
        self.code = code


class ResponseFieldMissingError(OrchestratorError, ValueError):
    """Raised when a transaction response lacks an expected event attribute."""

    pass


class InvalidAddressError(OrchestratorError, ValueError):
    """Raised when an address string fails validation."""

    pass


class ConfigurationError(OrchestratorError, ValueError):
    """Raised when a required setting is missing or unknown."""

    pass


class StateFileError(OrchestratorError, OSError):
    """Raised when the deployment state file is unreadable or corrupt."""

    pass

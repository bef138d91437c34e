"""
cosmwasm-orchestrator: typed CosmWasm contract handles over live and simulated chains
"""

from importlib.metadata import PackageNotFoundError, version

from .code_reference import ContractCodeReference, ContractEndpoints, WasmPath
from .constants import JUNO_1, LOCAL_JUNO, NETWORKS, UNI_6, get_network
from .contract import Contract
from .daemon import Daemon, DaemonAsync
from .environment import BankQuerier, QueryHandler, TxHandler, WasmQuerier
from .exceptions import (
    AddressNotSetError,
    BackendRejectionError,
    CodeIdNotSetError,
    ConfigurationError,
    InvalidAddressError,
    OrchestratorError,
    ResponseFieldMissingError,
    SerializationError,
    StateFileError,
    TransportError,
    UnsupportedCodeReferenceError,
)
from .ledger import ContractContext, MockApp
from .mock import Mock
from .sender import Sender
from .state import FileState, MemoryState, StateInterface
from .transport import LcdTransport
from .types import ChainInfo, Coin, DeploymentRecord, Event, NetworkKind, TxResponse

try:
    __version__ = version("cosmwasm-orchestrator")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "Contract",
    "TxHandler",
    "QueryHandler",
    "BankQuerier",
    "WasmQuerier",
    "Daemon",
    "DaemonAsync",
    "Mock",
    "MockApp",
    "ContractContext",
    "Sender",
    "LcdTransport",
    "StateInterface",
    "FileState",
    "MemoryState",
    "ContractCodeReference",
    "WasmPath",
    "ContractEndpoints",
    "ChainInfo",
    "NetworkKind",
    "Coin",
    "Event",
    "TxResponse",
    "DeploymentRecord",
    "NETWORKS",
    "LOCAL_JUNO",
    "UNI_6",
    "JUNO_1",
    "get_network",
    "OrchestratorError",
    "AddressNotSetError",
    "CodeIdNotSetError",
    "UnsupportedCodeReferenceError",
    "TransportError",
    "SerializationError",
    "BackendRejectionError",
    "ResponseFieldMissingError",
    "InvalidAddressError",
    "ConfigurationError",
    "StateFileError",
]

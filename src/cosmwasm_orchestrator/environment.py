"""
Execution-environment contract.

Every backend (live Daemon, simulated Mock) implements TxHandler and
QueryHandler with identical observable semantics, and exposes BankQuerier /
WasmQuerier implementations through its `bank` and `wasm` accessors.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, Type, TypeVar

from .code_reference import ContractCodeReference
from .state import StateInterface
from .types import CodeInfo, Coin, ContractInfo, TxResponse

T = TypeVar("T")


class TxHandler(ABC):
    """State-changing operations and smart queries against a chain."""

    @property
    @abstractmethod
    def sender(self) -> str:
        """Address of the account signing transactions."""

    @property
    @abstractmethod
    def state(self) -> StateInterface:
        """Deployment state shared with every contract handle on this chain."""

    @abstractmethod
    def upload(self, code_reference: ContractCodeReference) -> TxResponse:
        """
        Store contract code.

        Raises:
            UnsupportedCodeReferenceError: If the variant does not match the backend
        """

    @abstractmethod
    def instantiate(
        self,
        code_id: int,
        init_msg: Any,
        label: Optional[str] = None,
        admin: Optional[str] = None,
        coins: Sequence[Coin] = (),
    ) -> TxResponse:
        """Create a contract instance from uploaded code."""

    @abstractmethod
    def instantiate2(
        self,
        code_id: int,
        init_msg: Any,
        label: Optional[str],
        admin: Optional[str],
        coins: Sequence[Coin],
        salt: bytes,
    ) -> TxResponse:
        """Create a contract instance at an address derived from (code_id, sender, salt)."""

    @abstractmethod
    def execute(self, exec_msg: Any, coins: Sequence[Coin], contract_address: str) -> TxResponse:
        """Invoke a state-changing entry point."""

    @abstractmethod
    def migrate(self, migrate_msg: Any, new_code_id: int, contract_address: str) -> TxResponse:
        """Upgrade a contract in place; its address is preserved."""

    @abstractmethod
    def query(self, query_msg: Any, contract_address: str, response_type: Type[T] = dict) -> T:
        """Run a read-only smart query and decode the result into response_type."""

    def instantiate2_addr(self, code_id: int, creator: str, salt: bytes) -> str:
        """Predict the address instantiate2 will produce, without broadcasting."""
        return self.wasm.instantiate2_addr(code_id, creator, salt)

    @property
    @abstractmethod
    def bank(self) -> "BankQuerier":
        ...

    @property
    @abstractmethod
    def wasm(self) -> "WasmQuerier":
        ...


class QueryHandler(ABC):
    """Block progression of a chain."""

    @abstractmethod
    def wait_blocks(self, amount: int) -> None:
        ...

    @abstractmethod
    def wait_seconds(self, secs: int) -> None:
        ...

    @abstractmethod
    def next_block(self) -> None:
        ...

    @abstractmethod
    def block_height(self) -> int:
        ...


class BankQuerier(ABC):
    """Read-only access to account balances."""

    @abstractmethod
    def balance(self, address: str, denom: str) -> Coin:
        ...

    @abstractmethod
    def all_balances(self, address: str) -> List[Coin]:
        ...


class WasmQuerier(ABC):
    """Read-only access to uploaded code and contract metadata."""

    @abstractmethod
    def code(self, code_id: int) -> CodeInfo:
        ...

    def code_id_hash(self, code_id: int) -> str:
        """Hex checksum of uploaded code."""
        return self.code(code_id).checksum

    @abstractmethod
    def contract_info(self, address: str) -> ContractInfo:
        ...

    @abstractmethod
    def smart_query(self, address: str, query_msg: Any, response_type: Type[T] = dict) -> T:
        ...

    @abstractmethod
    def raw_query(self, address: str, key: bytes) -> bytes:
        ...

    @abstractmethod
    def instantiate2_addr(self, code_id: int, creator: str, salt: bytes) -> str:
        ...

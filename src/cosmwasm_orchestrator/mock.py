"""
Simulated-chain executor.

Mock runs every operation synchronously on the calling thread against an
in-memory MockApp. Block height and time only move when the caller asks
(next_block, wait_blocks, wait_seconds).
"""

import logging
from typing import Any, List, Optional, Sequence, Type, TypeVar

from .code_reference import ContractCodeReference, ContractEndpoints
from .codec import decode_json, encode_json
from .constants import DEFAULT_DEPLOYMENT_ID
from .environment import BankQuerier, QueryHandler, TxHandler, WasmQuerier
from .exceptions import UnsupportedCodeReferenceError
from .ledger import MockApp
from .state import MemoryState, StateInterface
from .types import CodeInfo, Coin, ContractInfo, TxResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Mock(TxHandler, QueryHandler):
    """
    Simulated chain with its own ledger and in-memory deployment state.

    Usage:
        chain = Mock("sender")
        chain.set_balance("sender", [Coin(1000, "ujuno")])
        token = Contract("token", chain, source=ContractEndpoints(Cw20()))
        token.upload()
    """

    def __init__(
        self,
        sender: str = "sender",
        chain_id: str = "mock-1",
        deployment_id: str = DEFAULT_DEPLOYMENT_ID,
    ):
        self.app = MockApp(chain_id)
        self._sender = sender
        self._state = MemoryState(chain_id, deployment_id)

    def __repr__(self) -> str:
        return f"Mock(sender={self._sender!r}, chain_id={self.app.block.chain_id!r})"

    @property
    def sender(self) -> str:
        return self._sender

    def set_sender(self, sender: str) -> None:
        self._sender = sender

    @property
    def state(self) -> StateInterface:
        return self._state

    @property
    def bank(self) -> "MockBank":
        return MockBank(self.app)

    @property
    def wasm(self) -> "MockWasm":
        return MockWasm(self.app)

    # Balances

    def set_balance(self, address: str, coins: Sequence[Coin]) -> None:
        self.app.set_balance(address, coins)

    def add_balance(self, address: str, coins: Sequence[Coin]) -> None:
        self.app.add_balance(address, coins)

    # Execute on the ledger, returns tx response

    def upload(self, code_reference: ContractCodeReference) -> TxResponse:
        if not isinstance(code_reference, ContractEndpoints):
            raise UnsupportedCodeReferenceError(
                f"Simulated chain upload requires contract endpoints, got {type(code_reference).__name__}"
            )
        return self.app.store_code(self._sender, code_reference.endpoints, code_reference.checksum())

    def instantiate(
        self,
        code_id: int,
        init_msg: Any,
        label: Optional[str] = None,
        admin: Optional[str] = None,
        coins: Sequence[Coin] = (),
    ) -> TxResponse:
        return self.app.instantiate(
            self._sender, code_id, encode_json(init_msg, "instantiate"), label or "", admin, coins
        )

    def instantiate2(
        self,
        code_id: int,
        init_msg: Any,
        label: Optional[str],
        admin: Optional[str],
        coins: Sequence[Coin],
        salt: bytes,
    ) -> TxResponse:
        address = self.app.instantiate2_address(code_id, self._sender, salt)
        logger.debug("instantiate2 of code %s will create %s", code_id, address)
        return self.app.instantiate(
            self._sender,
            code_id,
            encode_json(init_msg, "instantiate2"),
            label or "",
            admin,
            coins,
            address=address,
        )

    def execute(self, exec_msg: Any, coins: Sequence[Coin], contract_address: str) -> TxResponse:
        return self.app.execute(self._sender, contract_address, encode_json(exec_msg, "execute"), coins)

    def migrate(self, migrate_msg: Any, new_code_id: int, contract_address: str) -> TxResponse:
        return self.app.migrate(self._sender, contract_address, encode_json(migrate_msg, "migrate"), new_code_id)

    def query(self, query_msg: Any, contract_address: str, response_type: Type[T] = dict) -> T:
        data = self.app.query(contract_address, encode_json(query_msg, "query"))
        return decode_json(data, response_type, operation=f"query {contract_address}")

    # Block progression

    def block_height(self) -> int:
        return self.app.block.height

    def wait_blocks(self, amount: int) -> None:
        self.app.next_block(amount)

    def wait_seconds(self, secs: int) -> None:
        self.app.wait_seconds(secs)

    def next_block(self) -> None:
        self.app.next_block(1)


class MockBank(BankQuerier):
    def __init__(self, app: MockApp):
        self._app = app

    def balance(self, address: str, denom: str) -> Coin:
        return Coin(amount=self._app.balance(address, denom), denom=denom)

    def all_balances(self, address: str) -> List[Coin]:
        return self._app.all_balances(address)


class MockWasm(WasmQuerier):
    def __init__(self, app: MockApp):
        self._app = app

    def code(self, code_id: int) -> CodeInfo:
        record = self._app.code(code_id)
        return CodeInfo(code_id=code_id, creator=record.creator, checksum=record.checksum)

    def contract_info(self, address: str) -> ContractInfo:
        instance = self._app.contract(address)
        return ContractInfo(
            address=address,
            code_id=instance.code_id,
            creator=instance.creator,
            admin=instance.admin,
            label=instance.label,
        )

    def smart_query(self, address: str, query_msg: Any, response_type: Type[T] = dict) -> T:
        data = self._app.query(address, encode_json(query_msg, "query"))
        return decode_json(data, response_type, operation=f"query {address}")

    def raw_query(self, address: str, key: bytes) -> bytes:
        return self._app.raw_query(address, key)

    def instantiate2_addr(self, code_id: int, creator: str, salt: bytes) -> str:
        return self._app.instantiate2_address(code_id, creator, salt)

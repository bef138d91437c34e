"""
In-memory ledger backing the simulated chain.

Holds bank balances, a code registry of native endpoint objects and the
contract instances created from them. Every state-changing entry point runs
as a transaction: on any failure the bank and contract state are restored
and the error surfaces as BackendRejectionError.
"""

import copy
import hashlib
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence

from .code_reference import ContractEndpointsProtocol
from .codec import decode_json, encode_json, to_jsonable
from .constants import MOCK_BLOCK_TIME_SECONDS
from .exceptions import BackendRejectionError, OrchestratorError
from .types import Coin, Event, TxResponse

logger = logging.getLogger(__name__)

GENESIS_HEIGHT = 12345
GENESIS_TIME = 1571797419


@dataclass
class BlockInfo:
    height: int
    time: int  # Unix seconds
    chain_id: str


@dataclass
class CodeRecord:
    endpoints: ContractEndpointsProtocol
    creator: str
    checksum: str


@dataclass
class ContractInstance:
    code_id: int
    creator: str
    admin: Optional[str]
    label: str
    storage: Dict[str, Any] = field(default_factory=dict)


class ContractContext:
    """
    Execution context handed to native endpoints.

    Endpoints read and write `storage`, inspect `sender`, `funds` and
    `block`, move funds with bank_transfer() and report attributes and
    events for the transaction response. Query contexts are read-only and
    reject bank_transfer().
    """

    def __init__(
        self,
        app: "MockApp",
        contract_address: str,
        storage: Dict[str, Any],
        sender: Optional[str] = None,
        funds: Sequence[Coin] = (),
        read_only: bool = False,
    ):
        self._app = app
        self.contract_address = contract_address
        self.storage = storage
        self.sender = sender
        self.funds = list(funds)
        self.read_only = read_only
        self.block = copy.copy(app.block)
        self.attributes: List[tuple] = []
        self.events: List[Event] = []

    def attribute(self, key: str, value: Any) -> None:
        self.attributes.append((key, str(value)))

    def event(self, event_type: str, **attributes: Any) -> None:
        self.events.append(
            Event(
                type=f"wasm-{event_type}",
                attributes=[("_contract_address", self.contract_address)]
                + [(k, str(v)) for k, v in attributes.items()],
            )
        )

    def bank_transfer(self, to: str, coins: Sequence[Coin]) -> None:
        if self.read_only:
            raise BackendRejectionError(
                f"{self.contract_address}: bank transfer not allowed in a query", raw_log="read-only context"
            )
        self._app.transfer(self.contract_address, to, coins)


class MockApp:
    """Deterministic in-memory chain state."""

    def __init__(self, chain_id: str = "mock-1"):
        self.block = BlockInfo(height=GENESIS_HEIGHT, time=GENESIS_TIME, chain_id=chain_id)
        self._balances: Dict[str, Dict[str, int]] = {}
        self._codes: Dict[int, CodeRecord] = {}
        self._contracts: Dict[str, ContractInstance] = {}
        self._next_code_id = 1
        self._contract_seq = 0
        self._tx_seq = 0

    # Block progression (only on request)

    def next_block(self, amount: int = 1) -> None:
        self.block.height += amount
        self.block.time += amount * MOCK_BLOCK_TIME_SECONDS

    def wait_seconds(self, secs: int) -> None:
        self.block.time += secs
        self.block.height += secs // MOCK_BLOCK_TIME_SECONDS

    # Bank

    def balance(self, address: str, denom: str) -> int:
        return self._balances.get(address, {}).get(denom, 0)

    def all_balances(self, address: str) -> List[Coin]:
        return [
            Coin(amount=amount, denom=denom)
            for denom, amount in sorted(self._balances.get(address, {}).items())
            if amount
        ]

    def set_balance(self, address: str, coins: Sequence[Coin]) -> None:
        self._balances[address] = {c.denom: c.amount for c in coins}

    def add_balance(self, address: str, coins: Sequence[Coin]) -> None:
        account = self._balances.setdefault(address, {})
        for coin in coins:
            account[coin.denom] = account.get(coin.denom, 0) + coin.amount

    def transfer(self, from_address: str, to_address: str, coins: Sequence[Coin]) -> None:
        """
        Move funds between accounts.

        Raises:
            BackendRejectionError: If the sender's balance is insufficient
        """
        for coin in coins:
            available = self.balance(from_address, coin.denom)
            if available < coin.amount:
                raise BackendRejectionError(
                    f"insufficient funds: {from_address} has {available}{coin.denom}, "
                    f"needs {coin.amount}{coin.denom}",
                    raw_log=f"{available}{coin.denom} is smaller than {coin.amount}{coin.denom}: insufficient funds",
                )
            self._balances.setdefault(from_address, {})[coin.denom] = available - coin.amount
            account = self._balances.setdefault(to_address, {})
            account[coin.denom] = account.get(coin.denom, 0) + coin.amount

    # Code and contracts

    def code(self, code_id: int) -> CodeRecord:
        if code_id not in self._codes:
            raise BackendRejectionError(f"code id {code_id}: no such code", raw_log="no such code")
        return self._codes[code_id]

    def contract(self, address: str) -> ContractInstance:
        if address not in self._contracts:
            raise BackendRejectionError(f"contract {address}: not found", raw_log="no such contract")
        return self._contracts[address]

    def instantiate2_address(self, code_id: int, creator: str, salt: bytes) -> str:
        """Pure function of (code_id, creator, salt)."""
        digest = hashlib.sha256(f"{code_id}:{creator}:".encode("utf-8") + salt).hexdigest()
        return f"contract{digest[:40]}"

    def store_code(self, sender: str, endpoints: ContractEndpointsProtocol, checksum: str) -> TxResponse:
        code_id = self._next_code_id
        self._next_code_id += 1
        self._codes[code_id] = CodeRecord(endpoints=endpoints, creator=sender, checksum=checksum)
        logger.debug("stored code %s from %s", code_id, sender)
        return self._response(
            [
                _message_event(sender, "/cosmwasm.wasm.v1.MsgStoreCode"),
                Event("store_code", [("code_checksum", checksum), ("code_id", str(code_id))]),
            ]
        )

    def instantiate(
        self,
        sender: str,
        code_id: int,
        msg: bytes,
        label: str,
        admin: Optional[str],
        funds: Sequence[Coin],
        address: Optional[str] = None,
    ) -> TxResponse:
        """
        Create a contract instance.

        Args:
            address: Predetermined address (instantiate2); sequential when None
        """
        with self._transaction():
            code = self.code(code_id)
            if address is None:
                address = f"contract{self._contract_seq}"
                self._contract_seq += 1
            if address in self._contracts:
                raise BackendRejectionError(f"contract address {address} already exists", raw_log="duplicate")

            instance = ContractInstance(code_id=code_id, creator=sender, admin=admin, label=label)
            self._contracts[address] = instance
            self.transfer(sender, address, funds)

            ctx = ContractContext(self, address, instance.storage, sender, funds)
            data = code.endpoints.instantiate(ctx, decode_json(msg, object, "instantiate"))

            return self._response(
                [
                    _message_event(sender, "/cosmwasm.wasm.v1.MsgInstantiateContract"),
                    Event("instantiate", [("_contract_address", address), ("code_id", str(code_id))]),
                ]
                + _wasm_events(ctx),
                data,
            )

    def execute(self, sender: str, contract_address: str, msg: bytes, funds: Sequence[Coin]) -> TxResponse:
        with self._transaction():
            instance = self.contract(contract_address)
            endpoints = self.code(instance.code_id).endpoints
            self.transfer(sender, contract_address, funds)

            ctx = ContractContext(self, contract_address, instance.storage, sender, funds)
            data = endpoints.execute(ctx, decode_json(msg, object, "execute"))

            return self._response(
                [
                    _message_event(sender, "/cosmwasm.wasm.v1.MsgExecuteContract"),
                    Event("execute", [("_contract_address", contract_address)]),
                ]
                + _wasm_events(ctx),
                data,
            )

    def migrate(self, sender: str, contract_address: str, msg: bytes, new_code_id: int) -> TxResponse:
        with self._transaction():
            instance = self.contract(contract_address)
            if instance.admin is None or instance.admin != sender:
                raise BackendRejectionError(
                    f"{sender} is not the admin of {contract_address}", raw_log="unauthorized"
                )
            endpoints = self.code(new_code_id).endpoints
            instance.code_id = new_code_id

            ctx = ContractContext(self, contract_address, instance.storage, sender)
            data = endpoints.migrate(ctx, decode_json(msg, object, "migrate"))

            return self._response(
                [
                    _message_event(sender, "/cosmwasm.wasm.v1.MsgMigrateContract"),
                    Event("migrate", [("_contract_address", contract_address), ("code_id", str(new_code_id))]),
                ]
                + _wasm_events(ctx),
                data,
            )

    def query(self, contract_address: str, msg: bytes) -> bytes:
        """Run a smart query against a private copy of the contract storage."""
        instance = self.contract(contract_address)
        endpoints = self.code(instance.code_id).endpoints
        ctx = ContractContext(self, contract_address, copy.deepcopy(instance.storage), read_only=True)
        try:
            result = endpoints.query(ctx, decode_json(msg, object, "query"))
        except OrchestratorError:
            raise
        except Exception as e:
            raise BackendRejectionError(f"query of {contract_address} failed: {e}", raw_log=str(e)) from e
        return encode_json(result, "query")

    def raw_query(self, contract_address: str, key: bytes) -> bytes:
        storage = self.contract(contract_address).storage
        name = key.decode("utf-8")
        if name not in storage:
            return b""
        return encode_json(storage[name], "raw_query")

    def contracts(self) -> Dict[str, ContractInstance]:
        return self._contracts

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        snapshot = (
            copy.deepcopy(self._balances),
            copy.deepcopy(self._contracts),
            self._contract_seq,
        )
        try:
            yield
        except OrchestratorError:
            self._balances, self._contracts, self._contract_seq = snapshot
            raise
        except Exception as e:
            # Contract code failed; same as a failed DeliverTx
            self._balances, self._contracts, self._contract_seq = snapshot
            raise BackendRejectionError(f"contract execution failed: {e}", raw_log=str(e)) from e

    def _response(self, events: List[Event], data: Any = None) -> TxResponse:
        self._tx_seq += 1
        txhash = hashlib.sha256(f"{self.block.chain_id}:{self._tx_seq}".encode("utf-8")).hexdigest().upper()
        return TxResponse(
            txhash=txhash,
            height=self.block.height,
            code=0,
            events=events,
            data=to_jsonable(data),
            timestamp=str(self.block.time),
        )


def _message_event(sender: str, action: str) -> Event:
    return Event("message", [("action", action), ("module", "wasm"), ("sender", sender)])


def _wasm_events(ctx: ContractContext) -> List[Event]:
    events: List[Event] = []
    if ctx.attributes:
        events.append(Event("wasm", [("_contract_address", ctx.contract_address)] + ctx.attributes))
    return events + ctx.events

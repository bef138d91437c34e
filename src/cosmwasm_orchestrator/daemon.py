"""
Live-chain executor.

DaemonAsync implements every operation as a coroutine against an LCD
transport and a Sender. Daemon exposes the same operations synchronously:
each call is driven to completion by its own short-lived event loop
(asyncio.run), so no in-flight task is ever shared between calls.
"""

import asyncio
import logging
import os
from typing import Any, List, Optional, Sequence, Type, TypeVar

from .code_reference import ContractCodeReference, WasmPath
from .codec import decode_json, encode_json
from .constants import CONFIRMATION_WAIT_SECONDS, DEFAULT_DEPLOYMENT_ID, DEPLOYMENT_ID_ENV, get_network
from .environment import BankQuerier, QueryHandler, TxHandler, WasmQuerier
from .exceptions import BackendRejectionError, ConfigurationError, UnsupportedCodeReferenceError
from .sender import (
    MsgExecuteContract,
    MsgInstantiateContract,
    MsgInstantiateContract2,
    MsgMigrateContract,
    MsgStoreCode,
    Sender,
)
from .state import FileState, StateInterface
from .transport import LcdTransport
from .types import ChainInfo, CodeInfo, Coin, ContractInfo, TxResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DaemonAsync:
    """Asynchronous core of the live backend."""

    def __init__(
        self,
        chain: ChainInfo,
        sender: Sender,
        state: StateInterface,
        transport: LcdTransport,
        block_poll_interval: float = 1.0,
    ):
        self.chain = chain
        self.sender = sender
        self.state = state
        self.transport = transport
        self.block_poll_interval = block_poll_interval

    async def commit_tx(self, msgs: Sequence[Any], memo: Optional[str] = None) -> TxResponse:
        """
        Sign, broadcast and confirm a transaction.

        Raises:
            BackendRejectionError: If the chain returns a non-zero result code
        """
        tx_bytes = await self.sender.sign_tx(msgs, memo)
        raw = await self.transport.broadcast_tx(tx_bytes)
        resp = TxResponse.from_lcd(raw)
        if not resp.is_success:
            raise BackendRejectionError(
                f"tx {resp.txhash} failed with code {resp.code}: {resp.raw_log}",
                raw_log=resp.raw_log,
                code=resp.code,
            )
        logger.debug("tx %s committed at height %s", resp.txhash, resp.height)
        return resp

    async def wait_for_propagation(self) -> None:
        # Fixed delay, not a readiness poll
        secs = CONFIRMATION_WAIT_SECONDS[self.chain.kind]
        logger.info("waiting %ss for code propagation on %s", secs, self.chain.chain_id)
        await asyncio.sleep(secs)

    async def upload(self, code_reference: ContractCodeReference) -> TxResponse:
        if not isinstance(code_reference, WasmPath):
            raise UnsupportedCodeReferenceError(
                f"Live chain upload requires a wasm file, got {type(code_reference).__name__}"
            )

        wasm_path = code_reference.resolve()
        with open(wasm_path, "rb") as f:
            wasm_byte_code = f.read()

        store_msg = MsgStoreCode(sender=self.sender.address(), wasm_byte_code=wasm_byte_code)
        resp = await self.commit_tx([store_msg])
        logger.info("uploaded: %s", resp.txhash)

        await self.wait_for_propagation()
        return resp

    async def instantiate(
        self,
        code_id: int,
        init_msg: Any,
        label: Optional[str] = None,
        admin: Optional[str] = None,
        coins: Sequence[Coin] = (),
    ) -> TxResponse:
        msg = MsgInstantiateContract(
            sender=self.sender.address(),
            admin=self._admin(admin),
            code_id=code_id,
            label=label or "",
            msg=encode_json(init_msg, "instantiate"),
            funds=list(coins),
        )
        return await self.commit_tx([msg])

    async def instantiate2(
        self,
        code_id: int,
        init_msg: Any,
        label: Optional[str],
        admin: Optional[str],
        coins: Sequence[Coin],
        salt: bytes,
    ) -> TxResponse:
        creator = self.sender.address()
        predicted = self.sender.instantiate2_address(code_id, creator, salt)
        logger.info("instantiate2 of code %s will create %s", code_id, predicted)

        msg = MsgInstantiateContract2(
            sender=creator,
            admin=self._admin(admin),
            code_id=code_id,
            label=label or "",
            msg=encode_json(init_msg, "instantiate2"),
            funds=list(coins),
            salt=salt,
        )
        return await self.commit_tx([msg])

    async def execute(self, exec_msg: Any, coins: Sequence[Coin], contract_address: str) -> TxResponse:
        msg = MsgExecuteContract(
            sender=self.sender.address(),
            contract=self.sender.validate_address(contract_address),
            msg=encode_json(exec_msg, "execute"),
            funds=list(coins),
        )
        return await self.commit_tx([msg])

    async def migrate(self, migrate_msg: Any, new_code_id: int, contract_address: str) -> TxResponse:
        msg = MsgMigrateContract(
            sender=self.sender.address(),
            contract=self.sender.validate_address(contract_address),
            msg=encode_json(migrate_msg, "migrate"),
            code_id=new_code_id,
        )
        return await self.commit_tx([msg])

    async def query(self, query_msg: Any, contract_address: str, response_type: Type[T] = dict) -> T:
        address = self.sender.validate_address(contract_address)
        data = await self.transport.smart_contract_state(address, encode_json(query_msg, "query"))
        return decode_json(data, response_type, operation=f"query {address}")

    async def block_height(self) -> int:
        return await self.transport.latest_block_height()

    async def wait_blocks(self, amount: int) -> None:
        target = await self.block_height() + amount
        while await self.block_height() < target:
            await asyncio.sleep(self.block_poll_interval)

    async def wait_seconds(self, secs: int) -> None:
        await asyncio.sleep(secs)

    def _admin(self, admin: Optional[str]) -> Optional[str]:
        # An invalid admin must fail, never fall back to "no admin"
        if admin is None:
            return None
        return self.sender.validate_address(admin)


class Daemon(TxHandler, QueryHandler):
    """
    Synchronous handle to a live chain.

    Usage:
        chain = Daemon(UNI_6, sender=my_sender)
        token = Contract("token", chain, source=WasmPath("cw20_base"))
        token.upload()
    """

    def __init__(
        self,
        chain: ChainInfo,
        sender: Sender,
        state: Optional[StateInterface] = None,
        deployment_id: Optional[str] = None,
        transport: Optional[LcdTransport] = None,
    ):
        """
        Args:
            chain: Network to operate on
            sender: Signing account
            state: Deployment state (defaults to the file at $STATE_FILE or
                   ~/.cosmwasm-orchestrator/state.json)
            deployment_id: Deployment namespace (defaults to $DEPLOYMENT_ID, then "default")
            transport: LCD transport (defaults to one on chain.lcd_url)

        Raises:
            ConfigurationError: If no transport is given and the chain has no LCD url
        """
        if deployment_id is None:
            deployment_id = os.environ.get(DEPLOYMENT_ID_ENV, DEFAULT_DEPLOYMENT_ID)
        if state is None:
            state = FileState.open(chain.chain_id, deployment_id)
        if transport is None:
            if chain.lcd_url is None:
                raise ConfigurationError(f"No LCD url configured for chain '{chain.chain_id}'")
            transport = LcdTransport(chain.lcd_url)

        self.daemon = DaemonAsync(chain, sender, state, transport)

    @classmethod
    def from_network(cls, chain_id: str, sender: Sender, **kwargs: Any) -> "Daemon":
        """Build a Daemon for a known network preset."""
        return cls(get_network(chain_id), sender, **kwargs)

    def __repr__(self) -> str:
        return f"Daemon(chain_id={self.daemon.chain.chain_id!r})"

    @property
    def chain(self) -> ChainInfo:
        return self.daemon.chain

    @property
    def sender(self) -> str:
        return self.daemon.sender.address()

    def set_sender(self, sender: Sender) -> None:
        """Sign subsequent transactions with another account."""
        self.daemon.sender = sender

    @property
    def state(self) -> StateInterface:
        return self.daemon.state

    @property
    def bank(self) -> "DaemonBank":
        return DaemonBank(self.daemon)

    @property
    def wasm(self) -> "DaemonWasm":
        return DaemonWasm(self.daemon)

    # Execute on the real chain, returns tx response

    def upload(self, code_reference: ContractCodeReference) -> TxResponse:
        return asyncio.run(self.daemon.upload(code_reference))

    def instantiate(
        self,
        code_id: int,
        init_msg: Any,
        label: Optional[str] = None,
        admin: Optional[str] = None,
        coins: Sequence[Coin] = (),
    ) -> TxResponse:
        return asyncio.run(self.daemon.instantiate(code_id, init_msg, label, admin, coins))

    def instantiate2(
        self,
        code_id: int,
        init_msg: Any,
        label: Optional[str],
        admin: Optional[str],
        coins: Sequence[Coin],
        salt: bytes,
    ) -> TxResponse:
        return asyncio.run(self.daemon.instantiate2(code_id, init_msg, label, admin, coins, salt))

    def execute(self, exec_msg: Any, coins: Sequence[Coin], contract_address: str) -> TxResponse:
        return asyncio.run(self.daemon.execute(exec_msg, coins, contract_address))

    def migrate(self, migrate_msg: Any, new_code_id: int, contract_address: str) -> TxResponse:
        return asyncio.run(self.daemon.migrate(migrate_msg, new_code_id, contract_address))

    def query(self, query_msg: Any, contract_address: str, response_type: Type[T] = dict) -> T:
        return asyncio.run(self.daemon.query(query_msg, contract_address, response_type))

    # Block progression

    def block_height(self) -> int:
        return asyncio.run(self.daemon.block_height())

    def wait_blocks(self, amount: int) -> None:
        asyncio.run(self.daemon.wait_blocks(amount))

    def wait_seconds(self, secs: int) -> None:
        asyncio.run(self.daemon.wait_seconds(secs))

    def next_block(self) -> None:
        self.wait_blocks(1)


class DaemonBank(BankQuerier):
    def __init__(self, daemon: DaemonAsync):
        self._daemon = daemon

    def balance(self, address: str, denom: str) -> Coin:
        return asyncio.run(self._daemon.transport.balance(address, denom))

    def all_balances(self, address: str) -> List[Coin]:
        return asyncio.run(self._daemon.transport.all_balances(address))


class DaemonWasm(WasmQuerier):
    def __init__(self, daemon: DaemonAsync):
        self._daemon = daemon

    def code(self, code_id: int) -> CodeInfo:
        return asyncio.run(self._daemon.transport.code_info(code_id))

    def contract_info(self, address: str) -> ContractInfo:
        return asyncio.run(self._daemon.transport.contract_info(address))

    def smart_query(self, address: str, query_msg: Any, response_type: Type[T] = dict) -> T:
        return asyncio.run(self._daemon.query(query_msg, address, response_type))

    def raw_query(self, address: str, key: bytes) -> bytes:
        return asyncio.run(self._daemon.transport.raw_contract_state(address, key))

    def instantiate2_addr(self, code_id: int, creator: str, salt: bytes) -> str:
        return self._daemon.sender.instantiate2_address(code_id, creator, salt)

"""Typed contract handle for cosmwasm-orchestrator library."""

import logging
from typing import Any, Generic, Optional, Sequence, Type, TypeVar

from .code_reference import ContractCodeReference
from .environment import TxHandler
from .exceptions import CodeIdNotSetError
from .types import Coin, TxResponse

logger = logging.getLogger(__name__)

ExecuteT = TypeVar("ExecuteT")
InstantiateT = TypeVar("InstantiateT")
QueryT = TypeVar("QueryT")
MigrateT = TypeVar("MigrateT")
T = TypeVar("T")


class Contract(Generic[ExecuteT, InstantiateT, QueryT, MigrateT]):
    """
    A named contract bound to an execution environment.

    The four type parameters fix the payload types accepted by execute,
    instantiate, query and migrate. Address and code id are read from and
    written to the chain's deployment state under `name`; the handle itself
    holds no deployment state.

    Usage:
        Cw20 = Contract[Cw20ExecuteMsg, Cw20InstantiateMsg, Cw20QueryMsg, dict]
        token = Cw20("token", chain, source=WasmPath("cw20_base"))
        token.upload()
        token.instantiate(Cw20InstantiateMsg(...))
    """

    def __init__(
        self,
        name: str,
        chain: TxHandler,
        source: Optional[ContractCodeReference] = None,
    ):
        """
        Bind a contract name to a chain.

        Args:
            name: Contract name, unique within the deployment
            chain: Execution environment (Daemon or Mock)
            source: Default code reference used by upload()
        """
        self.name = name
        self.chain = chain
        self.source = source

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, chain={self.chain!r})"

    # Chain interfaces

    def execute(self, msg: ExecuteT, coins: Optional[Sequence[Coin]] = None) -> TxResponse:
        """
        Execute the contract.

        Raises:
            AddressNotSetError: If the contract was never instantiated
        """
        address = self.address()
        logger.info("executing %s", self.name)
        return self.chain.execute(msg, coins or (), address)

    def instantiate(
        self,
        msg: InstantiateT,
        admin: Optional[str] = None,
        coins: Optional[Sequence[Coin]] = None,
        label: Optional[str] = None,
    ) -> TxResponse:
        """
        Instantiate the uploaded code and record the new address.

        Raises:
            CodeIdNotSetError: If the contract was never uploaded
            ResponseFieldMissingError: If the response carries no contract address
        """
        code_id = self.code_id()
        logger.info("instantiating %s", self.name)
        resp = self.chain.instantiate(code_id, msg, label or self.name, admin, coins or ())
        address = resp.instantiated_contract_address()
        self.set_address(address)
        logger.info("%s instantiated at %s", self.name, address)
        logger.debug("instantiate response: %s", resp)
        return resp

    def instantiate2(
        self,
        msg: InstantiateT,
        salt: bytes,
        admin: Optional[str] = None,
        coins: Optional[Sequence[Coin]] = None,
        label: Optional[str] = None,
    ) -> TxResponse:
        """
        Instantiate at an address derived from (code id, sender, salt) and record it.

        Raises:
            CodeIdNotSetError: If the contract was never uploaded
            ResponseFieldMissingError: If the response carries no contract address
        """
        code_id = self.code_id()
        logger.info("instantiating %s with salt %s", self.name, salt.hex())
        resp = self.chain.instantiate2(code_id, msg, label or self.name, admin, coins or (), salt)
        address = resp.instantiated_contract_address()
        self.set_address(address)
        logger.info("%s instantiated at %s", self.name, address)
        logger.debug("instantiate2 response: %s", resp)
        return resp

    def upload(self, code_reference: Optional[ContractCodeReference] = None) -> TxResponse:
        """
        Upload code and record the new code id.

        Args:
            code_reference: Code to upload (defaults to the handle's source)

        Raises:
            UnsupportedCodeReferenceError: If the backend does not accept the variant
            ResponseFieldMissingError: If the response carries no code id
        """
        if code_reference is None:
            code_reference = self._require_source()
        logger.info("uploading %s", self.name)
        resp = self.chain.upload(code_reference)
        code_id = resp.uploaded_code_id()
        logger.info("%s uploaded with code id %s", self.name, code_id)
        logger.debug("upload events: %s", resp.events)
        self.set_code_id(code_id)
        return resp

    def upload_if_needed(self) -> Optional[TxResponse]:
        """Upload the handle's source unless identical code is already recorded."""
        if self.is_uploaded():
            logger.info("%s already uploaded, skipping", self.name)
            return None
        return self.upload()

    def is_uploaded(self) -> bool:
        """
        Check whether the recorded code id holds this handle's source code.

        Without a bound source, only checks that a code id is recorded.
        """
        try:
            code_id = self.code_id()
        except CodeIdNotSetError:
            return False
        if self.source is None:
            return True
        return self.chain.wasm.code_id_hash(code_id) == self.source.checksum()

    def migrate(self, msg: MigrateT, new_code_id: int) -> TxResponse:
        """
        Migrate the contract to new code.

        The recorded code id is left untouched; it keeps tracking the last upload.

        Raises:
            AddressNotSetError: If the contract was never instantiated
        """
        address = self.address()
        logger.info("migrating %s to code id %s", self.name, new_code_id)
        return self.chain.migrate(msg, new_code_id, address)

    def query(self, msg: QueryT, response_type: Type[T] = dict) -> T:
        """
        Query the contract.

        Raises:
            AddressNotSetError: If the contract was never instantiated
            SerializationError: If the result does not decode into response_type
        """
        return self.chain.query(msg, self.address(), response_type)

    # State interfaces

    def address(self) -> str:
        return self.chain.state.get_address(self.name)

    def code_id(self) -> int:
        return self.chain.state.get_code_id(self.name)

    def set_address(self, address: str) -> None:
        self.chain.state.set_address(self.name, address)

    def set_code_id(self, code_id: int) -> None:
        self.chain.state.set_code_id(self.name, code_id)

    def _require_source(self) -> Any:
        if self.source is None:
            raise ValueError(f"Contract '{self.name}' has no default source; pass a code reference")
        return self.source

"""
Transaction sender contract and CosmWasm wire messages.

Signing, key management, bech32 handling and protobuf encoding are the
Sender's responsibility; this library only builds the typed messages and
hands them over.
"""

import base64
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from .types import Coin


@dataclass
class MsgStoreCode:
    """Upload wasm bytecode."""

    type_url = "/cosmwasm.wasm.v1.MsgStoreCode"

    sender: str
    wasm_byte_code: bytes
    instantiate_permission: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "@type": self.type_url,
            "sender": self.sender,
            "wasm_byte_code": base64.b64encode(self.wasm_byte_code).decode("ascii"),
            "instantiate_permission": self.instantiate_permission,
        }


@dataclass
class MsgInstantiateContract:
    """Create a contract instance from stored code."""

    type_url = "/cosmwasm.wasm.v1.MsgInstantiateContract"

    sender: str
    admin: Optional[str]
    code_id: int
    label: str
    msg: bytes  # JSON-encoded init payload
    funds: List[Coin] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "@type": self.type_url,
            "sender": self.sender,
            "admin": self.admin or "",
            "code_id": str(self.code_id),
            "label": self.label,
            "msg": base64.b64encode(self.msg).decode("ascii"),
            "funds": [c.to_dict() for c in self.funds],
        }


@dataclass
class MsgInstantiateContract2:
    """Create a contract instance at a salt-derived address."""

    type_url = "/cosmwasm.wasm.v1.MsgInstantiateContract2"

    sender: str
    admin: Optional[str]
    code_id: int
    label: str
    msg: bytes
    funds: List[Coin] = field(default_factory=list)
    salt: bytes = b""
    fix_msg: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "@type": self.type_url,
            "sender": self.sender,
            "admin": self.admin or "",
            "code_id": str(self.code_id),
            "label": self.label,
            "msg": base64.b64encode(self.msg).decode("ascii"),
            "funds": [c.to_dict() for c in self.funds],
            "salt": base64.b64encode(self.salt).decode("ascii"),
            "fix_msg": self.fix_msg,
        }


@dataclass
class MsgExecuteContract:
    """Invoke a contract's execute entry point."""

    type_url = "/cosmwasm.wasm.v1.MsgExecuteContract"

    sender: str
    contract: str
    msg: bytes
    funds: List[Coin] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "@type": self.type_url,
            "sender": self.sender,
            "contract": self.contract,
            "msg": base64.b64encode(self.msg).decode("ascii"),
            "funds": [c.to_dict() for c in self.funds],
        }


@dataclass
class MsgMigrateContract:
    """Move a contract to new code."""

    type_url = "/cosmwasm.wasm.v1.MsgMigrateContract"

    sender: str
    contract: str
    msg: bytes
    code_id: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "@type": self.type_url,
            "sender": self.sender,
            "contract": self.contract,
            "msg": base64.b64encode(self.msg).decode("ascii"),
            "code_id": str(self.code_id),
        }


@runtime_checkable
class Sender(Protocol):
    """
    Signing account used by the live backend.

    Implementations wrap a key (mnemonic, ledger, KMS...) together with the
    chain's protobuf codec.
    """

    def address(self) -> str:
        """Bech32 address of the signing account."""
        ...

    def validate_address(self, address: str) -> str:
        """
        Return the canonical form of an address string.

        Raises:
            InvalidAddressError: If the string is not a valid account address
        """
        ...

    async def sign_tx(self, msgs: Sequence[Any], memo: Optional[str] = None) -> bytes:
        """Build, sign and encode a transaction carrying msgs."""
        ...

    def instantiate2_address(self, code_id: int, creator: str, salt: bytes) -> str:
        """Derive the address instantiate2 yields for (code_id, creator, salt)."""
        ...

"""Data types and dataclasses for cosmwasm-orchestrator library."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .exceptions import ResponseFieldMissingError


class NetworkKind(Enum):
    """
    Network tier of a chain.

    Value strings define de/serialization law.
    """

    LOCAL = "local"
    TESTNET = "testnet"
    MAINNET = "mainnet"


@dataclass(frozen=True)
class ChainInfo:
    """Identity and endpoints of a network."""

    chain_id: str  # e.g., "juno-1"
    kind: NetworkKind
    lcd_url: Optional[str] = None  # REST endpoint, only needed by the live backend
    gas_denom: str = "ustake"
    bech32_prefix: str = "cosmos"


@dataclass(frozen=True)
class Coin:
    """An amount of a single denomination."""

    amount: int
    denom: str

    def to_dict(self) -> Dict[str, str]:
        # Cosmos encodes amounts as decimal strings
        return {"amount": str(self.amount), "denom": self.denom}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Coin":
        return cls(amount=int(data["amount"]), denom=data["denom"])


@dataclass
class Event:
    """A typed event with ordered key/value attributes."""

    type: str
    attributes: List[tuple] = field(default_factory=list)  # [(key, value), ...]

    def get(self, key: str) -> List[str]:
        return [v for k, v in self.attributes if k == key]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        return cls(
            type=data["type"],
            attributes=[(a["key"], a.get("value", "")) for a in data.get("attributes", [])],
        )


@dataclass
class DeploymentRecord:
    """Address and code id tracked for one contract name."""

    address: Optional[str] = None  # Set after a successful instantiate
    code_id: Optional[int] = None  # Set after a successful upload

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "code_id": self.code_id}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentRecord":
        return cls(address=data.get("address"), code_id=data.get("code_id"))


@dataclass
class CodeInfo:
    """Metadata of uploaded code."""

    code_id: int
    creator: str
    checksum: str  # Hex-encoded sha256 of the code


@dataclass
class ContractInfo:
    """Metadata of an instantiated contract."""

    address: str
    code_id: int
    creator: str
    admin: Optional[str]
    label: str


@dataclass
class TxResponse:
    """Result of a committed transaction on either backend."""

    txhash: str = ""
    height: int = 0
    code: int = 0
    raw_log: str = ""
    events: List[Event] = field(default_factory=list)
    gas_wanted: int = 0
    gas_used: int = 0
    data: Optional[Any] = None
    timestamp: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.code == 0

    def event_attr_values(self, event_type: str, key: str) -> List[str]:
        """
        Collect attribute values of a given key across all events of a type.

        Args:
            event_type: Event type, e.g., "wasm"
            key: Attribute key

        Returns:
            Values in emission order (possibly empty)
        """
        values: List[str] = []
        for event in self.events:
            if event.type == event_type:
                values.extend(event.get(key))
        return values

    def event_attr_value(self, event_type: str, key: str) -> str:
        """
        Get the first attribute value of a given key in events of a type.

        Raises:
            ResponseFieldMissingError: If no such attribute was emitted
        """
        values = self.event_attr_values(event_type, key)
        if not values:
            raise ResponseFieldMissingError(
                f"Attribute '{key}' not found in '{event_type}' events of tx {self.txhash or '<none>'}"
            )
        return values[0]

    def uploaded_code_id(self) -> int:
        """Code id assigned by a store-code message."""
        value = self.event_attr_value("store_code", "code_id")
        try:
            return int(value)
        except ValueError as e:
            raise ResponseFieldMissingError(f"Malformed code_id attribute: {value!r}") from e

    def instantiated_contract_address(self) -> str:
        """Address of the contract created by an instantiate message."""
        return self.event_attr_value("instantiate", "_contract_address")

    @classmethod
    def from_lcd(cls, data: Dict[str, Any]) -> "TxResponse":
        """
        Build a response from an LCD `tx_response` object.

        Message events are read from `logs` when the node still fills them,
        otherwise from the top-level `events` list.
        """
        events: List[Event] = []
        for log in data.get("logs") or []:
            events.extend(Event.from_dict(e) for e in log.get("events", []))
        if not events:
            events = [Event.from_dict(e) for e in data.get("events") or []]

        return cls(
            txhash=data.get("txhash", ""),
            height=int(data.get("height") or 0),
            code=int(data.get("code") or 0),
            raw_log=data.get("raw_log", ""),
            events=events,
            gas_wanted=int(data.get("gas_wanted") or 0),
            gas_used=int(data.get("gas_used") or 0),
            data=data.get("data"),
            timestamp=data.get("timestamp"),
        )

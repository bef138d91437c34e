"""Deployment state store for cosmwasm-orchestrator library.

Maps (chain id, deployment id, contract name) to a DeploymentRecord holding
the contract's address and code id.
"""

import fcntl
import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

from .constants import DEFAULT_DEPLOYMENT_ID
from .exceptions import AddressNotSetError, CodeIdNotSetError, StateFileError
from .paths import get_state_path
from .types import DeploymentRecord

logger = logging.getLogger(__name__)


class StateInterface(ABC):
    """Name-keyed access to deployment records of one chain and deployment."""

    chain_id: str
    deployment_id: str

    @abstractmethod
    def _records(self) -> Dict[str, Dict[str, Any]]:
        """Current name -> {"address", "code_id"} mapping."""

    @abstractmethod
    def _update(self, name: str, field: str, value: Any) -> None:
        """Overwrite a single field of a single record."""

    def record(self, name: str) -> DeploymentRecord:
        """
        Get the deployment record of a contract.

        Returns an empty record for contracts that were never deployed.
        """
        return DeploymentRecord.from_dict(self._records().get(name, {}))

    def get_address(self, name: str) -> str:
        """
        Get the address of an instantiated contract.

        Raises:
            AddressNotSetError: If the contract was never instantiated
        """
        address = self.record(name).address
        if address is None:
            raise AddressNotSetError(
                f"Address of contract '{name}' not set on chain '{self.chain_id}' "
                f"(deployment '{self.deployment_id}')"
            )
        return address

    def get_code_id(self, name: str) -> int:
        """
        Get the code id of an uploaded contract.

        Raises:
            CodeIdNotSetError: If the contract was never uploaded
        """
        code_id = self.record(name).code_id
        if code_id is None:
            raise CodeIdNotSetError(
                f"Code id of contract '{name}' not set on chain '{self.chain_id}' "
                f"(deployment '{self.deployment_id}')"
            )
        return code_id

    def set_address(self, name: str, address: str) -> None:
        self._update(name, "address", address)

    def set_code_id(self, name: str, code_id: int) -> None:
        self._update(name, "code_id", int(code_id))

    def get_all_addresses(self) -> Dict[str, str]:
        return {
            name: rec["address"]
            for name, rec in self._records().items()
            if rec.get("address") is not None
        }

    def get_all_code_ids(self) -> Dict[str, int]:
        return {
            name: rec["code_id"]
            for name, rec in self._records().items()
            if rec.get("code_id") is not None
        }


class MemoryState(StateInterface):
    """In-memory store; lives as long as its owner (e.g., a Mock chain)."""

    def __init__(self, chain_id: str, deployment_id: str = DEFAULT_DEPLOYMENT_ID):
        self.chain_id = chain_id
        self.deployment_id = deployment_id
        self._lock = threading.Lock()
        self._data: Dict[str, Dict[str, Any]] = {}

    def _records(self) -> Dict[str, Dict[str, Any]]:
        return self._data

    def _update(self, name: str, field: str, value: Any) -> None:
        with self._lock:
            record = self._data.setdefault(name, DeploymentRecord().to_dict())
            record[field] = value


class FileState(StateInterface):
    """
    JSON file backed store.

    File layout:
        {chain_id: {deployment_id: {name: {"address": str|null, "code_id": int|null}}}}

    The file is loaded on open. Every mutation takes an exclusive lock,
    reloads the file, overwrites the one field, and atomically replaces the
    file, so concurrent writers to other keys are preserved.
    """

    def __init__(
        self,
        path: Union[Path, str],
        chain_id: str,
        deployment_id: str = DEFAULT_DEPLOYMENT_ID,
    ):
        """
        Open a state file.

        Args:
            path: State JSON file (created on first write)
            chain_id: Chain partition to read and write
            deployment_id: Deployment namespace within the chain

        Raises:
            StateFileError: If the file exists but cannot be read or parsed
        """
        self.path = Path(path)
        self.chain_id = chain_id
        self.deployment_id = deployment_id
        self._lock_path = self.path.with_name(self.path.name + ".lock")
        self._mutex = threading.Lock()
        self._data = self._load()

    @classmethod
    def open(
        cls,
        chain_id: str,
        deployment_id: str = DEFAULT_DEPLOYMENT_ID,
        state_file: Optional[Union[Path, str]] = None,
    ) -> "FileState":
        """Open the state file at $STATE_FILE or the default location."""
        return cls(get_state_path(state_file), chain_id, deployment_id)

    def reload(self) -> None:
        """Refresh the in-memory snapshot from disk."""
        self._data = self._load()

    def _load(self) -> Dict[str, Any]:
        try:
            with open(self.path) as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as e:
            raise StateFileError(f"Corrupt state file {self.path}: {e}") from e
        except OSError as e:
            raise StateFileError(f"Cannot read state file {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StateFileError(f"Corrupt state file {self.path}: top level is not an object")
        return data

    def _records(self) -> Dict[str, Dict[str, Any]]:
        return self._data.get(self.chain_id, {}).get(self.deployment_id, {})

    def _update(self, name: str, field: str, value: Any) -> None:
        with self._mutex, self._exclusive():
            data = self._load()
            records = data.setdefault(self.chain_id, {}).setdefault(self.deployment_id, {})
            record = records.setdefault(name, DeploymentRecord().to_dict())
            record[field] = value
            self._write(data)
            self._data = data
        logger.debug("state %s: %s.%s = %s", self.path, name, field, value)

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        # Cross-process lock on a sidecar file; the state file itself is replaced on write
        self._lock_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._lock_path, "w") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _write(self, data: Dict[str, Any]) -> None:
        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", dir=self.path.parent, prefix=f".{self.path.name}.", delete=False
            ) as tmp:
                tmp_path = tmp.name
                json.dump(data, tmp, indent=2)
                tmp.write("\n")
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StateFileError(f"Cannot write state file {self.path}: {e}") from e

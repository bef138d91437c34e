"""
Contract code references.

A code reference is exactly one of two variants:

- WasmPath: compiled bytecode on disk, consumed by the live backend
- ContractEndpoints: an in-process implementation of the contract entry
  points, consumed by the simulated backend

Each backend accepts only its own variant and raises
UnsupportedCodeReferenceError for the other.
"""

import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol, Union, runtime_checkable

from .paths import resolve_wasm_path


@runtime_checkable
class ContractEndpointsProtocol(Protocol):
    """Entry points a native contract implementation must provide."""

    def instantiate(self, ctx: Any, msg: Any) -> Any: ...

    def execute(self, ctx: Any, msg: Any) -> Any: ...

    def query(self, ctx: Any, msg: Any) -> Any: ...

    def migrate(self, ctx: Any, msg: Any) -> Any: ...


@dataclass(frozen=True)
class WasmPath:
    """Path or artifact name of a compiled .wasm file."""

    path: Union[str, Path]

    def resolve(self, wasm_dir: Optional[Union[str, Path]] = None) -> Path:
        return resolve_wasm_path(self.path, wasm_dir)

    def read(self, wasm_dir: Optional[Union[str, Path]] = None) -> bytes:
        with open(self.resolve(wasm_dir), "rb") as f:
            return f.read()

    def checksum(self, wasm_dir: Optional[Union[str, Path]] = None) -> str:
        """Hex sha256 of the bytecode, as reported by the chain's code info."""
        return hashlib.sha256(self.read(wasm_dir)).hexdigest()


@dataclass(frozen=True)
class ContractEndpoints:
    """Native endpoint object standing in for bytecode on the simulated chain."""

    endpoints: ContractEndpointsProtocol

    def checksum(self) -> str:
        """Hex sha256 of the implementing class name, as reported by the mock code info."""
        name = f"{type(self.endpoints).__module__}.{type(self.endpoints).__qualname__}"
        return hashlib.sha256(name.encode("utf-8")).hexdigest()


ContractCodeReference = Union[WasmPath, ContractEndpoints]

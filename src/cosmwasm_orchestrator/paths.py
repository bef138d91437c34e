"""Path management utilities for cosmwasm-orchestrator library."""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from .constants import STATE_FILE_ENV, WASM_DIR_ENV, WASM_EXTENSION
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def get_default_state_dir() -> Path:
    """
    Get default state directory (user home).

    Returns:
        Path to ~/.cosmwasm-orchestrator
    """
    return Path.home() / ".cosmwasm-orchestrator"


def get_state_path(state_file: Optional[Union[Path, str]] = None) -> Path:
    """
    Get the deployment state file path.

    Args:
        state_file: Explicit state file (defaults to $STATE_FILE, then
                    ~/.cosmwasm-orchestrator/state.json)

    Returns:
        Absolute path to the state JSON file
    """
    if state_file is None:
        state_file = os.environ.get(STATE_FILE_ENV)

    if state_file is None:
        return get_default_state_dir() / "state.json"

    return Path(state_file).absolute()


def resolve_wasm_path(path: Union[Path, str], wasm_dir: Optional[Union[Path, str]] = None) -> Path:
    """
    Resolve a bytecode reference to a file path.

    A path that already names a .wasm file is used as-is. A bare artifact
    name is looked up as <wasm_dir>/<name>.wasm.

    Args:
        path: File path or artifact name (e.g., "cw20_base")
        wasm_dir: Artifact directory (defaults to $WASM_DIR)

    Returns:
        Path to the wasm file

    Raises:
        ConfigurationError: If a bare name is given and no directory is configured
    """
    path = str(path)
    if WASM_EXTENSION in path:
        resolved = Path(path)
    else:
        if wasm_dir is None:
            wasm_dir = os.environ.get(WASM_DIR_ENV)
        if wasm_dir is None:
            raise ConfigurationError(
                f"Cannot resolve '{path}': set ${WASM_DIR_ENV} or pass a path ending in {WASM_EXTENSION}"
            )
        resolved = Path(wasm_dir) / f"{path}{WASM_EXTENSION}"

    logger.debug("resolved wasm path: %s", resolved)
    return resolved

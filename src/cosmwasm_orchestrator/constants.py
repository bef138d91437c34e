"""Configuration constants for cosmwasm-orchestrator library."""

from .exceptions import ConfigurationError
from .types import ChainInfo, NetworkKind

# Environment variables read at call time
WASM_DIR_ENV = "WASM_DIR"
STATE_FILE_ENV = "STATE_FILE"
DEPLOYMENT_ID_ENV = "DEPLOYMENT_ID"

DEFAULT_DEPLOYMENT_ID = "default"
WASM_EXTENSION = ".wasm"

# Fixed delay after a code upload so the code propagates across nodes
CONFIRMATION_WAIT_SECONDS = {
    NetworkKind.LOCAL: 6,
    NetworkKind.TESTNET: 30,
    NetworkKind.MAINNET: 60,
}

# Seconds added to the simulated clock per block
MOCK_BLOCK_TIME_SECONDS = 5

LOCAL_JUNO = ChainInfo(
    chain_id="testing",
    kind=NetworkKind.LOCAL,
    lcd_url="http://localhost:1317",
    gas_denom="ujunox",
    bech32_prefix="juno",
)

UNI_6 = ChainInfo(
    chain_id="uni-6",
    kind=NetworkKind.TESTNET,
    lcd_url="https://api.uni.junonetwork.io",
    gas_denom="ujunox",
    bech32_prefix="juno",
)

JUNO_1 = ChainInfo(
    chain_id="juno-1",
    kind=NetworkKind.MAINNET,
    lcd_url="https://lcd-juno.itastakers.com",
    gas_denom="ujuno",
    bech32_prefix="juno",
)

# Known networks keyed by chain id
NETWORKS = {
    LOCAL_JUNO.chain_id: LOCAL_JUNO,
    UNI_6.chain_id: UNI_6,
    JUNO_1.chain_id: JUNO_1,
}


def get_network(chain_id: str) -> ChainInfo:
    """
    Look up a known network by chain id.

    Raises:
        ConfigurationError: If the chain id is not a known network
    """
    if chain_id not in NETWORKS:
        raise ConfigurationError(
            f"Unknown network '{chain_id}'; known networks: {', '.join(sorted(NETWORKS))}"
        )
    return NETWORKS[chain_id]

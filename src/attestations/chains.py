from __future__ import annotations

from dataclasses import dataclass

from src.core.exceptions import ConfigurationError

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

LOCAL_CHAIN_IDS = (31337, 1337)
LOCAL_RPC_URL = "http://127.0.0.1:8545"


@dataclass(frozen=True)
class ChainPreset:
    name: str
    label: str
    chain_id: int
    rpc_url: str
    explorer: str = ""
    resolver: str = ZERO_ADDRESS
    registry: str = ZERO_ADDRESS
    metadata: str = ZERO_ADDRESS


PRESETS: dict[str, ChainPreset] = {
    "localhost": ChainPreset(
        name="localhost",
        label="Localhost",
        chain_id=31337,
        rpc_url=LOCAL_RPC_URL,
    ),
    "omachain-testnet": ChainPreset(
        name="omachain-testnet",
        label="OMAchain Testnet",
        chain_id=66238,
        rpc_url="https://rpc.testnet.chain.oma3.org/",
        explorer="https://explorer.testnet.chain.oma3.org",
    ),
    "omachain-mainnet": ChainPreset(
        name="omachain-mainnet",
        label="OMAchain Mainnet",
        chain_id=6623,
        rpc_url="https://rpc.chain.oma3.org/",
        explorer="https://explorer.chain.oma3.org",
    ),
}


@dataclass(frozen=True)
class ChainContext:
    """The chain the resolver lives on. Selected once, never mutated."""

    preset: str
    label: str
    chain_id: int
    rpc_url: str
    resolver: str
    registry: str
    metadata: str

    @property
    def contract_addresses(self) -> dict[str, str]:
        return {"registry": self.registry, "metadata": self.metadata, "resolver": self.resolver}


def is_zero_address(address: str | None) -> bool:
    return not address or address.lower() == ZERO_ADDRESS


def same_address(a: str | None, b: str | None) -> bool:
    if not a or not b:
        return False
    return a.lower() == b.lower()


def thirdweb_rpc_url(chain_id: int, client_id: str) -> str:
    if not isinstance(chain_id, int) or chain_id <= 0:
        raise ValueError(f"Invalid chainId: {chain_id}. Must be a positive integer.")
    if not client_id or not client_id.strip():
        raise ValueError("Thirdweb client id is required. Set THIRDWEB_CLIENT_ID.")
    return f"https://{chain_id}.rpc.thirdweb.com/{client_id.strip()}"


def rpc_url_for(chain_id: int, *, active: ChainContext, client_id: str) -> str:
    """
    RPC endpoint for an arbitrary EVM chain:
    the active chain's own RPC, then the thirdweb RPC edge, then a local node.
    Raises ConfigurationError when a foreign chain needs THIRDWEB_CLIENT_ID and it is unset.
    """
    if chain_id == active.chain_id and active.rpc_url:
        return active.rpc_url
    if client_id:
        return thirdweb_rpc_url(chain_id, client_id)
    if chain_id in LOCAL_CHAIN_IDS:
        return LOCAL_RPC_URL
    raise ConfigurationError(
        message="Server configuration error",
        code="THIRDWEB_CLIENT_ID_MISSING",
        errors=f"Missing Thirdweb client ID: no RPC provider for chainId {chain_id}. Set THIRDWEB_CLIENT_ID.",
    )

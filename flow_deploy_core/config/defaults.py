"""Default configuration used when initializing a project."""

from typing import Final

from flow_deploy_core.blockchain.network import ChainID, service_address

from .model import (
    DEFAULT_SERVICE_ACCOUNT_NAME,
    PRIVATE_KEY_FIELD,
    AccountConfig,
    AccountKeyConfig,
    Config,
    EmulatorConfig,
    NetworkConfig,
)

# Access nodes exposing the REST API
DEFAULT_HOSTS: Final[dict[ChainID, str]] = {
    ChainID.EMULATOR: "127.0.0.1:8888",
    ChainID.TESTNET: "rest-testnet.onflow.org",
    ChainID.MAINNET: "rest-mainnet.onflow.org",
}


def default_networks() -> list[NetworkConfig]:
    return [
        NetworkConfig(name="emulator", host=DEFAULT_HOSTS[ChainID.EMULATOR], chain_id=ChainID.EMULATOR),
        NetworkConfig(name="testnet", host=DEFAULT_HOSTS[ChainID.TESTNET], chain_id=ChainID.TESTNET),
        NetworkConfig(name="mainnet", host=DEFAULT_HOSTS[ChainID.MAINNET], chain_id=ChainID.MAINNET),
    ]  # fmt: skip


def default_config(service_private_key: str) -> Config:
    """Configuration with the standard networks, one emulator and its service account."""
    service = AccountConfig(
        name=DEFAULT_SERVICE_ACCOUNT_NAME,
        address=service_address(ChainID.EMULATOR),
        chain_id=ChainID.EMULATOR,
        keys=[AccountKeyConfig(context={PRIVATE_KEY_FIELD: service_private_key})],
    )
    return Config(
        emulators=[EmulatorConfig()],
        networks=default_networks(),
        accounts=[service],
    )

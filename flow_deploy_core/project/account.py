"""Runtime accounts hydrated from configuration."""

from dataclasses import dataclass, field

from flow_deploy_core.blockchain.network import Address, ChainID
from flow_deploy_core.config.exceptions import InvalidSemanticsError
from flow_deploy_core.config.model import AccountConfig
from flow_deploy_core.keys.account_key import AccountKey, new_account_key
from flow_deploy_core.utils.filesystem import Filesystem


@dataclass
class Account:
    """Account able to sign with its configured keys."""

    name: str
    address: Address
    chain_id: ChainID = ChainID.EMULATOR
    keys: list[AccountKey] = field(default_factory=list)

    @property
    def default_key(self) -> AccountKey:
        if not self.keys:
            raise InvalidSemanticsError(f"account {self.name} has no keys")
        return self.keys[0]

    @classmethod
    def from_config(
        cls, config: AccountConfig, filesystem: Filesystem | None = None
    ) -> "Account":
        try:
            keys = [new_account_key(key, filesystem) for key in config.keys]
        except InvalidSemanticsError as e:
            raise InvalidSemanticsError(f"account {config.name}: {e}") from e
        return cls(
            name=config.name,
            address=config.address,
            chain_id=config.chain_id,
            keys=keys,
        )

    def to_config(self) -> AccountConfig:
        return AccountConfig(
            name=self.name,
            address=self.address,
            chain_id=self.chain_id,
            keys=[key.to_config() for key in self.keys],
        )

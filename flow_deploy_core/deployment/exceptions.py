"""Deployment orchestration exceptions."""

from flow_deploy_core.exceptions import FlowError


class DeploymentError(FlowError):
    """Raised after a deployment run in which one or more contracts failed."""

    def __init__(self, per_contract: list[tuple[str, Exception]]) -> None:
        self.per_contract = per_contract
        details = "; ".join(f"{name}: {error}" for name, error in per_contract)
        super().__init__(
            f"failed deploying {len(per_contract)} contract(s): {details}"
        )

    @property
    def contract_names(self) -> list[str]:
        return [name for name, _ in self.per_contract]


class DuplicateContractConflictError(FlowError):
    """Raised when one contract is deployed to several accounts on a network."""

    def __init__(self, contract: str, network: str) -> None:
        self.contract = contract
        self.network = network
        super().__init__(
            f"the same contract cannot be deployed to multiple accounts on the "
            f"same network: {contract} on {network}"
        )

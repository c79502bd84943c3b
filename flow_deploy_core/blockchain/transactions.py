"""Transaction management utilities for building, signing and submitting transactions."""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from flow_deploy_core.exceptions import (
    ExpiredTransactionError,
    InvalidSignatureError,
    TransactionCancelledError,
)

from . import templates
from .gateway import POLL_INTERVAL, Gateway
from .models import Account as ChainAccount
from .models import TransactionResult, TransactionStatus
from .network import Address
from .transaction import ProposalKey, Transaction

if TYPE_CHECKING:
    from flow_deploy_core.contracts.preprocessor import Contract
    from flow_deploy_core.project.account import Account

logger = logging.getLogger(__name__)


@dataclass
class TransactionConfig:
    """Transaction building and sealing configuration."""

    gas_limit: int = 9999
    poll_interval: float = POLL_INTERVAL  # seconds
    seal_timeout: float | None = None  # seconds, wait forever when unset


class TransactionManager:
    """Manages transaction building, signing and submission."""

    def __init__(self, gateway: Gateway, config: TransactionConfig | None = None) -> None:
        self.gateway = gateway
        self.config = config or TransactionConfig()

    async def get_account(self, address: Address) -> ChainAccount:
        return await self.gateway.get_account(address)

    async def execute_script(
        self, code: str, args: list[dict[str, Any]] | None = None
    ) -> Any:
        """Execute a read-only script and return its decoded value."""
        logger.debug("Executing script (%d argument(s))", len(args or []))
        return await self.gateway.execute_script(code, args or [])

    async def build_transaction(
        self,
        script: str,
        args: list[dict[str, Any]] | None,
        signer: "Account",
    ) -> Transaction:
        """Build a transaction proposed, paid and authorized by one account.

        Args:
            script: Cadence transaction code
            args: JSON-Cadence arguments
            signer: Account signing the envelope with its default key

        Returns:
            Unsigned transaction referencing the latest sealed block

        Raises:
            AccountNotFoundError: If the signer does not exist on chain
            InvalidSignatureError: If the signing key is not usable on chain
        """
        block = await self.gateway.get_latest_block()
        account = await self.gateway.get_account(signer.address)

        key_index = signer.default_key.index
        key = account.key(key_index)
        if key is None:
            raise InvalidSignatureError(
                signer.address.hex(), key_index, "key not found on account"
            )
        if key.revoked:
            raise InvalidSignatureError(signer.address.hex(), key_index, "key is revoked")

        logger.debug(
            "Building transaction for %s (key %d, sequence %d, reference block %d)",
            signer.address.hex(),
            key_index,
            key.sequence_number,
            block.height,
        )
        return Transaction(
            script=script,
            arguments=list(args or []),
            reference_block_id=block.id,
            gas_limit=self.config.gas_limit,
            proposal_key=ProposalKey(signer.address, key_index, key.sequence_number),
            payer=signer.address,
            authorizers=[signer.address],
        )

    async def build_add_contract(
        self, signer: "Account", contract: "Contract"
    ) -> Transaction:
        """Build transaction adding a contract to the signer account."""
        script, args = templates.add_contract(
            contract.name, contract.transpiled_code(), contract.args
        )
        return await self.build_transaction(script, args, signer)

    async def build_update_contract(
        self, signer: "Account", contract: "Contract"
    ) -> Transaction:
        """Build transaction replacing a contract on the signer account."""
        script, args = templates.update_contract(
            contract.name, contract.transpiled_code()
        )
        return await self.build_transaction(script, args, signer)

    async def build_remove_contract(self, signer: "Account", name: str) -> Transaction:
        """Build transaction removing a contract from the signer account."""
        script, args = templates.remove_contract(name)
        return await self.build_transaction(script, args, signer)

    async def sign(self, tx: Transaction, signer: "Account") -> Transaction:
        """Sign the transaction envelope with the signer's default key."""
        key = signer.default_key
        signature = await key.signer().sign(tx.envelope_message())
        return tx.add_envelope_signature(signer.address, key.index, signature)

    async def send(self, tx: Transaction) -> TransactionResult:
        """Submit a signed transaction and wait until it is sealed.

        A sealed result carrying an execution error is returned as is;
        call ``raise_for_error`` on it to turn it into an exception.

        Raises:
            ValidationError: If the node rejects the transaction
            ExpiredTransactionError: If the transaction expires before sealing
            TransactionCancelledError: If the seal timeout elapses
        """
        tx_id = await self.gateway.send_signed_transaction(tx)
        logger.info("Transaction submitted: %s", tx_id.hex())
        return await self.wait_for_seal(tx_id)

    async def wait_for_seal(self, tx_id: bytes) -> TransactionResult:
        """Poll the transaction result until it is sealed."""
        loop = asyncio.get_running_loop()
        deadline = (
            loop.time() + self.config.seal_timeout
            if self.config.seal_timeout is not None
            else None
        )
        attempts = 0

        while True:
            result = await self.gateway.get_transaction_result(tx_id)
            if result.status == TransactionStatus.SEALED:
                if result.failed:
                    logger.warning("Transaction sealed with error: %s", tx_id.hex())
                else:
                    logger.info("Transaction sealed: %s", tx_id.hex())
                return result
            if result.status == TransactionStatus.EXPIRED:
                raise ExpiredTransactionError(f"transaction {tx_id.hex()} expired")

            if deadline is not None and loop.time() + self.config.poll_interval > deadline:
                raise TransactionCancelledError(
                    f"transaction {tx_id.hex()} not sealed within "
                    f"{self.config.seal_timeout} seconds"
                )

            attempts += 1
            logger.debug(
                "Waiting for seal (attempt %d, status %s)", attempts, result.status.name
            )
            await asyncio.sleep(self.config.poll_interval)

    async def send_transaction(
        self,
        script: str,
        args: list[dict[str, Any]] | None,
        signer: "Account",
    ) -> TransactionResult:
        """Build, sign and send a transaction, returning its sealed result."""
        tx = await self.build_transaction(script, args, signer)
        await self.sign(tx, signer)
        return await self.send(tx)

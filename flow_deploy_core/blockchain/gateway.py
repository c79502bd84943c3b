"""Access node interface used by the transaction manager and orchestrator."""

from abc import ABC, abstractmethod
from typing import Any, Final

from .models import Account, Block, BlockEvents, Collection, TransactionResult
from .network import Address
from .transaction import Transaction

# Seconds between transaction result polls
POLL_INTERVAL: Final[float] = 1.0


class Gateway(ABC):
    """Asynchronous access to a Flow network."""

    @abstractmethod
    async def get_account(self, address: Address) -> Account:
        """Get an account with its keys and deployed contracts.

        Raises:
            AccountNotFoundError: If the account does not exist
            TransportError: If the node cannot be reached
        """

    @abstractmethod
    async def send_signed_transaction(self, tx: Transaction) -> bytes:
        """Submit a signed transaction.

        Returns:
            The 32 byte transaction id

        Raises:
            ValidationError: If the node rejects the transaction
            TransportError: If the node cannot be reached
        """

    @abstractmethod
    async def get_transaction_result(
        self, tx_id: bytes, wait_sealed: bool = False
    ) -> TransactionResult:
        """Get the current result of a transaction.

        Raises:
            TransactionNotFoundError: If the node does not know the transaction
        """

    @abstractmethod
    async def execute_script(
        self, code: str, args: list[dict[str, Any]] | None = None
    ) -> Any:
        """Execute a read-only script against the latest sealed state.

        Returns:
            The decoded script result

        Raises:
            ScriptExecutionError: If the script fails
        """

    @abstractmethod
    async def get_latest_block(self) -> Block:
        """Get the latest sealed block."""

    @abstractmethod
    async def get_block_by_id(self, block_id: bytes) -> Block:
        """Raises BlockNotFoundError if the block is unknown."""

    @abstractmethod
    async def get_block_by_height(self, height: int) -> Block:
        """Raises BlockNotFoundError if the block is unknown."""

    @abstractmethod
    async def get_events(
        self, event_type: str, start_height: int, end_height: int
    ) -> list[BlockEvents]:
        """Get events of a type emitted within an inclusive height range."""

    @abstractmethod
    async def get_collection(self, collection_id: bytes) -> Collection:
        """Raises CollectionNotFoundError if the collection is unknown."""

    @abstractmethod
    async def ping(self) -> None:
        """Check that the node is reachable.

        Raises:
            TransportError: If it is not
        """

    async def close(self) -> None:
        """Release resources held by the gateway."""

    async def __aenter__(self) -> "Gateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

"""Custom exceptions for Flow network operations."""


class FlowError(Exception):
    """Base exception for all flow deploy errors."""

    pass


class NotFoundError(FlowError):
    """Base class for lookups that returned nothing."""

    pass


class BlockNotFoundError(NotFoundError):
    """Raised when a block cannot be found by id or height."""

    def __init__(self, block_id: str | None = None, height: int | None = None) -> None:
        self.block_id = block_id
        self.height = height
        if block_id is not None:
            message = f"block not found by id: {block_id}"
        elif height is not None:
            message = f"block not found by height: {height}"
        else:
            message = "block not found"
        super().__init__(message)


class TransactionNotFoundError(NotFoundError):
    """Raised when a transaction or its result cannot be found."""

    pass


class CollectionNotFoundError(NotFoundError):
    """Raised when a collection cannot be found."""

    pass


class AccountNotFoundError(NotFoundError):
    """Raised when an account does not exist on the network."""

    pass


class ContractNotFoundError(NotFoundError):
    """Raised when a contract is not configured or not deployed."""

    pass


class ValidationError(FlowError):
    """Base class for transactions rejected by validation."""

    pass


class DuplicateTransactionError(ValidationError):
    """Raised when the same transaction was already submitted."""

    pass


class IncompleteTransactionError(ValidationError):
    """Raised when required transaction fields are missing."""

    def __init__(self, missing_fields: list[str]) -> None:
        self.missing_fields = missing_fields
        super().__init__(
            f"transaction is missing required fields: {', '.join(missing_fields)}"
        )


class ExpiredTransactionError(ValidationError):
    """Raised when the reference block of a transaction has expired."""

    def __init__(
        self,
        message: str = "transaction expired",
        ref_height: int | None = None,
        final_height: int | None = None,
    ) -> None:
        self.ref_height = ref_height
        self.final_height = final_height
        super().__init__(message)


class InvalidScriptError(ValidationError):
    """Raised when a script or transaction code is rejected."""

    pass


class InvalidGasLimitError(ValidationError):
    """Raised when the gas limit is outside the accepted range."""

    pass


class InvalidSignatureError(ValidationError):
    """Raised when a signature does not verify."""

    def __init__(self, address: str, key_index: int, reason: str) -> None:
        self.address = address
        self.key_index = key_index
        self.reason = reason
        super().__init__(
            f"invalid signature for account {address} key {key_index}: {reason}"
        )


class MissingSignatureError(ValidationError):
    """Raised when a required account signature is absent."""

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"missing signature for account {address}")


class InvalidAddressForChainError(ValidationError):
    """Raised when an address is not valid on the selected chain."""

    pass


class TransactionRejectedError(ValidationError):
    """Raised when the access node rejects a transaction for another reason."""

    pass


class ExecutionError(FlowError):
    """Base class for on-chain execution failures."""

    pass


class TransactionExecutionError(ExecutionError):
    """Raised when a sealed transaction carries an execution error."""

    def __init__(self, tx_id: str, reason: str) -> None:
        self.tx_id = tx_id
        self.reason = reason
        super().__init__(f"transaction {tx_id} failed: {reason}")


class ScriptExecutionError(ExecutionError):
    """Raised when a script fails to execute."""

    pass


class MissingExpectedEventError(ExecutionError):
    """Raised when a transaction result lacks an expected event."""

    def __init__(self, event_type: str) -> None:
        self.event_type = event_type
        super().__init__(f"expected event {event_type} was not emitted")


class TransportError(FlowError):
    """Raised when the access node cannot be reached or answers garbage."""

    def __init__(self, endpoint: str, reason: str) -> None:
        self.endpoint = endpoint
        self.reason = reason
        super().__init__(f"request to {endpoint} failed: {reason}")


class TransactionCancelledError(FlowError):
    """Raised when waiting for a transaction result is abandoned."""

    pass


class StorageError(FlowError):
    """Raised when the node reports a storage failure."""

    pass


class SigningError(FlowError):
    """Raised when a signer cannot produce a signature."""

    pass

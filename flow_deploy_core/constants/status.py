from enum import Enum


class ProcessStatus(str, Enum):
    """Status of a deployment run and of the contract being deployed"""

    NOT_STARTED = "not_started"
    PREPROCESSING = "preprocessing"
    PENDING = "pending"
    ASSEMBLING = "assembling"
    SUBMITTED = "submitted"
    SEALED = "sealed"
    SKIPPED = "skipped"
    COMPLETED = "completed"
    FAILED = "failed"

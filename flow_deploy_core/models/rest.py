"""Flow Access REST API payloads."""

from pydantic import BaseModel, ConfigDict, Field


class RestModel(BaseModel):
    """Base for REST payloads; unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RestAccountKey(RestModel):
    """Account public key."""

    index: int = Field(..., description="Key index")
    public_key: str = Field(..., description="Hex encoded public key")
    signing_algorithm: str = Field(..., description="Signature algorithm name")
    hashing_algorithm: str = Field(..., description="Hash algorithm name")
    sequence_number: int = Field(..., description="Proposal sequence number")
    weight: int = Field(1000, description="Key weight")
    revoked: bool = Field(False, description="Whether the key is revoked")


class RestAccount(RestModel):
    """Account with expanded keys and contracts."""

    address: str
    balance: int = 0
    keys: list[RestAccountKey] = Field(default_factory=list)
    contracts: dict[str, str] = Field(
        default_factory=dict, description="Contract name to base64 code"
    )


class RestBlockHeader(RestModel):
    id: str
    parent_id: str
    height: int
    timestamp: str | None = None


class RestCollectionGuarantee(RestModel):
    collection_id: str


class RestBlockPayload(RestModel):
    collection_guarantees: list[RestCollectionGuarantee] = Field(default_factory=list)


class RestBlock(RestModel):
    header: RestBlockHeader
    payload: RestBlockPayload | None = None


class RestEvent(RestModel):
    type: str
    transaction_id: str
    transaction_index: int
    event_index: int
    payload: str = Field(..., description="Base64 encoded JSON-Cadence event")


class RestBlockEvents(RestModel):
    block_id: str
    block_height: int
    block_timestamp: str | None = None
    events: list[RestEvent] = Field(default_factory=list)


class RestTransactionResult(RestModel):
    block_id: str | None = None
    status: str = Field(..., description="Pending, Finalized, Executed, Sealed or Expired")
    status_code: int = 0
    error_message: str = ""
    computation_used: int = 0
    events: list[RestEvent] = Field(default_factory=list)


class RestTransactionLink(RestModel):
    id: str


class RestCollection(RestModel):
    id: str
    transactions: list[RestTransactionLink] = Field(default_factory=list)


class RestProposalKey(RestModel):
    address: str
    key_index: str
    sequence_number: str


class RestSignature(RestModel):
    address: str
    key_index: str
    signature: str = Field(..., description="Base64 encoded signature")


class RestTransactionRequest(RestModel):
    """Body of a transaction submission."""

    script: str
    arguments: list[str]
    reference_block_id: str
    gas_limit: str
    payer: str
    proposal_key: RestProposalKey
    authorizers: list[str]
    payload_signatures: list[RestSignature]
    envelope_signatures: list[RestSignature]


class RestTransactionResponse(RestModel):
    id: str


class RestScriptRequest(RestModel):
    script: str
    arguments: list[str]


class RestErrorBody(RestModel):
    code: int = 0
    message: str = ""

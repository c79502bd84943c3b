"""Test transaction encoding, assembly, signing and sealing."""

import json
from typing import Any

import pytest
import rlp

from flow_deploy_core.blockchain import templates
from flow_deploy_core.blockchain.gateway import POLL_INTERVAL
from flow_deploy_core.blockchain.models import TransactionStatus
from flow_deploy_core.blockchain.network import Address
from flow_deploy_core.blockchain.transaction import (
    TRANSACTION_DOMAIN_TAG,
    ProposalKey,
    Transaction,
    TransactionSignature,
)
from flow_deploy_core.blockchain.transactions import TransactionConfig, TransactionManager
from flow_deploy_core.exceptions import (
    ExpiredTransactionError,
    IncompleteTransactionError,
    InvalidSignatureError,
    MissingSignatureError,
    TransactionCancelledError,
    TransactionExecutionError,
)

from .test_utils import (
    OTHER_KEY,
    SERVICE_ADDRESS,
    FakeGateway,
    chain_account_for,
    logger,
    make_account,
    verify_signature,
)

PAYER_ADDRESS = Address.from_hex("01cf0e2f2f715450")
STRING_ARG = {"type": "String", "value": "hello"}


def unsigned_transaction(**overrides: Any) -> Transaction:
    fields: dict[str, Any] = {
        "script": "transaction { execute { log(1) } }",
        "arguments": [STRING_ARG],
        "reference_block_id": b"\x01" * 32,
        "gas_limit": 100,
        "proposal_key": ProposalKey(SERVICE_ADDRESS, 0, 7),
        "payer": PAYER_ADDRESS,
        "authorizers": [SERVICE_ADDRESS, PAYER_ADDRESS],
    }
    fields.update(overrides)
    return Transaction(**fields)


class TestTransactionEncoding:
    """Test canonical messages and identifiers."""

    def test_payload_message_layout(self) -> None:
        tx = unsigned_transaction()

        message = tx.payload_message()

        assert message[:32] == TRANSACTION_DOMAIN_TAG
        assert TRANSACTION_DOMAIN_TAG.rstrip(b"\x00") == b"FLOW-V0.0-transaction"
        script, arguments, reference, gas, proposer, key_index, sequence, payer, auths = (
            rlp.decode(message[32:])
        )
        assert script == tx.script.encode()
        assert [json.loads(arg) for arg in arguments] == [STRING_ARG]
        assert reference == b"\x01" * 32
        assert int.from_bytes(gas, "big") == 100
        assert proposer == SERVICE_ADDRESS.raw
        assert key_index == b""
        assert int.from_bytes(sequence, "big") == 7
        assert payer == PAYER_ADDRESS.raw
        assert auths == [SERVICE_ADDRESS.raw, PAYER_ADDRESS.raw]

    def test_envelope_includes_payload_signatures(self) -> None:
        tx = unsigned_transaction()
        tx.payload_signatures.append(
            TransactionSignature(SERVICE_ADDRESS, 0, b"\xaa" * 64, signer_index=0)
        )

        payload, signatures = rlp.decode(tx.envelope_message()[32:])

        assert payload == rlp.decode(tx.payload_message()[32:])
        assert signatures == [[b"", b"", b"\xaa" * 64]]

    def test_short_reference_block_is_padded(self) -> None:
        tx = unsigned_transaction(reference_block_id=b"\x05")

        reference = rlp.decode(tx.payload_message()[32:])[2]

        assert reference == b"\x05".rjust(32, b"\x00")

    def test_missing_fields(self) -> None:
        tx = Transaction(script="transaction {}")

        assert tx.missing_fields() == ["proposal_key", "payer", "reference_block_id"]
        with pytest.raises(IncompleteTransactionError, match="proposal_key"):
            tx.payload_message()

    def test_signers_are_deduplicated_in_order(self) -> None:
        tx = unsigned_transaction()

        assert tx.signers() == [SERVICE_ADDRESS, PAYER_ADDRESS]
        assert tx.signer_index(PAYER_ADDRESS) == 1
        with pytest.raises(MissingSignatureError):
            tx.signer_index(Address.from_int(3))

    def test_id_covers_signatures(self) -> None:
        tx = unsigned_transaction()
        unsigned_id = tx.id()

        assert len(unsigned_id) == 32
        assert tx.id() == unsigned_id

        tx.add_envelope_signature(PAYER_ADDRESS, 0, b"\x01" * 64)

        assert tx.id() != unsigned_id
        assert tx.envelope_signatures[0].signer_index == 1


class TestTemplates:
    """Test contract management transaction templates."""

    def test_add_contract_declares_initializer_arguments(self) -> None:
        args = [STRING_ARG, {"type": "UInt64", "value": "3"}]

        script, arguments = templates.add_contract("Token", "pub contract Token {}", args)

        assert "transaction(name: String, code: String, arg0: String, arg1: UInt64)" in script
        assert "code.decodeHex(), arg0, arg1)" in script
        assert arguments == [
            {"type": "String", "value": "Token"},
            {"type": "String", "value": "pub contract Token {}".encode().hex()},
            *args,
        ]

    def test_add_contract_without_arguments(self) -> None:
        script, arguments = templates.add_contract("Token", "code")

        assert script.startswith("transaction(name: String, code: String) {")
        assert "signer.contracts.add(name: name, code: code.decodeHex())" in script
        assert len(arguments) == 2

    def test_unsupported_initializer_argument(self) -> None:
        with pytest.raises(ValueError):
            templates.add_contract("Token", "code", [{"type": "Array", "value": []}])

    def test_update_and_remove(self) -> None:
        update_script, update_args = templates.update_contract("Token", "code")
        remove_script, remove_args = templates.remove_contract("Token")

        assert "update__experimental" in update_script
        assert update_args[1] == {"type": "String", "value": b"code".hex()}
        assert "signer.contracts.remove(name: name)" in remove_script
        assert remove_args == [{"type": "String", "value": "Token"}]


class TestTransactionManager:
    """Test assembling and sending transactions through a fake gateway."""

    def setup_method(self) -> None:
        logger.info("Setting up TestTransactionManager")
        self.signer = make_account()
        self.gateway = FakeGateway([chain_account_for(self.signer, sequence_number=4)])
        self.manager = TransactionManager(
            self.gateway, TransactionConfig(gas_limit=1000, poll_interval=0)
        )

    def test_default_poll_interval_is_shared_with_the_gateway(self) -> None:
        assert TransactionConfig().poll_interval == POLL_INTERVAL == 1.0

    @pytest.mark.asyncio
    async def test_build_uses_chain_state(self) -> None:
        """Test sequence number and reference block come from the network."""
        tx = await self.manager.build_transaction("transaction {}", [], self.signer)

        assert tx.proposal_key == ProposalKey(SERVICE_ADDRESS, 0, 4)
        assert tx.reference_block_id == self.gateway.blocks[-1].id
        assert tx.payer == SERVICE_ADDRESS
        assert tx.authorizers == [SERVICE_ADDRESS]
        assert tx.gas_limit == 1000

    @pytest.mark.asyncio
    async def test_envelope_signature_verifies(self) -> None:
        tx = await self.manager.build_transaction("transaction {}", [], self.signer)

        await self.manager.sign(tx, self.signer)

        signature = tx.envelope_signatures[0]
        key = self.gateway.accounts[SERVICE_ADDRESS].key(0)
        assert (signature.address, signature.key_index, signature.signer_index) == (
            SERVICE_ADDRESS,
            0,
            0,
        )
        assert verify_signature(key, tx.envelope_message(), signature.signature)

    @pytest.mark.asyncio
    async def test_send_transaction_tracks_sequence_numbers(self) -> None:
        first = await self.manager.send_transaction("transaction {}", [], self.signer)
        self.gateway.add_block()
        second = await self.manager.build_transaction("transaction {}", [], self.signer)

        assert first.is_sealed
        assert second.proposal_key.sequence_number == 5
        assert second.reference_block_id == self.gateway.blocks[-1].id

    @pytest.mark.asyncio
    async def test_wrong_key_is_rejected_by_the_network(self) -> None:
        impostor = make_account(private_key=OTHER_KEY)

        with pytest.raises(InvalidSignatureError):
            await self.manager.send_transaction("transaction {}", [], impostor)

    @pytest.mark.asyncio
    async def test_missing_and_revoked_keys(self) -> None:
        with pytest.raises(InvalidSignatureError, match="not found"):
            await self.manager.build_transaction(
                "transaction {}", [], make_account(index=3)
            )

        self.gateway.accounts[SERVICE_ADDRESS].keys[0].revoked = True
        with pytest.raises(InvalidSignatureError, match="revoked"):
            await self.manager.build_transaction("transaction {}", [], self.signer)

    @pytest.mark.asyncio
    async def test_polls_until_sealed(self) -> None:
        self.gateway.statuses = [
            TransactionStatus.PENDING,
            TransactionStatus.FINALIZED,
            TransactionStatus.EXECUTED,
            TransactionStatus.SEALED,
        ]

        result = await self.manager.send_transaction("transaction {}", [], self.signer)

        assert result.status == TransactionStatus.SEALED

    @pytest.mark.asyncio
    async def test_expired_transaction(self) -> None:
        self.gateway.statuses = [TransactionStatus.PENDING, TransactionStatus.EXPIRED]

        with pytest.raises(ExpiredTransactionError):
            await self.manager.send_transaction("transaction {}", [], self.signer)

    @pytest.mark.asyncio
    async def test_seal_timeout(self) -> None:
        self.gateway.statuses = [TransactionStatus.PENDING]
        self.manager.config = TransactionConfig(poll_interval=0.01, seal_timeout=0)

        with pytest.raises(TransactionCancelledError, match="not sealed"):
            await self.manager.send_transaction("transaction {}", [], self.signer)

    @pytest.mark.asyncio
    async def test_execution_error_is_returned_on_result(self) -> None:
        self.gateway.execution_errors["Token"] = "cannot deploy invalid contract"
        script, args = templates.add_contract("Token", "pub contract Token {}")

        result = await self.manager.send_transaction(script, args, self.signer)

        assert result.failed
        with pytest.raises(TransactionExecutionError, match="cannot deploy"):
            result.raise_for_error()

    @pytest.mark.asyncio
    async def test_execute_script(self) -> None:
        self.gateway.script_result = 42

        value = await self.manager.execute_script("pub fun main(): Int { return 42 }")

        assert value == 42
        assert self.gateway.scripts == [("pub fun main(): Int { return 42 }", [])]

    @pytest.mark.asyncio
    async def test_remove_contract(self) -> None:
        self.gateway.accounts[SERVICE_ADDRESS].contracts["Token"] = b"pub contract Token {}"

        tx = await self.manager.build_remove_contract(self.signer, "Token")
        await self.manager.sign(tx, self.signer)
        result = await self.manager.send(tx)

        assert result.is_sealed
        assert tx.script == templates.REMOVE_CONTRACT_TEMPLATE
        assert self.gateway.accounts[SERVICE_ADDRESS].contracts == {}

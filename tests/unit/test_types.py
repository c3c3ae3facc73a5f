"""Unit tests for the transaction lifecycle, records and result markers."""

from datetime import datetime, timezone

import pytest

from manga_deployments.types import (
    NOT_APPLICABLE,
    ChapterDraft,
    ContractEntry,
    DeploymentRecord,
    NetworkIdentity,
    NotApplicable,
    TransactionResult,
    TransactionStatus,
    Unavailable,
)


class TestTransactionResult:
    """Test the PENDING -> CONFIRMED | FAILED lifecycle."""

    def test_starts_pending(self):
        result = TransactionResult(hash="0x01")

        assert result.status is TransactionStatus.PENDING
        assert not result.is_terminal
        assert result.block_number is None

    def test_resolve_confirmed(self):
        result = TransactionResult(hash="0x01")
        result.resolve(True, 12, [], contract_address="0xabc")

        assert result.status is TransactionStatus.CONFIRMED
        assert result.is_terminal
        assert result.block_number == 12
        assert result.contract_address == "0xabc"

    def test_resolve_failed_keeps_reason(self):
        result = TransactionResult(hash="0x01")
        result.resolve(False, 12, [], revert_reason="Only platform")

        assert result.status is TransactionStatus.FAILED
        assert result.revert_reason == "Only platform"

    def test_terminal_state_is_final(self):
        result = TransactionResult(hash="0x01")
        result.resolve(True, 12, [])

        with pytest.raises(RuntimeError, match="already confirmed"):
            result.resolve(False, 13, [])
        assert result.status is TransactionStatus.CONFIRMED


class TestDeploymentRecord:
    """Test record serialization."""

    @pytest.fixture
    def record(self):
        return DeploymentRecord(
            network=NetworkIdentity(name="amoy", chain_id=80002),
            deployer="0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
            timestamp=datetime(2025, 7, 27, 12, 0, tzinfo=timezone.utc),
            contracts=[
                ContractEntry(name="MonthlyDataUploader", address="0xA1", constructor_args=["0xP", "0x0"], abi=[]),
                ContractEntry(name="MangaNFT", address="0xA2", constructor_args=["uri", "0xA1"], abi=[]),
            ],
            config={"platformAddress": "0xP", "gasLimit": 3_000_000},
        )

    def test_to_dict_layout(self, record):
        data = record.to_dict()

        assert data["network"] == "amoy"
        assert data["chainId"] == 80002
        assert data["deploymentTime"] == "2025-07-27T12:00:00+00:00"
        assert [c["name"] for c in data["contracts"]] == ["MonthlyDataUploader", "MangaNFT"]
        assert data["contracts"][1]["constructorArgs"] == ["uri", "0xA1"]
        assert data["config"]["gasLimit"] == 3_000_000

    def test_from_dict_restores_record(self, record):
        assert DeploymentRecord.from_dict(record.to_dict()) == record

    def test_from_dict_without_config(self, record):
        data = record.to_dict()
        del data["config"]

        assert DeploymentRecord.from_dict(data).config == {}

    def test_address_of(self, record):
        assert record.address_of("MangaNFT") == "0xA2"
        with pytest.raises(KeyError):
            record.address_of("Unknown")


class TestMarkers:
    """Test the Unavailable and NOT_APPLICABLE markers."""

    def test_unavailable_is_falsy_and_keeps_reason(self):
        marker = Unavailable(reason="timeout")

        assert not marker
        assert marker.reason == "timeout"

    def test_not_applicable_is_a_singleton(self):
        assert NotApplicable() is NOT_APPLICABLE
        assert not NOT_APPLICABLE
        assert repr(NOT_APPLICABLE) == "NOT_APPLICABLE"


class TestChapterDraft:
    def test_as_args_follows_create_chapter_order(self):
        draft = ChapterDraft("zh", "en", "jp", "dzh", "den", "djp", 100, "ipfs://x", "0xC")
        assert draft.as_args() == ["zh", "en", "jp", "dzh", "den", "djp", 100, "ipfs://x", "0xC"]

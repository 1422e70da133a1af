"""Tests for slashing extraction from block bodies."""

from typing import Any

import pytest

from src.beacon.models import AttesterSlashing, BlockResponse
from src.slashings.extract import attester_violations, find_slashings


def block(payload: dict[str, Any]) -> BlockResponse:
    return BlockResponse.model_validate(payload)


class TestAttesterViolations:
    """Tests for attester_violations."""

    def test_intersection_ignores_repeats(self) -> None:
        """Test repeated indices in one list count once."""
        slashing = AttesterSlashing.model_validate(
            {
                "attestation_1": {"attesting_indices": ["7", "3", "3"]},
                "attestation_2": {"attesting_indices": ["3", "9"]},
            }
        )
        assert attester_violations(slashing) == ["3"]

    def test_disjoint(self) -> None:
        """Test disjoint attestations slash nobody."""
        slashing = AttesterSlashing.model_validate(
            {
                "attestation_1": {"attesting_indices": ["1", "2"]},
                "attestation_2": {"attesting_indices": ["3"]},
            }
        )
        assert attester_violations(slashing) == []

    def test_order_of_first_attestation(self) -> None:
        """Test results follow the first attestation's order."""
        slashing = AttesterSlashing.model_validate(
            {
                "attestation_1": {"attesting_indices": ["30", "10", "20"]},
                "attestation_2": {"attesting_indices": ["20", "30", "10"]},
            }
        )
        assert attester_violations(slashing) == ["30", "10", "20"]


class TestFindSlashings:
    """Tests for find_slashings."""

    def test_empty_block(self, block_factory: Any) -> None:
        """Test a block without slashing operations yields nothing."""
        event = find_slashings(block(block_factory(100)), 100)

        assert not event.found
        assert event.slashings == []
        assert event.att_slashings == 0
        assert event.prop_slashings == 0

    def test_missing_block(self) -> None:
        """Test the placeholder for a skipped slot yields nothing."""
        event = find_slashings(BlockResponse.empty(2400000), 2400000)

        assert not event.found
        assert event.slot == 2400000

    def test_attester_slashing(self, block_factory: Any) -> None:
        """Test one attester slashing with repeated indices."""
        payload = block_factory(
            1510279, attester_slashings=[(["7", "3", "3"], ["3", "9"])]
        )

        event = find_slashings(block(payload), 1510279)

        assert [s.validator_index for s in event.slashings] == ["3"]
        slashing = event.slashings[0]
        assert slashing.attestation_violation
        assert not slashing.proposer_violation
        assert event.att_slashings == 1
        assert event.prop_slashings == 0

    def test_proposer_slashing(self, block_factory: Any) -> None:
        """Test one proposer slashing yields one entry."""
        payload = block_factory(6669, proposer_slashings=[("1187", "1187")])

        event = find_slashings(block(payload), 6669)

        assert len(event.slashings) == 1
        slashing = event.slashings[0]
        assert slashing.validator_index == "1187"
        assert slashing.proposer_violation
        assert not slashing.attestation_violation
        assert event.prop_slashings == 1

    def test_validator_index_equal_to_slot_number(self, block_factory: Any) -> None:
        """Test a proposer whose index equals the block slot gets its own entry."""
        # Entry "5" already carries slot 6669, the proposer's index
        payload = block_factory(
            6669,
            attester_slashings=[(["5"], ["5"])],
            proposer_slashings=[("6669", "6669")],
        )

        event = find_slashings(block(payload), 6669)

        by_index = {s.validator_index: s for s in event.slashings}
        assert set(by_index) == {"5", "6669"}
        assert by_index["6669"].proposer_violation
        assert not by_index["5"].proposer_violation

    def test_repeated_proposer_records(self, block_factory: Any) -> None:
        """Test two proposer records for one validator yield one entry."""
        payload = block_factory(6669, proposer_slashings=[("42", "42"), ("42", "42")])

        event = find_slashings(block(payload), 6669)

        assert [s.validator_index for s in event.slashings] == ["42"]
        assert event.prop_slashings == 2

    def test_same_validator_both_violations(self, block_factory: Any) -> None:
        """Test a validator slashed both ways gets one entry with both flags."""
        payload = block_factory(
            475802,
            attester_slashings=[(["11", "12"], ["12", "11"])],
            proposer_slashings=[("12", "12")],
        )

        event = find_slashings(block(payload), 475802)

        by_index = {s.validator_index: s for s in event.slashings}
        assert set(by_index) == {"11", "12"}
        assert by_index["12"].attestation_violation
        assert by_index["12"].proposer_violation
        assert by_index["11"].attestation_violation
        assert not by_index["11"].proposer_violation

    def test_validator_in_several_attester_slashings(self, block_factory: Any) -> None:
        """Test a validator in two attester slashings appears once per block."""
        payload = block_factory(
            2638206,
            attester_slashings=[(["5", "6"], ["5"]), (["5"], ["5", "8"])],
        )

        event = find_slashings(block(payload), 2638206)

        assert [s.validator_index for s in event.slashings] == ["5"]
        assert event.att_slashings == 2

    def test_entries_carry_block_slot(self, block_factory: Any) -> None:
        """Test every entry carries the event slot."""
        payload = block_factory(
            2724285,
            attester_slashings=[(["1", "2", "3"], ["1", "2", "3"])],
            proposer_slashings=[("9", "9")],
        )

        event = find_slashings(block(payload), 2724285)

        assert len(event.slashings) == 4
        assert {s.slot for s in event.slashings} == {event.slot} == {2724285}

    def test_canonical_slot_wins(
        self, block_factory: Any, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test the slot reported by the block is used when it differs."""
        payload = block_factory(2755556, proposer_slashings=[("77", "77")])

        event = find_slashings(block(payload), 2755555)

        assert event.slot == 2755556
        assert event.slashings[0].slot == 2755556
        assert "reports slot 2755556" in caplog.text

"""
Tests for manual resolution of failed line items.

These tests verify that:
1. resolve_item() writes the chosen part and clears the recorded error
2. get_candidates() honours item ownership and blank identifiers
3. ResolutionSession moves through its states as a dialog would
"""

import pytest

from bomenrich.enrichment import (
    CommitInProgressError,
    ResolutionSession,
    ResolutionState,
    get_candidates,
    resolve_item,
    run_until_done,
)
from bomenrich.exceptions import NotFoundError, Z2DataAuthError, Z2DataSourceError
from bomenrich.z2data import PartDetails

from conftest import FakeZ2DataClient, candidate


def item_by_value(store, assembly_id, value):
    """Helper to look up a line item by its identifier."""
    return next(i for i in store.list_all(assembly_id) if i.value == value)


@pytest.fixture
def failed_assembly(store, make_assembly):
    """Assembly with one enriched item (A-1) and two failed items (NOPE, MISS)."""
    assembly_id = make_assembly(["A-1", "NOPE", "MISS"])
    client = FakeZ2DataClient(search_results={"A-1": [candidate(1)]})
    run_until_done(store, client, assembly_id)
    return assembly_id


# ============================================================================
# resolve_item
# ============================================================================

class TestResolveItem:

    def test_resolve_clears_error_and_writes_details(self, store, failed_assembly):
        item = item_by_value(store, failed_assembly, "NOPE")
        assert item.z2data_error == "No Z2Data results for MPN: NOPE"

        client = FakeZ2DataClient(details={77: PartDetails(
            part_id=77, manufacturer="Vishay", description="Resistor",
            lifecycle_status="Active", rohs_status="Compliant", reach_status="Compliant",
        )})

        summary = resolve_item(store, client, failed_assembly, item.id, 77)

        resolved = store.get_item(failed_assembly, item.id)
        assert resolved.z2data_error is None
        assert resolved.is_enriched
        assert resolved.z2data_part_id == "77"
        assert resolved.z2data_manufacturer == "Vishay"
        assert resolved.z2data_lifecycle_status == "Active"
        assert summary.enriched_count == 2
        assert summary.enrichable_total == 3

        assembly = store.get_assembly(failed_assembly)
        assert assembly.z2data_enriched_count == 2
        assert assembly.z2data_enrichment_status == "partial"

    def test_resolving_last_failure_completes_assembly(self, store, failed_assembly):
        client = FakeZ2DataClient()
        for value in ("NOPE", "MISS"):
            resolve_item(store, client, failed_assembly, item_by_value(store, failed_assembly, value).id, 5)

        assembly = store.get_assembly(failed_assembly)
        assert assembly.z2data_enrichment_status == "completed"
        assert assembly.z2data_enriched_count == 3

    def test_fallback_fields_when_details_fail(self, store, failed_assembly):
        item = item_by_value(store, failed_assembly, "NOPE")
        client = FakeZ2DataClient(details_errors={9: Z2DataSourceError("Z2Data details error (500): down", 500)})
        chosen = candidate(9, manufacturer="Yageo", description="Chip resistor", datasheet_url="y.pdf")

        resolve_item(store, client, failed_assembly, item.id, 9, fallback=chosen)

        resolved = store.get_item(failed_assembly, item.id)
        assert resolved.z2data_manufacturer == "Yageo"
        assert resolved.z2data_description == "Chip resistor"
        assert resolved.z2data_datasheet_url == "y.pdf"
        assert resolved.z2data_lifecycle_status == ""

    def test_manual_resolution_overrides_existing_enrichment(self, store, failed_assembly):
        item = item_by_value(store, failed_assembly, "A-1")

        resolve_item(store, FakeZ2DataClient(), failed_assembly, item.id, "abc")

        assert store.get_item(failed_assembly, item.id).z2data_part_id == "abc"

    def test_part_id_required(self, store, failed_assembly):
        item = item_by_value(store, failed_assembly, "NOPE")
        with pytest.raises(ValueError):
            resolve_item(store, FakeZ2DataClient(), failed_assembly, item.id, "")

    def test_blank_identifier_cannot_be_resolved(self, store, make_assembly):
        """Resolving a blank item would push the enriched count past the enrichable total."""
        assembly_id = make_assembly(["A-1", "  "])
        run_until_done(store, FakeZ2DataClient(search_results={"A-1": [candidate(1)]}), assembly_id)
        blank = store.list_all(assembly_id)[1]

        with pytest.raises(ValueError):
            resolve_item(store, FakeZ2DataClient(), assembly_id, blank.id, 5)

        assert not store.get_item(assembly_id, blank.id).is_enriched
        assembly = store.get_assembly(assembly_id)
        assert assembly.z2data_enriched_count == 1
        assert assembly.z2data_total_enrichable == 1
        assert assembly.z2data_enrichment_status == "completed"

    def test_item_from_other_assembly(self, store, make_assembly, failed_assembly):
        other_id = make_assembly(["X-1"], name="Other")
        foreign = store.list_all(other_id)[0]

        with pytest.raises(NotFoundError):
            resolve_item(store, FakeZ2DataClient(), failed_assembly, foreign.id, 5)

        assert store.get_item(other_id, foreign.id).z2data_part_id is None


# ============================================================================
# get_candidates
# ============================================================================

class TestGetCandidates:

    def test_candidates_include_description_hits(self, store, failed_assembly):
        item = item_by_value(store, failed_assembly, "NOPE")
        client = FakeZ2DataClient(search_results={"desc 2": [candidate(3), candidate(4)]})

        result = get_candidates(store, client, failed_assembly, item.id)

        assert [c.part_id for c in result] == [3, 4]
        assert client.queries == ["NOPE", "desc 2"]

    def test_blank_identifier_yields_nothing(self, store, make_assembly):
        assembly_id = make_assembly(["  "])
        item = store.list_all(assembly_id)[0]
        client = FakeZ2DataClient()

        assert get_candidates(store, client, assembly_id, item.id) == []
        assert client.queries == []

    def test_unknown_item(self, store, failed_assembly):
        with pytest.raises(NotFoundError):
            get_candidates(store, FakeZ2DataClient(), failed_assembly, "missing")


# ============================================================================
# ResolutionSession
# ============================================================================

class TestResolutionSession:

    def test_defaults_to_failed_items(self, store, failed_assembly):
        session = ResolutionSession(store, FakeZ2DataClient(), failed_assembly)

        assert [i.value for i in session.remaining] == ["NOPE", "MISS"]
        assert session.state is ResolutionState.IDLE

    def test_select_lists_candidates(self, store, failed_assembly):
        client = FakeZ2DataClient(search_results={"desc 2": [candidate(3)]})
        session = ResolutionSession(store, client, failed_assembly)

        state = session.select_item(item_by_value(store, failed_assembly, "NOPE").id)

        assert state is ResolutionState.LISTING
        assert [c.part_id for c in session.candidates] == [3]

    def test_select_with_no_candidates_is_empty(self, store, failed_assembly):
        session = ResolutionSession(store, FakeZ2DataClient(), failed_assembly)
        state = session.select_item(item_by_value(store, failed_assembly, "NOPE").id)
        assert state is ResolutionState.EMPTY
        assert session.error is None

    def test_search_failure_is_error_state(self, store, failed_assembly):
        client = FakeZ2DataClient(search_errors={"NOPE": Z2DataSourceError("Z2Data search error (503): busy", 503)})
        session = ResolutionSession(store, client, failed_assembly)

        state = session.select_item(item_by_value(store, failed_assembly, "NOPE").id)

        assert state is ResolutionState.ERROR
        assert session.error == "Z2Data search error (503): busy"

    def test_choose_advances_to_next_failed_item(self, store, failed_assembly):
        client = FakeZ2DataClient(search_results={
            "desc 2": [candidate(3)],
            "desc 3": [candidate(8)],
        })
        session = ResolutionSession(store, client, failed_assembly)
        nope = item_by_value(store, failed_assembly, "NOPE")
        miss = item_by_value(store, failed_assembly, "MISS")
        session.select_item(nope.id)

        state = session.choose(3)

        assert state is ResolutionState.LISTING
        assert session.selected_item_id == miss.id
        assert [c.part_id for c in session.candidates] == [8]
        assert session.resolved_item_ids == {nope.id}

        state = session.choose(8)

        assert state is ResolutionState.IDLE
        assert session.selected_item_id is None
        assert session.remaining == []
        assert session.last_summary.enriched_count == 3
        assert store.get_assembly(failed_assembly).z2data_enrichment_status == "completed"

    def test_commit_failure_returns_to_listing(self, store, failed_assembly):
        client = FakeZ2DataClient(
            search_results={"desc 2": [candidate(3)]},
            details_errors={3: Z2DataAuthError("Z2Data auth failed: expired")},
        )
        session = ResolutionSession(store, client, failed_assembly)
        nope = item_by_value(store, failed_assembly, "NOPE")
        session.select_item(nope.id)

        state = session.choose(3)

        assert state is ResolutionState.LISTING
        assert session.error == "Z2Data auth failed: expired"
        assert [c.part_id for c in session.candidates] == [3]
        assert not store.get_item(failed_assembly, nope.id).is_enriched

    def test_choose_requires_listing(self, store, failed_assembly):
        session = ResolutionSession(store, FakeZ2DataClient(), failed_assembly)
        with pytest.raises(ValueError):
            session.choose(3)

    def test_choose_unknown_candidate(self, store, failed_assembly):
        client = FakeZ2DataClient(search_results={"desc 2": [candidate(3)]})
        session = ResolutionSession(store, client, failed_assembly)
        session.select_item(item_by_value(store, failed_assembly, "NOPE").id)

        with pytest.raises(ValueError):
            session.choose(99)

    def test_one_commit_at_a_time(self, store, failed_assembly):
        session = ResolutionSession(store, FakeZ2DataClient(), failed_assembly)
        session.state = ResolutionState.COMMITTING

        with pytest.raises(CommitInProgressError):
            session.choose(3)
        with pytest.raises(CommitInProgressError):
            session.select_item("anything")

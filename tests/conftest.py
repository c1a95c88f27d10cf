"""
Shared pytest fixtures for enrichment tests.

Provides a scripted Z2Data client and an in-memory store so the pipeline
can be exercised without network or database access.
"""

import pytest
from typing import Dict, List, Optional

from bomenrich.store import InMemoryStore, LineItem
from bomenrich.z2data import Candidate, PartDetails


# ============================================================================
# Scripted Z2Data client
# ============================================================================

def candidate(part_id, mpn="", manufacturer="", description="", datasheet_url="") -> Candidate:
    """Helper to create Candidate objects for testing."""
    return Candidate(
        part_id=part_id,
        mpn=mpn,
        manufacturer=manufacturer,
        description=description,
        datasheet_url=datasheet_url,
    )


class FakeZ2DataClient:
    """
    Answers search/get_details from dictionaries and records every call.

    ``search_errors`` / ``details_errors`` map a query or PartID to the
    exception to raise for it.
    """

    def __init__(
        self,
        search_results: Optional[Dict[str, List[Candidate]]] = None,
        details: Optional[Dict[object, PartDetails]] = None,
        search_errors: Optional[Dict[str, Exception]] = None,
        details_errors: Optional[Dict[object, Exception]] = None,
    ):
        self.search_results = search_results or {}
        self.details = details or {}
        self.search_errors = search_errors or {}
        self.details_errors = details_errors or {}
        self.queries: List[str] = []
        self.detail_requests: List[object] = []

    def search(self, query: str) -> List[Candidate]:
        self.queries.append(query)
        if query in self.search_errors:
            raise self.search_errors[query]
        return list(self.search_results.get(query, []))

    def get_details(self, part_id) -> Optional[PartDetails]:
        self.detail_requests.append(part_id)
        if part_id in self.details_errors:
            raise self.details_errors[part_id]
        return self.details.get(part_id)

    def close(self):
        self.closed = True


# ============================================================================
# Store fixtures
# ============================================================================

def make_line_items(values: List[str]) -> List[LineItem]:
    """One LineItem per identifier, numbered from 1, short text ``desc <n>``."""
    return [
        LineItem(
            id=None,
            assembly_id=None,
            line_number=i + 1,
            section="General",
            value=value,
            shorttext=f"desc {i + 1}",
            quantity=1,
        )
        for i, value in enumerate(values)
    ]


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def make_assembly(store):
    """Factory: create an assembly whose items carry the given identifiers."""
    def _make(values: List[str], name: str = "Test Assembly") -> str:
        assembly = store.create_assembly(name, "ACME", make_line_items(values))
        return assembly.id
    return _make

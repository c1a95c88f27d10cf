"""
Manual resolution of line items the automatic path could not match.

Two layers:
- get_candidates() / resolve_item(): stateless operations, one per request
- ResolutionSession: the per-dialog workflow over an assembly's failed items

Session states:

    IDLE ──select──▶ SEARCHING ──▶ LISTING | EMPTY | ERROR
    LISTING ──choose──▶ COMMITTING ──ok──▶ next failed item (SEARCHING …) or IDLE
                                   └─fail─▶ LISTING (with error set)

Only one commit may be in flight per session.
"""

import logging
from datetime import datetime, timezone
from enum import Enum, auto
from typing import List, Optional, Set

import requests

from ..exceptions import EnrichmentError, NotFoundError
from ..store.base import LineItem
from ..z2data import Candidate, PartId
from .candidates import find_candidates
from .engine import build_enrichment_result, fetch_details
from .progress import EnrichmentSummary, refresh_assembly_summary

logger = logging.getLogger(__name__)


def _require_item(store, assembly_id: str, item_id: str) -> LineItem:
    item = store.get_item(assembly_id, item_id)
    if item is None:
        raise NotFoundError(f"BOM item {item_id} not found in assembly {assembly_id}")
    return item


def get_candidates(store, client, assembly_id: str, item_id: str) -> List[Candidate]:
    """
    Return Z2Data candidates for one line item.

    Blank identifiers are not enrichable and yield no candidates.

    Raises:
        NotFoundError: Item missing or not in this assembly
        Z2DataAuthError, Z2DataSourceError: Search failed
    """
    item = _require_item(store, assembly_id, item_id)
    if not item.is_enrichable:
        return []
    return find_candidates(client, item.identifier, item.shorttext)


def resolve_item(
    store,
    client,
    assembly_id: str,
    item_id: str,
    part_id: PartId,
    fallback: Optional[Candidate] = None
) -> EnrichmentSummary:
    """
    Commit a user's choice of Z2Data part for a line item.

    Fetches full details for ``part_id`` (falling back to ``fallback``'s
    manufacturer/description/datasheet if that fails), writes the enrichment
    fields with a fresh ``z2data_enriched_at``, clears ``z2data_error`` and
    recomputes the assembly counters and status.

    Returns:
        The recomputed assembly summary

    Raises:
        ValueError: No part_id given, or the item has a blank identifier
        NotFoundError: Item missing or not in this assembly
    """
    if part_id is None or part_id == "":
        raise ValueError("part_id is required")

    item = _require_item(store, assembly_id, item_id)
    if not item.is_enrichable:
        raise ValueError(f"BOM item {item_id} has no identifier and cannot be enriched")

    details = fetch_details(client, part_id)
    result = build_enrichment_result(part_id, details, fallback)
    store.update_item(item.id, result.to_item_fields(datetime.now(timezone.utc)))

    logger.info(
        f"Line {item.line_number} '{item.identifier}' resolved manually as PartID {result.part_id}"
    )
    return refresh_assembly_summary(store, assembly_id, include_status=True)


class ResolutionState(Enum):
    IDLE = auto()
    SEARCHING = auto()
    LISTING = auto()
    EMPTY = auto()
    ERROR = auto()
    COMMITTING = auto()


class CommitInProgressError(RuntimeError):
    """A second choice was made while a commit was still pending."""


class ResolutionSession:
    """
    Walks a user through an assembly's failed items one at a time.

    Args:
        store: EnrichmentStore
        client: Z2DataClient
        assembly_id: Assembly whose failed items are being resolved
        failed_items: Items to work through; defaults to every item with a
            recorded error and no enrichment
    """

    def __init__(self, store, client, assembly_id: str, failed_items: Optional[List[LineItem]] = None):
        self.store = store
        self.client = client
        self.assembly_id = assembly_id
        if failed_items is None:
            failed_items = [
                item for item in store.list_all(assembly_id)
                if item.z2data_error is not None and not item.is_enriched
            ]
        self.failed_items = failed_items

        self.state = ResolutionState.IDLE
        self.selected_item_id: Optional[str] = None
        self.candidates: List[Candidate] = []
        self.error: Optional[str] = None
        self.resolved_item_ids: Set[str] = set()
        self.last_summary: Optional[EnrichmentSummary] = None

    @property
    def remaining(self) -> List[LineItem]:
        return [i for i in self.failed_items if i.id not in self.resolved_item_ids]

    def select_item(self, item_id: str) -> ResolutionState:
        """Search candidates for a failed item; the outcome lands in ``state``."""
        if self.state is ResolutionState.COMMITTING:
            raise CommitInProgressError("Cannot change selection while a resolution is being saved")

        self.selected_item_id = item_id
        self.candidates = []
        self.error = None
        self.state = ResolutionState.SEARCHING

        try:
            self.candidates = get_candidates(self.store, self.client, self.assembly_id, item_id)
        except (EnrichmentError, requests.RequestException) as e:
            self.error = str(e) or "Search failed"
            self.state = ResolutionState.ERROR
            logger.warning(f"Candidate search failed for item {item_id}: {self.error}")
            return self.state

        self.state = ResolutionState.LISTING if self.candidates else ResolutionState.EMPTY
        return self.state

    def choose(self, part_id: PartId) -> ResolutionState:
        """
        Commit one of the listed candidates for the selected item.

        On success the selection auto-advances to the next unresolved failed
        item, or the session returns to IDLE when none remain. On failure the
        candidate list is kept and ``error`` explains what went wrong.
        """
        if self.state is ResolutionState.COMMITTING:
            raise CommitInProgressError("A resolution is already being saved")
        if self.state is not ResolutionState.LISTING:
            raise ValueError(f"No candidate list to choose from (state: {self.state.name})")

        candidate = next((c for c in self.candidates if c.part_id == part_id), None)
        if candidate is None:
            raise ValueError(f"PartID {part_id} is not among the listed candidates")

        item_id = self.selected_item_id
        self.state = ResolutionState.COMMITTING
        self.error = None
        try:
            self.last_summary = resolve_item(
                self.store, self.client, self.assembly_id, item_id,
                candidate.part_id, fallback=candidate
            )
        except (EnrichmentError, requests.RequestException) as e:
            self.error = str(e) or "Failed to save resolution"
            self.state = ResolutionState.LISTING
            logger.warning(f"Resolution failed for item {item_id}: {self.error}")
            return self.state

        self.resolved_item_ids.add(item_id)

        next_item = next((i for i in self.remaining if i.id != item_id), None)
        if next_item is not None:
            self.state = ResolutionState.IDLE
            return self.select_item(next_item.id)

        self.selected_item_id = None
        self.candidates = []
        self.state = ResolutionState.IDLE
        return self.state

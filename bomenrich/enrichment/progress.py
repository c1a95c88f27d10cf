"""
Assembly-level enrichment progress.

Progress is never tracked with running counters. After every mutation the
caller rescans all line items of the assembly and recomputes the summary, so
concurrent batch runs or manual resolutions converge on the same numbers
(last writer wins, and every writer writes a fresh count).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable

logger = logging.getLogger(__name__)


class EnrichmentStatus(str, Enum):
    """Values stored in ``assemblies.z2data_enrichment_status``."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    PARTIAL = "partial"        # Batch loop finished, some items still unresolved
    COMPLETED = "completed"    # Every enrichable item has been enriched


@dataclass
class EnrichmentSummary:
    enrichable_total: int
    enriched_count: int

    @property
    def terminal_status(self) -> EnrichmentStatus:
        """Status to record once no unprocessed items remain."""
        if self.enriched_count == self.enrichable_total:
            return EnrichmentStatus.COMPLETED
        return EnrichmentStatus.PARTIAL

    def to_assembly_fields(self, include_status: bool) -> Dict[str, Any]:
        fields = {
            "z2data_enriched_count": self.enriched_count,
            "z2data_total_enrichable": self.enrichable_total,
        }
        if include_status:
            fields["z2data_enrichment_status"] = self.terminal_status.value
        return fields


def summarize_items(items: Iterable) -> EnrichmentSummary:
    """
    Compute the enrichment summary from a full list of line items.

    Items with a blank identifier are not enrichable and do not count, even
    if one carries an enrichment timestamp.
    """
    enrichable = 0
    enriched = 0
    for item in items:
        if not item.is_enrichable:
            continue
        enrichable += 1
        if item.is_enriched:
            enriched += 1
    return EnrichmentSummary(enrichable_total=enrichable, enriched_count=enriched)


def refresh_assembly_summary(store, assembly_id: str, include_status: bool) -> EnrichmentSummary:
    """
    Rescan the assembly's line items and persist the recomputed counters.

    Args:
        store: EnrichmentStore
        assembly_id: Assembly to refresh
        include_status: Also write the terminal status (completed/partial)

    Returns:
        The freshly computed summary
    """
    summary = summarize_items(store.list_all(assembly_id))
    store.update_assembly(assembly_id, summary.to_assembly_fields(include_status))
    logger.debug(
        f"Assembly {assembly_id}: {summary.enriched_count}/{summary.enrichable_total} enriched"
        + (f", status={summary.terminal_status.value}" if include_status else "")
    )
    return summary

"""BOM enrichment pipeline: automatic batches and manual resolution."""

from .progress import (
    EnrichmentStatus,
    EnrichmentSummary,
    summarize_items,
    refresh_assembly_summary,
)
from .engine import (
    EnrichmentResult,
    enrich_part,
    find_match,
    build_enrichment_result,
    fetch_details,
)
from .candidates import find_candidates, MAX_CANDIDATES
from .batch import (
    BATCH_SIZE,
    BatchReport,
    run_enrichment_batch,
    run_until_done,
)
from .resolution import (
    get_candidates,
    resolve_item,
    ResolutionSession,
    ResolutionState,
    CommitInProgressError,
)

__all__ = [
    # Progress
    "EnrichmentStatus",
    "EnrichmentSummary",
    "summarize_items",
    "refresh_assembly_summary",
    # Automatic path
    "EnrichmentResult",
    "enrich_part",
    "find_match",
    "build_enrichment_result",
    "fetch_details",
    "BATCH_SIZE",
    "BatchReport",
    "run_enrichment_batch",
    "run_until_done",
    # Manual path
    "find_candidates",
    "MAX_CANDIDATES",
    "get_candidates",
    "resolve_item",
    "ResolutionSession",
    "ResolutionState",
    "CommitInProgressError",
]

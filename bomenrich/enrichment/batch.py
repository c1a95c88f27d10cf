"""
Batched, resumable enrichment of an assembly's line items.

Each call to run_enrichment_batch() is a bounded unit of work: it enriches
at most BATCH_SIZE unprocessed items and persists the outcome before
returning. A client polls it until the report says ``done``. Because all
progress lives in the store, a run interrupted at any point resumes where
it left off.

Items whose automatic attempt failed keep their ``z2data_error`` and are NOT
retried automatically; they wait for manual resolution (or an explicit
``reset_item_errors``).
"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from ..exceptions import NotFoundError
from .engine import enrich_part
from .progress import EnrichmentStatus, refresh_assembly_summary

logger = logging.getLogger(__name__)

BATCH_SIZE = 10

STATUS_IN_PROGRESS = "in_progress"
STATUS_DONE = "done"


@dataclass
class BatchReport:
    """Outcome of one batch call."""
    status: str                 # "in_progress" or "done"
    enriched_in_batch: int
    errors_in_batch: int
    enriched_total: int
    enrichable_total: int

    @property
    def done(self) -> bool:
        return self.status == STATUS_DONE

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def run_enrichment_batch(
    store,
    client,
    assembly_id: str,
    batch_size: int = BATCH_SIZE
) -> BatchReport:
    """
    Enrich the next slice of unprocessed line items.

    1. Fetch up to ``batch_size`` unprocessed items (by line number)
    2. If none are left: recompute counters, record completed/partial, report done
    3. Otherwise mark the assembly in_progress and enrich items one by one:
       - success → write the result and ``z2data_enriched_at``, clear the error
       - failure → write the message into ``z2data_error`` and continue
    4. Recompute and persist counters (status stays in_progress). A fatal error
       recomputes them too before it propagates.

    Args:
        store: EnrichmentStore
        client: Z2DataClient
        assembly_id: Assembly to work on
        batch_size: Maximum items per call

    Returns:
        BatchReport

    Raises:
        NotFoundError: Unknown assembly
        ConfigurationError, Z2DataAuthError: Fatal; the batch stops and the
            error is not recorded on any item
    """
    if store.get_assembly(assembly_id) is None:
        raise NotFoundError(f"Assembly {assembly_id} not found")

    items = store.list_unprocessed(assembly_id, batch_size)

    if not items:
        summary = refresh_assembly_summary(store, assembly_id, include_status=True)
        logger.info(
            f"Enrichment finished for assembly {assembly_id}: "
            f"{summary.enriched_count}/{summary.enrichable_total} enriched "
            f"({summary.terminal_status.value})"
        )
        return BatchReport(
            status=STATUS_DONE,
            enriched_in_batch=0,
            errors_in_batch=0,
            enriched_total=summary.enriched_count,
            enrichable_total=summary.enrichable_total,
        )

    store.update_assembly(assembly_id, {"z2data_enrichment_status": EnrichmentStatus.IN_PROGRESS.value})
    logger.info(f"Enriching batch of {len(items)} item(s) for assembly {assembly_id}")

    enriched = 0
    errors = 0

    for item in items:
        try:
            result = enrich_part(client, item.identifier, item.shorttext)
        except Exception as e:
            if getattr(e, "fatal", False):
                logger.error(
                    f"Enrichment aborted for assembly {assembly_id} at line {item.line_number}: {e}",
                    exc_info=True
                )
                refresh_assembly_summary(store, assembly_id, include_status=False)
                raise
            message = str(e) or type(e).__name__
            store.update_item(item.id, {"z2data_error": message})
            errors += 1
            logger.info(f"Line {item.line_number} '{item.identifier}': {message}")
            continue

        store.update_item(item.id, result.to_item_fields(datetime.now(timezone.utc)))
        enriched += 1
        logger.info(f"Line {item.line_number} '{item.identifier}': enriched as PartID {result.part_id}")

    summary = refresh_assembly_summary(store, assembly_id, include_status=False)

    return BatchReport(
        status=STATUS_IN_PROGRESS,
        enriched_in_batch=enriched,
        errors_in_batch=errors,
        enriched_total=summary.enriched_count,
        enrichable_total=summary.enrichable_total,
    )


def run_until_done(
    store,
    client,
    assembly_id: str,
    should_stop: Optional[Callable[[], bool]] = None,
    on_batch: Optional[Callable[[BatchReport], None]] = None,
    batch_size: int = BATCH_SIZE
) -> BatchReport:
    """
    Poll run_enrichment_batch() until it reports done or the caller aborts.

    ``should_stop`` is checked between batches only: a batch that has started
    always runs to completion, so counters and item states stay consistent.

    Args:
        store: EnrichmentStore
        client: Z2DataClient
        assembly_id: Assembly to enrich
        should_stop: Cooperative abort flag, e.g. ``threading.Event().is_set``
        on_batch: Called with each BatchReport (progress display)
        batch_size: Maximum items per batch

    Returns:
        The last BatchReport (``done`` unless aborted)
    """
    while True:
        report = run_enrichment_batch(store, client, assembly_id, batch_size=batch_size)
        if on_batch is not None:
            on_batch(report)
        if report.done:
            return report
        if should_stop is not None and should_stop():
            logger.info(
                f"Enrichment of assembly {assembly_id} stopped by caller at "
                f"{report.enriched_total}/{report.enrichable_total}"
            )
            return report

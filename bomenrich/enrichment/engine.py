"""
Automatic enrichment of a single MPN against Z2Data.

The automatic path accepts a match only when it is certain. Anything else is
refused and the item goes to manual resolution.

Matching rules:
1. Exact MPN search. Any hit → take the first (Z2Data's own ranking).
2. Otherwise search the stripped form (no ``- . space /``):
   - exactly one hit → accept it
   - several hits   → AmbiguousMatchError (never guess)
   - no hits        → NoMatchError
3. Fetch details for the accepted PartID. Failure here is not fatal; the
   result falls back to the fields already known from the search hit.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

from ..exceptions import AmbiguousMatchError, NoMatchError, Z2DataSourceError
from ..mpn_variants import strip_mpn
from ..z2data import Candidate, PartDetails, PartId

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentResult:
    """Enrichment fields for one line item. Missing values are empty strings."""
    part_id: str
    manufacturer: str = ""
    description: str = ""
    lifecycle_status: str = ""
    rohs_status: str = ""
    reach_status: str = ""
    datasheet_url: str = ""

    def to_item_fields(self, enriched_at: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Line item columns to write for a successful enrichment.

        Also clears ``z2data_error``, so an item that failed automatically and
        is later resolved ends up in a clean "enriched" state.
        """
        return {
            "z2data_part_id": self.part_id,
            "z2data_manufacturer": self.manufacturer,
            "z2data_description": self.description,
            "z2data_lifecycle_status": self.lifecycle_status,
            "z2data_rohs": self.rohs_status,
            "z2data_reach": self.reach_status,
            "z2data_datasheet_url": self.datasheet_url,
            "z2data_enriched_at": enriched_at or datetime.now(timezone.utc),
            "z2data_error": None,
        }


def _first_present(*values) -> str:
    for value in values:
        if value is not None:
            return value
    return ""


def build_enrichment_result(
    part_id: PartId,
    details: Optional[PartDetails],
    fallback: Optional[Candidate] = None
) -> EnrichmentResult:
    """
    Merge a details record with search-hit data.

    Each field prefers ``details``, falls back to ``fallback`` and defaults
    to an empty string. Lifecycle and compliance only exist in details.
    """
    details = details or PartDetails()
    return EnrichmentResult(
        part_id=str(part_id),
        manufacturer=_first_present(details.manufacturer, fallback.manufacturer if fallback else None),
        description=_first_present(details.description, fallback.description if fallback else None),
        lifecycle_status=_first_present(details.lifecycle_status),
        rohs_status=_first_present(details.rohs_status),
        reach_status=_first_present(details.reach_status),
        datasheet_url=_first_present(details.datasheet_url, fallback.datasheet_url if fallback else None),
    )


def fetch_details(client, part_id: PartId) -> Optional[PartDetails]:
    """
    Fetch part details, degrading to None on source or transport failure.

    Authentication errors still propagate.
    """
    try:
        return client.get_details(part_id)
    except (Z2DataSourceError, requests.RequestException) as e:
        logger.warning(f"Z2Data details unavailable for PartID {part_id}, using search data: {e}")
        return None


def find_match(client, mpn: str) -> Candidate:
    """
    Pick the automatic match for an MPN, or raise.

    Raises:
        NoMatchError: Neither the exact nor the stripped form found anything
        AmbiguousMatchError: The stripped form matched more than one part
    """
    hits = client.search(mpn)
    if hits:
        logger.debug(f"Exact match for '{mpn}': PartID {hits[0].part_id}")
        return hits[0]

    stripped = strip_mpn(mpn)
    if stripped and stripped != mpn:
        stripped_hits = client.search(stripped)
        if len(stripped_hits) == 1:
            logger.debug(f"Unambiguous stripped match for '{mpn}' via '{stripped}'")
            return stripped_hits[0]
        if len(stripped_hits) > 1:
            raise AmbiguousMatchError(mpn, len(stripped_hits))

    raise NoMatchError(mpn)


def enrich_part(client, mpn: str, description: Optional[str] = None) -> EnrichmentResult:
    """
    Enrich a single MPN: search, disambiguate, fetch details, merge.

    Args:
        client: Z2DataClient (or anything with ``search``/``get_details``)
        mpn: Component identifier from the BOM
        description: BOM short text. Not used for matching here; free-text
            hits are only offered during manual resolution.

    Returns:
        EnrichmentResult for the matched part

    Raises:
        NoMatchError, AmbiguousMatchError: No confident automatic match
        Z2DataAuthError: Credential rejected (fatal for the whole batch)
        Z2DataSourceError, requests.RequestException: Search call failed
    """
    mpn = mpn.strip()
    if not mpn:
        raise NoMatchError(mpn)

    match = find_match(client, mpn)

    details = None
    if match.part_id:
        details = fetch_details(client, match.part_id)

    return build_enrichment_result(match.part_id, details, fallback=match)

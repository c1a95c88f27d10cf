"""
Candidate search for manual resolution.

Unlike the automatic path, this search is exhaustive: a human picks from the
list, so every strategy runs until the cap is reached, and ambiguity is the
point rather than a failure.
"""

import logging
from typing import List, Optional

from ..mpn_variants import generate_mpn_variants
from ..z2data import Candidate

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 20


def find_candidates(
    client,
    mpn: str,
    description: Optional[str] = None,
    max_candidates: int = MAX_CANDIDATES
) -> List[Candidate]:
    """
    Collect unique Z2Data candidates for an MPN.

    Strategies, in order (stopping as soon as the cap is reached):
    1. Exact MPN (all hits)
    2. Each MPN variant from generate_mpn_variants()
    3. The trimmed description, if given

    Args:
        client: Z2DataClient
        mpn: Component identifier
        description: BOM short text used as a last-resort free-text query
        max_candidates: Cap on the returned list

    Returns:
        Candidates deduplicated by PartID, in discovery order. An empty
        list means nothing was found; search errors propagate.
    """
    seen = set()
    candidates: List[Candidate] = []

    def add_results(query: str, strategy: str):
        hits = client.search(query)
        added = 0
        for hit in hits:
            if hit.part_id not in seen:
                seen.add(hit.part_id)
                candidates.append(hit)
                added += 1
        logger.debug(f"Candidate search [{strategy}] '{query}': {len(hits)} hit(s), {added} new")

    def full():
        return len(candidates) >= max_candidates

    mpn = mpn.strip()
    if mpn:
        add_results(mpn, "exact")
        for variant in generate_mpn_variants(mpn):
            if full():
                break
            add_results(variant, "variant")

    if not full() and description and description.strip():
        add_results(description.strip(), "description")

    logger.info(f"Found {min(len(candidates), max_candidates)} candidate(s) for '{mpn}'")
    return candidates[:max_candidates]

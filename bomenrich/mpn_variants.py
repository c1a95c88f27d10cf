"""
Search-term variants for manufacturer part numbers.

BOM authors write MPNs loosely: with or without dashes, with tape-and-reel
or packaging suffixes the parts database does not index. These helpers turn
one raw MPN into an ordered list of alternative search terms, most specific
first.
"""

import re
from typing import List

# Characters dropped to build the "stripped form" of an MPN
_STRIP_PATTERN = re.compile(r"[-.\s/]")

# Never shorten below this many characters (too many false positives)
MIN_VARIANT_LENGTH = 5


def strip_mpn(mpn: str) -> str:
    """Remove dashes, dots, whitespace and slashes: ``"ATMEGA328P-AU"`` -> ``"ATMEGA328PAU"``."""
    return _STRIP_PATTERN.sub("", mpn)


def _shortened(mpn: str) -> List[str]:
    # Prefixes from len-1 down to max(5, floor(len/2)), inclusive
    min_len = max(MIN_VARIANT_LENGTH, len(mpn) // 2)
    return [mpn[:length] for length in range(len(mpn) - 1, min_len - 1, -1)]


def generate_mpn_variants(mpn: str) -> List[str]:
    """
    Generate alternative search terms for an MPN.

    Order:
    1. Stripped form, if it differs from the MPN and is non-empty
    2. Progressive shortening of the MPN itself
    3. Progressive shortening of the stripped form (only if longer than 5)

    The original MPN is never included (callers search it separately) and
    the result holds no duplicates.

    Args:
        mpn: Raw manufacturer part number

    Returns:
        Ordered list of unique variant strings
    """
    variants: List[str] = []
    seen = {mpn}

    def add(candidate: str):
        if candidate and candidate not in seen:
            seen.add(candidate)
            variants.append(candidate)

    stripped = strip_mpn(mpn)
    if stripped != mpn:
        add(stripped)

    for shortened in _shortened(mpn):
        add(shortened)

    if stripped != mpn and len(stripped) > MIN_VARIANT_LENGTH:
        for shortened in _shortened(stripped):
            add(shortened)

    return variants

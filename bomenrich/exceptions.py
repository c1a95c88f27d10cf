"""
Error taxonomy for BOM enrichment.

Two kinds of failure exist in this package:

- FATAL errors (misconfiguration, rejected credentials). These stop a batch
  run and are surfaced to the operator. They are never written onto a line
  item, because every other item would fail the same way.
- ITEM errors (no match, ambiguous match, source or transport failure).
  These are recorded on the line item that produced them and the batch
  moves on to the next item.

Callers branch on the ``fatal`` class attribute rather than on concrete types.
"""


class EnrichmentError(Exception):
    """Base class for all enrichment errors."""

    fatal = False


class ConfigurationError(EnrichmentError):
    """A required credential or setting is missing."""

    fatal = True


class Z2DataAuthError(EnrichmentError):
    """Z2Data rejected the API key (statusCode 401)."""

    fatal = True


class Z2DataSourceError(EnrichmentError):
    """Z2Data answered with a non-200 statusCode other than 401."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class NoMatchError(EnrichmentError):
    """Z2Data has no knowledge of the part. Route to manual resolution."""

    def __init__(self, mpn: str):
        super().__init__(f"No Z2Data results for MPN: {mpn}")
        self.mpn = mpn


class AmbiguousMatchError(EnrichmentError):
    """Several stripped-form hits; the automatic path refuses to guess."""

    def __init__(self, mpn: str, match_count: int):
        super().__init__(
            f"Multiple Z2Data matches for MPN: {mpn} "
            f"({match_count} results) — resolve manually"
        )
        self.mpn = mpn
        self.match_count = match_count


class NotFoundError(EnrichmentError):
    """The assembly does not exist, or the line item is not part of it."""

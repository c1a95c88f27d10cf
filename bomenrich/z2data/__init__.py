"""Z2Data parts API client."""

from .client import Z2DataClient, Candidate, PartDetails, PartId

__all__ = ["Z2DataClient", "Candidate", "PartDetails", "PartId"]

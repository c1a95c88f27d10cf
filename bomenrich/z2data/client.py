"""
Z2Data parts API client.

Docs: https://gateway.z2data.com/swagger/index.html

Two read operations are wrapped:
- GET /GetPartDetailsBySearch   (search by MPN or free text)
- GET /GetPartDetailsbyPartID   (lifecycle, compliance, datasheet for one part)

Z2Data reports errors in the JSON envelope
(``{"statusCode": ..., "status": ..., "results": {...}}``), not reliably in
the HTTP status line, so every response body is decoded and its
``statusCode`` checked. Raw envelopes never leave this module; callers get
``Candidate`` and ``PartDetails`` records.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import requests

from ..config import Z2DataConfig
from ..exceptions import Z2DataAuthError, Z2DataSourceError

logger = logging.getLogger(__name__)

SEARCH_PATH = "/GetPartDetailsBySearch"
DETAILS_PATH = "/GetPartDetailsbyPartID"

PartId = Union[int, str]


@dataclass
class Candidate:
    """One search hit. Transient: never persisted as-is."""
    part_id: PartId
    mpn: str = ""
    manufacturer: str = ""
    description: str = ""
    datasheet_url: str = ""
    product_type: Optional[str] = None

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "Candidate":
        return cls(
            part_id=raw.get("PartID"),
            mpn=raw.get("MPN") or "",
            manufacturer=raw.get("Manufacturer") or "",
            description=raw.get("Description") or "",
            datasheet_url=raw.get("Datasheet") or "",
            product_type=raw.get("ProductType"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "part_id": self.part_id,
            "mpn": self.mpn,
            "manufacturer": self.manufacturer,
            "description": self.description,
            "datasheet_url": self.datasheet_url,
            "product_type": self.product_type,
        }


@dataclass
class PartDetails:
    """
    Detail record for one part.

    Fields are None when Z2Data omitted them, so callers can tell "absent"
    (fall back to search data) from "present but empty" (keep as-is).
    """
    part_id: Optional[PartId] = None
    mpn: Optional[str] = None
    manufacturer: Optional[str] = None
    description: Optional[str] = None
    datasheet_url: Optional[str] = None
    lifecycle_status: Optional[str] = None
    rohs_status: Optional[str] = None
    reach_status: Optional[str] = None

    @classmethod
    def from_api(cls, results: Dict[str, Any]) -> "PartDetails":
        summary = results.get("MPNSummary") or {}
        lifecycle = results.get("Lifecycle") or {}
        compliance = results.get("ComplianceDetails") or {}
        return cls(
            part_id=summary.get("PartID"),
            mpn=summary.get("MPN"),
            manufacturer=summary.get("Supplier"),
            description=summary.get("Description"),
            datasheet_url=summary.get("DataSheet"),
            lifecycle_status=lifecycle.get("LifecycleStatus"),
            rohs_status=compliance.get("RoHSStatus"),
            reach_status=compliance.get("REACHStatus"),
        )


class Z2DataClient:
    """
    Thin, synchronous wrapper around the Z2Data REST API.

    No retries: a failed call raises and the caller decides what it means
    (fatal for auth errors, per-item error otherwise).
    """

    def __init__(self, config: Z2DataConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def _get(self, path: str, params: Dict[str, Any], operation: str) -> Dict[str, Any]:
        """Issue a GET and return the envelope's ``results`` object (may be empty)."""
        query = {"ApiKey": self.config.api_key}
        query.update(params)
        resp = self.session.get(
            f"{self.config.base_url}{path}",
            params=query,
            timeout=self.config.timeout,
        )

        try:
            data = resp.json()
        except ValueError:
            raise Z2DataSourceError(
                f"Z2Data {operation} error: non-JSON response (HTTP {resp.status_code})",
                status_code=resp.status_code,
            )

        if not isinstance(data, dict):
            raise Z2DataSourceError(
                f"Z2Data {operation} error: unexpected response shape (HTTP {resp.status_code})",
                status_code=resp.status_code,
            )

        status_code = data.get("statusCode")
        status = data.get("status", "")
        if status_code == 401:
            raise Z2DataAuthError(f"Z2Data auth failed: {status}")
        if status_code != 200:
            raise Z2DataSourceError(
                f"Z2Data {operation} error ({status_code}): {status}",
                status_code=status_code,
            )

        return data.get("results") or {}

    def search(self, query: str) -> List[Candidate]:
        """
        Search Z2Data by MPN or free text and return every hit.

        An empty list means "no match", which is not an error.
        """
        results = self._get(SEARCH_PATH, {"Z2MPN": query}, "search")
        raw_items = (results.get("PartSearch") or {}).get("Result") or []
        candidates = [Candidate.from_api(raw) for raw in raw_items]
        logger.debug(f"Z2Data search '{query}': {len(candidates)} hit(s)")
        return candidates

    def get_details(self, part_id: PartId) -> Optional[PartDetails]:
        """Fetch lifecycle/compliance details for one Z2Data PartID."""
        results = self._get(DETAILS_PATH, {"PartID": part_id}, "details")
        if not results:
            return None
        return PartDetails.from_api(results)

    def close(self):
        self.session.close()

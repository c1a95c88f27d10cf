"""
Persistence interface for assemblies and BOM line items.

The enrichment core needs only simple filtered reads and single-row updates
from its store. It never asks for joins, aggregates or transactions: every
aggregate (enriched count, enrichable total, status) is recomputed by the
caller from a full ``list_all`` scan.

Table layout (hosted Postgres behind Supabase):

    assemblies       id, name, customer, status, line_item_count,
                     total_quantity, z2data_enrichment_status,
                     z2data_enriched_count, z2data_total_enrichable, created_at
    bom_line_items   id, assembly_id, line_number, section, value, shorttext,
                     quantity, supplier{1,2}_name, supplier{1,2}_order_number,
                     z2data_* enrichment columns, created_at
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

# Columns owned by the enrichment subsystem. Nothing else writes them and
# update_item() refuses any column outside this set.
ENRICHMENT_COLUMNS = (
    "z2data_part_id",
    "z2data_manufacturer",
    "z2data_description",
    "z2data_lifecycle_status",
    "z2data_rohs",
    "z2data_reach",
    "z2data_datasheet_url",
    "z2data_enriched_at",
    "z2data_error",
)

ASSEMBLY_ENRICHMENT_COLUMNS = (
    "z2data_enrichment_status",
    "z2data_enriched_count",
    "z2data_total_enrichable",
)


@dataclass
class SupplierRef:
    """A supplier name with an optional order number."""
    name: str
    order_number: str = ""


@dataclass
class LineItem:
    """
    One row of an imported BOM.

    ``value`` (the component identifier, usually an MPN) and ``shorttext``
    (free-text description) are fixed at import. Only the ``z2data_*``
    fields change afterwards, and only through the enrichment subsystem.
    """
    id: Optional[str]
    assembly_id: Optional[str]
    line_number: int
    section: str
    value: str
    shorttext: str
    quantity: int = 0
    supplier1: Optional[SupplierRef] = None
    supplier2: Optional[SupplierRef] = None

    # Enrichment record
    z2data_part_id: Optional[str] = None
    z2data_manufacturer: Optional[str] = None
    z2data_description: Optional[str] = None
    z2data_lifecycle_status: Optional[str] = None
    z2data_rohs: Optional[str] = None
    z2data_reach: Optional[str] = None
    z2data_datasheet_url: Optional[str] = None
    z2data_enriched_at: Optional[datetime] = None
    z2data_error: Optional[str] = None

    @property
    def identifier(self) -> str:
        return (self.value or "").strip()

    @property
    def is_enrichable(self) -> bool:
        """Blank identifiers are excluded from enrichment and from all counts."""
        return bool(self.identifier)

    @property
    def is_enriched(self) -> bool:
        return self.z2data_enriched_at is not None

    @property
    def is_unprocessed(self) -> bool:
        """Enrichable, never enriched, and no recorded error."""
        return self.is_enrichable and not self.is_enriched and self.z2data_error is None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "LineItem":
        """Build a LineItem from a ``bom_line_items`` row dict."""
        supplier1 = None
        if row.get("supplier1_name"):
            supplier1 = SupplierRef(row["supplier1_name"], row.get("supplier1_order_number") or "")
        supplier2 = None
        if row.get("supplier2_name"):
            supplier2 = SupplierRef(row["supplier2_name"], row.get("supplier2_order_number") or "")

        item = cls(
            id=str(row["id"]) if row.get("id") is not None else None,
            assembly_id=str(row["assembly_id"]) if row.get("assembly_id") is not None else None,
            line_number=row.get("line_number") or 0,
            section=row.get("section") or "",
            value=row.get("value") or "",
            shorttext=row.get("shorttext") or "",
            quantity=row.get("quantity") or 0,
            supplier1=supplier1,
            supplier2=supplier2,
        )
        for column in ENRICHMENT_COLUMNS:
            if column in row:
                setattr(item, column, row[column])
        return item

    def to_row(self) -> Dict[str, Any]:
        """Inverse of from_row(), without ``id``/``assembly_id``."""
        row = {
            "line_number": self.line_number,
            "section": self.section,
            "value": self.value,
            "shorttext": self.shorttext,
            "quantity": self.quantity,
            "supplier1_name": self.supplier1.name if self.supplier1 else None,
            "supplier1_order_number": self.supplier1.order_number if self.supplier1 else None,
            "supplier2_name": self.supplier2.name if self.supplier2 else None,
            "supplier2_order_number": self.supplier2.order_number if self.supplier2 else None,
        }
        for column in ENRICHMENT_COLUMNS:
            row[column] = getattr(self, column)
        return row


@dataclass
class Assembly:
    """A BOM as a whole, plus its persisted enrichment progress."""
    id: str
    name: str
    customer: str = ""
    status: str = "Draft"
    line_item_count: int = 0
    total_quantity: int = 0
    z2data_enrichment_status: str = "not_started"
    z2data_enriched_count: int = 0
    z2data_total_enrichable: int = 0
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Assembly":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            customer=row.get("customer") or "",
            status=row.get("status") or "Draft",
            line_item_count=row.get("line_item_count") or 0,
            total_quantity=row.get("total_quantity") or 0,
            z2data_enrichment_status=row.get("z2data_enrichment_status") or "not_started",
            z2data_enriched_count=row.get("z2data_enriched_count") or 0,
            z2data_total_enrichable=row.get("z2data_total_enrichable") or 0,
            created_at=row.get("created_at"),
        )


def check_item_fields(fields: Dict[str, Any]) -> None:
    """Reject writes to line item columns the enrichment subsystem does not own."""
    unknown = set(fields) - set(ENRICHMENT_COLUMNS)
    if unknown:
        raise ValueError(f"Refusing to update non-enrichment columns: {sorted(unknown)}")


def check_assembly_fields(fields: Dict[str, Any]) -> None:
    unknown = set(fields) - set(ASSEMBLY_ENRICHMENT_COLUMNS)
    if unknown:
        raise ValueError(f"Refusing to update assembly columns: {sorted(unknown)}")


class EnrichmentStore:
    """
    Abstract store interface.

    Implement this interface with your actual database client. Reads return
    line items ordered by ``line_number``. Writes are single-row and
    last-writer-wins; no locking is expected.
    """

    def get_assembly(self, assembly_id: str) -> Optional[Assembly]:
        """Return the assembly, or None if it does not exist."""
        raise NotImplementedError

    def create_assembly(
        self,
        name: str,
        customer: str,
        items: List[LineItem]
    ) -> Assembly:
        """
        Create an assembly and all its line items atomically.

        Args:
            name: Assembly name
            customer: Customer name
            items: Parsed line items (``id``/``assembly_id`` are assigned here)

        Returns:
            The created Assembly
        """
        raise NotImplementedError

    def list_unprocessed(self, assembly_id: str, limit: int) -> List[LineItem]:
        """
        Return up to ``limit`` unprocessed items, by line number.

        Unprocessed: non-blank value, no ``z2data_enriched_at``, no ``z2data_error``.
        """
        raise NotImplementedError

    def list_all(self, assembly_id: str) -> List[LineItem]:
        """Return every line item of the assembly, by line number."""
        raise NotImplementedError

    def get_item(self, assembly_id: str, item_id: str) -> Optional[LineItem]:
        """Return one line item if it belongs to the assembly, else None."""
        raise NotImplementedError

    def update_item(self, item_id: str, fields: Dict[str, Any]) -> None:
        """Write enrichment columns onto one line item."""
        raise NotImplementedError

    def update_assembly(self, assembly_id: str, fields: Dict[str, Any]) -> None:
        """Write enrichment progress columns onto one assembly."""
        raise NotImplementedError

    def reset_item_errors(self, assembly_id: str) -> int:
        """
        Clear ``z2data_error`` on every not-yet-enriched item.

        Returns:
            Number of items that became unprocessed again
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release any held resources."""

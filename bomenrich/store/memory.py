"""
In-process store.

Holds rows as dicts and hands out fresh LineItem/Assembly objects on every
read, so callers never share mutable state with the store. Useful for
tests and for dry runs against a spreadsheet without a database.
"""

import copy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from .base import (
    Assembly,
    EnrichmentStore,
    LineItem,
    check_assembly_fields,
    check_item_fields,
)


class InMemoryStore(EnrichmentStore):
    """Dict-backed EnrichmentStore."""

    def __init__(self):
        self.assemblies: Dict[str, Dict[str, Any]] = {}
        self.items: Dict[str, Dict[str, Any]] = {}

    def get_assembly(self, assembly_id: str) -> Optional[Assembly]:
        row = self.assemblies.get(assembly_id)
        return Assembly.from_row(copy.deepcopy(row)) if row else None

    def create_assembly(self, name: str, customer: str, items: List[LineItem]) -> Assembly:
        assembly_id = str(uuid4())
        self.assemblies[assembly_id] = {
            "id": assembly_id,
            "name": name,
            "customer": customer,
            "status": "Draft",
            "line_item_count": len(items),
            "total_quantity": sum(item.quantity for item in items),
            "z2data_enrichment_status": "not_started",
            "z2data_enriched_count": 0,
            "z2data_total_enrichable": 0,
            "created_at": datetime.now(timezone.utc),
        }
        for item in items:
            item_id = str(uuid4())
            row = item.to_row()
            row["id"] = item_id
            row["assembly_id"] = assembly_id
            self.items[item_id] = row
        return self.get_assembly(assembly_id)

    def _rows_for(self, assembly_id: str) -> List[Dict[str, Any]]:
        rows = [r for r in self.items.values() if r["assembly_id"] == assembly_id]
        rows.sort(key=lambda r: r["line_number"])
        return rows

    def list_unprocessed(self, assembly_id: str, limit: int) -> List[LineItem]:
        unprocessed = []
        for row in self._rows_for(assembly_id):
            item = LineItem.from_row(copy.deepcopy(row))
            if item.is_unprocessed:
                unprocessed.append(item)
                if len(unprocessed) >= limit:
                    break
        return unprocessed

    def list_all(self, assembly_id: str) -> List[LineItem]:
        return [LineItem.from_row(copy.deepcopy(r)) for r in self._rows_for(assembly_id)]

    def get_item(self, assembly_id: str, item_id: str) -> Optional[LineItem]:
        row = self.items.get(item_id)
        if row is None or row["assembly_id"] != assembly_id:
            return None
        return LineItem.from_row(copy.deepcopy(row))

    def update_item(self, item_id: str, fields: Dict[str, Any]) -> None:
        check_item_fields(fields)
        if item_id in self.items:
            self.items[item_id].update(copy.deepcopy(fields))

    def update_assembly(self, assembly_id: str, fields: Dict[str, Any]) -> None:
        check_assembly_fields(fields)
        if assembly_id in self.assemblies:
            self.assemblies[assembly_id].update(fields)

    def reset_item_errors(self, assembly_id: str) -> int:
        reset = 0
        for row in self._rows_for(assembly_id):
            if row.get("z2data_error") is not None and row.get("z2data_enriched_at") is None:
                row["z2data_error"] = None
                reset += 1
        return reset

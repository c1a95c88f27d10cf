"""
Reader for "Stückliste"-style XLSX BOMs.

Expected columns (first row is a header and is skipped):
    A: Value        component identifier (usually an MPN)
    B: Shorttext    description
    C: n            quantity
    D: Supplier 1   E: Order-# 1
    F: Supplier 2   G: Order-# 2

A row with text in column A and nothing in B, C or D is a section header;
it applies to every following row until the next header.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import openpyxl

from ..store.base import LineItem, SupplierRef

DEFAULT_SECTION = "General"


@dataclass
class ParsedBom:
    file_name: str
    items: List[LineItem] = field(default_factory=list)
    sections: List[str] = field(default_factory=list)

    @property
    def total_lines(self) -> int:
        return len(self.items)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)


def _cell(row, index) -> str:
    if index >= len(row) or row[index] is None:
        return ""
    value = row[index]
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _is_empty(row) -> bool:
    return all(cell is None or cell == "" for cell in row)


def _is_section_header(row) -> bool:
    value = row[0] if len(row) > 0 else None
    rest = [row[i] if i < len(row) else None for i in (1, 2, 3)]
    return isinstance(value, str) and bool(value.strip()) and not any(rest)


def _quantity(raw) -> int:
    if raw is None or raw == "":
        return 0
    try:
        return int(float(raw))  # Handle "1.0" -> 1
    except (ValueError, TypeError):
        return 0


def _supplier(row, name_index: int, order_index: int) -> Optional[SupplierRef]:
    name = _cell(row, name_index)
    if not name:
        return None
    return SupplierRef(name=name, order_number=_cell(row, order_index))


class ExcelAdapter:
    def can_handle(self, file_path):
        return Path(file_path).suffix.lower() in [".xlsx", ".xlsm"]

    def read(self, file_path) -> ParsedBom:
        wb = openpyxl.load_workbook(file_path, data_only=True, read_only=True)
        try:
            ws = wb.worksheets[0]
            parsed = ParsedBom(file_name=Path(file_path).name)
            section = DEFAULT_SECTION

            for row in ws.iter_rows(min_row=2, values_only=True):
                if _is_empty(row):
                    continue

                if _is_section_header(row):
                    section = row[0].strip()
                    if section not in parsed.sections:
                        parsed.sections.append(section)
                    continue

                shorttext = _cell(row, 1)
                # Rows without a short text carry no component data
                if not shorttext:
                    continue

                parsed.items.append(LineItem(
                    id=None,
                    assembly_id=None,
                    line_number=len(parsed.items) + 1,
                    section=section,
                    value=_cell(row, 0),
                    shorttext=shorttext,
                    quantity=_quantity(row[2] if len(row) > 2 else None),
                    supplier1=_supplier(row, 3, 4),
                    supplier2=_supplier(row, 5, 6),
                ))

            return parsed
        finally:
            wb.close()

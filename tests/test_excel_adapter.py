"""Tests for the Stückliste XLSX reader."""

import openpyxl
import pytest

from bomenrich.adapters import ExcelAdapter
from bomenrich.adapters.excel_adapter import DEFAULT_SECTION

HEADER = ["Value", "Shorttext", "n", "Supplier 1", "Order-# 1", "Supplier 2", "Order-# 2"]


def write_workbook(path, rows):
    """Helper to create a Stückliste workbook for testing."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.append(HEADER)
    for row in rows:
        ws.append(row)
    wb.save(path)
    return path


@pytest.fixture
def adapter():
    return ExcelAdapter()


class TestCanHandle:

    @pytest.mark.parametrize("name,expected", [
        ("bom.xlsx", True),
        ("BOM.XLSM", True),
        ("bom.csv", False),
        ("bom.xls", False),
    ])
    def test_extensions(self, adapter, name, expected):
        assert adapter.can_handle(name) is expected


class TestRead:

    def test_items_and_sections(self, adapter, tmp_path):
        path = write_workbook(tmp_path / "board.xlsx", [
            ["ATMEGA328P-AU", "MCU 8-bit", 1, "Digikey", "ATMEGA328P-AU-ND", "Mouser", "556-ATMEGA328P-AU"],
            ["Power", None, None, None],
            ["LM317T", "Regulator", 2.0, "Farnell", 12345],
            [None, "Test point", 4],
        ])

        bom = adapter.read(path)

        assert bom.file_name == "board.xlsx"
        assert bom.sections == ["Power"]
        assert bom.total_lines == 3
        assert bom.total_quantity == 7

        first, second, third = bom.items
        assert first.line_number == 1
        assert first.section == DEFAULT_SECTION
        assert first.value == "ATMEGA328P-AU"
        assert first.supplier1.name == "Digikey"
        assert first.supplier2.order_number == "556-ATMEGA328P-AU"

        assert second.section == "Power"
        assert second.quantity == 2
        assert second.supplier1.order_number == "12345"
        assert second.supplier2 is None

        assert third.value == ""
        assert not third.is_enrichable

    def test_rows_without_shorttext_are_skipped(self, adapter, tmp_path):
        path = write_workbook(tmp_path / "bom.xlsx", [
            ["R-100K", None, 3, "Digikey"],
            ["C-10U", "Capacitor", 1],
        ])

        bom = adapter.read(path)

        assert [i.value for i in bom.items] == ["C-10U"]
        assert bom.items[0].line_number == 1

    def test_blank_rows_are_ignored(self, adapter, tmp_path):
        path = write_workbook(tmp_path / "bom.xlsx", [
            ["A-1", "Part", 1],
            [None, None, None],
            ["B-2", "Part", "x"],
        ])

        bom = adapter.read(path)

        assert [i.line_number for i in bom.items] == [1, 2]
        assert bom.items[1].quantity == 0

    def test_header_only_workbook(self, adapter, tmp_path):
        bom = adapter.read(write_workbook(tmp_path / "empty.xlsx", []))
        assert bom.items == []
        assert bom.total_quantity == 0

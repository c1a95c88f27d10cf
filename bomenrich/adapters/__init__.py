"""File adapters that turn uploaded BOM spreadsheets into line items."""

from .excel_adapter import ExcelAdapter, ParsedBom

__all__ = ["ExcelAdapter", "ParsedBom"]

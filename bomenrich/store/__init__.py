"""Persistence for assemblies and BOM line items."""

from .base import (
    Assembly,
    EnrichmentStore,
    LineItem,
    SupplierRef,
    ENRICHMENT_COLUMNS,
    ASSEMBLY_ENRICHMENT_COLUMNS,
)
from .memory import InMemoryStore
from .supabase_client import SupabaseClient

__all__ = [
    "Assembly",
    "EnrichmentStore",
    "LineItem",
    "SupplierRef",
    "ENRICHMENT_COLUMNS",
    "ASSEMBLY_ENRICHMENT_COLUMNS",
    "InMemoryStore",
    "SupabaseClient",
]

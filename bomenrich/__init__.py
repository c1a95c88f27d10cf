from .mpn_variants import generate_mpn_variants, strip_mpn
from .config import Z2DataConfig, SupabaseConfig
from .z2data import Z2DataClient, Candidate, PartDetails
from .store import InMemoryStore, SupabaseClient
from .adapters import ExcelAdapter
from .enrichment import (
    enrich_part,
    find_candidates,
    run_enrichment_batch,
    run_until_done,
    get_candidates,
    resolve_item,
    ResolutionSession,
)

__all__ = [
    "generate_mpn_variants",
    "strip_mpn",
    "Z2DataConfig",
    "SupabaseConfig",
    "Z2DataClient",
    "Candidate",
    "PartDetails",
    "InMemoryStore",
    "SupabaseClient",
    "ExcelAdapter",
    "enrich_part",
    "find_candidates",
    "run_enrichment_batch",
    "run_until_done",
    "get_candidates",
    "resolve_item",
    "ResolutionSession",
]

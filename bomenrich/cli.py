"""
Operator command line for BOM enrichment.

    bomenrich import BOM.xlsx --name "Main Board" --customer ACME
    bomenrich enrich <assembly_id>
    bomenrich status <assembly_id>
    bomenrich candidates <assembly_id> <item_id>
    bomenrich resolve <assembly_id> <item_id> <part_id>
    bomenrich retry-failed <assembly_id>

Settings come from the environment (or a .env file in the working directory):
Z2DATA_API_KEY, Z2DATA_BASE_URL, Z2DATA_TIMEOUT, SUPABASE_DB_URL or
SUPABASE_DB_HOST/PORT/NAME/USER/PASSWORD.
"""

import argparse
import json
import logging
import signal
import sys
import threading
from pathlib import Path

import requests
from dotenv import load_dotenv

from .adapters import ExcelAdapter
from .config import SupabaseConfig, Z2DataConfig
from .enrichment import (
    BATCH_SIZE,
    get_candidates,
    resolve_item,
    run_until_done,
    summarize_items,
)
from .exceptions import EnrichmentError, NotFoundError, Z2DataSourceError
from .store import SupabaseClient
from .z2data import Z2DataClient

logger = logging.getLogger(__name__)


def _open_store() -> SupabaseClient:
    return SupabaseClient(SupabaseConfig.from_env())


def _open_client() -> Z2DataClient:
    return Z2DataClient(Z2DataConfig.from_env())


def cmd_import(args) -> int:
    bom_path = Path(args.bom)
    if not bom_path.exists():
        print(f"ERROR: BOM file not found: {bom_path}", file=sys.stderr)
        return 2

    adapter = ExcelAdapter()
    if not adapter.can_handle(bom_path):
        print(f"ERROR: unsupported file type: {bom_path.suffix}", file=sys.stderr)
        return 2

    parsed = adapter.read(bom_path)
    if not parsed.items:
        print("ERROR: no BOM items found", file=sys.stderr)
        return 1

    store = _open_store()
    try:
        assembly = store.create_assembly(args.name or bom_path.stem, args.customer, parsed.items)
    finally:
        store.close()

    print(f"✓ Imported {parsed.total_lines} line items ({parsed.total_quantity} parts)")
    print(f"  Sections: {', '.join(parsed.sections) or '-'}")
    print(f"  Assembly ID: {assembly.id}")
    return 0


def cmd_enrich(args) -> int:
    stop = threading.Event()

    def request_stop(signum, frame):
        print("\nStopping after the current batch...", file=sys.stderr)
        stop.set()

    def show(report):
        print(
            f"  batch: +{report.enriched_in_batch} enriched, {report.errors_in_batch} failed "
            f"| total {report.enriched_total}/{report.enrichable_total}"
        )

    store = _open_store()
    client = _open_client()
    installed = False
    try:
        previous = signal.signal(signal.SIGINT, request_stop)
        installed = True
        report = run_until_done(
            store, client, args.assembly_id,
            should_stop=stop.is_set, on_batch=None if args.json else show, batch_size=args.batch_size
        )
    finally:
        if installed:
            signal.signal(signal.SIGINT, previous)
        client.close()
        store.close()

    if args.json:
        print(json.dumps(report.to_dict()))
        return 0
    if report.done:
        print(f"✓ Done: {report.enriched_total}/{report.enrichable_total} enriched")
    else:
        print(f"Stopped: {report.enriched_total}/{report.enrichable_total} enriched (run again to resume)")
    return 0


def cmd_status(args) -> int:
    store = _open_store()
    try:
        assembly = store.get_assembly(args.assembly_id)
        if assembly is None:
            raise NotFoundError(f"Assembly {args.assembly_id} not found")
        items = store.list_all(args.assembly_id)
    finally:
        store.close()

    summary = summarize_items(items)
    failed = [i for i in items if i.z2data_error is not None and not i.is_enriched]

    print(f"{assembly.name} ({assembly.id})")
    print(f"  Status: {assembly.z2data_enrichment_status}")
    print(f"  Enriched: {summary.enriched_count}/{summary.enrichable_total}")
    if failed:
        print(f"  Needs manual resolution ({len(failed)}):")
        for item in failed:
            print(f"    {item.id}  line {item.line_number:4d}  {item.identifier:25s}  {item.z2data_error}")
    return 0


def cmd_candidates(args) -> int:
    store = _open_store()
    client = _open_client()
    try:
        candidates = get_candidates(store, client, args.assembly_id, args.item_id)
    finally:
        client.close()
        store.close()

    if args.json:
        print(json.dumps([c.to_dict() for c in candidates], indent=2))
        return 0
    if not candidates:
        print("No candidates found")
        return 0
    for c in candidates:
        print(f"  {str(c.part_id):>10s}  {c.mpn:25s}  {c.manufacturer:20s}  {c.description}")
    return 0


def _listed_candidate(store, client, assembly_id, item_id, part_id):
    """Search hit for the chosen PartID, used if its details cannot be fetched."""
    try:
        candidates = get_candidates(store, client, assembly_id, item_id)
    except (Z2DataSourceError, requests.RequestException) as e:
        logger.warning(f"Candidate lookup failed for item {item_id}, resolving without search data: {e}")
        return None
    return next((c for c in candidates if str(c.part_id) == str(part_id)), None)


def cmd_resolve(args) -> int:
    store = _open_store()
    client = _open_client()
    try:
        fallback = _listed_candidate(store, client, args.assembly_id, args.item_id, args.part_id)
        summary = resolve_item(
            store, client, args.assembly_id, args.item_id, args.part_id, fallback=fallback
        )
    finally:
        client.close()
        store.close()

    print(
        f"✓ Resolved. Assembly now {summary.enriched_count}/{summary.enrichable_total} enriched "
        f"({summary.terminal_status.value})"
    )
    return 0


def cmd_retry_failed(args) -> int:
    store = _open_store()
    try:
        count = store.reset_item_errors(args.assembly_id)
    finally:
        store.close()
    print(f"✓ {count} failed item(s) queued for the next enrichment run")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="bomenrich", description="Enrich BOM line items with Z2Data part data.")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("import", help="Import an XLSX BOM as a new assembly")
    p.add_argument("bom", help="Path to the BOM spreadsheet")
    p.add_argument("--name", help="Assembly name (defaults to the file name)")
    p.add_argument("--customer", default="", help="Customer name")
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("enrich", help="Run enrichment batches until done")
    p.add_argument("assembly_id")
    p.add_argument("--batch-size", type=int, default=BATCH_SIZE, help="Items per batch")
    p.add_argument("--json", action="store_true", help="Print the final batch report as JSON")
    p.set_defaults(func=cmd_enrich)

    p = sub.add_parser("status", help="Show enrichment progress and failed items")
    p.add_argument("assembly_id")
    p.set_defaults(func=cmd_status)

    p = sub.add_parser("candidates", help="List Z2Data candidates for a line item")
    p.add_argument("assembly_id")
    p.add_argument("item_id")
    p.add_argument("--json", action="store_true", help="Print candidates as JSON")
    p.set_defaults(func=cmd_candidates)

    p = sub.add_parser("resolve", help="Assign a Z2Data PartID to a line item")
    p.add_argument("assembly_id")
    p.add_argument("item_id")
    p.add_argument("part_id")
    p.set_defaults(func=cmd_resolve)

    p = sub.add_parser("retry-failed", help="Clear recorded errors so failed items are retried")
    p.add_argument("assembly_id")
    p.set_defaults(func=cmd_retry_failed)

    return ap


def main(argv=None) -> int:
    load_dotenv(Path.cwd() / ".env")
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except EnrichmentError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2 if e.fatal else 1
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""Example: Enrich a BOM spreadsheet against Z2Data without a database.

This script reads a Stückliste XLSX, keeps the assembly in memory and runs
the same batched enrichment the CLI runs against Supabase. Handy for
checking how well a customer's BOM will match before importing it.

Needs Z2DATA_API_KEY in the environment (or a .env file).
"""

from dotenv import load_dotenv

from bomenrich import ExcelAdapter, InMemoryStore, Z2DataClient, Z2DataConfig, run_until_done


def dry_run(input_file: str):
    """Enrich every line item of a BOM file and print the outcome.
    
    1. Parses the spreadsheet into line items
    2. Loads them into an in-memory assembly
    3. Runs enrichment batches until nothing is left
    4. Lists the items that need manual resolution
    
    Args:
        input_file: Path to the XLSX BOM
    """
    bom = ExcelAdapter().read(input_file)
    print(f"✓ Read {bom.total_lines} line items from {bom.file_name}")
    
    store = InMemoryStore()
    assembly = store.create_assembly(bom.file_name, "", bom.items)
    
    client = Z2DataClient(Z2DataConfig.from_env())
    try:
        report = run_until_done(
            store, client, assembly.id,
            on_batch=lambda r: print(f"  ... {r.enriched_total}/{r.enrichable_total}")
        )
    finally:
        client.close()
    
    print(f"✓ Enriched {report.enriched_total} of {report.enrichable_total} enrichable items")
    
    failed = [i for i in store.list_all(assembly.id) if i.z2data_error]
    if failed:
        print(f"\nNeeds manual resolution ({len(failed)}):")
        for item in failed:
            print(f"  line {item.line_number:4d}  {item.identifier:25s}  {item.z2data_error}")
    
    return report


if __name__ == "__main__":
    import sys
    
    if len(sys.argv) < 2:
        print("Usage: python dry_run_enrichment.py <bom.xlsx>")
        sys.exit(1)
    
    load_dotenv()
    dry_run(sys.argv[1])

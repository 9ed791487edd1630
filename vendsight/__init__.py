"""VendSight: vending-machine sales ingestion.

Normalizes vendor CSV exports (iOS Vending Systems, Cantaloupe Systems)
into canonical locations, products and sales, and writes them to Supabase.

Usage:
    from vendsight.adapters import ingest_csv
    from vendsight.importer import persist_ingestion
    from vendsight.sales_store import create_store

    result = ingest_csv(text)
    summary = persist_ingestion(result, create_store(url, key))
"""

__version__ = "0.3.0"

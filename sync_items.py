import argparse
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

# .env has to be loaded before the logging/config modules read the environment
load_dotenv()

from catalog.config import Settings  # noqa: E402
from catalog.errors import ConfigError, ParseError  # noqa: E402
from catalog.logger import get_logger  # noqa: E402
from catalog.models import ReconcileOptions, RunStats  # noqa: E402
from catalog.reconcile import ImportReconciler  # noqa: E402
from catalog.report import build_plaintext_report  # noqa: E402
from catalog.rows import read_rows  # noqa: E402
from catalog.storage import Store  # noqa: E402
from extraction import AnthropicClient, DescriptionEnricher, ExtractionCache  # noqa: E402

logger = get_logger(__name__)


def build_reconciler(settings: Settings) -> ImportReconciler:
    store = Store(settings.db_path)
    store.ensure_db()
    enricher = DescriptionEnricher(
        AnthropicClient.from_settings(settings),
        ExtractionCache(settings.cache_dir),
    )
    return ImportReconciler(store, enricher)


def run_once(csv_path: str, settings: Settings, skip_enrichment: bool = False) -> RunStats:
    # Read everything up front; a parse failure must abort before any write.
    header_map, rows = read_rows(csv_path, settings.field_table)
    logger.info("Read %d data rows from %s", len(rows), csv_path)

    if not skip_enrichment and not settings.api_key:
        logger.warning("ANTHROPIC_API_KEY is not set; descriptions will not be enriched.")

    reconciler = build_reconciler(settings)
    return reconciler.reconcile(
        rows, header_map, ReconcileOptions(skip_enrichment=skip_enrichment)
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Sync an auction items CSV export into the receipts database."
    )
    parser.add_argument("csv_path", help="Path to the exported CSV file")
    parser.add_argument(
        "-s",
        "--skip-enrichment",
        action="store_true",
        help="Do not call the text extraction service",
    )
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
        stats = run_once(args.csv_path, settings, skip_enrichment=args.skip_enrichment)
    except (ConfigError, ParseError) as e:
        logger.error("Import aborted: %s", e)
        return 1

    print(build_plaintext_report(stats, os.path.basename(args.csv_path)))
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception as e:
        logger.exception("Fatal import error: %s", e)
        raise SystemExit(2)

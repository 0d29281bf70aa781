"""
CLI entry point for generating a conversion analytics report.

Usage:
    python -m chatcommerce.analytics.run_report --timeframe 7d
    python -m chatcommerce.analytics.run_report --database-url sqlite:///shop.db --report report.txt
"""

import argparse
import logging
import sys
from pathlib import Path

from chatcommerce.analytics.report import ReportBuilder, format_report
from chatcommerce.config import REPORT_TIMEFRAMES, settings
from chatcommerce.errors import PersistenceError
from chatcommerce.schemas.business_schema import load_business_config
from chatcommerce.storage.store import CommerceStore

logger = logging.getLogger(__name__)


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(
        description="Summarize customer journeys into a conversion analytics report."
    )
    parser.add_argument(
        "--timeframe",
        choices=REPORT_TIMEFRAMES,
        default=settings.analytics.default_timeframe,
        help="Only include journeys started within this window.",
    )
    parser.add_argument(
        "--database-url",
        type=str,
        default=settings.storage.database_url,
        help="SQLAlchemy URL of the store holding customer journeys.",
    )
    parser.add_argument(
        "--report",
        type=str,
        default=None,
        help="Path to write the report (default: stdout).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging output.",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        store = CommerceStore.from_url(args.database_url)
        journeys = store.list_journeys()
    except PersistenceError as exc:
        logger.error("Could not read journeys: %s", exc)
        sys.exit(1)

    logger.info("Loaded %d journey(s) from %s", len(journeys), args.database_url)

    business = load_business_config()
    names = {product.id: product.name for product in business.products}
    report = ReportBuilder(settings.analytics).build(journeys, args.timeframe, product_names=names)
    output = format_report(report)

    if args.report:
        report_path = Path(args.report)
        report_path.write_text(output, encoding="utf-8")
        logger.info("Report written to %s", report_path)
    else:
        sys.stdout.write(output + "\n")


if __name__ == "__main__":
    main()

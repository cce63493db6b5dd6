from __future__ import annotations

import argparse
import logging

from invpro.application.container import build_container
from invpro.config import get_app_paths, load_settings
from invpro.logging_config import setup_logging

log = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="invpro", description="Inventory Pro backend")
    parser.add_argument("--export-report", metavar="XLSX", help="write the dashboard report to an Excel file")
    parser.add_argument("--export-invoice", nargs=2, metavar=("SALE_ID", "XLSX"), help="write one sale's invoice to an Excel file")
    args = parser.parse_args(argv)

    paths = get_app_paths()
    setup_logging(paths.logs_dir, level=logging.INFO)
    settings = load_settings()

    container = build_container(paths.db_path, settings)
    summary = container.reporting.dashboard()
    log.info(
        "dashboard products=%s inventory_value=%.2f revenue=%.2f costs=%.2f profit=%.2f margin=%.1f low_stock=%s",
        summary.total_products,
        summary.inventory_value,
        summary.totals.revenue,
        summary.totals.costs,
        summary.totals.profit,
        summary.margin_pct,
        len(summary.low_stock),
    )

    if args.export_report:
        container.reporting.export_dashboard_excel(args.export_report)
        log.info("report_exported path=%s", args.export_report)
    if args.export_invoice:
        sale_id, path = args.export_invoice
        invoice = container.invoices.export_invoice_excel(sale_id, path)
        log.info("invoice_exported number=%s path=%s", invoice.number, path)


if __name__ == "__main__":
    main()

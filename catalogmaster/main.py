"""Command line entry point for CatalogMaster."""
import argparse
import os
import sys

from catalogmaster import config
from catalogmaster.data_structures import ReportConfig
from catalogmaster.database import DatabaseManager
from catalogmaster.engine import CatalogEngine
from catalogmaster.exceptions import CatalogMasterError
from catalogmaster.pricing import PricingEngine
from catalogmaster.report_generator import EXPORT_FORMATS, format_currency


def make_printer_view_getter():
    """Return a callable creating an offscreen QWebEngineView, or None without PyQt6."""
    # Must be set before QtWebEngine initializes
    os.environ.setdefault("QTWEBENGINE_CHROMIUM_FLAGS", "--disable-gpu --disable-software-rasterizer")
    try:
        from PyQt6.QtWebEngineWidgets import QWebEngineView
        from PyQt6.QtWidgets import QApplication
    except ImportError:
        return None  # PDF export will fall back to HTML

    state = {}

    def get_view():
        if "view" not in state:
            state["app"] = QApplication.instance() or QApplication(sys.argv[:1])
            state["view"] = QWebEngineView()
        return state["view"]

    return get_view


def build_parser():
    parser = argparse.ArgumentParser(prog="catalogmaster", description="Catalog pricing and financial ledger.")
    parser.add_argument("--db", default=config.DEFAULT_DB_NAME, help="SQLite database file")
    parser.add_argument("--user", default="admin", help="Username of the acting user")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("seed", help="Write demo data into empty collections")

    price = sub.add_parser("price", help="Quote Price UP and installments for an HPP")
    price.add_argument("hpp", type=float)
    price.add_argument("--rounding", choices=[config.ROUNDING_NEAREST, config.ROUNDING_CEIL])

    ledger = sub.add_parser("ledger", help="List transactions of a period with totals")
    ledger.add_argument("--start")
    ledger.add_argument("--end")

    report = sub.add_parser("report", help="Export the financial report of a period")
    report.add_argument("--start")
    report.add_argument("--end")
    report.add_argument("--format", choices=EXPORT_FORMATS, default="pdf")
    report.add_argument("--out", default=".", help="Output folder")
    report.add_argument("--lang", choices=sorted(config.REPORT_LABELS), default=config.DEFAULT_REPORT_LANGUAGE)

    return parser


def _period(engine, args):
    start, end = engine.ledger.default_period()
    return args.start or start, args.end or end


def run(args, out=None):
    out = out or sys.stdout
    with DatabaseManager(args.db) as db:
        printer = make_printer_view_getter() if getattr(args, "format", None) == "pdf" else None
        pricing = PricingEngine(getattr(args, "rounding", None))
        engine = CatalogEngine(db, pricing_engine=pricing, printer_view_getter=printer)

        if args.command == "seed":
            seeded = db.seed_defaults()
            print(f"Seeded: {', '.join(seeded) if seeded else 'nothing (already initialized)'}", file=out)
            return 0

        if args.command == "price":
            quote = engine.quote(args.hpp)
            print(f"Price UP: {format_currency(quote.price_up)}", file=out)
            for months, amount in quote.installments().items():
                print(f"{months:>2} months: {format_currency(amount)}", file=out)
            return 0

        actor = engine.login(args.user)
        if actor is None:
            print(f"Unknown user '{args.user}'", file=out)
            return 1

        start, end = _period(engine, args)

        if args.command == "ledger":
            rows, summary = engine.ledger.query_with_summary(actor, start, end)
            for t in rows:
                print(f"{t.date}  {t.type:<7}  {format_currency(t.signed_amount):>16}  {t.pic:<15} {t.description}", file=out)
            print(f"Total Income:  {format_currency(summary.total_income)}", file=out)
            print(f"Total Expense: {format_currency(summary.total_expense)}", file=out)
            print(f"Net Balance:   {format_currency(summary.net_balance)}", file=out)
            return 0

        if args.command == "report":
            success, path, mode = engine.reports.generate_financial_report(
                actor, start, end, args.out, args.format, ReportConfig(language=args.lang)
            )
            if mode == "empty":
                print("No transactions in this period, nothing exported.", file=out)
                return 1
            if not success:
                print("Report export failed.", file=out)
                return 1
            print(f"Report saved to {path} ({mode})", file=out)
            return 0

    return 1


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        return run(args)
    except CatalogMasterError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""Financial report generation for CatalogMaster.

Turns a queried ledger period into a document: title, period line,
generation timestamp, income/expense/net summary, then one table row per
transaction in the ledger's query order. Exports to PDF (HTML printed through
a Qt web view, with an HTML fallback), HTML, Excel and CSV.
"""
import html
import os
from datetime import datetime

import pandas as pd

from catalogmaster import config
from catalogmaster.access import Permission, require_permission
from catalogmaster.data_structures import (
    ReportConfig, ReportData, ReportPresentation, ReportRow, TransactionType
)
from catalogmaster.exceptions import ValidationError


EXPORT_FORMATS = ("pdf", "html", "xlsx", "csv")


def format_currency(value, symbol=config.CURRENCY_SYMBOL, separator=config.THOUSANDS_SEPARATOR):
    """Integer amount, thousands-grouped, symbol-prefixed: -450000 -> "-Rp 450.000"."""
    sign = "-" if value < 0 else ""
    grouped = f"{abs(value):,.0f}".replace(",", separator)
    return f"{sign}{symbol} {grouped}"


def format_date(iso_date, date_format=config.DATE_FORMAT_DISPLAY):
    return datetime.strptime(iso_date, config.DATE_FORMAT_STORAGE).strftime(date_format)


class ReportGenerator:
    """Generates financial reports from the transaction ledger."""

    def __init__(self, ledger_service=None, printer_view_getter=None):
        """Initialize ReportGenerator.

        Args:
            ledger_service: LedgerService used by generate_financial_report().
            printer_view_getter: Optional callable returning a QWebEngineView
                for PDF printing. If None, PDF export falls back to HTML.
        """
        self.ledger = ledger_service
        self._get_printer_view = printer_view_getter

    @staticmethod
    def _validate_inputs(start_date, end_date):
        """Validate the report period.

        Raises:
            ValidationError: On a malformed date or start after end.
        """
        try:
            start = datetime.strptime(start_date, config.DATE_FORMAT_STORAGE)
            end = datetime.strptime(end_date, config.DATE_FORMAT_STORAGE)
        except (TypeError, ValueError):
            raise ValidationError("Invalid date format. Expected YYYY-MM-DD.")

        if start > end:
            raise ValidationError("Start date cannot be after end date.")

    @staticmethod
    def _sanitize_filename(name):
        """Keep alphanumerics, spaces, dashes and underscores; cap at 100 chars."""
        if not name:
            name = "Unknown"

        safe = "".join(c for c in name if c.isalnum() or c in (' ', '-', '_'))
        safe = safe.strip()

        if not safe:
            safe = "Report"

        return safe[:100]

    def report_filename(self, start_date, end_date, extension="pdf", prefix=config.REPORT_FILENAME_PREFIX):
        """File name embedding the period boundaries."""
        base = self._sanitize_filename(f"{prefix}_{start_date}_to_{end_date}")
        return f"{base}.{extension}"

    def prepare_presentation(self, data: ReportData, report_config: ReportConfig = None,
                             generated_at: datetime = None) -> ReportPresentation:
        """Build the presentation model; rows keep the order of data.transactions."""
        if report_config is None:
            report_config = ReportConfig()
        if generated_at is None:
            generated_at = datetime.now()

        labels = report_config.labels

        def money(value):
            return format_currency(value, report_config.currency_symbol,
                                   report_config.thousands_separator)

        period_display = (f"{labels['period']}: "
                          f"{format_date(data.start_date, report_config.date_format)} - "
                          f"{format_date(data.end_date, report_config.date_format)}")
        generated_display = (f"{labels['generated']}: "
                             f"{generated_at.strftime(config.TIMESTAMP_FORMAT_DISPLAY)}")

        summary = data.summary
        summary_lines = [
            f"{labels['total_income']}: {money(summary.total_income)}",
            f"{labels['total_expense']}: {money(summary.total_expense)}",
            f"{labels['net_balance']}: {money(summary.net_balance)}",
        ]

        rows = []
        for t in data.transactions:
            is_expense = t.type == TransactionType.EXPENSE
            rows.append(ReportRow(
                date=t.date,
                type_label=labels["expense"] if is_expense else labels["income"],
                description=t.description,
                amount=t.signed_amount,
                amount_display=money(t.signed_amount),
                pic=t.pic,
                is_expense=is_expense,
            ))

        return ReportPresentation(
            title=report_config.title,
            period_display=period_display,
            generated_display=generated_display,
            summary_lines=summary_lines,
            columns=report_config.column_headers(),
            rows=rows,
            empty_message=labels["empty"],
        )

    def to_dataframe(self, presentation: ReportPresentation) -> pd.DataFrame:
        """Table rows as a DataFrame; the Amount column keeps the signed number."""
        records = [
            [r.date, r.type_label, r.description, r.amount, r.pic]
            for r in presentation.rows
        ]
        return pd.DataFrame(records, columns=presentation.columns)

    def render_html(self, presentation: ReportPresentation, report_config: ReportConfig = None):
        """Generate the HTML document used for both HTML and PDF export."""
        if report_config is None:
            report_config = ReportConfig()

        esc = html.escape
        doc = """<!DOCTYPE html>
<html><head>
<meta charset="utf-8">
<style>
    @page { size: portrait; margin: 15mm; }
    body { font-family: Arial, sans-serif; margin: 0; padding: 10px; font-size: 10px; }
    h1 { color: #2b5797; margin: 0 0 6px 0; font-size: 20px; }
    .period, .generated { color: #666; font-size: 11px; margin: 2px 0; }
    .summary { margin: 12px 0; padding: 8px; background: #f5f5f5; border-radius: 5px; }
    .summary p { margin: 3px 0; font-size: 11px; }
    table { width: 100%; border-collapse: collapse; font-size: 9px; }
    th { background: #2b5797; color: white; padding: 5px; text-align: left; border: 1px solid #ccc; }
    td { padding: 4px; border: 1px solid #ddd; }
    td.amount { text-align: right; white-space: nowrap; }
    tr.expense td.amount { color: #dc3545; }
    .footer { margin-top: 15px; text-align: center; font-size: 8px; color: #999; }
</style>
</head><body>"""

        doc += f'<h1>{esc(presentation.title)}</h1>'
        if report_config.company_name:
            doc += f'<div class="company">{esc(report_config.company_name)}</div>'
        doc += f'<div class="period">{esc(presentation.period_display)}</div>'
        doc += f'<div class="generated">{esc(presentation.generated_display)}</div>'

        doc += '<div class="summary">'
        for line in presentation.summary_lines:
            doc += f'<p>{esc(line)}</p>'
        doc += '</div>'

        if presentation.rows:
            doc += "<table><thead><tr>"
            doc += "".join(f"<th>{esc(col)}</th>" for col in presentation.columns)
            doc += "</tr></thead><tbody>"
            for row in presentation.rows:
                row_class = "expense" if row.is_expense else "income"
                doc += (f'<tr class="{row_class}"><td>{esc(row.date)}</td>'
                        f'<td>{esc(row.type_label)}</td>'
                        f'<td>{esc(row.description)}</td>'
                        f'<td class="amount">{esc(row.amount_display)}</td>'
                        f'<td>{esc(row.pic)}</td></tr>')
            doc += "</tbody></table>"
        else:
            doc += f"<p style='padding:10px;color:#666;'>{esc(presentation.empty_message)}</p>"

        if report_config.custom_footer:
            doc += f'<div class="footer">{esc(report_config.custom_footer)}</div>'
        doc += "</body></html>"
        return doc

    def _print_pdf(self, html_content, filepath):
        """Print HTML to PDF through the injected QWebEngineView."""
        from PyQt6.QtCore import QMarginsF, QEventLoop, QTimer
        from PyQt6.QtGui import QPageLayout, QPageSize

        web_view = self._get_printer_view() if self._get_printer_view else None
        if web_view is None:
            raise ImportError("QWebEngineView not available")

        loop = QEventLoop()
        try:
            web_view.loadFinished.disconnect()
        except TypeError:
            pass
        web_view.loadFinished.connect(loop.quit)
        web_view.setHtml(html_content)
        QTimer.singleShot(2000, loop.quit)  # 2s max wait for load
        loop.exec()

        page_layout = QPageLayout(
            QPageSize(QPageSize.PageSizeId.A4),
            QPageLayout.Orientation.Portrait,
            QMarginsF(config.PDF_MARGIN_MM, config.PDF_MARGIN_MM,
                      config.PDF_MARGIN_MM, config.PDF_MARGIN_MM)
        )

        outcome = {"success": False}

        def on_pdf_done(filepath_out, success):
            outcome["success"] = success
            loop.quit()

        try:
            web_view.page().pdfPrintingFinished.disconnect()
        except TypeError:
            pass
        web_view.page().pdfPrintingFinished.connect(on_pdf_done)
        web_view.page().printToPdf(filepath, page_layout)
        loop.exec()

        if not outcome["success"]:
            raise RuntimeError(f"Printing to {filepath} failed")

    def export_pdf(self, data: ReportData, folder, report_config: ReportConfig = None,
                   generated_at: datetime = None):
        """Save the report as PDF, or as HTML when PDF printing is unavailable.

        Returns:
            Tuple of (success, filepath, mode) where mode is "pdf", "html" or "failed".
        """
        if report_config is None:
            report_config = ReportConfig()

        presentation = self.prepare_presentation(data, report_config, generated_at)
        html_content = self.render_html(presentation, report_config)
        filepath = os.path.join(folder, self.report_filename(data.start_date, data.end_date, "pdf"))

        try:
            self._print_pdf(html_content, filepath)
        except Exception as e:
            if not report_config.allow_html_fallback:
                print(f"PDF generation failed: {e}. Fallback disabled.")
                return False, None, "failed"

            print(f"PDF generation failed: {e}, falling back to HTML")
            filepath = filepath[:-len(".pdf")] + ".html"
            try:
                with open(filepath, 'w', encoding='utf-8') as f:
                    f.write(html_content)
            except OSError as write_error:
                print(f"HTML fallback failed: {write_error}")
                return False, None, "failed"
            return True, filepath, "html"

        return True, filepath, "pdf"

    def export_html(self, data: ReportData, folder, report_config: ReportConfig = None,
                    generated_at: datetime = None):
        if report_config is None:
            report_config = ReportConfig()

        presentation = self.prepare_presentation(data, report_config, generated_at)
        filepath = os.path.join(folder, self.report_filename(data.start_date, data.end_date, "html"))
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                f.write(self.render_html(presentation, report_config))
        except OSError as e:
            print(f"HTML export failed: {e}")
            return False, None, "failed"
        return True, filepath, "html"

    def export_excel(self, data: ReportData, folder, report_config: ReportConfig = None,
                     generated_at: datetime = None):
        """Save the report as an .xlsx workbook (header block, summary, table)."""
        if report_config is None:
            report_config = ReportConfig()

        presentation = self.prepare_presentation(data, report_config, generated_at)
        df = self.to_dataframe(presentation)
        filepath = os.path.join(folder, self.report_filename(data.start_date, data.end_date, "xlsx"))

        currency_num_format = f'"{report_config.currency_symbol} "#,##0;-"{report_config.currency_symbol} "#,##0'
        table_start = 4 + len(presentation.summary_lines)

        try:
            with pd.ExcelWriter(filepath, engine='xlsxwriter') as writer:
                df.to_excel(writer, index=False, sheet_name='Report', startrow=table_start)
                workbook = writer.book
                worksheet = writer.sheets['Report']

                title_fmt = workbook.add_format({'bold': True, 'font_size': 14, 'font_color': '#2b5797'})
                info_fmt = workbook.add_format({'italic': True, 'font_size': 10, 'font_color': '#666666'})
                summary_fmt = workbook.add_format({'bold': True})
                header_fmt = workbook.add_format({'bold': True, 'border': 1, 'bg_color': '#D7E4BC'})
                money_fmt = workbook.add_format({'num_format': currency_num_format})

                worksheet.write(0, 0, presentation.title, title_fmt)
                worksheet.write(1, 0, presentation.period_display, info_fmt)
                worksheet.write(2, 0, presentation.generated_display, info_fmt)
                for i, line in enumerate(presentation.summary_lines):
                    worksheet.write(3 + i, 0, line, summary_fmt)

                for col_num, value in enumerate(df.columns.values):
                    worksheet.write(table_start, col_num, value, header_fmt)

                worksheet.set_column('A:B', 14)
                worksheet.set_column('C:C', 40)
                worksheet.set_column('D:D', 18, money_fmt)
                worksheet.set_column('E:E', 20)
        except Exception as e:
            print(f"Excel generation failed: {e}")
            return False, None, "failed"

        return True, filepath, "xlsx"

    def export_csv(self, data: ReportData, folder, report_config: ReportConfig = None,
                   generated_at: datetime = None):
        """Save the table rows as CSV (amounts as signed integers)."""
        presentation = self.prepare_presentation(data, report_config, generated_at)
        df = self.to_dataframe(presentation)
        filepath = os.path.join(folder, self.report_filename(data.start_date, data.end_date, "csv"))
        try:
            df.to_csv(filepath, index=False, float_format="%.0f")
        except OSError as e:
            print(f"CSV Export Failed: {e}")
            return False, None, "failed"
        return True, filepath, "csv"

    def export(self, data: ReportData, folder, fmt="pdf", report_config: ReportConfig = None,
               generated_at: datetime = None):
        exporters = {
            "pdf": self.export_pdf,
            "html": self.export_html,
            "xlsx": self.export_excel,
            "csv": self.export_csv,
        }
        if fmt not in exporters:
            raise ValidationError(f"Unsupported export format '{fmt}'", "format")
        return exporters[fmt](data, folder, report_config, generated_at)

    def build_report_data(self, actor, start_date, end_date) -> ReportData:
        """Query the ledger for a period and bundle the rows with their totals."""
        if self.ledger is None:
            raise ValueError("ReportGenerator has no ledger service")
        require_permission(actor, Permission.VIEW_LEDGER)
        self._validate_inputs(start_date, end_date)

        transactions, summary = self.ledger.query_with_summary(actor, start_date, end_date)
        return ReportData(transactions=transactions, summary=summary,
                          start_date=start_date, end_date=end_date)

    def generate_financial_report(self, actor, start_date, end_date, folder, fmt="pdf",
                                  report_config: ReportConfig = None):
        """Query a period and export it.

        Returns:
            Tuple of (success, filepath, mode). An empty period is not
            exported and returns (False, None, "empty").

        Raises:
            PermissionDenied: If the actor cannot view the ledger.
            ValidationError: On a bad period or an unknown format.
        """
        data = self.build_report_data(actor, start_date, end_date)
        if not data.transactions:
            return False, None, "empty"
        return self.export(data, folder, fmt, report_config)

"""Excel export of TokenTax records."""
from collections import Counter
from io import BytesIO
from typing import List
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from token_tax.models.token_tax_rec import CSV_COLUMNS, TokenTaxRec, TokenTaxRecType
from token_tax.utils.time_ms import time_ms_to_utc_string

HEADER_FILL = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF")


def _style_header(row) -> None:
    for cell in row:
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.alignment = Alignment(horizontal="center")


def generate_excel_workbook(records: List[TokenTaxRec]) -> BytesIO:
    """
    Generate an Excel workbook from records.

    Creates two sheets:
    1. Records - one row per record, in TokenTax CSV column order
    2. Summary - record count, date range and count per transaction type
    """
    wb = Workbook()

    # Remove default sheet
    if "Sheet" in wb.sheetnames:
        wb.remove(wb["Sheet"])

    ws_records = wb.create_sheet("Records", 0)
    ws_records.append(list(CSV_COLUMNS))
    _style_header(ws_records[1])

    for record in records:
        cells = record.to_csv_row()
        ws_records.append([cells[column] for column in CSV_COLUMNS])

    # Auto-adjust column widths
    for column in ws_records.columns:
        max_length = max(len(str(cell.value or "")) for cell in column)
        ws_records.column_dimensions[get_column_letter(column[0].column)].width = min(max_length + 2, 50)

    ws_summary = wb.create_sheet("Summary", 1)
    ws_summary.append(["TokenTax Records"])
    ws_summary.append(["Record Count", len(records)])
    if records:
        times = [record.time for record in records]
        ws_summary.append(["First Date", time_ms_to_utc_string(min(times))])
        ws_summary.append(["Last Date", time_ms_to_utc_string(max(times))])
    ws_summary.append([])

    ws_summary.append(["Type", "Count"])
    _style_header(ws_summary[ws_summary.max_row])
    counts = Counter(record.kind for record in records)
    for kind in TokenTaxRecType:
        if counts[kind]:
            ws_summary.append([kind.value, counts[kind]])

    output = BytesIO()
    wb.save(output)
    output.seek(0)

    return output

import csv
import io
from decimal import Decimal

import openpyxl
from openpyxl.cell.cell import MergedCell
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MIMETYPE = "text/csv"

EXPORT_HEADER_FILL = PatternFill(start_color="1E293B", end_color="1E293B", fill_type="solid")
EXPORT_STRIPE_FILL = PatternFill(start_color="F8FAFC", end_color="F8FAFC", fill_type="solid")
EXPORT_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)
EXPORT_HEADER_FONT = Font(bold=True, color="FFFFFF")

VALUATION_HEADERS = ["Article", "SKU", "Catégorie", "Unité", "Stock", "Coût unitaire", "Valeur"]


def _is_numeric(value):
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def build_csv_bytes(headers, rows, delimiter=";", title=None):
    buffer = io.StringIO()
    buffer.write("sep=;\n")
    writer = csv.writer(buffer, delimiter=delimiter)
    if title:
        writer.writerow([title] + [""] * (len(headers) - 1))
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    return ("\ufeff" + buffer.getvalue()).encode("utf-8")


def apply_sheet_style(ws, headers, title=None):
    header_row = 1
    if title:
        ws.insert_rows(1)
        title_cell = ws.cell(row=1, column=1)
        title_cell.value = title
        title_cell.font = Font(bold=True, size=14)
        ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(headers))
        header_row = 2

    ws.freeze_panes = f"A{header_row + 1}"
    ws.auto_filter.ref = f"A{header_row}:{get_column_letter(len(headers))}{ws.max_row}"

    for col_idx, header in enumerate(headers, start=1):
        cell = ws.cell(row=header_row, column=col_idx)
        cell.value = header
        cell.font = EXPORT_HEADER_FONT
        cell.fill = EXPORT_HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        cell.border = EXPORT_BORDER

    for row in ws.iter_rows(min_row=header_row + 1, max_row=ws.max_row, max_col=ws.max_column):
        striped = row[0].row % 2 == 0
        for cell in row:
            cell.border = EXPORT_BORDER
            if striped:
                cell.fill = EXPORT_STRIPE_FILL
            if _is_numeric(cell.value):
                cell.number_format = "#,##0.00"
                cell.alignment = Alignment(horizontal="right", vertical="center")

    for col_idx in range(1, len(headers) + 1):
        letter = get_column_letter(col_idx)
        lengths = [
            len(str(cell.value))
            for cell in ws[letter]
            if cell.value is not None and not isinstance(cell, MergedCell)
        ]
        ws.column_dimensions[letter].width = min(max(max(lengths or [0]) + 2, 10), 42)


def valuation_rows(report):
    rows = [
        [
            row["name"],
            row["sku"],
            row["category"],
            row["unit"],
            float(row["current_stock"]),
            float(row["unit_cost"]),
            float(row["value"]),
        ]
        for row in report["items"]
    ]
    rows.append(["Total", "", "", "", "", "", float(report["total_value"])])
    return rows


def build_valuation_export(report, export_format, title=None):
    """Renvoie (bytes, mimetype, extension) pour le rapport de valorisation."""
    rows = valuation_rows(report)
    if export_format == "csv":
        return build_csv_bytes(VALUATION_HEADERS, rows, title=title), CSV_MIMETYPE, "csv"

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Valorisation"
    ws.append(VALUATION_HEADERS)
    for row in rows:
        ws.append(row)
    apply_sheet_style(ws, VALUATION_HEADERS, title=title)

    categories = wb.create_sheet("Catégories")
    categories.append(["Catégorie", "Valeur"])
    for entry in report["categories"]:
        categories.append([entry["category"], float(entry["value"])])
    apply_sheet_style(categories, ["Catégorie", "Valeur"])

    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue(), XLSX_MIMETYPE, "xlsx"

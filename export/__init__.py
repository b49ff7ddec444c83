"""Export-Modul: CSV, Excel (openpyxl) und PDF (fpdf2) für Raumbuchungen."""

from export.csv_export import export_bookings_csv, bookings_csv
from export.excel_export import ExcelExporter
from export.pdf_export import PdfExporter

__all__ = ["export_bookings_csv", "bookings_csv", "ExcelExporter", "PdfExporter"]

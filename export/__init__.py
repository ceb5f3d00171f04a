"""Export-Modul: Excel (openpyxl) und PDF (fpdf2) für den Vertretungsplan."""

from export.excel_export import SubstitutionExcelExporter
from export.pdf_export import SubstitutionPdfExporter

__all__ = ["SubstitutionExcelExporter", "SubstitutionPdfExporter"]

"""Excel-Export des Vertretungsplans (openpyxl)."""

from pathlib import Path

from export.helpers import (
    COLORS, OPEN_COLUMNS, SUBSTITUTION_COLUMNS, SubstitutionSheet,
    open_rows, row_color, substitution_rows, today_str,
)


class SubstitutionExcelExporter:
    """Exportiert ein SubstitutionSheet in eine Excel-Datei mit 2 Blättern."""

    # Spaltenbreiten (Excel-Einheiten), Reihenfolge wie SUBSTITUTION_COLUMNS
    COL_WIDTHS = [6, 9, 16, 22, 22, 16, 30]

    # Zeilenhöhen (Punkte)
    ROW_TITLE_H   = 24
    ROW_HEADER_H  = 20

    def __init__(self, sheet: SubstitutionSheet):
        self.sheet = sheet

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export(self, output_path: Path) -> Path:
        """Erstellt die Excel-Datei mit den Blättern "Vertretungen" und "Offene Stunden"."""
        from openpyxl import Workbook
        wb = Workbook()
        wb.remove(wb.active)   # Leeres Standard-Sheet entfernen

        self._sheet_vertretungen(wb)
        self._sheet_offen(wb)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)
        return output_path

    # ─── Style-Helpers ────────────────────────────────────────────────────────

    def _fill(self, hex_color: str):
        from openpyxl.styles import PatternFill
        return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")

    def _thin_border(self):
        from openpyxl.styles import Border, Side
        s = Side(border_style="thin", color="BBBBBB")
        return Border(left=s, right=s, top=s, bottom=s)

    def _setup_sheet(self, ws, columns: list[str]) -> None:
        """Setzt Spaltenbreiten für ein Tabellenblatt."""
        from openpyxl.utils import get_column_letter
        for col, width in enumerate(self.COL_WIDTHS[: len(columns)], 1):
            ws.column_dimensions[get_column_letter(col)].width = width

    def _write_title(self, ws, text: str, width: int) -> None:
        from openpyxl.styles import Font
        ws.cell(row=1, column=1, value=text).font = Font(bold=True, size=13)
        ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=width)
        ws.row_dimensions[1].height = self.ROW_TITLE_H
        info = f"{self.sheet.school_name}  |  erstellt {today_str()}"
        if self.sheet.source == "fallback":
            info += "  |  aus Tagesplan abgeleitet"
        ws.cell(row=2, column=1, value=info).font = Font(italic=True, size=9, color="666666")

    def _write_header_row(self, ws, row: int, columns: list[str]) -> None:
        from openpyxl.styles import Alignment, Font
        fill = self._fill(COLORS["header"])
        border = self._thin_border()
        for col, text in enumerate(columns, 1):
            cell = ws.cell(row=row, column=col, value=text)
            cell.fill = fill
            cell.font = Font(bold=True, color="FFFFFF", size=10)
            cell.alignment = Alignment(horizontal="center", vertical="center")
            cell.border = border
        ws.row_dimensions[row].height = self.ROW_HEADER_H

    def _write_rows(self, ws, start_row: int, rows: list[list[str]], colors: list[str]) -> int:
        """Schreibt Datenzeilen; gibt die letzte verwendete Zeile zurück."""
        from openpyxl.styles import Alignment
        border = self._thin_border()
        row = start_row
        for values, color in zip(rows, colors):
            fill = self._fill(color)
            for col, value in enumerate(values, 1):
                # Stunde als Zahl, damit Excel sortieren kann
                cell = ws.cell(row=row, column=col, value=int(value) if col == 1 else value)
                cell.fill = fill
                cell.border = border
                cell.alignment = Alignment(vertical="center", wrap_text=True)
            row += 1
        return row - 1

    # ─── Blätter ──────────────────────────────────────────────────────────────

    def _sheet_vertretungen(self, wb) -> None:
        ws = wb.create_sheet("Vertretungen")
        self._setup_sheet(ws, SUBSTITUTION_COLUMNS)
        self._write_title(ws, self.sheet.title, len(SUBSTITUTION_COLUMNS))
        self._write_header_row(ws, 4, SUBSTITUTION_COLUMNS)
        rows = substitution_rows(self.sheet.records)
        colors = [row_color(r) for r in self.sheet.records]
        last = self._write_rows(ws, 5, rows, colors)
        if not rows:
            ws.cell(row=5, column=1, value="Keine Vertretungen.")
        ws.freeze_panes = "A5"
        if rows:
            ws.auto_filter.ref = f"A4:G{last}"

    def _sheet_offen(self, wb) -> None:
        ws = wb.create_sheet("Offene Stunden")
        self._setup_sheet(ws, OPEN_COLUMNS)
        self._write_title(ws, f"Offene Stunden {self.sheet.day_label}", len(OPEN_COLUMNS))
        self._write_header_row(ws, 4, OPEN_COLUMNS)
        rows = open_rows(self.sheet.open_slots)
        self._write_rows(ws, 5, rows, [COLORS["open"]] * len(rows))
        if not rows:
            ws.cell(row=5, column=1, value="Alle Stunden vertreten.")
        ws.freeze_panes = "A5"

"""PDF-Export des Vertretungsplans als Aushang (fpdf2)."""

from pathlib import Path

from export.helpers import (
    COLORS, OPEN_COLUMNS, SUBSTITUTION_COLUMNS, SubstitutionSheet,
    hex_to_rgb, open_rows, row_color, substitution_rows, today_str,
)


def _pdf_safe(text: str) -> str:
    """Ersetzt nicht-latin-1-fähige Zeichen für fpdf2-Built-in-Fonts."""
    return (
        text
        .replace("—", "-")      # em dash
        .replace("–", "-")      # en dash
        .replace("→", "->")     # Pfeil
        .replace("─", "-")      # BOX DRAWINGS LIGHT HORIZONTAL
        .encode("latin-1", errors="replace").decode("latin-1")
    )


# ─── A4-Hochformat-Dimensionen ────────────────────────────────────────────────
# Portrait A4: 210 × 297 mm
# Nutzbare Breite (Margin 10 links+rechts): 190 mm
# Spalten: 10 + 14 + 24 + 34 + 34 + 24 + 50 = 190 mm

_COL_WIDTHS = [10, 14, 24, 34, 34, 24, 50]
_ROW_HEADER_H  = 7    # mm
_ROW_H         = 7    # mm
_FONT_HEADER   = 8    # pt
_FONT_CONTENT  = 8    # pt
_PAGE_BOTTOM   = 297 - 20


class _SubstitutionPdf:
    """Interner Wrapper um fpdf.FPDF für Vertretungsseiten."""

    def __init__(self, school_name: str, title: str):
        from fpdf import FPDF

        class _Pdf(FPDF):
            def __init__(inner):
                super().__init__(orientation="P", unit="mm", format="A4")
                inner.alias_nb_pages()
                inner.set_auto_page_break(auto=False)
                inner.set_margins(left=10, top=22, right=10)

            def header(inner):
                inner.set_font("Helvetica", "B", 11)
                inner.set_xy(10, 8)
                inner.cell(95, 7, _pdf_safe(school_name), border=0, align="L")
                inner.cell(0, 7, _pdf_safe(title), border=0, align="R")
                inner.set_draw_color(150, 150, 150)
                inner.line(10, 18, inner.w - 10, 18)

            def footer(inner):
                inner.set_y(-14)
                inner.set_font("Helvetica", "I", 7)
                inner.cell(
                    0, 8,
                    f"{today_str()}  |  Seite {inner.page_no()}/{{nb}}",
                    border=0, align="C",
                )

        self._pdf = _Pdf()

    @property
    def pdf(self):
        return self._pdf

    def add_page(self) -> float:
        self._pdf.add_page()
        return 22.0

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self._pdf.output(str(path))

    # ─── Zellen-Zeichnung ─────────────────────────────────────────────────────

    def draw_cell(
        self,
        x: float, y: float,
        w: float, h: float,
        text: str = "",
        bg_hex: str | None = None,
        bold: bool = False,
        font_size: int = _FONT_CONTENT,
        text_color: tuple[int, int, int] = (0, 0, 0),
        align: str = "L",
    ) -> None:
        """Zeichnet eine Zelle mit Hintergrund, Rand und einzeiligem Text."""
        pdf = self._pdf
        if bg_hex:
            r, g, b = hex_to_rgb(bg_hex)
            pdf.set_fill_color(r, g, b)
            pdf.rect(x, y, w, h, style="F")
        pdf.set_draw_color(180, 180, 180)
        pdf.rect(x, y, w, h, style="D")
        if text:
            pdf.set_font("Helvetica", "B" if bold else "", font_size)
            pdf.set_text_color(*text_color)
            # Text auf Zellbreite kürzen
            safe = _pdf_safe(text)
            while safe and pdf.get_string_width(safe) > w - 2:
                safe = safe[:-1]
            pdf.set_xy(x + 1, y)
            pdf.cell(w - 2, h, safe, border=0, align=align)
            pdf.set_text_color(0, 0, 0)

    def draw_row(
        self, y: float, values: list[str], bg_hex: str | None = None,
        header: bool = False,
    ) -> float:
        """Zeichnet eine Tabellenzeile und gibt die Y-Position danach zurück."""
        x = 10.0
        h = _ROW_HEADER_H if header else _ROW_H
        for value, w in zip(values, _COL_WIDTHS):
            self.draw_cell(
                x, y, w, h, value,
                bg_hex=COLORS["header"] if header else bg_hex,
                bold=header,
                font_size=_FONT_HEADER if header else _FONT_CONTENT,
                text_color=(255, 255, 255) if header else (0, 0, 0),
            )
            x += w
        return y + h

    def draw_heading(self, y: float, text: str) -> float:
        self._pdf.set_font("Helvetica", "B", 10)
        self._pdf.set_xy(10, y + 2)
        self._pdf.cell(0, 6, _pdf_safe(text), border=0, align="L")
        return y + 9


class SubstitutionPdfExporter:
    """Exportiert ein SubstitutionSheet als A4-Aushang."""

    def __init__(self, sheet: SubstitutionSheet):
        self.sheet = sheet

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export(self, output_path: Path) -> Path:
        """Erzeugt die PDF mit Vertretungen und offenen Stunden."""
        pdf = _SubstitutionPdf(self.sheet.school_name, self.sheet.title)
        y = pdf.add_page()

        heading = "Vertretungen"
        if self.sheet.source == "fallback":
            heading += " (aus Tagesplan abgeleitet)"
        y = pdf.draw_heading(y, heading)
        y = self._draw_table(
            pdf, y, SUBSTITUTION_COLUMNS,
            substitution_rows(self.sheet.records),
            [row_color(r) for r in self.sheet.records],
            empty_text="Keine Vertretungen.",
        )

        if self.sheet.open_slots:
            y = pdf.draw_heading(y + 4, "Offene Stunden")
            rows = open_rows(self.sheet.open_slots)
            self._draw_table(pdf, y, OPEN_COLUMNS, rows, [COLORS["open"]] * len(rows))

        output_path = Path(output_path)
        pdf.save(output_path)
        return output_path

    # ─── Tabellenzeichnung ────────────────────────────────────────────────────

    def _draw_table(
        self,
        pdf: _SubstitutionPdf,
        y: float,
        columns: list[str],
        rows: list[list[str]],
        colors: list[str],
        empty_text: str = "",
    ) -> float:
        y = pdf.draw_row(y, columns, header=True)
        if not rows and empty_text:
            return pdf.draw_heading(y, empty_text)
        for values, color in zip(rows, colors):
            if y + _ROW_H > _PAGE_BOTTOM:
                y = pdf.add_page()
                y = pdf.draw_row(y, columns, header=True)
            y = pdf.draw_row(y, values, bg_hex=color)
        return y

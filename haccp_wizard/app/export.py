"""DOCX and PDF export of the generated documentation.

Both exporters take the collected form data and the generated result and
return the file as bytes. Failures are raised as ``ExportError``; they never
touch wizard state.
"""
import io
import re
from typing import List, Optional, Sequence

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt
from fpdf import FPDF

from .config import Config
from ..errors import ExportError
from ..schemas.form_models import FormData
from ..schemas.result_models import GeneratedResult
from ..utils.logger import get_logger

logger = get_logger()

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PDF_MEDIA_TYPE = "application/pdf"

GHP_HEADERS = ["Device", "Action", "Agent", "Frequency"]


def export_filename(prefix: str, business_name: str, extension: str) -> str:
    name = re.sub(r"\s+", "_", business_name.strip()) or "document"
    return f"{prefix}_{name}.{extension}"


def _title(form: FormData) -> str:
    doc_type = form.doc_type.value if form.doc_type else "HACCP"
    return f"{doc_type} System"


def _allergen_rows(form: FormData) -> List[List[str]]:
    return [[e.product_name, ", ".join(e.allergens) or "-"] for e in form.allergen_matrix]


class DocxExporter:
    """Word export built with python-docx."""

    extension = "docx"
    media_type = DOCX_MEDIA_TYPE

    def filename(self, form: FormData) -> str:
        return export_filename("Documentation", form.details.name, self.extension)

    def _table(self, doc, headers: Sequence[str], rows: Sequence[Sequence[str]]):
        table = doc.add_table(rows=1, cols=len(headers))
        table.style = "Table Grid"
        for cell, text in zip(table.rows[0].cells, headers):
            cell.text = text
            for p in cell.paragraphs:
                for run in p.runs:
                    run.bold = True
        for row in rows:
            cells = table.add_row().cells
            for cell, text in zip(cells, row):
                cell.text = text or ""
        return table

    def _labelled(self, doc, label: str, text: str):
        p = doc.add_paragraph()
        run = p.add_run(f"{label}: ")
        run.bold = True
        p.add_run(text or "-")
        return p

    def render(self, form: FormData, result: GeneratedResult) -> bytes:
        try:
            doc = Document()
            doc.styles["Normal"].font.name = "Calibri"
            doc.styles["Normal"].font.size = Pt(11)

            for text, level in ((_title(form), 1), (form.details.name, 2)):
                heading = doc.add_heading(text, level=level)
                heading.alignment = WD_ALIGN_PARAGRAPH.CENTER
            address = doc.add_paragraph(form.details.address)
            address.alignment = WD_ALIGN_PARAGRAPH.CENTER

            if result.summary:
                doc.add_paragraph(result.summary)

            wc = form.working_conditions
            doc.add_heading("1. Working conditions", level=3)
            self._labelled(doc, "Temperature", wc.temperature)
            self._labelled(doc, "Humidity", wc.humidity)
            self._labelled(doc, "Ventilation", wc.ventilation)

            doc.add_heading("2. GHP instructions", level=3)
            self._table(doc, GHP_HEADERS, [
                [g.device, g.action, g.agent, g.frequency] for g in result.ghp_instructions
            ])

            doc.add_heading("3. Critical Control Points (CCP)", level=3)
            for i, ccp in enumerate(result.ccps, start=1):
                p = doc.add_paragraph()
                p.add_run(f"CCP {i}: {ccp.title}").bold = True
                self._labelled(doc, "Hazard", ccp.hazard)
                self._labelled(doc, "Monitoring", ccp.monitoring)
                self._labelled(doc, "Limits", ccp.critical_limits)
                self._labelled(doc, "Actions", ccp.corrective_actions)

            doc.add_heading("4. Hazard analysis", level=3)
            for item in result.hazard_analysis:
                p = doc.add_paragraph()
                p.add_run(" / ".join(x for x in (item.category_name, item.dish_name) if x)).bold = True
                for label, values in (("Biological", item.biological),
                                      ("Chemical", item.chemical),
                                      ("Physical", item.physical)):
                    self._labelled(doc, label, "; ".join(values))

            doc.add_heading("5. Allergen matrix", level=3)
            self._table(doc, ["Product", "Allergens"], _allergen_rows(form))

            if result.sops:
                doc.add_heading("6. Standard operating procedures", level=3)
                for sop in result.sops:
                    doc.add_paragraph(sop.title, style="List Bullet")
                    doc.add_paragraph(sop.content)

            buffer = io.BytesIO()
            doc.save(buffer)
            return buffer.getvalue()
        except Exception as e:
            logger.error(f"[EXPORT] DOCX export failed: {e}")
            raise ExportError(f"DOCX export failed: {e}")


class ReportPDF(FPDF):
    def __init__(self, title: str, font_path: Optional[str] = None):
        super().__init__()
        self.report_title = title
        self.unicode_font = bool(font_path)
        self.set_auto_page_break(auto=True, margin=15)
        if font_path:
            self.add_font("Report", "", font_path)
            self.add_font("Report", "B", font_path)
            self.add_font("Report", "I", font_path)
            self.report_font = "Report"
        else:
            self.report_font = "Helvetica"

    def clean(self, value: str) -> str:
        # Core fonts only cover latin-1.
        if self.unicode_font:
            return value
        return value.encode("latin-1", "replace").decode("latin-1")

    def header(self):
        self.set_font(self.report_font, "B", 10)
        self.set_text_color(37, 99, 235)
        self.cell(0, 8, self.clean(self.report_title), align="C", new_x="LMARGIN", new_y="NEXT")
        self.ln(2)

    def footer(self):
        self.set_y(-15)
        self.set_font(self.report_font, "I", 8)
        self.set_text_color(128, 128, 128)
        self.cell(0, 10, f"Page {self.page_no()}", align="C")

    def section(self, title: str):
        self.ln(4)
        self.set_font(self.report_font, "B", 13)
        self.set_text_color(15, 23, 42)
        self.multi_cell(0, 8, self.clean(title), new_x="LMARGIN", new_y="NEXT")

    def paragraph(self, value: str, bold: bool = False):
        self.set_font(self.report_font, "B" if bold else "", 10)
        self.set_text_color(50, 50, 50)
        self.multi_cell(0, 5, self.clean(value or "-"), new_x="LMARGIN", new_y="NEXT")

    def labelled(self, label: str, value: str):
        self.paragraph(f"{label}: {value or '-'}")


class PdfExporter:
    """PDF export built with fpdf2."""

    extension = "pdf"
    media_type = PDF_MEDIA_TYPE

    def __init__(self, font_path: Optional[str] = None):
        self.font_path = font_path if font_path is not None else Config.PDF_FONT_PATH

    def filename(self, form: FormData) -> str:
        return export_filename("HACCP", form.details.name, self.extension)

    def render(self, form: FormData, result: GeneratedResult) -> bytes:
        try:
            pdf = ReportPDF(_title(form), self.font_path)
            pdf.add_page()

            pdf.set_font(pdf.report_font, "B", 20)
            pdf.multi_cell(0, 12, pdf.clean("Food Safety System"), align="C", new_x="LMARGIN", new_y="NEXT")
            pdf.set_font(pdf.report_font, "", 12)
            for line in (form.details.name, form.details.address, form.details.representative):
                if line:
                    pdf.multi_cell(0, 7, pdf.clean(line), align="C", new_x="LMARGIN", new_y="NEXT")
            if result.summary:
                pdf.ln(4)
                pdf.paragraph(result.summary)

            wc = form.working_conditions
            pdf.section("1. Working conditions")
            pdf.labelled("Temperature", wc.temperature)
            pdf.labelled("Humidity", wc.humidity)
            pdf.labelled("Ventilation", wc.ventilation)

            pdf.section("2. GHP instructions")
            for g in result.ghp_instructions:
                pdf.paragraph(g.device, bold=True)
                pdf.paragraph(f"{g.action} | {g.agent} | {g.frequency}")

            pdf.section("3. Critical Control Points (CCP)")
            for i, ccp in enumerate(result.ccps, start=1):
                pdf.paragraph(f"CCP {i}: {ccp.title}", bold=True)
                pdf.labelled("Hazard", ccp.hazard)
                pdf.labelled("Monitoring", ccp.monitoring)
                pdf.labelled("Limits", ccp.critical_limits)
                pdf.labelled("Actions", ccp.corrective_actions)

            pdf.section("4. Hazard analysis")
            for item in result.hazard_analysis:
                pdf.paragraph(" / ".join(x for x in (item.category_name, item.dish_name) if x), bold=True)
                pdf.labelled("Biological", "; ".join(item.biological))
                pdf.labelled("Chemical", "; ".join(item.chemical))
                pdf.labelled("Physical", "; ".join(item.physical))

            pdf.section("5. Allergen matrix")
            for product, allergens in _allergen_rows(form):
                pdf.labelled(product, allergens)

            if result.sops:
                pdf.section("6. Standard operating procedures")
                for sop in result.sops:
                    pdf.paragraph(sop.title, bold=True)
                    pdf.paragraph(sop.content)

            return bytes(pdf.output())
        except Exception as e:
            logger.error(f"[EXPORT] PDF export failed: {e}")
            raise ExportError(f"PDF export failed: {e}")


EXPORTERS = {
    "docx": DocxExporter,
    "pdf": PdfExporter,
}

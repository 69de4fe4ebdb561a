"""
Generación de reportes PDF

- Estado de cuenta del monedero (empresa o reclutador)
- Reporte de estudio socioeconómico
"""
from datetime import datetime
from io import BytesIO
from typing import Optional, Sequence
from xml.sax.saxutils import escape

from loguru import logger
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from app.models.base import utc_now
from app.models.wallet import ACTION_LABELS, ORIGIN_LABELS

DESCRIPTION_MAX_LENGTH = 35
HEADER_COLOR = colors.HexColor("#1e3a5f")


class NumberedCanvas(canvas.Canvas):
    """Canvas que agrega "Página i de n" al pie de cada hoja"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self.setFont("Helvetica", 8)
            self.setFillColor(colors.grey)
            self.drawCentredString(A4[0] / 2, 0.5 * inch, f"Página {self._pageNumber} de {total}")
            super().showPage()
        super().save()


def statement_filename(wallet_type: str, now: Optional[datetime] = None) -> str:
    """estado_cuenta_{tipo}_{yyyyMMdd_HHmm}.pdf"""
    now = now or utc_now()
    return f"estado_cuenta_{wallet_type}_{now.strftime('%Y%m%d_%H%M')}.pdf"


def _title_style(styles) -> ParagraphStyle:
    return ParagraphStyle(
        "CustomTitle",
        parent=styles["Heading1"],
        fontSize=16,
        textColor=HEADER_COLOR,
        alignment=TA_CENTER,
        spaceAfter=20,
    )


def _key_value_table(rows: list) -> Table:
    table = Table(rows, colWidths=[2.2 * inch, 4.3 * inch])
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (0, -1), colors.HexColor("#eef2f7")),
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTNAME", (1, 0), (1, -1), "Helvetica"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (0, 0), (-1, -1), "LEFT"),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
    ]))
    return table


def _truncate(text: Optional[str], length: int = DESCRIPTION_MAX_LENGTH) -> str:
    if not text:
        return "-"
    return text if len(text) <= length else text[:length] + "..."


def _signed(amount: int) -> str:
    return f"+{amount}" if amount > 0 else str(amount)


# ==================== Estado de cuenta ====================

def wallet_statement_pdf(
    *,
    holder_name: str,
    wallet_type: str,
    available: int,
    total_purchased: int,
    movements: Sequence,
    inherited: Optional[int] = None,
    generated_at: Optional[datetime] = None
) -> bytes:
    """
    Estado de cuenta del monedero

    Args:
        holder_name: Empresa o reclutador titular
        wallet_type: "empresa" o "reclutador"
        available: Créditos disponibles (propios para reclutador)
        total_purchased: Total de créditos comprados
        movements: Movimientos (CreditMovement) del más reciente al más antiguo
        inherited: Créditos heredados (solo reclutador)
    """
    generated_at = generated_at or utc_now()
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=0.6 * inch,
        rightMargin=0.6 * inch,
        topMargin=0.7 * inch,
        bottomMargin=0.8 * inch,
        title="Estado de cuenta",
    )
    styles = getSampleStyleSheet()
    story = [
        Paragraph("ESTADO DE CUENTA", _title_style(styles)),
        Paragraph(f"Generado: {generated_at.strftime('%d/%m/%Y %H:%M')} UTC", styles["Normal"]),
        Spacer(1, 0.25 * inch),
    ]

    summary = [
        ["Titular", holder_name],
        ["Tipo de monedero", "Empresa" if wallet_type == "empresa" else "Reclutador"],
        ["Créditos disponibles", str(available)],
    ]
    if inherited is not None:
        summary.append(["Créditos heredados", str(inherited)])
    summary.append(["Total comprado", str(total_purchased)])
    story.append(_key_value_table(summary))
    story.append(Spacer(1, 0.3 * inch))

    story.append(Paragraph("<b>Movimientos</b>", styles["Heading2"]))
    story.append(Spacer(1, 0.1 * inch))

    rows = [["Fecha", "Concepto", "Origen", "Descripción", "Anterior", "Movimiento", "Saldo"]]
    for m in movements:
        rows.append([
            m.created_at.strftime("%d/%m/%Y %H:%M"),
            ACTION_LABELS.get(m.action, m.action),
            ORIGIN_LABELS.get(m.payment_origin, m.payment_origin),
            _truncate(m.description),
            str(m.balance_before),
            _signed(m.amount),
            str(m.balance_after),
        ])
    if len(rows) == 1:
        rows.append(["-", "Sin movimientos", "", "", "", "", ""])

    table = Table(
        rows,
        repeatRows=1,
        colWidths=[1.0 * inch, 1.3 * inch, 0.7 * inch, 1.9 * inch, 0.6 * inch, 0.75 * inch, 0.6 * inch],
    )
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTNAME", (0, 1), (-1, -1), "Helvetica"),
        ("FONTSIZE", (0, 0), (-1, -1), 7),
        ("ALIGN", (4, 0), (-1, -1), "RIGHT"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f6f8fa")]),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
    ]
    for i, m in enumerate(movements, start=1):
        color = colors.HexColor("#15803d") if m.amount > 0 else colors.HexColor("#b91c1c")
        style.append(("TEXTCOLOR", (5, i), (5, i), color))
    table.setStyle(TableStyle(style))
    story.append(table)

    doc.build(story, canvasmaker=NumberedCanvas)
    logger.info("Estado de cuenta generado: tipo={} movimientos={}", wallet_type, len(movements))
    return buffer.getvalue()


# ==================== Estudio socioeconómico ====================

SECTION_TITLES = {
    "sociodemographic": "Datos sociodemográficos",
    "housing": "Vivienda",
    "economic": "Situación económica",
}

RESULT_LABELS = {
    "viable": "Viable",
    "viable_con_observaciones": "Viable con observaciones",
    "no_viable": "No viable",
}


def _humanize(key: str) -> str:
    return str(key).replace("_", " ").capitalize()


def _format_value(value) -> str:
    if value is None or value == "":
        return "-"
    if isinstance(value, bool):
        return "Sí" if value else "No"
    if isinstance(value, (list, tuple)):
        return ", ".join(_format_value(v) for v in value) or "-"
    if isinstance(value, dict):
        return "; ".join(f"{_humanize(k)}: {_format_value(v)}" for k, v in value.items())
    return str(value)


def study_report_pdf(study, verifier_name: Optional[str] = None) -> bytes:
    """Reporte de un estudio socioeconómico"""
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, title=f"Estudio {study.folio}")
    styles = getSampleStyleSheet()
    cell = ParagraphStyle("Cell", parent=styles["Normal"], fontSize=9, leading=11)

    story = [
        Paragraph("ESTUDIO SOCIOECONÓMICO", _title_style(styles)),
        Paragraph(f"Folio: <b>{study.folio}</b>", styles["Normal"]),
        Spacer(1, 0.25 * inch),
    ]

    general = [
        ["Candidato", study.candidate_name],
        ["Puesto", study.position],
        ["Dirección de visita", study.visit_address or "-"],
        ["Verificador", verifier_name or "-"],
        ["Fecha de visita", f"{study.visit_date or '-'} {study.visit_time or ''}".strip()],
        ["Candidato presente", _format_value(study.candidate_present)],
    ]
    if study.candidate_present is False:
        general.append(["Motivo de ausencia", study.absence_reason or "-"])
    if study.delivered_at:
        general.append(["Entregado", study.delivered_at.strftime("%d/%m/%Y %H:%M")])
    story.append(_key_value_table(general))
    story.append(Spacer(1, 0.25 * inch))

    for attr, title in SECTION_TITLES.items():
        data = getattr(study, attr) or {}
        story.append(Paragraph(f"<b>{title}</b>", styles["Heading2"]))
        if data:
            rows = [[_humanize(k), Paragraph(escape(_format_value(v)), cell)] for k, v in data.items()]
            story.append(_key_value_table(rows))
        else:
            story.append(Paragraph("Sin información capturada", styles["Normal"]))
        story.append(Spacer(1, 0.2 * inch))

    story.append(Paragraph("<b>Referencias</b>", styles["Heading2"]))
    references = study.references or []
    if references:
        rows = [
            [f"Referencia {i}", Paragraph(escape(_format_value(ref)), cell)]
            for i, ref in enumerate(references, start=1)
        ]
        story.append(_key_value_table(rows))
    else:
        story.append(Paragraph("Sin referencias", styles["Normal"]))
    story.append(Spacer(1, 0.2 * inch))

    if study.visit_notes:
        story.append(Paragraph("<b>Notas de la visita</b>", styles["Heading2"]))
        story.append(Paragraph(escape(study.visit_notes), styles["Normal"]))
        story.append(Spacer(1, 0.2 * inch))

    story.append(Paragraph("<b>Dictamen</b>", styles["Heading2"]))
    story.append(_key_value_table([
        ["Resultado general", RESULT_LABELS.get(study.general_result, study.general_result or "-")],
        ["Calificación de riesgo", (study.risk_rating or "-").capitalize()],
        ["Observaciones finales", Paragraph(escape(study.final_notes or "-"), cell)],
    ]))

    doc.build(story, canvasmaker=NumberedCanvas)
    logger.info("Reporte de estudio generado: folio={}", study.folio)
    return buffer.getvalue()

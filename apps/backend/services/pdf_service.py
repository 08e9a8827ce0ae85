import io
import logging
import os
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfbase.ttfonts import TTFont

from services.scheduling.timeslots import format_hhmm, shift_hours

logger = logging.getLogger(__name__)

# Optional TTF override; otherwise the built-in CID font covers CJK names and headers
FONT_PATH_ENV = "ROSTER_PDF_FONT"
CUSTOM_FONT = "RosterFont"
CID_FONT = "STSong-Light"
FALLBACK_FONT = "Helvetica"

ROSTER_HEADERS = ["日期", "星期", "上班時間", "下班時間", "時數"]
WEEKDAY_LABELS = ["一", "二", "三", "四", "五", "六", "日"]

def _ensure_font():
    """Registers a Unicode-capable font and returns its name."""
    font_path = os.getenv(FONT_PATH_ENV)
    try:
        if font_path and os.path.exists(font_path):
            if CUSTOM_FONT not in pdfmetrics.getRegisteredFontNames():
                pdfmetrics.registerFont(TTFont(CUSTOM_FONT, font_path))
            return CUSTOM_FONT
        if font_path:
            logger.warning("Roster font not found at %s, using %s", font_path, CID_FONT)
        if CID_FONT not in pdfmetrics.getRegisteredFontNames():
            pdfmetrics.registerFont(UnicodeCIDFont(CID_FONT))
        return CID_FONT
    except Exception:
        logger.exception("Font registration failed, falling back to %s", FALLBACK_FONT)
        return FALLBACK_FONT

def _text(value):
    # Paragraph parses a mini-markup; names like "A & B" must be escaped
    return escape(str(value)) if value else ""

def generate_roster_pdf(teacher_name: str, year: int, month: int, assignments: list):
    """
    Generates a one-page monthly roster for a single teacher.

    Rows are the teacher's shifts in date order, followed by a totals row
    (work-days, hours).
    """
    font = _ensure_font()

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, rightMargin=30, leftMargin=30, topMargin=30, bottomMargin=30)

    elements = []

    styles = getSampleStyleSheet()
    style_title = ParagraphStyle('RosterTitle', parent=styles['Heading1'], fontName=font, alignment=1, fontSize=16)
    style_header = ParagraphStyle('RosterHeader', parent=styles['Normal'], fontName=font, fontSize=10, textColor=colors.white)
    style_cell = ParagraphStyle('RosterCell', parent=styles['Normal'], fontName=font, fontSize=9)

    elements.append(Paragraph(f"{_text(teacher_name)} {year}年{month:02d}月 排班表", style_title))
    elements.append(Spacer(1, 15))

    data = [[Paragraph(h, style_header) for h in ROSTER_HEADERS]]

    total_hours = 0.0
    for a in sorted(assignments, key=lambda s: (s.scheduled_date, s.start_time)):
        hours = shift_hours(a.start_time, a.end_time)
        total_hours += hours
        data.append([
            Paragraph(a.scheduled_date.isoformat(), style_cell),
            Paragraph(WEEKDAY_LABELS[a.scheduled_date.weekday()], style_cell),
            Paragraph(format_hhmm(a.start_time), style_cell),
            Paragraph(format_hhmm(a.end_time), style_cell),
            Paragraph(f"{hours:g}", style_cell),
        ])

    data.append([
        Paragraph(f"共 {len(assignments)} 天", style_cell),
        "", "", "",
        Paragraph(f"{round(total_hours, 2):g}", style_cell),
    ])

    t = Table(data, colWidths=[110, 50, 90, 90, 60])
    t.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor("#A68A64")), # Header
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, -1), font),
        ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('ROWBACKGROUNDS', (0, 1), (-1, -2), [colors.whitesmoke, colors.white]),
        ('SPAN', (0, -1), (3, -1)),
        ('PADDING', (0, 0), (-1, -1), 5),
    ]))

    elements.append(t)
    doc.build(elements)

    buffer.seek(0)
    return buffer

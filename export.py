from __future__ import annotations

import io
import json
from datetime import datetime, timezone
from typing import Any
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from models import CUTOFF_COLUMNS, format_mark

DEFAULT_DISCLAIMERS = [
    "Cut-offs and chances are estimates computed from the uploaded results and vacancy figures.",
    "Probabilities are heuristic scores, not calibrated statistical estimates.",
    "Official merit lists published by the recruiting body always take precedence.",
]


def _safe_text(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float):
        return f"{value:.2f}"
    return escape(str(value))


def _cutoff_table(cutoffs: dict[str, dict[str, float | None]]) -> Table:
    header = ["Category"] + list(CUTOFF_COLUMNS.values())
    rows = [header]
    for category, values in cutoffs.items():
        rows.append([category] + [format_mark(values.get(attr)) for attr in CUTOFF_COLUMNS])
    table = Table(rows, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#0D47A1")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTSIZE", (0, 0), (-1, -1), 8),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
            ]
        )
    )
    return table


def build_pdf_report(report: dict[str, Any], disclaimers: list[str] | None = None) -> bytes:
    """Render a candidate report (as produced by ``analysis.report_to_dict``) to PDF bytes."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, title="Cut-off Estimate Report")
    styles = getSampleStyleSheet()
    normal = styles["BodyText"]
    heading = styles["Heading2"]

    candidate = report.get("candidate", {})
    story = []
    story.append(Paragraph("Cut-off and Selection Chance Report", styles["Title"]))
    story.append(Paragraph(f"Generated: {datetime.now(timezone.utc).isoformat(timespec='seconds')}", normal))
    story.append(Spacer(1, 12))

    story.append(Paragraph("Candidate", heading))
    story.append(Paragraph(f"Roll number: {_safe_text(candidate.get('roll_no'))}", normal))
    story.append(Paragraph(f"Gender: {_safe_text(candidate.get('gender'))}", normal))
    story.append(
        Paragraph(
            f"Category: {_safe_text(candidate.get('category'))} ({_safe_text(candidate.get('raw_category'))})",
            normal,
        )
    )
    story.append(Paragraph(f"Marks: {_safe_text(candidate.get('marks'))}", normal))
    story.append(Paragraph(f"PH: {_safe_text(candidate.get('is_ph'))}", normal))
    story.append(Paragraph(f"Ex-Serviceman: {_safe_text(candidate.get('is_ex_serviceman'))}", normal))
    story.append(Spacer(1, 8))

    story.append(Paragraph("Rank", heading))
    overall = report.get("overall_ahead", {})
    category_ahead = report.get("category_ahead", {})
    story.append(Paragraph(f"Overall rank: {_safe_text(report.get('overall_rank'))}", normal))
    story.append(Paragraph(f"Category rank: {_safe_text(report.get('category_rank'))}", normal))
    story.append(
        Paragraph(
            f"Ahead overall: {_safe_text(overall.get('total'))} "
            f"(male {_safe_text(overall.get('male'))}, female {_safe_text(overall.get('female'))})",
            normal,
        )
    )
    story.append(
        Paragraph(
            f"Ahead in category: {_safe_text(category_ahead.get('total'))} "
            f"(male {_safe_text(category_ahead.get('male'))}, female {_safe_text(category_ahead.get('female'))})",
            normal,
        )
    )
    story.append(Spacer(1, 8))

    for key, title in (("selection", "Final Selection"), ("document_verification", "Document Verification")):
        result = report.get(key, {})
        story.append(Paragraph(title, heading))
        story.append(Paragraph(f"Chance: {_safe_text(result.get('probability'))}%", normal))
        story.append(Paragraph(_safe_text(result.get("narrative")), normal))
        story.append(Spacer(1, 8))

    statuses = report.get("special_statuses", [])
    if statuses:
        story.append(Paragraph("Special Status", heading))
        for status in statuses:
            label = str(status.get("kind", "")).replace("_", " ").title()
            story.append(Paragraph(f"{label}: {'eligible' if status.get('eligible') else 'not eligible'}", styles["Heading3"]))
            story.append(Paragraph(_safe_text(status.get("message")), normal))
            for name, value in status.get("numbers", {}).items():
                story.append(Paragraph(f"- {name.replace('_', ' ')}: {_safe_text(value)}", normal))
        story.append(Spacer(1, 8))

    cutoffs = report.get("cutoffs")
    if cutoffs:
        story.append(Paragraph("Estimated Cut-offs", heading))
        story.append(_cutoff_table(cutoffs))
        story.append(Spacer(1, 12))

    story.append(Paragraph("Disclaimers", heading))
    for text in disclaimers if disclaimers is not None else DEFAULT_DISCLAIMERS:
        story.append(Paragraph(f"- {_safe_text(text)}", normal))

    doc.build(story)
    buffer.seek(0)
    return buffer.read()


def build_json_summary(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload, indent=2, ensure_ascii=True).encode("utf-8")

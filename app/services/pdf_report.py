"""Dashboard PDF layout.

The report is described by :class:`DashboardReport` (what to show) and laid
out by :func:`render_dashboard_pdf` (how to show it) with reportlab platypus.
Documents are rendered in reportlab's invariant mode, so identical reports
produce identical bytes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.services import views
from app.services.breakdown import NodeRollup, ProjectBreakdown
from app.services.rollup import Metrics, TypeConcrete

HEADER_FILL = colors.HexColor("#283C6E")
BORDER_GRAY = colors.HexColor("#D2D2D2")
FOOTER_TEXT = "This is a system-generated report. No signature required."
NAME_COLUMN_SCALE = 1.2

styles = getSampleStyleSheet()
title_style = ParagraphStyle(
    "ReportTitle",
    parent=styles["Heading1"],
    fontName="Helvetica-Bold",
    fontSize=22,
    leading=26,
    alignment=1,
    spaceAfter=8,
)
period_style = ParagraphStyle(
    "ReportPeriod",
    parent=styles["Normal"],
    fontName="Helvetica-Bold",
    fontSize=13,
    leading=16,
    alignment=1,
)
generated_style = ParagraphStyle(
    "ReportGenerated",
    parent=styles["Normal"],
    fontName="Helvetica-Oblique",
    fontSize=9,
    leading=12,
    alignment=1,
    spaceAfter=12,
)
section_style = ParagraphStyle(
    "ReportSection",
    parent=styles["Heading2"],
    fontName="Helvetica-Bold",
    fontSize=15,
    leading=18,
    spaceBefore=10,
    spaceAfter=6,
)
subsection_style = ParagraphStyle(
    "ReportSubsection",
    parent=styles["Heading3"],
    fontName="Helvetica-Bold",
    fontSize=11,
    leading=14,
    spaceBefore=6,
    spaceAfter=4,
)
footer_style = ParagraphStyle(
    "ReportFooter",
    parent=styles["Normal"],
    fontName="Helvetica-Oblique",
    fontSize=8,
    leading=10,
    alignment=1,
    spaceBefore=16,
)

CONCRETE_HEADERS = [
    "Element Type",
    "Total\n(cum.)",
    "Produced\n(cum.)",
    "Dispatched\n(cum.)",
    "Stockyard\n(cum.)",
    "Erected\n(cum.)",
]


@dataclass(slots=True)
class PeriodTable:
    """One table of a time series: a column per period, a row per view label."""

    title: str
    columns: list[tuple[str, Metrics]] = field(default_factory=list)


@dataclass(slots=True)
class DashboardReport:
    title: str
    period_label: str
    generated_on: datetime
    view: str
    aggregate_title: str
    breakdown: ProjectBreakdown
    period_tables: list[PeriodTable] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.breakdown.towers and not self.breakdown.single_floors


def _table_style(*, name_column: bool, header_rows: int = 1) -> TableStyle:
    commands: list[tuple] = [
        ("BACKGROUND", (0, 0), (-1, header_rows - 1), HEADER_FILL),
        ("TEXTCOLOR", (0, 0), (-1, header_rows - 1), colors.white),
        ("FONTNAME", (0, 0), (-1, header_rows - 1), "Helvetica-Bold"),
        ("FONTNAME", (0, header_rows), (-1, -1), "Helvetica"),
        ("FONTSIZE", (0, 0), (-1, -1), 8.3),
        ("ALIGN", (0, 0), (-1, -1), "CENTER"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("GRID", (0, 0), (-1, -1), 0.5, BORDER_GRAY),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
    ]
    if name_column:
        commands.append(("ALIGN", (0, header_rows), (0, -1), "LEFT"))
    return TableStyle(commands)


class _Layout:
    """Column widths for the usable page width."""

    def __init__(self, available_width: float) -> None:
        self.available_width = available_width

    def widths(self, column_count: int, *, name_column: bool) -> list[float]:
        if not name_column:
            return [self.available_width / column_count] * column_count
        unit = self.available_width / (column_count - 1 + NAME_COLUMN_SCALE)
        return [unit * NAME_COLUMN_SCALE] + [unit] * (column_count - 1)

    def table(self, rows: list[list[str]], *, name_column: bool) -> Table:
        table = Table(
            rows,
            colWidths=self.widths(len(rows[0]), name_column=name_column),
            repeatRows=1,
            hAlign="LEFT",
        )
        table.setStyle(_table_style(name_column=name_column))
        return table


def _status_table(layout: _Layout, metrics: Metrics, view: str) -> Table:
    return layout.table([views.headers(view), views.cells(metrics, view)], name_column=False)


def _named_table(layout: _Layout, name_header: str, rows: list[tuple[str, Metrics]], view: str) -> Table:
    data = [[name_header, *views.headers(view)]]
    data.extend([name, *views.cells(metrics, view)] for name, metrics in rows)
    return layout.table(data, name_column=True)


def _period_table(layout: _Layout, period: PeriodTable, view: str) -> Table:
    data = [["", *(name for name, _ in period.columns)]]
    for column in views.columns_for(view):
        data.append([column.label, *(column.cell(metrics) for _, metrics in period.columns)])
    return layout.table(data, name_column=True)


def _concrete_table(layout: _Layout, concrete: dict[int, TypeConcrete]) -> Table:
    data = [list(CONCRETE_HEADERS)]
    for entry in concrete.values():
        data.append(
            [
                entry.type_code,
                f"{entry.total:.2f}",
                f"{entry.produced:.2f}",
                f"{entry.dispatched:.2f}",
                f"{entry.stockyard:.2f}",
                f"{entry.erected:.2f}",
            ]
        )
    return layout.table(data, name_column=True)


def _type_block(layout: _Layout, heading: str, node: NodeRollup, view: str) -> list:
    story: list = [Paragraph(escape(heading), subsection_style)]
    story.append(_named_table(layout, "Element Type", list(node.element_types.items()), view))
    if node.concrete_by_type:
        story.append(Spacer(1, 3 * mm))
        story.append(_concrete_table(layout, node.concrete_by_type))
    story.append(Spacer(1, 4 * mm))
    return story


def build_story(report: DashboardReport, available_width: float) -> list:
    layout = _Layout(available_width)
    view = views.resolve_view(report.view)
    breakdown = report.breakdown

    story: list = [
        Paragraph(escape(report.title), title_style),
        Paragraph(escape(f"Period: {report.period_label}"), period_style),
        Paragraph(
            escape(f"Generated On: {report.generated_on.strftime('%d-%b-%Y %H:%M:%S')}"),
            generated_style,
        ),
        Paragraph(escape(report.aggregate_title), section_style),
        _status_table(layout, breakdown.total, view),
        Spacer(1, 6 * mm),
    ]
    if report.is_empty:
        story.append(Paragraph(FOOTER_TEXT, footer_style))
        return story

    for period in report.period_tables:
        story.append(Paragraph(escape(period.title), section_style))
        story.append(_period_table(layout, period, view))
        story.append(Spacer(1, 6 * mm))

    for tower in breakdown.towers:
        story.append(Paragraph(escape(f"Tower: {tower.name}"), section_style))
        story.append(_status_table(layout, tower.metrics, view))
        if tower.floors:
            story.append(Paragraph("Floors:", subsection_style))
            story.append(_named_table(layout, "Floor", [(floor.name, floor.metrics) for floor in tower.floors], view))
        story.append(Spacer(1, 6 * mm))

    for floor in breakdown.single_floors:
        story.append(Paragraph(escape(f"Floor: {floor.name}"), section_style))
        story.append(_status_table(layout, floor.metrics, view))
        story.append(Spacer(1, 6 * mm))

    story.append(Paragraph("Element Type Breakdown", section_style))
    for tower in breakdown.towers:
        story.append(Paragraph(escape(f"Tower: {tower.name} - Element Type Breakdown"), section_style))
        story.extend(_type_block(layout, f"  Tower Aggregate - {tower.name}:", tower, view))
        for floor in tower.floors:
            story.extend(_type_block(layout, f"  Element Type Breakdown for {floor.name}:", floor, view))
    for floor in breakdown.single_floors:
        story.append(Paragraph(escape(f"Floor: {floor.name}"), section_style))
        story.extend(_type_block(layout, f"  Element Type Breakdown for {floor.name}:", floor, view))

    story.append(Paragraph(FOOTER_TEXT, footer_style))
    return story


def render_dashboard_pdf(report: DashboardReport, *, margin_mm: float = 25.0) -> bytes:
    buffer = BytesIO()
    page_size = landscape(A4)
    margin = margin_mm * mm
    doc = SimpleDocTemplate(
        buffer,
        pagesize=page_size,
        leftMargin=margin,
        rightMargin=margin,
        topMargin=margin,
        bottomMargin=margin,
        title=report.title,
        author="Precast Dashboard",
        creator="Precast Dashboard",
        invariant=1,
    )
    doc.build(build_story(report, page_size[0] - 2 * margin))
    return buffer.getvalue()

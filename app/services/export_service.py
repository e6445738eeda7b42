"""File exports: the dashboard PDF and tabular breakdown downloads."""

from __future__ import annotations

import calendar
import csv
import io
import logging
from dataclasses import dataclass
from datetime import date, datetime

from fastapi import HTTPException, status
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext, ensure_project_access
from app.core.config import get_settings
from app.repositories.dashboard_repository import DashboardRepository
from app.services import views
from app.services.breakdown import ProjectBreakdown
from app.services.dashboard_service import DashboardService
from app.services.hierarchy import HierarchyResolver
from app.services.pdf_report import DashboardReport, PeriodTable, render_dashboard_pdf
from app.services.rollup import Metrics, RollupEngine
from app.services.time_window import TimeWindow, day_window

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("csv", "xlsx")
DAILY_CHUNKS = ((1, 10), (11, 20), (21, None))


@dataclass(slots=True)
class ExportFilePayload:
    media_type: str
    filename: str
    content: bytes


class ExportService:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = DashboardRepository(db)
        self.settings = get_settings()

    # ---------- PDF ----------
    def _period_metrics(self, project_id: int, node_ids: list[int], window: TimeWindow) -> Metrics:
        by_node = RollupEngine(self.db).counts_by_hierarchy(project_id, node_ids, window)
        return Metrics.combine(by_node.values())

    def _period_tables(self, project_id: int, node_ids: list[int], window: TimeWindow) -> list[PeriodTable]:
        if window.kind == "yearly":
            year = window.first_day.year
            table = PeriodTable(title="Monthly Breakdown")
            for month in range(1, 13):
                last = calendar.monthrange(year, month)[1]
                month_window = day_window(date(year, month, 1), date(year, month, last))
                table.columns.append(
                    (calendar.month_abbr[month], self._period_metrics(project_id, node_ids, month_window))
                )
            return [table]

        if window.kind == "monthly":
            days = window.days()
            tables: list[PeriodTable] = []
            for first, last in DAILY_CHUNKS:
                chunk = [day for day in days if day.day >= first and (last is None or day.day <= last)]
                if not chunk:
                    continue
                table = PeriodTable(title=f"Daily Breakdown (Days {first}-{chunk[-1].day})")
                for day in chunk:
                    table.columns.append(
                        (str(day.day), self._period_metrics(project_id, node_ids, day_window(day, day)))
                    )
                tables.append(table)
            return tables

        return []

    def dashboard_pdf(
        self,
        *,
        context: RequestUserContext,
        project_id: int | None,
        tower_id: int | None,
        window: TimeWindow,
        view: str | None,
        now: datetime | None = None,
    ) -> ExportFilePayload:
        if project_id is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="project_id is required.")
        if self.repo.get_project(project_id) is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Project not found.")
        project = ensure_project_access(self.db, context, project_id)

        breakdown = DashboardService(self.db).project_breakdown(
            project_id=project_id,
            window=window,
            tower_id=tower_id,
            include_concrete_by_type=True,
        )
        title = f"{window.kind.capitalize()} Report - {project.name}"
        aggregate_title = "Project Aggregate"
        filename = f"dashboard_export_project_{project_id}"
        if tower_id is not None:
            tower = breakdown.towers[0]
            title = f"{title} (Tower: {tower.name})"
            aggregate_title = f"Tower Totals: {tower.name}"
            filename = f"{filename}_tower_{tower_id}"

        report = DashboardReport(
            title=title,
            period_label=window.label,
            generated_on=now or datetime.now(),
            view=views.resolve_view(view),
            aggregate_title=aggregate_title,
            breakdown=breakdown,
        )
        if not report.is_empty:
            hierarchy = HierarchyResolver(self.db).resolve(project_id)
            if tower_id is not None:
                hierarchy = hierarchy.only_tower(tower_id) or hierarchy
            report.period_tables = self._period_tables(project_id, hierarchy.node_ids, window)

        content = render_dashboard_pdf(report, margin_mm=self.settings.pdf_margin_mm)
        logger.info(
            "Rendered dashboard PDF project_id=%s tower_id=%s view=%s bytes=%s",
            project_id,
            tower_id,
            report.view,
            len(content),
        )
        return ExportFilePayload(media_type="application/pdf", filename=f"{filename}.pdf", content=content)

    # ---------- Tabular ----------
    @staticmethod
    def breakdown_rows(breakdown: ProjectBreakdown, view: str | None) -> tuple[list[str], list[list[object]]]:
        """Flatten a breakdown into one row per node and element type."""

        columns = views.columns_for(view)
        fieldnames = ["level", "tower", "floor", "element_type"]
        for column in columns:
            fieldnames.extend([column.key, f"{column.key}_concrete"])

        def row(level: str, tower: str, floor: str, element_type: str, metrics: Metrics) -> list[object]:
            values: list[object] = [level, tower, floor, element_type]
            for cell in views.project(metrics, view).values():
                values.extend([cell["count"], cell["concrete"]])
            return values

        rows = [row("project", "", "", "", breakdown.total)]
        for tower in breakdown.towers:
            rows.append(row("tower", tower.name, "", "", tower.metrics))
            rows.extend(
                row("tower_element_type", tower.name, "", type_code, metrics)
                for type_code, metrics in tower.element_types.items()
            )
            for floor in tower.floors:
                rows.append(row("floor", tower.name, floor.name, "", floor.metrics))
                rows.extend(
                    row("floor_element_type", tower.name, floor.name, type_code, metrics)
                    for type_code, metrics in floor.element_types.items()
                )
        for floor in breakdown.single_floors:
            rows.append(row("floor", "", floor.name, "", floor.metrics))
            rows.extend(
                row("floor_element_type", "", floor.name, type_code, metrics)
                for type_code, metrics in floor.element_types.items()
            )
        return fieldnames, rows

    def export_element_status_breakdown(
        self,
        *,
        context: RequestUserContext,
        project_id: int,
        format_name: str,
        view: str | None,
        window: TimeWindow | None = None,
    ) -> ExportFilePayload:
        normalized_format = format_name.strip().lower()
        if normalized_format not in EXPORT_FORMATS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"format must be one of: {', '.join(EXPORT_FORMATS)}.",
            )
        ensure_project_access(self.db, context, project_id)

        breakdown = DashboardService(self.db).project_breakdown(project_id=project_id, window=window)
        fieldnames, rows = self.breakdown_rows(breakdown, view)
        base_filename = f"element_status_breakdown_project_{project_id}_{views.resolve_view(view)}"

        if normalized_format == "csv":
            sio = io.StringIO()
            writer = csv.writer(sio)
            writer.writerow(fieldnames)
            writer.writerows(rows)
            return ExportFilePayload(
                media_type="text/csv; charset=utf-8",
                filename=f"{base_filename}.csv",
                content=sio.getvalue().encode("utf-8"),
            )

        workbook = Workbook()
        sheet = workbook.active
        sheet.title = "breakdown"
        sheet.append(fieldnames)
        for cell in sheet[1]:
            cell.font = Font(bold=True, color="FFFFFF")
            cell.fill = PatternFill(fill_type="solid", start_color="283C6E", end_color="283C6E")
        for values in rows:
            sheet.append(values)
        sheet.freeze_panes = "A2"

        output = io.BytesIO()
        workbook.save(output)
        return ExportFilePayload(
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            filename=f"{base_filename}.xlsx",
            content=output.getvalue(),
        )

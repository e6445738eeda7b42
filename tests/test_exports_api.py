from __future__ import annotations

import csv
import io
from datetime import datetime

from fastapi.testclient import TestClient
from openpyxl import load_workbook
from sqlalchemy.orm import Session

from app.services.hierarchy import HierarchyResolver
from tests.seed import (
    create_element,
    create_element_type,
    create_node,
    create_project,
    create_stock,
    login,
)


def _superadmin(db: Session) -> dict[str, str]:
    _, headers = login(db, role_name="superadmin", email="exports@test.local", token="exports-token")
    return headers


def _seed_project(db: Session):
    project = create_project(db, name="Export Yard")
    tower = create_node(db, project, "Tower A")
    floor = create_node(db, project, "Level 1", tower)
    podium = create_node(db, project, "Podium", floor)
    wall = create_element_type(db, project, "WL")
    create_stock(db, create_element(db, project, wall, floor), production_date=datetime(2025, 1, 5))
    create_element(db, project, wall, podium)
    return project


def test_breakdown_csv_export(client: TestClient, db_session: Session) -> None:
    headers = _superadmin(db_session)
    project = _seed_project(db_session)

    response = client.get(
        f"/api/exports/element_status_breakdown/{project.project_id}",
        params={"format": "csv", "view": "production"},
        headers=headers,
    )
    rows = list(csv.reader(io.StringIO(response.content.decode("utf-8"))))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert (
        f"filename=element_status_breakdown_project_{project.project_id}_production.csv"
        in response.headers["content-disposition"]
    )
    assert rows[0] == [
        "level",
        "tower",
        "floor",
        "element_type",
        "total",
        "total_concrete",
        "produced",
        "produced_concrete",
        "balance",
        "balance_concrete",
    ]
    assert rows[1] == ["project", "", "", "", "2", "6.0", "1", "3.0", "1", "3.0"]
    assert [row[0] for row in rows[2:]] == [
        "tower",
        "tower_element_type",
        "floor",
        "floor_element_type",
        "floor",
        "floor_element_type",
    ]


def test_breakdown_xlsx_export(client: TestClient, db_session: Session) -> None:
    headers = _superadmin(db_session)
    project = _seed_project(db_session)

    response = client.get(f"/api/exports/element_status_breakdown/{project.project_id}", headers=headers)
    workbook = load_workbook(io.BytesIO(response.content))
    sheet = workbook["breakdown"]

    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert sheet.cell(row=1, column=5).value == "total"
    assert sheet.cell(row=1, column=17).value == "erected_balance"
    assert sheet.cell(row=2, column=1).value == "project"
    assert sheet.cell(row=2, column=5).value == 2


def test_breakdown_export_rejects_unknown_format(client: TestClient, db_session: Session) -> None:
    headers = _superadmin(db_session)
    project = _seed_project(db_session)

    response = client.get(
        f"/api/exports/element_status_breakdown/{project.project_id}",
        params={"format": "pdf"},
        headers=headers,
    )

    assert response.status_code == 400
    assert response.json()["details"] == "format must be one of: csv, xlsx."


def test_dashboard_pdf_download(client: TestClient, db_session: Session) -> None:
    headers = _superadmin(db_session)
    project = _seed_project(db_session)

    response = client.get(
        "/api/dashboard_pdf",
        params={"project_id": project.project_id, "type": "monthly", "year": 2025, "month": 1},
        headers=headers,
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == (
        f"attachment; filename=dashboard_export_project_{project.project_id}.pdf"
    )
    assert response.content.startswith(b"%PDF")


def test_dashboard_pdf_tower_mode(client: TestClient, db_session: Session) -> None:
    headers = _superadmin(db_session)
    project = _seed_project(db_session)
    tower_id = HierarchyResolver(db_session).resolve(project.project_id).towers[0].id

    response = client.get(
        "/api/dashboard_pdf",
        params={"project_id": project.project_id, "tower_id": tower_id, "view": "erected", "year": 2025},
        headers=headers,
    )

    assert response.status_code == 200
    assert f"dashboard_export_project_{project.project_id}_tower_{tower_id}.pdf" in response.headers[
        "content-disposition"
    ]


def test_dashboard_pdf_errors(client: TestClient, db_session: Session) -> None:
    headers = _superadmin(db_session)
    project = _seed_project(db_session)

    no_project = client.get("/api/dashboard_pdf", headers=headers)
    unknown_project = client.get("/api/dashboard_pdf", params={"project_id": 9999}, headers=headers)
    unknown_tower = client.get(
        "/api/dashboard_pdf",
        params={"project_id": project.project_id, "tower_id": 9999},
        headers=headers,
    )

    assert no_project.status_code == 400
    assert unknown_project.status_code == 400
    assert unknown_project.json() == {"error": "bad_request", "details": "Project not found."}
    assert unknown_tower.status_code == 400
    assert unknown_tower.headers["content-type"].startswith("application/json")


def test_dashboard_pdf_forbidden_for_outsider(client: TestClient, db_session: Session) -> None:
    project = _seed_project(db_session)
    _, headers = login(db_session, role_name="Member", email="outsider@test.local", token="outsider-token")

    response = client.get("/api/dashboard_pdf", params={"project_id": project.project_id}, headers=headers)

    assert response.status_code == 403


"""
Pruebas de tableros

KPIs de empresa, estadísticas del reclutador, ranking global y costos
"""
import pytest
from httpx import AsyncClient

from tests.conftest import DataFactory, auth


@pytest.mark.asyncio
async def test_company_kpis(client: AsyncClient, factory: DataFactory):
    await factory.create_company("company-user")
    closed = await factory.create_vacancy("company-user", client_area="Ventas")
    cancelled = await factory.create_vacancy("company-user", client_area="Ventas")
    await factory.create_vacancy("company-user", client_area="Sistemas")

    await client.post(f"/api/v1/vacancies/{closed['id']}/close", headers=auth("company-user"))
    await client.post(f"/api/v1/vacancies/{cancelled['id']}/cancel", headers=auth("company-user"))

    # 1. Sin filtros
    resp = await client.get("/api/v1/dashboard/company-kpis", headers=auth("company-user"))
    assert resp.status_code == 200
    kpis = resp.json()["data"]
    assert kpis["total_vacancies"] == 3
    assert kpis["open_vacancies"] == 1
    assert kpis["closed_vacancies"] == 1
    assert kpis["success_rate"] == 33
    assert kpis["cancellation_rate"] == 33
    assert kpis["avg_coverage_days"] == 1
    assert kpis["interviewed_to_hired"] == "0:0"

    # 2. Por área
    resp = await client.get(
        "/api/v1/dashboard/company-kpis", params={"client_area": "Ventas"}, headers=auth("company-user")
    )
    kpis = resp.json()["data"]
    assert kpis["total_vacancies"] == 2
    assert kpis["success_rate"] == 50

    # 3. "todos" no filtra
    resp = await client.get(
        "/api/v1/dashboard/company-kpis", params={"status": "todos"}, headers=auth("company-user")
    )
    assert resp.json()["data"]["total_vacancies"] == 3


@pytest.mark.asyncio
async def test_kpis_require_company(client: AsyncClient):
    resp = await client.get("/api/v1/dashboard/company-kpis", headers=auth("nobody"))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_recruiter_stats_and_leaderboard(client: AsyncClient, factory: DataFactory):
    setup = await factory.published_vacancy()
    await factory.create_candidate("cand-user")
    application = await factory.apply("cand-user", setup["publication"]["id"])

    await client.post(
        "/api/v1/interviews/feedback",
        json={"application_id": application["id"], "score": 4, "comment": "Bien"},
        headers=auth("rec-user"),
    )
    await client.patch(
        f"/api/v1/applications/{application['id']}/stage",
        json={"stage": "contratado"},
        headers=auth("rec-user"),
    )

    # 1. Estadísticas
    resp = await client.get("/api/v1/dashboard/recruiter-stats", headers=auth("rec-user"))
    assert resp.status_code == 200
    stats = resp.json()["data"]
    assert stats["closed_vacancies"] == 1
    assert stats["closed_this_month"] == 1
    assert stats["published_vacancies"] == 1
    assert stats["avg_feedback_score"] == 4
    assert stats["feedback_count"] == 1

    # 2. Ranking
    resp = await client.get("/api/v1/dashboard/leaderboard", headers=auth("anyone"))
    assert resp.status_code == 200
    rows = resp.json()["data"]
    assert len(rows) == 1
    assert rows[0]["position"] == 1
    assert rows[0]["recruiter_id"] == setup["recruiter"]["id"]
    assert rows[0]["closed_vacancies"] == 1
    assert rows[0]["score"] > 0


@pytest.mark.asyncio
async def test_cost_concepts_and_report(client: AsyncClient, factory: DataFactory):
    await factory.create_company("company-user")
    vacancy = await factory.create_vacancy("company-user")
    await client.post(f"/api/v1/vacancies/{vacancy['id']}/close", headers=auth("company-user"))

    # 1. Alta
    resp = await client.post(
        "/api/v1/dashboard/costs",
        json={"concept": "Licencia ATS", "cost": 12000, "periodicity": "anual"},
        headers=auth("company-user"),
    )
    assert resp.status_code == 200
    license_id = resp.json()["data"]["id"]

    resp = await client.post(
        "/api/v1/dashboard/costs",
        json={"concept": "Bono", "cost": 500, "periodicity": "mensual", "unit": "por_contratacion"},
        headers=auth("company-user"),
    )
    bonus_id = resp.json()["data"]["id"]

    # 2. Reporte: 1000 + 500 × 1 contratación
    resp = await client.get("/api/v1/dashboard/costs/report", headers=auth("company-user"))
    assert resp.status_code == 200
    report = resp.json()["data"]
    assert report["monthly_total"] == 1500
    assert report["annual_total"] == 18000
    assert report["cost_per_hire"] == 1500
    assert report["breakdown"][0]["concept"] == "Licencia ATS"
    assert report["breakdown"][0]["percentage"] == 66.67

    # 3. Editar
    resp = await client.patch(
        f"/api/v1/dashboard/costs/{bonus_id}", json={"cost": 1000}, headers=auth("company-user")
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["cost"] == 1000

    # 4. Eliminar (baja lógica)
    resp = await client.delete(f"/api/v1/dashboard/costs/{license_id}", headers=auth("company-user"))
    assert resp.status_code == 200

    resp = await client.get("/api/v1/dashboard/costs", headers=auth("company-user"))
    assert [c["id"] for c in resp.json()["data"]] == [bonus_id]

    resp = await client.patch(
        f"/api/v1/dashboard/costs/{license_id}", json={"cost": 1}, headers=auth("company-user")
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_cost_concepts_are_per_company(client: AsyncClient, factory: DataFactory):
    await factory.create_company("company-a")
    await factory.create_company("company-b")
    resp = await client.post(
        "/api/v1/dashboard/costs",
        json={"concept": "Bolsa de empleo", "cost": 3000},
        headers=auth("company-a"),
    )
    concept_id = resp.json()["data"]["id"]

    resp = await client.delete(f"/api/v1/dashboard/costs/{concept_id}", headers=auth("company-b"))
    assert resp.status_code == 404

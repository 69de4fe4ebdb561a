"""
Pruebas de entrevistas y feedback
"""
import pytest
from httpx import AsyncClient

from tests.conftest import DataFactory, auth


async def _application(factory: DataFactory) -> dict:
    setup = await factory.published_vacancy()
    await factory.create_candidate("cand-user")
    return await factory.apply("cand-user", setup["publication"]["id"])


async def _schedule(client: AsyncClient, application_id: str, when: str = "2030-05-20T16:00:00") -> dict:
    resp = await client.post(
        "/api/v1/interviews",
        json={
            "application_id": application_id,
            "scheduled_at": when,
            "interview_type": "virtual",
            "meeting_details": "https://meet.example.com/xyz",
        },
        headers=auth("rec-user"),
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_interview_lifecycle(client: AsyncClient, factory: DataFactory):
    application = await _application(factory)

    # 1. Agendar
    interview = await _schedule(client, application["id"])
    assert interview["state"] == "propuesta"
    assert interview["candidate_user_id"] == "cand-user"

    resp = await client.get("/api/v1/applications/mine", headers=auth("cand-user"))
    assert resp.json()["data"][0]["stage"] == "entrevista"

    # 2. El reclutador la ve en sus próximas
    resp = await client.get("/api/v1/interviews/upcoming", headers=auth("rec-user"))
    assert [i["id"] for i in resp.json()["data"]] == [interview["id"]]

    # 3. El candidato acepta
    resp = await client.post(f"/api/v1/interviews/{interview['id']}/accept", headers=auth("cand-user"))
    assert resp.status_code == 200
    assert resp.json()["data"]["state"] == "aceptada"

    # 4. Solo el candidato puede aceptar
    resp = await client.post(f"/api/v1/interviews/{interview['id']}/accept", headers=auth("rec-user"))
    assert resp.status_code == 403

    # 5. Reagendar
    resp = await client.post(
        f"/api/v1/interviews/{interview['id']}/reschedule",
        json={"scheduled_at": "2030-05-22T11:00:00", "message": "Cambio de agenda"},
        headers=auth("rec-user"),
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["state"] == "reagendada"
    assert resp.json()["data"]["scheduled_at"].startswith("2030-05-22T11:00")

    # 6. Completar
    resp = await client.post(
        f"/api/v1/interviews/{interview['id']}/complete",
        json={"attended": True, "duration_minutes": 45, "notes": "Buen perfil"},
        headers=auth("rec-user"),
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["state"] == "completada"
    assert data["duration_minutes"] == 45

    # 7. Una completada no se cancela
    resp = await client.post(
        f"/api/v1/interviews/{interview['id']}/cancel", json={}, headers=auth("rec-user")
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_candidate_rejects_interview(client: AsyncClient, factory: DataFactory):
    application = await _application(factory)
    interview = await _schedule(client, application["id"])

    resp = await client.post(
        f"/api/v1/interviews/{interview['id']}/reject",
        json={"reason": "Tengo otro compromiso"},
        headers=auth("cand-user"),
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["state"] == "rechazada"
    assert data["rejection_reason"] == "Tengo otro compromiso"

    # El reclutador recibe el aviso
    resp = await client.get(f"/api/v1/applications/{application['id']}/messages", headers=auth("rec-user"))
    bodies = [m["body"] for m in resp.json()["data"]]
    assert any("Motivo: Tengo otro compromiso" in b for b in bodies)

    # Ya no se puede aceptar
    resp = await client.post(f"/api/v1/interviews/{interview['id']}/accept", headers=auth("cand-user"))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_postpone_and_cancel(client: AsyncClient, factory: DataFactory):
    application = await _application(factory)
    interview = await _schedule(client, application["id"])

    resp = await client.post(
        f"/api/v1/interviews/{interview['id']}/postpone",
        json={"message": "Se movió la junta"},
        headers=auth("rec-user"),
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["state"] == "pospuesta"

    # Pospuesta no aparece en próximas
    resp = await client.get("/api/v1/interviews/upcoming", headers=auth("cand-user"))
    assert resp.json()["data"] == []

    resp = await client.post(
        f"/api/v1/interviews/{interview['id']}/cancel",
        json={"message": "Se canceló la vacante"},
        headers=auth("rec-user"),
    )
    assert resp.status_code == 200

    resp = await client.post(f"/api/v1/interviews/{interview['id']}/accept", headers=auth("cand-user"))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_stranger_cannot_schedule(client: AsyncClient, factory: DataFactory):
    application = await _application(factory)
    resp = await client.post(
        "/api/v1/interviews",
        json={"application_id": application["id"], "scheduled_at": "2030-05-20T16:00:00"},
        headers=auth("stranger"),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_feedback(client: AsyncClient, factory: DataFactory):
    application = await _application(factory)

    # 1. Puntuación fuera de rango
    resp = await client.post(
        "/api/v1/interviews/feedback",
        json={"application_id": application["id"], "score": 6, "comment": "Excelente"},
        headers=auth("rec-user"),
    )
    assert resp.status_code == 422

    # 2. Registrar
    resp = await client.post(
        "/api/v1/interviews/feedback",
        json={
            "application_id": application["id"],
            "score": 4,
            "comment": "Buen dominio técnico",
            "positives": ["Comunicación"],
            "improvements": ["Inglés"],
        },
        headers=auth("rec-user"),
    )
    assert resp.status_code == 200

    # 3. El candidato lo ve
    resp = await client.get("/api/v1/interviews/feedback/mine", headers=auth("cand-user"))
    items = resp.json()["data"]
    assert len(items) == 1
    assert items[0]["score"] == 4
    assert items[0]["improvements"] == ["Inglés"]

    # 4. Por postulación
    resp = await client.get(
        f"/api/v1/interviews/feedback/application/{application['id']}", headers=auth("rec-user")
    )
    assert len(resp.json()["data"]) == 1

    resp = await client.get(
        f"/api/v1/interviews/feedback/application/{application['id']}", headers=auth("stranger")
    )
    assert resp.status_code == 403

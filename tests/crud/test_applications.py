"""
Pruebas de postulaciones

Postulación, vista de postulantes con identidad oculta, cambio de etapa y
mensajes entre candidato y reclutador
"""
import pytest
from httpx import AsyncClient

from app.models.vacancy import Vacancy, VacancyStatus
from tests.conftest import DataFactory, auth


@pytest.mark.asyncio
async def test_apply_flow(client: AsyncClient, factory: DataFactory):
    setup = await factory.published_vacancy()
    publication_id = setup["publication"]["id"]
    await factory.create_candidate("cand-user")

    # 1. Postular
    application = await factory.apply("cand-user", publication_id)
    assert application["stage"] == "recibida"
    assert application["status"] == "pendiente"
    assert application["vacancy_id"] == setup["vacancy"]["id"]

    # 2. Duplicado
    resp = await client.post(
        f"/api/v1/marketplace/publications/{publication_id}/apply", headers=auth("cand-user")
    )
    assert resp.status_code == 409

    # 3. Mis postulaciones
    resp = await client.get("/api/v1/applications/mine", headers=auth("cand-user"))
    assert resp.status_code == 200
    items = resp.json()["data"]
    assert len(items) == 1
    assert items[0]["title"] == setup["vacancy"]["title"]


@pytest.mark.asyncio
async def test_apply_requires_candidate_profile(client: AsyncClient, factory: DataFactory):
    setup = await factory.published_vacancy()
    resp = await client.post(
        f"/api/v1/marketplace/publications/{setup['publication']['id']}/apply",
        headers=auth("no-profile"),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_applicant_identity_hidden_until_unlocked(client: AsyncClient, factory: DataFactory):
    """El reclutador ve nombre y contacto solo tras pagar el desbloqueo"""
    setup = await factory.published_vacancy()
    publication_id = setup["publication"]["id"]
    candidate = await factory.create_candidate("cand-user", full_name="María López")
    await factory.apply("cand-user", publication_id)

    # 1. Identidad oculta
    resp = await client.get(f"/api/v1/applications/publication/{publication_id}", headers=auth("rec-user"))
    assert resp.status_code == 200
    applicant = resp.json()["data"][0]
    assert applicant["identity_unlocked"] is False
    assert applicant["candidate_name"] is None
    assert applicant["current_position"] == candidate["current_position"]

    # 2. Desbloquear (2 créditos)
    resp = await client.post(
        "/api/v1/wallets/recruiter/unlock-identity",
        json={"candidate_user_id": "cand-user"},
        headers=auth("rec-user"),
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["credits_spent"] == 2
    assert data["candidate"]["full_name"] == "María López"

    # 3. Segundo desbloqueo no cobra
    resp = await client.post(
        "/api/v1/wallets/recruiter/unlock-identity",
        json={"candidate_user_id": "cand-user"},
        headers=auth("rec-user"),
    )
    assert resp.json()["data"]["already_unlocked"] is True
    assert resp.json()["data"]["credits_spent"] == 0

    # 4. Identidad visible
    resp = await client.get(f"/api/v1/applications/publication/{publication_id}", headers=auth("rec-user"))
    applicant = resp.json()["data"][0]
    assert applicant["identity_unlocked"] is True
    assert applicant["candidate_name"] == "María López"

    # 5. Saldo: 100 - 10 publicación - 2 desbloqueo
    resp = await client.get("/api/v1/wallets/recruiter", headers=auth("rec-user"))
    assert resp.json()["data"]["wallet"]["own_credits"] == 88


@pytest.mark.asyncio
async def test_applicants_not_visible_to_strangers(client: AsyncClient, factory: DataFactory):
    setup = await factory.published_vacancy()
    await factory.create_recruiter("other-rec")
    resp = await client.get(
        f"/api/v1/applications/publication/{setup['publication']['id']}", headers=auth("other-rec")
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_stage_changes(client: AsyncClient, factory: DataFactory):
    setup = await factory.published_vacancy()
    await factory.create_candidate("cand-user")
    application = await factory.apply("cand-user", setup["publication"]["id"])
    url = f"/api/v1/applications/{application['id']}/stage"

    # 1. Revisión
    resp = await client.patch(url, json={"stage": "revision"}, headers=auth("rec-user"))
    assert resp.status_code == 200
    assert resp.json()["data"]["stage"] == "revision"

    # 2. Entrevista sin fecha
    resp = await client.patch(url, json={"stage": "entrevista_distancia"}, headers=auth("rec-user"))
    assert resp.status_code == 400

    # 3. Entrevista con fecha crea entrevista propuesta
    resp = await client.patch(
        url,
        json={
            "stage": "entrevista_distancia",
            "interview_date": "2030-03-15",
            "interview_time": "10:30",
            "meeting_details": "https://meet.example.com/abc",
        },
        headers=auth("rec-user"),
    )
    assert resp.status_code == 200

    resp = await client.get("/api/v1/interviews/upcoming", headers=auth("cand-user"))
    interviews = resp.json()["data"]
    assert len(interviews) == 1
    assert interviews[0]["state"] == "propuesta"

    # 4. El candidato recibió los mensajes de cada etapa
    resp = await client.get("/api/v1/applications/messages/unread-count", headers=auth("cand-user"))
    assert resp.json()["data"]["unread"] == 2

    # 5. Contratado cierra la vacante
    resp = await client.patch(
        url, json={"stage": "contratado", "notes": "Inicia el lunes"}, headers=auth("rec-user")
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "aceptado"

    resp = await client.get(f"/api/v1/vacancies/{setup['vacancy']['id']}", headers=auth("rec-user"))
    assert resp.json()["data"]["status"] == "cerrada"


@pytest.mark.asyncio
async def test_hire_withdraws_publication(client: AsyncClient, factory: DataFactory):
    setup = await factory.published_vacancy()
    publication_id = setup["publication"]["id"]
    await factory.create_candidate("cand-user")
    await factory.create_candidate("late-user")
    application = await factory.apply("cand-user", publication_id)

    resp = await client.patch(
        f"/api/v1/applications/{application['id']}/stage",
        json={"stage": "contratado"},
        headers=auth("rec-user"),
    )
    assert resp.status_code == 200

    # La vacante cubierta sale del marketplace
    resp = await client.get("/api/v1/marketplace/publications", headers=auth("late-user"))
    assert resp.json()["data"]["total"] == 0

    resp = await client.post(
        f"/api/v1/marketplace/publications/{publication_id}/apply", headers=auth("late-user")
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_apply_to_closed_vacancy(client: AsyncClient, factory: DataFactory, db_session):
    setup = await factory.published_vacancy()
    await factory.create_candidate("cand-user")

    vacancy = await db_session.get(Vacancy, setup["vacancy"]["id"])
    vacancy.status = VacancyStatus.CLOSED.value
    await db_session.commit()

    resp = await client.post(
        f"/api/v1/marketplace/publications/{setup['publication']['id']}/apply", headers=auth("cand-user")
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_candidate_cannot_change_stage(client: AsyncClient, factory: DataFactory):
    setup = await factory.published_vacancy()
    await factory.create_candidate("cand-user")
    application = await factory.apply("cand-user", setup["publication"]["id"])

    resp = await client.patch(
        f"/api/v1/applications/{application['id']}/stage",
        json={"stage": "contratado"},
        headers=auth("cand-user"),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_messages_thread(client: AsyncClient, factory: DataFactory):
    setup = await factory.published_vacancy()
    await factory.create_candidate("cand-user")
    application = await factory.apply("cand-user", setup["publication"]["id"])
    url = f"/api/v1/applications/{application['id']}/messages"

    # 1. El candidato escribe; el destinatario es el reclutador
    resp = await client.post(url, json={"body": "Hola, ¿sigue abierta?"}, headers=auth("cand-user"))
    assert resp.status_code == 200
    assert resp.json()["data"]["recipient_user_id"] == "rec-user"

    # 2. El reclutador tiene un mensaje sin leer
    resp = await client.get("/api/v1/applications/messages/unread-count", headers=auth("rec-user"))
    assert resp.json()["data"]["unread"] == 1

    # 3. Leer la conversación marca como leído
    resp = await client.get(url, headers=auth("rec-user"))
    assert resp.status_code == 200
    messages = resp.json()["data"]
    assert len(messages) == 1
    assert messages[0]["read"] is True

    resp = await client.get("/api/v1/applications/messages/unread-count", headers=auth("rec-user"))
    assert resp.json()["data"]["unread"] == 0

    # 4. Un tercero no participa
    resp = await client.post(url, json={"body": "Hola"}, headers=auth("stranger"))
    assert resp.status_code == 403

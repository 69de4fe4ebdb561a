"""
Pruebas de vacantes y marketplace

Alta de vacantes, asignación, publicación con cobro de créditos, búsqueda y
retiro de publicaciones
"""
import pytest
from httpx import AsyncClient

from tests.conftest import DataFactory, auth


@pytest.mark.asyncio
async def test_vacancy_crud_flow(client: AsyncClient, factory: DataFactory):
    """Reclutador independiente: alta, consulta, edición y cancelación"""
    await factory.create_recruiter("rec-user")

    # 1. Create
    vacancy = await factory.create_vacancy("rec-user", title="Analista de datos")
    assert vacancy["folio"]
    assert vacancy["status"] == "abierta"
    assert vacancy["assigned_recruiter_id"] is not None

    # 2. Read
    resp = await client.get(f"/api/v1/vacancies/{vacancy['id']}", headers=auth("rec-user"))
    assert resp.status_code == 200
    assert resp.json()["data"]["title"] == "Analista de datos"

    # 3. List
    resp = await client.get("/api/v1/vacancies", headers=auth("rec-user"))
    assert resp.status_code == 200
    assert resp.json()["data"]["total"] == 1

    # 4. Update
    resp = await client.patch(
        f"/api/v1/vacancies/{vacancy['id']}",
        json={"location": "Guadalajara"},
        headers=auth("rec-user"),
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["location"] == "Guadalajara"

    # 5. Otro usuario no puede verla
    resp = await client.get(f"/api/v1/vacancies/{vacancy['id']}", headers=auth("stranger"))
    assert resp.status_code == 403

    # 6. Cancel
    resp = await client.post(f"/api/v1/vacancies/{vacancy['id']}/cancel", headers=auth("rec-user"))
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "cancelada"
    assert resp.json()["data"]["closed_at"] is not None

    # 7. Ya no está abierta
    resp = await client.post(f"/api/v1/vacancies/{vacancy['id']}/close", headers=auth("rec-user"))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_vacancy_requires_company_or_recruiter(client: AsyncClient):
    resp = await client.post(
        "/api/v1/vacancies", json={"title": "Puesto"}, headers=auth("nobody")
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_company_assigns_and_recruiter_requests_close(client: AsyncClient, factory: DataFactory):
    await factory.create_company("company-user")
    recruiter = await factory.create_recruiter("rec-user")
    outsider = await factory.create_recruiter("outsider")

    vacancy = await factory.create_vacancy("company-user")
    assert vacancy["assigned_recruiter_id"] is None

    # 1. No se puede asignar a un reclutador sin vínculo
    resp = await client.post(
        f"/api/v1/vacancies/{vacancy['id']}/assign",
        json={"recruiter_id": outsider["id"]},
        headers=auth("company-user"),
    )
    assert resp.status_code == 400

    # 2. Vincular y asignar
    await factory.link_recruiter("company-user", "rec-user", recruiter["recruiter_code"])
    resp = await client.post(
        f"/api/v1/vacancies/{vacancy['id']}/assign",
        json={"recruiter_id": recruiter["id"]},
        headers=auth("company-user"),
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["assigned_recruiter_id"] == recruiter["id"]

    # 3. El reclutador ve la vacante asignada
    resp = await client.get("/api/v1/vacancies", headers=auth("rec-user"))
    assert resp.json()["data"]["total"] == 1

    # 4. Solicitud de cierre
    resp = await client.post(
        f"/api/v1/vacancies/{vacancy['id']}/close-request",
        json={"reason": "Se cubrió internamente"},
        headers=auth("rec-user"),
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["close_requested"] is True

    resp = await client.post(
        f"/api/v1/vacancies/{vacancy['id']}/close-request",
        json={"reason": "Otra vez el motivo"},
        headers=auth("rec-user"),
    )
    assert resp.status_code == 409

    # 5. La empresa cierra
    resp = await client.post(f"/api/v1/vacancies/{vacancy['id']}/close", headers=auth("company-user"))
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "cerrada"
    assert data["close_requested"] is False


@pytest.mark.asyncio
async def test_publish_charges_own_credits(client: AsyncClient, factory: DataFactory):
    """Publicar cuesta 10 créditos propios"""
    recruiter = await factory.create_recruiter("rec-user")
    await factory.add_credits(wallet_type="reclutador", owner_id=recruiter["id"], credits=25)
    vacancy = await factory.create_vacancy("rec-user", approved_gross_salary=30000, notes="interno")

    # 1. Verificar saldo
    resp = await client.get(
        "/api/v1/marketplace/credits-check",
        params={"vacancy_id": vacancy["id"]},
        headers=auth("rec-user"),
    )
    assert resp.status_code == 200
    check = resp.json()["data"]
    assert check["sufficient"] is True
    assert check["required"] == 10

    # 2. Publicar solo con sueldo visible
    resp = await client.post(
        f"/api/v1/marketplace/vacancies/{vacancy['id']}/publish",
        json={"show_salary": True, "show_profile": False},
        headers=auth("rec-user"),
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["credits_spent"] == 10
    assert data["payment_origin"] == "reclutador"
    assert data["balance_after"] == 15
    publication = data["publication"]
    assert publication["approved_gross_salary"] == 30000
    assert publication["required_profile"] is None
    assert publication["notes"] is None
    assert publication["location"] is None

    # 3. Publicar dos veces es conflicto
    resp = await client.post(
        f"/api/v1/marketplace/vacancies/{vacancy['id']}/publish",
        json={},
        headers=auth("rec-user"),
    )
    assert resp.status_code == 409

    # 4. Monedero
    resp = await client.get("/api/v1/wallets/recruiter", headers=auth("rec-user"))
    assert resp.json()["data"]["wallet"]["own_credits"] == 15


@pytest.mark.asyncio
async def test_publish_insufficient_credits(client: AsyncClient, factory: DataFactory):
    recruiter = await factory.create_recruiter("rec-user")
    await factory.add_credits(wallet_type="reclutador", owner_id=recruiter["id"], credits=5)
    vacancy = await factory.create_vacancy("rec-user")

    resp = await client.post(
        f"/api/v1/marketplace/vacancies/{vacancy['id']}/publish",
        json={},
        headers=auth("rec-user"),
    )
    assert resp.status_code == 402
    assert resp.json()["success"] is False

    # No se creó la publicación
    resp = await client.get("/api/v1/marketplace/publications", headers=auth("rec-user"))
    assert resp.json()["data"]["total"] == 0


@pytest.mark.asyncio
async def test_publish_uses_inherited_credits_first(client: AsyncClient, factory: DataFactory):
    company = await factory.create_company("company-user")
    recruiter = await factory.create_recruiter("rec-user")
    await factory.link_recruiter("company-user", "rec-user", recruiter["recruiter_code"])
    await factory.add_credits(wallet_type="empresa", owner_id=company["id"], credits=50)
    await factory.add_credits(wallet_type="reclutador", owner_id=recruiter["id"], credits=20)

    resp = await client.post(
        "/api/v1/wallets/company/assign",
        json={"recruiter_id": recruiter["id"], "quantity": 15},
        headers=auth("company-user"),
    )
    assert resp.status_code == 200

    vacancy = await factory.create_vacancy("company-user", assigned_recruiter_id=recruiter["id"])
    resp = await client.post(
        f"/api/v1/marketplace/vacancies/{vacancy['id']}/publish",
        json={},
        headers=auth("rec-user"),
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["payment_origin"] == "heredado_empresa"

    resp = await client.get("/api/v1/wallets/recruiter", headers=auth("rec-user"))
    data = resp.json()["data"]
    assert data["wallet"]["own_credits"] == 20
    assert data["inherited"][0]["available_credits"] == 5


@pytest.mark.asyncio
async def test_only_assigned_recruiter_publishes(client: AsyncClient, factory: DataFactory):
    await factory.create_company("company-user")
    other = await factory.create_recruiter("other-rec")
    await factory.add_credits(wallet_type="reclutador", owner_id=other["id"], credits=50)
    vacancy = await factory.create_vacancy("company-user")

    resp = await client.post(
        f"/api/v1/marketplace/vacancies/{vacancy['id']}/publish",
        json={},
        headers=auth("other-rec"),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_search_and_unpublish(client: AsyncClient, factory: DataFactory):
    setup = await factory.published_vacancy()
    publication = setup["publication"]
    vacancy = setup["vacancy"]

    # 1. Búsqueda por texto y modalidad
    resp = await client.get(
        "/api/v1/marketplace/publications",
        params={"search": "Python", "work_mode": "remoto"},
        headers=auth("any-user"),
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["total"] == 1

    resp = await client.get(
        "/api/v1/marketplace/publications",
        params={"work_mode": "presencial"},
        headers=auth("any-user"),
    )
    assert resp.json()["data"]["total"] == 0

    # 2. Detalle
    resp = await client.get(
        f"/api/v1/marketplace/publications/{publication['id']}", headers=auth("any-user")
    )
    assert resp.status_code == 200

    # 3. Retirar sin postulaciones la elimina
    resp = await client.delete(
        f"/api/v1/marketplace/vacancies/{vacancy['id']}/publish", headers=auth("rec-user")
    )
    assert resp.status_code == 200
    assert resp.json()["data"] is None

    resp = await client.get(
        f"/api/v1/marketplace/publications/{publication['id']}", headers=auth("any-user")
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_unpublish_with_applications_hides(client: AsyncClient, factory: DataFactory):
    setup = await factory.published_vacancy()
    await factory.create_candidate("cand-user")
    await factory.apply("cand-user", setup["publication"]["id"])

    resp = await client.delete(
        f"/api/v1/marketplace/vacancies/{setup['vacancy']['id']}/publish", headers=auth("rec-user")
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["published"] is False

    # 2. Republicar cobra otra vez
    resp = await client.post(
        f"/api/v1/marketplace/vacancies/{setup['vacancy']['id']}/publish",
        json={},
        headers=auth("rec-user"),
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["balance_after"] == 80
    assert resp.json()["data"]["publication"]["id"] == setup["publication"]["id"]


@pytest.mark.asyncio
async def test_publish_with_location(client: AsyncClient, factory: DataFactory):
    recruiter = await factory.create_recruiter("rec-user")
    await factory.add_credits(wallet_type="reclutador", owner_id=recruiter["id"], credits=10)
    vacancy = await factory.create_vacancy("rec-user", location="Monterrey")

    publication = await factory.publish("rec-user", vacancy["id"], show_location=True)
    assert publication["location"] == "Monterrey"

    resp = await client.get(
        "/api/v1/marketplace/publications", params={"location": "Monterrey"}, headers=auth("any-user")
    )
    assert resp.json()["data"]["total"] == 1

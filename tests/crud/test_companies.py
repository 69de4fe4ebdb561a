"""
Pruebas de empresas y asociación con reclutadores

Alta de empresa, invitaciones, vínculo activo y desvinculación
"""
from datetime import timedelta

import pytest
from httpx import AsyncClient

from app.crud import invitation_crud
from app.models.base import utc_now
from tests.conftest import DataFactory, auth


@pytest.mark.asyncio
async def test_company_registration_flow(client: AsyncClient, factory: DataFactory):
    """Registro de empresa y perfil"""

    # 1. Alta: el usuario queda como administrador
    company = await factory.create_company("company-user", name="Acme SA")
    assert company["company_code"]
    assert company["active"] is True

    # 2. Mi empresa
    resp = await client.get("/api/v1/companies/me", headers=auth("company-user"))
    assert resp.status_code == 200
    assert resp.json()["data"]["name"] == "Acme SA"

    # 3. Actualizar
    resp = await client.patch(
        "/api/v1/companies/me", json={"city": "Monterrey"}, headers=auth("company-user")
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["city"] == "Monterrey"

    # 4. Una segunda empresa para el mismo usuario es conflicto
    resp = await client.post("/api/v1/companies", json={"name": "Otra"}, headers=auth("company-user"))
    assert resp.status_code == 409

    # 5. Sin rol de empresa no hay acceso
    resp = await client.get("/api/v1/companies/me", headers=auth("someone-else"))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_requires_token(client: AsyncClient):
    resp = await client.get("/api/v1/companies/me")
    assert resp.status_code == 401
    assert resp.json()["success"] is False

    resp = await client.get("/api/v1/companies/me", headers={"Authorization": "Bearer basura"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_invitation_accept_and_unlink(client: AsyncClient, factory: DataFactory):
    """Invitación → vínculo activo → desvinculación"""
    await factory.create_company("company-user")
    recruiter = await factory.create_recruiter("rec-user")

    # 1. Código inexistente
    resp = await client.post(
        "/api/v1/companies/me/invitations",
        json={"recruiter_code": "NOEXISTE"},
        headers=auth("company-user"),
    )
    assert resp.status_code == 404

    # 2. Invitar y aceptar
    link = await factory.link_recruiter("company-user", "rec-user", recruiter["recruiter_code"])
    assert link["state"] == "activa"

    # 3. Invitar de nuevo a un reclutador ya asociado
    resp = await client.post(
        "/api/v1/companies/me/invitations",
        json={"recruiter_code": recruiter["recruiter_code"]},
        headers=auth("company-user"),
    )
    assert resp.status_code == 409

    # 4. La empresa ve a su reclutador
    resp = await client.get("/api/v1/companies/me/recruiters", headers=auth("company-user"))
    assert resp.status_code == 200
    recruiters = resp.json()["data"]
    assert len(recruiters) == 1
    assert recruiters[0]["recruiter_code"] == recruiter["recruiter_code"]
    assert recruiters[0]["inherited_credits"] == 0

    # 5. El reclutador ve la empresa
    resp = await client.get("/api/v1/recruiters/links", headers=auth("rec-user"))
    assert resp.status_code == 200
    assert len(resp.json()["data"]) == 1

    # 6. Desvincular
    resp = await client.delete(
        f"/api/v1/companies/me/recruiters/{recruiter['id']}", headers=auth("company-user")
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["state"] == "finalizada"

    resp = await client.get("/api/v1/recruiters/links", headers=auth("rec-user"))
    assert resp.json()["data"] == []


@pytest.mark.asyncio
async def test_unlink_blocked_by_open_vacancy(client: AsyncClient, factory: DataFactory):
    company = await factory.create_company("company-user")
    recruiter = await factory.create_recruiter("rec-user")
    await factory.link_recruiter("company-user", "rec-user", recruiter["recruiter_code"])
    await factory.create_vacancy("company-user", assigned_recruiter_id=recruiter["id"])

    resp = await client.delete(
        f"/api/v1/recruiters/links/{company['id']}", headers=auth("rec-user")
    )
    assert resp.status_code == 400
    assert "vacantes abiertas" in resp.json()["message"]


@pytest.mark.asyncio
async def test_unlink_blocked_by_inherited_credits(client: AsyncClient, factory: DataFactory):
    company = await factory.create_company("company-user")
    recruiter = await factory.create_recruiter("rec-user")
    await factory.link_recruiter("company-user", "rec-user", recruiter["recruiter_code"])
    await factory.add_credits(wallet_type="empresa", owner_id=company["id"], credits=50)
    await client.post(
        "/api/v1/wallets/company/assign",
        json={"recruiter_id": recruiter["id"], "quantity": 20},
        headers=auth("company-user"),
    )

    # 1. Con heredados pendientes no se puede desvincular
    resp = await client.delete(f"/api/v1/recruiters/links/{company['id']}", headers=auth("rec-user"))
    assert resp.status_code == 400
    assert "20 créditos heredados" in resp.json()["message"]

    # 2. Tras devolverlos sí
    await client.post(
        "/api/v1/wallets/recruiter/return",
        json={"company_id": company["id"], "quantity": 20},
        headers=auth("rec-user"),
    )
    resp = await client.delete(f"/api/v1/recruiters/links/{company['id']}", headers=auth("rec-user"))
    assert resp.status_code == 200
    assert resp.json()["data"]["state"] == "finalizada"


@pytest.mark.asyncio
async def test_reject_invitation(client: AsyncClient, factory: DataFactory):
    await factory.create_company("company-user")
    recruiter = await factory.create_recruiter("rec-user")
    await factory.create_recruiter("other-rec")

    resp = await client.post(
        "/api/v1/companies/me/invitations",
        json={"recruiter_code": recruiter["recruiter_code"]},
        headers=auth("company-user"),
    )
    invitation_id = resp.json()["data"]["id"]

    # Otro reclutador no puede responderla
    resp = await client.post(
        f"/api/v1/recruiters/invitations/{invitation_id}/accept", headers=auth("other-rec")
    )
    assert resp.status_code == 403

    resp = await client.post(
        f"/api/v1/recruiters/invitations/{invitation_id}/reject", headers=auth("rec-user")
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["state"] == "rechazada"

    # Ya respondida
    resp = await client.post(
        f"/api/v1/recruiters/invitations/{invitation_id}/accept", headers=auth("rec-user")
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_expired_invitation(client: AsyncClient, factory: DataFactory, db_session):
    """Aceptar una invitación vencida la marca como expirada"""
    await factory.create_company("company-user")
    recruiter = await factory.create_recruiter("rec-user")
    resp = await client.post(
        "/api/v1/companies/me/invitations",
        json={"recruiter_code": recruiter["recruiter_code"]},
        headers=auth("company-user"),
    )
    invitation_id = resp.json()["data"]["id"]

    invitation = await invitation_crud.get(db_session, invitation_id)
    invitation.expires_at = utc_now() - timedelta(days=1)
    await db_session.commit()

    resp = await client.post(
        f"/api/v1/recruiters/invitations/{invitation_id}/accept", headers=auth("rec-user")
    )
    assert resp.status_code == 400

    resp = await client.get("/api/v1/recruiters/invitations", headers=auth("rec-user"))
    states = [i["state"] for i in resp.json()["data"]]
    assert states == ["expirada"]

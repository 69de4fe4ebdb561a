"""
Pruebas de estudios socioeconómicos

Solicitud, asignación, captura por el verificador, entrega, calificación y PDF
"""
import pytest
from httpx import AsyncClient

from tests.conftest import DataFactory, auth


async def _request(client: AsyncClient, user_id: str, **overrides) -> dict:
    data = {
        "candidate_name": "Juan Pérez",
        "position": "Almacenista",
        "visit_address": "Av. Reforma 100, CDMX",
        **overrides,
    }
    resp = await client.post("/api/v1/studies", json=data, headers=auth(user_id))
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


CAPTURE = {
    "visit_date": "2030-02-10",
    "visit_time": "11:00",
    "candidate_present": True,
    "sociodemographic": {"estado_civil": "casado", "dependientes": 2},
    "housing": {"tipo": "propia", "servicios": ["agua", "luz"]},
    "economic": {"ingresos": 18000, "egresos": 12000},
    "references": [{"nombre": "Ana Ruiz", "relacion": "vecina", "comentario": "Buena persona"}],
    "general_result": "viable",
    "risk_rating": "bajo",
    "final_notes": "Sin observaciones",
}


@pytest.mark.asyncio
async def test_study_full_flow(client: AsyncClient, factory: DataFactory):
    await factory.create_company("company-user")
    verifier = await factory.create_verifier("ver-user", name="Laura Verificadora")

    # 1. Solicitar
    study = await _request(client, "company-user")
    assert study["status"] == "solicitado"
    assert study["folio"]

    # 2. Asignar
    resp = await client.post(
        f"/api/v1/studies/{study['id']}/assign",
        json={"verifier_id": verifier["id"]},
        headers=auth("company-user"),
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "asignado"

    resp = await client.get("/api/v1/studies/assigned", headers=auth("ver-user"))
    assert [s["id"] for s in resp.json()["data"]] == [study["id"]]

    # 3. Borrador
    resp = await client.put(
        f"/api/v1/studies/{study['id']}/draft",
        json={"visit_date": "2030-02-10", "housing": {"tipo": "rentada"}},
        headers=auth("ver-user"),
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "en_proceso"
    assert data["draft"] is True
    assert data["housing"] == {"tipo": "rentada"}

    # 4. Entregar sin resultado
    resp = await client.post(
        f"/api/v1/studies/{study['id']}/submit",
        json={"final_notes": "pendiente"},
        headers=auth("ver-user"),
    )
    assert resp.status_code == 400

    # 5. Entregar
    resp = await client.post(f"/api/v1/studies/{study['id']}/submit", json=CAPTURE, headers=auth("ver-user"))
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "entregado"
    assert data["delivered_at"] is not None
    assert data["general_result"] == "viable"

    # 6. Ya cerrado
    resp = await client.put(f"/api/v1/studies/{study['id']}/draft", json={}, headers=auth("ver-user"))
    assert resp.status_code == 400

    # 7. Calificar
    resp = await client.post(
        f"/api/v1/studies/{study['id']}/rating",
        json={"rating": 5, "comment": "Muy completo"},
        headers=auth("company-user"),
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["verifier_id"] == verifier["id"]

    resp = await client.post(
        f"/api/v1/studies/{study['id']}/rating", json={"rating": 4}, headers=auth("company-user")
    )
    assert resp.status_code == 409

    # 8. PDF
    resp = await client.get(f"/api/v1/studies/{study['id']}/pdf", headers=auth("company-user"))
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert f"estudio_{study['folio']}.pdf" in resp.headers["content-disposition"]
    assert resp.content.startswith(b"%PDF")

    # 9. Estadísticas del verificador
    resp = await client.get("/api/v1/dashboard/verifier-stats", headers=auth("ver-user"))
    assert resp.status_code == 200
    stats = resp.json()["data"]
    assert stats["completed"] == 1
    assert stats["avg_rating"] == 5
    assert stats["on_time"] == 1


@pytest.mark.asyncio
async def test_study_access_rules(client: AsyncClient, factory: DataFactory):
    await factory.create_verifier("ver-user")
    other = await factory.create_verifier("other-ver")
    study = await _request(client, "requester", verifier_id=other["id"])
    assert study["status"] == "asignado"

    # 1. Un verificador sin asignación no lo ve ni lo captura
    resp = await client.get(f"/api/v1/studies/{study['id']}", headers=auth("ver-user"))
    assert resp.status_code == 403
    resp = await client.put(f"/api/v1/studies/{study['id']}/draft", json={}, headers=auth("ver-user"))
    assert resp.status_code == 403

    # 2. El asignado sí lo ve
    resp = await client.get(f"/api/v1/studies/{study['id']}", headers=auth("other-ver"))
    assert resp.status_code == 200

    # 3. Solo el solicitante lo cancela
    resp = await client.post(f"/api/v1/studies/{study['id']}/cancel", headers=auth("other-ver"))
    assert resp.status_code == 403
    resp = await client.post(f"/api/v1/studies/{study['id']}/cancel", headers=auth("requester"))
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "cancelado"

    # 4. Cancelado no se califica
    resp = await client.post(
        f"/api/v1/studies/{study['id']}/rating", json={"rating": 3}, headers=auth("requester")
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_absent_candidate_needs_reason(client: AsyncClient, factory: DataFactory):
    verifier = await factory.create_verifier("ver-user")
    study = await _request(client, "requester", verifier_id=verifier["id"])

    resp = await client.post(
        f"/api/v1/studies/{study['id']}/submit",
        json={"candidate_present": False, "general_result": "no_viable"},
        headers=auth("ver-user"),
    )
    assert resp.status_code == 400

    resp = await client.post(
        f"/api/v1/studies/{study['id']}/submit",
        json={"candidate_present": False, "absence_reason": "No se encontraba", "general_result": "no_viable"},
        headers=auth("ver-user"),
    )
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_verifier_directory(client: AsyncClient, factory: DataFactory):
    await factory.create_verifier("ver-user")
    await factory.create_verifier("busy-ver", available=False)

    resp = await client.get("/api/v1/verifiers", headers=auth("someone"))
    assert resp.status_code == 200
    assert len(resp.json()["data"]) == 1

    resp = await client.get("/api/v1/studies/assigned", headers=auth("someone"))
    assert resp.status_code == 403

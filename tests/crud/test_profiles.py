"""
Pruebas de perfiles

Candidato (con mejora de resumen por IA simulada), reclutador y verificador
"""
import pytest
from httpx import AsyncClient

from app.services import summary
from tests.conftest import DataFactory, auth


class FakeLLM:
    def __init__(self, response):
        self.response = response
        self.prompts = []

    async def complete_json(self, system, prompt, temperature=0.3, max_tokens=None):
        self.prompts.append(prompt)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


AI_SUMMARY = {
    "resumen_mejorado": "Ingeniero backend con 5 años construyendo APIs escalables en Python.",
    "resumen_indexado": "Backend Python, FastAPI, 5 años",
    "keywords": ["Python", "FastAPI", "PostgreSQL"],
    "industrias": ["Tecnología", "Fintech"],
    "nivel_experiencia": "senior",
}


@pytest.mark.asyncio
async def test_candidate_profile_flow(client: AsyncClient, factory: DataFactory):
    # 1. Create
    profile = await factory.create_candidate("cand-user", full_name="Pedro Ramírez")
    assert profile["technical_skills"] == ["Python", "FastAPI"]
    assert profile["indexed_at"] is None

    # 2. Read
    resp = await client.get("/api/v1/candidates/profile", headers=auth("cand-user"))
    assert resp.status_code == 200
    assert resp.json()["data"]["full_name"] == "Pedro Ramírez"

    # 3. Update
    resp = await client.patch(
        "/api/v1/candidates/profile",
        json={"location": "Puebla", "soft_skills": ["Liderazgo"]},
        headers=auth("cand-user"),
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["soft_skills"] == ["Liderazgo"]

    # 4. Duplicado
    resp = await client.post(
        "/api/v1/candidates/profile",
        json={"full_name": "Otro", "email": "otro@example.com"},
        headers=auth("cand-user"),
    )
    assert resp.status_code == 409

    # 5. Sin perfil
    resp = await client.get("/api/v1/candidates/profile", headers=auth("nobody"))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_improve_summary_and_save(client: AsyncClient, factory: DataFactory, monkeypatch):
    fake = FakeLLM(AI_SUMMARY)
    monkeypatch.setattr(summary, "get_llm_client", lambda: fake)
    await factory.create_candidate("cand-user")

    # 1. Sin guardar
    resp = await client.post(
        "/api/v1/candidates/profile/improve-summary",
        json={
            "current_summary": "Programador python con experiencia en apis y bases de datos",
            "target_position": "Backend Sr",
            "technical_skills": ["Python"],
        },
        headers=auth("cand-user"),
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["experience_level"] == "senior"
    assert data["keywords"] == ["Python", "FastAPI", "PostgreSQL"]
    assert data["saved"] is False
    assert "Puesto buscado: Backend Sr" in fake.prompts[0]

    # 2. Guardando en el perfil
    resp = await client.post(
        "/api/v1/candidates/profile/improve-summary",
        json={"current_summary": "Programador python con experiencia en apis", "save": True},
        headers=auth("cand-user"),
    )
    assert resp.json()["data"]["saved"] is True

    resp = await client.get("/api/v1/candidates/profile", headers=auth("cand-user"))
    profile = resp.json()["data"]
    assert profile["professional_summary"] == AI_SUMMARY["resumen_mejorado"]
    assert profile["sourcing_keywords"] == AI_SUMMARY["keywords"]
    assert profile["ai_experience_level"] == "senior"
    assert profile["indexed_at"] is not None


@pytest.mark.asyncio
async def test_improve_summary_errors(client: AsyncClient, factory: DataFactory, monkeypatch):
    await factory.create_candidate("cand-user")

    # 1. Resumen demasiado corto
    monkeypatch.setattr(summary, "get_llm_client", lambda: FakeLLM(AI_SUMMARY))
    resp = await client.post(
        "/api/v1/candidates/profile/improve-summary",
        json={"current_summary": "Muy corto"},
        headers=auth("cand-user"),
    )
    assert resp.status_code == 400

    # 2. Falla del proveedor
    monkeypatch.setattr(summary, "get_llm_client", lambda: FakeLLM(RuntimeError("timeout")))
    resp = await client.post(
        "/api/v1/candidates/profile/improve-summary",
        json={"current_summary": "Programador python con experiencia en apis"},
        headers=auth("cand-user"),
    )
    assert resp.status_code == 502


def test_normalize_result_defaults():
    result = summary.normalize_result(
        {"keywords": [str(i) for i in range(30)], "nivel_experiencia": "guru"}, "original"
    )
    assert result["improved_summary"] == "original"
    assert len(result["keywords"]) == summary.MAX_KEYWORDS
    assert result["industries"] == []
    assert result["experience_level"] == "mid"


@pytest.mark.asyncio
async def test_recruiter_profile(client: AsyncClient, factory: DataFactory):
    recruiter = await factory.create_recruiter("rec-user", specialties=["TI"])
    assert recruiter["recruiter_code"]

    resp = await client.patch(
        "/api/v1/recruiters/profile", json={"years_experience": 8}, headers=auth("rec-user")
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["years_experience"] == 8

    # El monedero se crea con el perfil
    resp = await client.get("/api/v1/wallets/recruiter", headers=auth("rec-user"))
    assert resp.status_code == 200
    assert resp.json()["data"]["total"] == 0

    resp = await client.post(
        "/api/v1/recruiters/profile",
        json={"name": "Otro", "email": "otro@example.com"},
        headers=auth("rec-user"),
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_verifier_profile(client: AsyncClient, factory: DataFactory):
    verifier = await factory.create_verifier("ver-user", coverage_zones=["CDMX", "Edomex"])
    assert verifier["verifier_code"]

    resp = await client.get("/api/v1/verifiers/profile", headers=auth("ver-user"))
    assert resp.status_code == 200
    assert resp.json()["data"]["coverage_zones"] == ["CDMX", "Edomex"]

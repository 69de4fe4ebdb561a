"""
Configuración de pruebas

Fixtures: base de datos en memoria, cliente HTTP, tokens de prueba y
fábrica de datos
"""
from typing import AsyncGenerator, Optional
from dataclasses import dataclass, field

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import app.models  # noqa: F401  registra las tablas
from app.core.config import settings
from app.core.database import get_db
from app.main import create_app
from app.services import ledger


def make_token(user_id: str, email: Optional[str] = None) -> str:
    """JWT como el que emite el servicio de autenticación"""
    payload = {
        "sub": user_id,
        "email": email or f"{user_id}@example.com",
        "aud": settings.auth_jwt_audience,
    }
    return jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)


def auth(user_id: str) -> dict:
    """Cabecera Authorization para un usuario"""
    return {"Authorization": f"Bearer {make_token(user_id)}"}


# ========== Fábrica de datos ==========

@dataclass
class DataFactory:
    """
    Fábrica de datos de prueba

    Concentra la creación de entidades para no repetir payloads en cada prueba
    """
    client: AsyncClient
    db: AsyncSession
    _counter: int = field(default=0, repr=False)

    def _next_id(self) -> str:
        self._counter += 1
        return str(self._counter)

    async def _post(self, url: str, user_id: str, data: Optional[dict] = None) -> dict:
        resp = await self.client.post(url, json=data, headers=auth(user_id))
        assert resp.status_code == 200, f"POST {url} falló: {resp.text}"
        return resp.json()["data"]

    async def create_company(self, user_id: str, **overrides) -> dict:
        suffix = self._next_id()
        data = {"name": f"Empresa {suffix}", "sector": "Tecnología", **overrides}
        return await self._post("/api/v1/companies", user_id, data)

    async def create_recruiter(self, user_id: str, **overrides) -> dict:
        suffix = self._next_id()
        data = {
            "name": f"Reclutador {suffix}",
            "email": f"reclutador{suffix}@example.com",
            "years_experience": 3,
            **overrides
        }
        return await self._post("/api/v1/recruiters/profile", user_id, data)

    async def create_candidate(self, user_id: str, **overrides) -> dict:
        suffix = self._next_id()
        data = {
            "full_name": f"Candidato {suffix}",
            "email": f"candidato{suffix}@example.com",
            "phone": f"55{suffix.zfill(8)}",
            "current_position": "Desarrollador backend",
            "technical_skills": ["Python", "FastAPI"],
            "professional_summary": "Desarrollador con cinco años de experiencia en APIs.",
            **overrides
        }
        return await self._post("/api/v1/candidates/profile", user_id, data)

    async def create_verifier(self, user_id: str, **overrides) -> dict:
        suffix = self._next_id()
        data = {
            "name": f"Verificador {suffix}",
            "email": f"verificador{suffix}@example.com",
            "coverage_zones": ["CDMX"],
            **overrides
        }
        return await self._post("/api/v1/verifiers/profile", user_id, data)

    async def link_recruiter(self, company_user: str, recruiter_user: str, recruiter_code: str) -> dict:
        """Invita y acepta; devuelve el vínculo activo"""
        invitation = await self._post(
            "/api/v1/companies/me/invitations", company_user, {"recruiter_code": recruiter_code}
        )
        return await self._post(f"/api/v1/recruiters/invitations/{invitation['id']}/accept", recruiter_user)

    async def create_vacancy(self, user_id: str, **overrides) -> dict:
        suffix = self._next_id()
        data = {
            "title": f"Desarrollador Python {suffix}",
            "client_area": "Tecnología",
            "work_mode": "remoto",
            "location": "CDMX",
            "approved_gross_salary": 45000,
            "required_profile": "Python, FastAPI, SQL",
            **overrides
        }
        return await self._post("/api/v1/vacancies", user_id, data)

    async def add_credits(self, *, wallet_type: str, owner_id: str, credits: int) -> dict:
        """Abona créditos directo en el libro (sin pasar por Stripe)"""
        result = await ledger.add_purchased_credits(
            self.db,
            wallet_type=wallet_type,
            owner_id=owner_id,
            credits=credits,
            actor_user_id="system",
        )
        await self.db.commit()
        return result

    async def publish(self, recruiter_user: str, vacancy_id: str, **overrides) -> dict:
        data = {"show_salary": True, "show_profile": True, **overrides}
        result = await self._post(f"/api/v1/marketplace/vacancies/{vacancy_id}/publish", recruiter_user, data)
        return result["publication"]

    async def apply(self, candidate_user: str, publication_id: str) -> dict:
        return await self._post(
            f"/api/v1/marketplace/publications/{publication_id}/apply",
            candidate_user,
            {"cover_letter": "Me interesa la posición"},
        )

    async def published_vacancy(self, recruiter_user: str = "rec-user") -> dict:
        """
        Reclutador independiente con créditos, vacante propia publicada

        Returns:
            {recruiter, vacancy, publication}
        """
        recruiter = await self.create_recruiter(recruiter_user)
        await self.add_credits(wallet_type="reclutador", owner_id=recruiter["id"], credits=100)
        vacancy = await self.create_vacancy(recruiter_user)
        publication = await self.publish(recruiter_user, vacancy["id"])
        return {"recruiter": recruiter, "vacancy": vacancy, "publication": publication}


# ========== Base de datos y cliente ==========

@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Sesión sobre una base SQLite en memoria nueva para cada prueba
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Cliente HTTP de pruebas

    Sustituye get_db por la sesión de prueba
    """
    app = create_app()

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def factory(client: AsyncClient, db_session: AsyncSession) -> DataFactory:
    """Fábrica de datos de prueba"""
    return DataFactory(client=client, db=db_session)

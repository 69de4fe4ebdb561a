"""
CRUD de perfiles
"""
from typing import Optional, List
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.profile import CandidateProfile, RecruiterProfile, VerifierProfile
from .base import CRUDBase
from .company import generate_code


class CRUDCandidateProfile(CRUDBase[CandidateProfile]):
    """CRUD de perfiles de candidato"""

    async def get_by_user(self, db: AsyncSession, user_id: str) -> Optional[CandidateProfile]:
        result = await db.execute(select(self.model).where(self.model.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_by_users(self, db: AsyncSession, user_ids: List[str]) -> List[CandidateProfile]:
        """Perfiles de varios usuarios"""
        if not user_ids:
            return []
        result = await db.execute(select(self.model).where(self.model.user_id.in_(user_ids)))
        return list(result.scalars().all())

    async def get_sourcing_pool(
        self,
        db: AsyncSession,
        *,
        exclude_user_ids: set,
        indexed_limit: int,
        unindexed_limit: int
    ) -> List[CandidateProfile]:
        """
        Pool de candidatos para sourcing

        Primero perfiles indexados por IA (más recientes), luego perfiles sin
        indexar pero con resumen o habilidades.
        """
        indexed_query = (
            select(self.model)
            .where(self.model.indexed_at.is_not(None))
            .order_by(self.model.indexed_at.desc())
            .limit(indexed_limit)
        )
        unindexed_query = (
            select(self.model)
            .where(self.model.indexed_at.is_(None))
            .where(
                or_(
                    self.model.professional_summary.is_not(None),
                    self.model.current_position.is_not(None),
                )
            )
            .order_by(self.model.updated_at.desc())
            .limit(unindexed_limit)
        )
        indexed = list((await db.execute(indexed_query)).scalars().all())
        unindexed = list((await db.execute(unindexed_query)).scalars().all())
        return [p for p in indexed + unindexed if p.user_id not in exclude_user_ids]


class CRUDRecruiterProfile(CRUDBase[RecruiterProfile]):
    """CRUD de perfiles de reclutador"""

    async def get_by_user(self, db: AsyncSession, user_id: str) -> Optional[RecruiterProfile]:
        result = await db.execute(select(self.model).where(self.model.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_by_code(self, db: AsyncSession, code: str) -> Optional[RecruiterProfile]:
        result = await db.execute(
            select(self.model).where(func.upper(self.model.recruiter_code) == code.strip().upper())
        )
        return result.scalar_one_or_none()

    async def create_profile(self, db: AsyncSession, *, data: dict, user_id: str) -> RecruiterProfile:
        """Crea el perfil con código de reclutador único"""
        code = generate_code("REC")
        while await self.get_by_code(db, code):
            code = generate_code("REC")
        return await self.create(db, obj_in={**data, "user_id": user_id, "recruiter_code": code})


class CRUDVerifierProfile(CRUDBase[VerifierProfile]):
    """CRUD de perfiles de verificador"""

    async def get_by_user(self, db: AsyncSession, user_id: str) -> Optional[VerifierProfile]:
        result = await db.execute(select(self.model).where(self.model.user_id == user_id))
        return result.scalar_one_or_none()

    async def create_profile(self, db: AsyncSession, *, data: dict, user_id: str) -> VerifierProfile:
        code = generate_code("VER")
        while await self.get_by(db, verifier_code=code):
            code = generate_code("VER")
        return await self.create(db, obj_in={**data, "user_id": user_id, "verifier_code": code})

    async def get_available(self, db: AsyncSession) -> List[VerifierProfile]:
        """Verificadores disponibles"""
        result = await db.execute(
            select(self.model).where(self.model.available == True).order_by(self.model.name)
        )
        return list(result.scalars().all())


candidate_crud = CRUDCandidateProfile(CandidateProfile)
recruiter_crud = CRUDRecruiterProfile(RecruiterProfile)
verifier_crud = CRUDVerifierProfile(VerifierProfile)

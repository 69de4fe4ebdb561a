"""
CRUD de estudios socioeconómicos
"""
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.study import SocioeconomicStudy, StudyRating
from .base import CRUDBase


class CRUDStudy(CRUDBase[SocioeconomicStudy]):
    """CRUD de estudios"""

    async def next_folio(self, db: AsyncSession) -> str:
        """Siguiente folio ESE-NNNNN"""
        n = await self.count(db) + 1
        folio = f"ESE-{n:05d}"
        while await self.get_by(db, folio=folio):
            n += 1
            folio = f"ESE-{n:05d}"
        return folio

    async def get_by_verifier(
        self,
        db: AsyncSession,
        verifier_id: str,
        status: Optional[str] = None
    ) -> List[SocioeconomicStudy]:
        """Estudios del verificador ordenados por fecha límite"""
        query = select(self.model).where(self.model.verifier_id == verifier_id)
        if status:
            query = query.where(self.model.status == status)
        result = await db.execute(query.order_by(self.model.deadline.asc()))
        return list(result.scalars().all())

    async def get_by_requester(
        self,
        db: AsyncSession,
        *,
        user_id: str,
        company_id: Optional[str] = None
    ) -> List[SocioeconomicStudy]:
        query = select(self.model)
        if company_id:
            query = query.where(self.model.company_id == company_id)
        else:
            query = query.where(self.model.requester_user_id == user_id)
        result = await db.execute(query.order_by(self.model.requested_at.desc()))
        return list(result.scalars().all())


class CRUDStudyRating(CRUDBase[StudyRating]):
    """CRUD de calificaciones"""

    async def get_by_verifier(self, db: AsyncSession, verifier_id: str) -> List[StudyRating]:
        result = await db.execute(select(self.model).where(self.model.verifier_id == verifier_id))
        return list(result.scalars().all())


study_crud = CRUDStudy(SocioeconomicStudy)
study_rating_crud = CRUDStudyRating(StudyRating)

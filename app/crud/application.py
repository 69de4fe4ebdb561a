"""
CRUD de postulaciones
"""
from typing import Optional, List
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.application import Application
from .base import CRUDBase


class CRUDApplication(CRUDBase[Application]):
    """CRUD de postulaciones"""

    async def get_for_candidate(
        self,
        db: AsyncSession,
        *,
        publication_id: str,
        candidate_user_id: str
    ) -> Optional[Application]:
        """Postulación de un candidato a una publicación"""
        result = await db.execute(
            select(self.model).where(
                self.model.publication_id == publication_id,
                self.model.candidate_user_id == candidate_user_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_candidate(self, db: AsyncSession, candidate_user_id: str) -> List[Application]:
        result = await db.execute(
            select(self.model)
            .where(self.model.candidate_user_id == candidate_user_id)
            .order_by(self.model.applied_at.desc())
        )
        return list(result.scalars().all())

    async def get_by_publication(
        self,
        db: AsyncSession,
        publication_id: str,
        *,
        stage: Optional[str] = None
    ) -> List[Application]:
        query = select(self.model).where(self.model.publication_id == publication_id)
        if stage:
            query = query.where(self.model.stage == stage)
        result = await db.execute(query.order_by(self.model.applied_at.desc()))
        return list(result.scalars().all())

    async def get_candidate_ids_for_vacancy(self, db: AsyncSession, vacancy_id: str) -> set:
        """Candidatos que ya se postularon a la vacante"""
        result = await db.execute(
            select(self.model.candidate_user_id).where(self.model.vacancy_id == vacancy_id)
        )
        return set(result.scalars().all())

    async def count_by_vacancies(self, db: AsyncSession, vacancy_ids: List[str]) -> int:
        if not vacancy_ids:
            return 0
        result = await db.execute(
            select(func.count()).select_from(self.model).where(self.model.vacancy_id.in_(vacancy_ids))
        )
        return result.scalar() or 0


application_crud = CRUDApplication(Application)

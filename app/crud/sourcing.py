"""
CRUD de sourcing con IA
"""
from datetime import datetime
from typing import List
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.sourcing import SourcingResult, SourcingAudit
from .base import CRUDBase


class CRUDSourcingResult(CRUDBase[SourcingResult]):
    """CRUD de candidatos sugeridos"""

    async def get_by_vacancy(self, db: AsyncSession, vacancy_id: str) -> List[SourcingResult]:
        result = await db.execute(
            select(self.model)
            .where(self.model.vacancy_id == vacancy_id)
            .order_by(self.model.match_score.desc())
        )
        return list(result.scalars().all())

    async def get_candidate_ids_for_vacancy(self, db: AsyncSession, vacancy_id: str) -> set:
        """Candidatos ya sugeridos para la vacante"""
        result = await db.execute(
            select(self.model.candidate_user_id).where(self.model.vacancy_id == vacancy_id)
        )
        return set(result.scalars().all())


class CRUDSourcingAudit(CRUDBase[SourcingAudit]):
    """CRUD de la bitácora de sourcing"""

    async def count_since(
        self,
        db: AsyncSession,
        *,
        since: datetime,
        action: str,
        user_id: str = None,
        vacancy_id: str = None
    ) -> int:
        query = (
            select(func.count())
            .select_from(self.model)
            .where(self.model.action == action, self.model.created_at >= since)
        )
        if user_id:
            query = query.where(self.model.user_id == user_id)
        if vacancy_id:
            query = query.where(self.model.vacancy_id == vacancy_id)
        result = await db.execute(query)
        return result.scalar() or 0


sourcing_result_crud = CRUDSourcingResult(SourcingResult)
sourcing_audit_crud = CRUDSourcingAudit(SourcingAudit)

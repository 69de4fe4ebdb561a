"""
CRUD de vacantes y publicaciones
"""
from typing import Optional, List
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import utc_now
from app.models.vacancy import Vacancy, MarketplacePublication, VacancyStatus
from .base import CRUDBase


class CRUDVacancy(CRUDBase[Vacancy]):
    """CRUD de vacantes"""

    async def next_folio(self, db: AsyncSession) -> str:
        """Siguiente folio VAC-NNNNN"""
        n = await self.count(db) + 1
        folio = f"VAC-{n:05d}"
        while await self.get_by(db, folio=folio):
            n += 1
            folio = f"VAC-{n:05d}"
        return folio

    def _filters(
        self,
        *,
        company_id: Optional[str] = None,
        owner_user_id: Optional[str] = None,
        recruiter_id: Optional[str] = None,
        status: Optional[str] = None,
        client_area: Optional[str] = None
    ) -> list:
        where = []
        if company_id:
            where.append(self.model.company_id == company_id)
        if owner_user_id:
            where.append(self.model.owner_user_id == owner_user_id)
        if recruiter_id:
            where.append(self.model.assigned_recruiter_id == recruiter_id)
        if status and status != "todos":
            where.append(self.model.status == status)
        if client_area and client_area != "todos":
            where.append(self.model.client_area == client_area)
        return where

    async def list_filtered(
        self,
        db: AsyncSession,
        *,
        skip: int = 0,
        limit: int = 100,
        **filters
    ) -> List[Vacancy]:
        return await self.get_multi(db, skip=skip, limit=limit, where=self._filters(**filters))

    async def count_filtered(self, db: AsyncSession, **filters) -> int:
        return await self.count(db, where=self._filters(**filters))

    async def all_filtered(self, db: AsyncSession, **filters) -> List[Vacancy]:
        """Todas las vacantes que cumplen los filtros (para KPIs)"""
        query = select(self.model)
        for clause in self._filters(**filters):
            query = query.where(clause)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def count_open_for_recruiter(
        self,
        db: AsyncSession,
        *,
        recruiter_id: str,
        company_id: Optional[str] = None
    ) -> int:
        """Vacantes abiertas asignadas a un reclutador"""
        where = [
            self.model.assigned_recruiter_id == recruiter_id,
            self.model.status == VacancyStatus.OPEN.value,
        ]
        if company_id:
            where.append(self.model.company_id == company_id)
        return await self.count(db, where=where)


class CRUDPublication(CRUDBase[MarketplacePublication]):
    """CRUD de publicaciones del marketplace"""

    async def get_by_vacancy(self, db: AsyncSession, vacancy_id: str) -> Optional[MarketplacePublication]:
        result = await db.execute(select(self.model).where(self.model.vacancy_id == vacancy_id))
        return result.scalar_one_or_none()

    async def withdraw(self, db: AsyncSession, vacancy_id: str) -> Optional[MarketplacePublication]:
        """Saca del marketplace la publicación de la vacante, si la hay"""
        publication = await self.get_by_vacancy(db, vacancy_id)
        if publication and publication.published:
            publication.published = False
            publication.updated_at = utc_now()
        return publication

    def _search(self, search: Optional[str], work_mode: Optional[str], location: Optional[str]) -> list:
        where = [self.model.published == True]
        if search:
            pattern = f"%{search.strip()}%"
            where.append(or_(self.model.title.ilike(pattern), self.model.required_profile.ilike(pattern)))
        if work_mode:
            where.append(self.model.work_mode == work_mode)
        if location:
            where.append(self.model.location.ilike(f"%{location.strip()}%"))
        return where

    async def search_published(
        self,
        db: AsyncSession,
        *,
        search: Optional[str] = None,
        work_mode: Optional[str] = None,
        location: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> List[MarketplacePublication]:
        """Publicaciones visibles para candidatos"""
        return await self.get_multi(
            db,
            skip=skip,
            limit=limit,
            where=self._search(search, work_mode, location),
            order_by=self.model.published_at.desc(),
        )

    async def count_published(
        self,
        db: AsyncSession,
        *,
        search: Optional[str] = None,
        work_mode: Optional[str] = None,
        location: Optional[str] = None
    ) -> int:
        return await self.count(db, where=self._search(search, work_mode, location))

    async def count_by_user(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(
            select(func.count()).select_from(self.model).where(self.model.user_id == user_id)
        )
        return result.scalar() or 0


vacancy_crud = CRUDVacancy(Vacancy)
publication_crud = CRUDPublication(MarketplacePublication)

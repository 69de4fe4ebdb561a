"""
CRUD de invitaciones y vínculos empresa - reclutador
"""
from typing import Optional, List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.association import (
    RecruiterInvitation, RecruiterCompanyLink, InvitationState, LinkState,
)
from .base import CRUDBase


class CRUDInvitation(CRUDBase[RecruiterInvitation]):
    """CRUD de invitaciones"""

    async def get_pending(
        self,
        db: AsyncSession,
        *,
        company_id: str,
        recruiter_id: str
    ) -> Optional[RecruiterInvitation]:
        """Invitación pendiente entre una empresa y un reclutador"""
        result = await db.execute(
            select(self.model)
            .where(
                self.model.company_id == company_id,
                self.model.recruiter_id == recruiter_id,
                self.model.state == InvitationState.PENDING.value,
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_for_recruiter(
        self,
        db: AsyncSession,
        recruiter_id: str,
        state: Optional[str] = None
    ) -> List[RecruiterInvitation]:
        query = select(self.model).where(self.model.recruiter_id == recruiter_id)
        if state:
            query = query.where(self.model.state == state)
        result = await db.execute(query.order_by(self.model.created_at.desc()))
        return list(result.scalars().all())

    async def get_for_company(self, db: AsyncSession, company_id: str) -> List[RecruiterInvitation]:
        result = await db.execute(
            select(self.model)
            .where(self.model.company_id == company_id)
            .order_by(self.model.created_at.desc())
        )
        return list(result.scalars().all())


class CRUDLink(CRUDBase[RecruiterCompanyLink]):
    """CRUD de vínculos"""

    async def get_active(
        self,
        db: AsyncSession,
        *,
        recruiter_id: str,
        company_id: str
    ) -> Optional[RecruiterCompanyLink]:
        """Vínculo activo vigente"""
        result = await db.execute(
            select(self.model)
            .where(
                self.model.recruiter_id == recruiter_id,
                self.model.company_id == company_id,
                self.model.state == LinkState.ACTIVE.value,
            )
            .order_by(self.model.started_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_by_company(
        self,
        db: AsyncSession,
        company_id: str,
        *,
        active_only: bool = True
    ) -> List[RecruiterCompanyLink]:
        query = select(self.model).where(self.model.company_id == company_id)
        if active_only:
            query = query.where(self.model.state == LinkState.ACTIVE.value)
        result = await db.execute(query.order_by(self.model.started_at.desc()))
        return list(result.scalars().all())

    async def get_by_recruiter(
        self,
        db: AsyncSession,
        recruiter_id: str,
        *,
        active_only: bool = True
    ) -> List[RecruiterCompanyLink]:
        query = select(self.model).where(self.model.recruiter_id == recruiter_id)
        if active_only:
            query = query.where(self.model.state == LinkState.ACTIVE.value)
        result = await db.execute(query.order_by(self.model.started_at.desc()))
        return list(result.scalars().all())


invitation_crud = CRUDInvitation(RecruiterInvitation)
link_crud = CRUDLink(RecruiterCompanyLink)

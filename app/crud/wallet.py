"""
CRUD del monedero de créditos
"""
from datetime import datetime
from typing import Optional, List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.wallet import (
    CompanyWallet, RecruiterWallet, InheritedCredit, CreditMovement, IdentityAccess,
)
from .base import CRUDBase


class CRUDCompanyWallet(CRUDBase[CompanyWallet]):
    """CRUD de monederos de empresa"""

    async def get_by_company(self, db: AsyncSession, company_id: str) -> Optional[CompanyWallet]:
        result = await db.execute(select(self.model).where(self.model.company_id == company_id))
        return result.scalar_one_or_none()

    async def get_or_create(self, db: AsyncSession, company_id: str) -> CompanyWallet:
        wallet = await self.get_by_company(db, company_id)
        if wallet is None:
            wallet = await self.create(db, obj_in={"company_id": company_id})
        return wallet


class CRUDRecruiterWallet(CRUDBase[RecruiterWallet]):
    """CRUD de monederos de reclutador"""

    async def get_by_recruiter(self, db: AsyncSession, recruiter_id: str) -> Optional[RecruiterWallet]:
        result = await db.execute(select(self.model).where(self.model.recruiter_id == recruiter_id))
        return result.scalar_one_or_none()

    async def get_or_create(self, db: AsyncSession, recruiter_id: str) -> RecruiterWallet:
        wallet = await self.get_by_recruiter(db, recruiter_id)
        if wallet is None:
            wallet = await self.create(db, obj_in={"recruiter_id": recruiter_id})
        return wallet


class CRUDInheritedCredit(CRUDBase[InheritedCredit]):
    """CRUD de créditos heredados"""

    async def get_pair(
        self,
        db: AsyncSession,
        *,
        recruiter_id: str,
        company_id: str
    ) -> Optional[InheritedCredit]:
        result = await db.execute(
            select(self.model).where(
                self.model.recruiter_id == recruiter_id,
                self.model.company_id == company_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_recruiter(self, db: AsyncSession, recruiter_id: str) -> List[InheritedCredit]:
        result = await db.execute(select(self.model).where(self.model.recruiter_id == recruiter_id))
        return list(result.scalars().all())

    async def get_by_company(self, db: AsyncSession, company_id: str) -> List[InheritedCredit]:
        result = await db.execute(select(self.model).where(self.model.company_id == company_id))
        return list(result.scalars().all())


class CRUDCreditMovement(CRUDBase[CreditMovement]):
    """CRUD de movimientos"""

    def _filters(
        self,
        *,
        company_id: Optional[str] = None,
        recruiter_id: Optional[str] = None,
        action: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None
    ) -> list:
        where = []
        if company_id:
            where.append(self.model.company_wallet_id.is_not(None))
            where.append(self.model.company_id == company_id)
        if recruiter_id:
            where.append(self.model.recruiter_wallet_id.is_not(None))
            where.append(self.model.recruiter_id == recruiter_id)
        if action:
            where.append(self.model.action == action)
        if date_from:
            where.append(self.model.created_at >= date_from)
        if date_to:
            where.append(self.model.created_at <= date_to)
        return where

    async def list_filtered(
        self,
        db: AsyncSession,
        *,
        skip: int = 0,
        limit: int = 100,
        **filters
    ) -> List[CreditMovement]:
        return await self.get_multi(db, skip=skip, limit=limit, where=self._filters(**filters))

    async def count_filtered(self, db: AsyncSession, **filters) -> int:
        return await self.count(db, where=self._filters(**filters))

    async def get_by_reference(self, db: AsyncSession, reference: str) -> Optional[CreditMovement]:
        result = await db.execute(
            select(self.model).where(self.model.reference == reference).limit(1)
        )
        return result.scalar_one_or_none()


class CRUDIdentityAccess(CRUDBase[IdentityAccess]):
    """CRUD de identidades desbloqueadas"""

    async def get_pair(
        self,
        db: AsyncSession,
        *,
        recruiter_id: str,
        candidate_user_id: str
    ) -> Optional[IdentityAccess]:
        result = await db.execute(
            select(self.model).where(
                self.model.recruiter_id == recruiter_id,
                self.model.candidate_user_id == candidate_user_id,
            )
        )
        return result.scalar_one_or_none()

    async def unlocked_candidates(self, db: AsyncSession, recruiter_id: str) -> set:
        result = await db.execute(
            select(self.model.candidate_user_id).where(self.model.recruiter_id == recruiter_id)
        )
        return set(result.scalars().all())


company_wallet_crud = CRUDCompanyWallet(CompanyWallet)
recruiter_wallet_crud = CRUDRecruiterWallet(RecruiterWallet)
inherited_credit_crud = CRUDInheritedCredit(InheritedCredit)
movement_crud = CRUDCreditMovement(CreditMovement)
identity_access_crud = CRUDIdentityAccess(IdentityAccess)

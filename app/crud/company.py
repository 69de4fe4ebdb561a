"""
CRUD de empresas y roles
"""
import uuid
from typing import Optional, List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.company import Company, UserRole
from .base import CRUDBase


def generate_code(prefix: str) -> str:
    """Código corto legible, p. ej. EMP-3F9A1C"""
    return f"{prefix}-{uuid.uuid4().hex[:6].upper()}"


class CRUDCompany(CRUDBase[Company]):
    """CRUD de empresas"""

    async def get_by_code(self, db: AsyncSession, company_code: str) -> Optional[Company]:
        """Busca por código de empresa"""
        result = await db.execute(
            select(self.model).where(self.model.company_code == company_code)
        )
        return result.scalar_one_or_none()

    async def create_company(self, db: AsyncSession, *, data: dict, created_by: str) -> Company:
        """Crea la empresa con un código único"""
        code = generate_code("EMP")
        while await self.get_by_code(db, code):
            code = generate_code("EMP")
        return await self.create(db, obj_in={**data, "company_code": code, "created_by": created_by})


class CRUDUserRole(CRUDBase[UserRole]):
    """CRUD de roles de usuario"""

    async def get_roles(self, db: AsyncSession, user_id: str) -> List[UserRole]:
        result = await db.execute(select(self.model).where(self.model.user_id == user_id))
        return list(result.scalars().all())

    async def grant(
        self,
        db: AsyncSession,
        *,
        user_id: str,
        role: str,
        company_id: Optional[str] = None
    ) -> UserRole:
        """Asigna un rol si aún no lo tiene"""
        existing = await self.get_by(db, user_id=user_id, role=role, company_id=company_id)
        if existing:
            return existing
        return await self.create(db, obj_in={"user_id": user_id, "role": role, "company_id": company_id})


company_crud = CRUDCompany(Company)
user_role_crud = CRUDUserRole(UserRole)

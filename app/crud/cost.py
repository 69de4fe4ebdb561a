"""
CRUD de conceptos de costo
"""
from typing import List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.cost import CostConcept
from .base import CRUDBase


class CRUDCostConcept(CRUDBase[CostConcept]):
    """CRUD de conceptos de costo"""

    async def get_active(self, db: AsyncSession, company_id: str) -> List[CostConcept]:
        """Conceptos activos de la empresa"""
        result = await db.execute(
            select(self.model)
            .where(self.model.company_id == company_id, self.model.active == True)
            .order_by(self.model.concept)
        )
        return list(result.scalars().all())

    async def deactivate(self, db: AsyncSession, *, db_obj: CostConcept) -> CostConcept:
        """Baja lógica"""
        return await self.update(db, db_obj=db_obj, obj_in={"active": False})


cost_concept_crud = CRUDCostConcept(CostConcept)

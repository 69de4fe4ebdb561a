"""
Repositorio genérico sobre SQLModel

Los métodos reciben la sesión de la petición y solo hacen flush: el commit o
rollback lo decide get_db al terminar la petición.
"""
from typing import Generic, TypeVar, Type, Optional, List, Any, Dict, Iterable
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from app.core.exceptions import NotFoundException
from app.models.base import utc_now

ModelType = TypeVar("ModelType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=SQLModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=SQLModel)


class CRUDBase(Generic[ModelType]):
    """
    Repositorio de una tabla

    Las subclases agregan las consultas propias de cada entidad; aquí solo
    viven la lectura por id, los filtros de igualdad, la paginación y el
    alta/edición/baja.
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    def _where(self, query, clauses: Optional[Iterable] = None, **equals):
        for clause in clauses or []:
            query = query.where(clause)
        for name, value in equals.items():
            query = query.where(getattr(self.model, name) == value)
        return query

    async def get(self, db: AsyncSession, id: str) -> Optional[ModelType]:
        result = await db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_or_404(self, db: AsyncSession, id: str, message: str = "Registro no encontrado") -> ModelType:
        """Como get, pero lanza NotFoundException si no existe"""
        obj = await self.get(db, id)
        if obj is None:
            raise NotFoundException(message)
        return obj

    async def get_by(self, db: AsyncSession, **filters) -> Optional[ModelType]:
        """Primer registro que coincide con los filtros de igualdad"""
        result = await db.execute(self._where(select(self.model), **filters).limit(1))
        return result.scalar_one_or_none()

    async def get_multi(
        self,
        db: AsyncSession,
        *,
        skip: int = 0,
        limit: int = 100,
        where: Optional[list] = None,
        order_by: Any = None
    ) -> List[ModelType]:
        """Página de registros; por defecto los más recientes primero"""
        order = self.model.created_at.desc() if order_by is None else order_by
        query = self._where(select(self.model), where).order_by(order).offset(skip).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def count(self, db: AsyncSession, where: Optional[list] = None) -> int:
        result = await db.execute(self._where(select(func.count()).select_from(self.model), where))
        return result.scalar() or 0

    async def create(
        self,
        db: AsyncSession,
        *,
        obj_in: CreateSchemaType | Dict[str, Any]
    ) -> ModelType:
        """Inserta desde un esquema o un dict"""
        if isinstance(obj_in, dict):
            db_obj = self.model(**obj_in)
        else:
            db_obj = self.model.model_validate(obj_in)
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: UpdateSchemaType | Dict[str, Any]
    ) -> ModelType:
        """
        Aplica los campos enviados

        Con un esquema solo cuentan los campos presentes en la petición; los
        valores None nunca sobrescriben.
        """
        changes = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if value is not None:
                setattr(db_obj, field, value)
        if hasattr(db_obj, "updated_at"):
            db_obj.updated_at = utc_now()

        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def delete(self, db: AsyncSession, *, id: str) -> bool:
        obj = await self.get(db, id)
        if obj is None:
            return False
        await db.delete(obj)
        await db.flush()
        return True

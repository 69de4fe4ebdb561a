"""
CRUD de mensajes
"""
from typing import List
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.message import ApplicationMessage
from .base import CRUDBase


class CRUDMessage(CRUDBase[ApplicationMessage]):
    """CRUD de mensajes de postulación"""

    async def get_thread(self, db: AsyncSession, application_id: str) -> List[ApplicationMessage]:
        result = await db.execute(
            select(self.model)
            .where(self.model.application_id == application_id)
            .order_by(self.model.created_at.asc())
        )
        return list(result.scalars().all())

    async def mark_read(self, db: AsyncSession, *, application_id: str, recipient_user_id: str) -> int:
        """Marca como leídos los mensajes recibidos en la conversación"""
        result = await db.execute(
            update(self.model)
            .where(
                self.model.application_id == application_id,
                self.model.recipient_user_id == recipient_user_id,
                self.model.read == False,
            )
            .values(read=True)
        )
        await db.flush()
        return result.rowcount or 0

    async def count_unread(self, db: AsyncSession, recipient_user_id: str) -> int:
        result = await db.execute(
            select(func.count())
            .select_from(self.model)
            .where(self.model.recipient_user_id == recipient_user_id, self.model.read == False)
        )
        return result.scalar() or 0


message_crud = CRUDMessage(ApplicationMessage)

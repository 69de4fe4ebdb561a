"""
Modelo de mensajes de postulación
"""
from typing import Optional
from sqlmodel import Field

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class ApplicationMessage(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """Mensaje entre reclutador y candidato dentro de una postulación"""
    __tablename__ = "application_messages"

    application_id: str = Field(..., foreign_key="applications.id", index=True, description="Postulación")
    sender_user_id: str = Field(..., index=True, description="Remitente")
    recipient_user_id: str = Field(..., index=True, description="Destinatario")
    body: str = Field(..., description="Mensaje")
    read: bool = Field(False, index=True, description="Leído")


class MessageCreate(SQLModelBase):
    """Enviar mensaje"""
    body: str = Field(..., min_length=1, max_length=4000, description="Mensaje")


class ApplicationMessageResponse(TimestampResponse):
    """Mensaje"""
    application_id: str
    sender_user_id: str
    recipient_user_id: str
    body: str
    read: bool

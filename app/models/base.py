"""
Clases base de SQLModel

Campos comunes y mixins
"""
import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field


def utc_now() -> datetime:
    """Hora actual en UTC con tzinfo"""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normaliza una fecha a UTC con tzinfo

    Las fechas sin zona horaria (SQLite las devuelve así) se toman como UTC.
    """
    if value is None:
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SQLModelBase(SQLModel):
    """
    Configuración base de SQLModel

    Todos los esquemas heredan de esta clase
    """
    model_config = {
        "from_attributes": True,
        "populate_by_name": True,
        "str_strip_whitespace": True,
    }


class TimestampMixin(SQLModel):
    """Mixin de marcas de tiempo para tablas"""
    created_at: datetime = Field(
        default_factory=utc_now,
        nullable=False,
        description="Fecha de creación"
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        nullable=False,
        description="Fecha de actualización"
    )


class IDMixin(SQLModel):
    """Mixin de ID para tablas"""
    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True,
        description="ID"
    )


class TimestampResponse(SQLModelBase):
    """Respuesta base con marcas de tiempo"""
    id: str
    created_at: datetime
    updated_at: datetime

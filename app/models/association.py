"""
Modelo de asociación empresa - reclutador

Invitaciones por código de reclutador y vínculos (historial incluido)
"""
from datetime import datetime
from typing import Optional
from enum import Enum
from sqlmodel import Field

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse, utc_now


class InvitationState(str, Enum):
    """Estado de invitación"""
    PENDING = "pendiente"
    ACCEPTED = "aceptada"
    REJECTED = "rechazada"
    EXPIRED = "expirada"


class LinkState(str, Enum):
    """Estado de la asociación"""
    ACTIVE = "activa"
    INACTIVE = "inactiva"
    FINISHED = "finalizada"


class LinkType(str, Enum):
    """Tipo de vinculación"""
    INTERNAL = "interno"
    FREELANCE = "freelance"


# ==================== Tablas ====================

class RecruiterInvitation(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """Invitación de una empresa a un reclutador"""
    __tablename__ = "recruiter_invitations"

    company_id: str = Field(..., foreign_key="companies.id", index=True, description="Empresa")
    recruiter_id: str = Field(..., foreign_key="recruiter_profiles.id", index=True, description="Reclutador")
    recruiter_code: str = Field(..., max_length=20, description="Código usado en la invitación")
    link_type: str = Field(LinkType.FREELANCE.value, description="Tipo de vinculación propuesta")
    state: str = Field(InvitationState.PENDING.value, index=True, description="Estado")
    message: Optional[str] = Field(None, max_length=1000, description="Mensaje de la empresa")
    invited_by: str = Field(..., description="Usuario que invita")
    expires_at: Optional[datetime] = Field(None, description="Expira")
    answered_at: Optional[datetime] = Field(None, description="Fecha de respuesta")


class RecruiterCompanyLink(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """
    Vínculo reclutador - empresa

    Cada aceptación genera un vínculo nuevo; los finalizados quedan como historial.
    """
    __tablename__ = "recruiter_company_links"

    recruiter_id: str = Field(..., foreign_key="recruiter_profiles.id", index=True, description="Reclutador")
    company_id: str = Field(..., foreign_key="companies.id", index=True, description="Empresa")
    link_type: str = Field(LinkType.FREELANCE.value, description="Tipo de vinculación")
    state: str = Field(LinkState.ACTIVE.value, index=True, description="Estado")
    invitation_id: Optional[str] = Field(None, foreign_key="recruiter_invitations.id", description="Invitación de origen")
    started_at: datetime = Field(default_factory=utc_now, description="Inicio")
    ended_at: Optional[datetime] = Field(None, description="Fin")


# ==================== Esquemas ====================

class InvitationCreate(SQLModelBase):
    """Invitar a un reclutador por código"""
    recruiter_code: str = Field(..., min_length=1, max_length=20, description="Código del reclutador")
    link_type: LinkType = Field(LinkType.FREELANCE, description="Tipo de vinculación")
    message: Optional[str] = Field(None, max_length=1000, description="Mensaje")
    expires_in_days: int = Field(15, ge=1, le=90, description="Vigencia en días")


class InvitationResponse(TimestampResponse):
    """Invitación"""
    company_id: str
    recruiter_id: str
    recruiter_code: str
    link_type: str
    state: str
    message: Optional[str]
    invited_by: str
    expires_at: Optional[datetime]
    answered_at: Optional[datetime]


class LinkResponse(TimestampResponse):
    """Vínculo reclutador - empresa"""
    recruiter_id: str
    company_id: str
    link_type: str
    state: str
    invitation_id: Optional[str]
    started_at: datetime
    ended_at: Optional[datetime]

"""
Modelo de vacantes y publicaciones del marketplace
"""
from datetime import datetime
from typing import Optional, List
from enum import Enum
from sqlmodel import Field, Column, JSON

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse, utc_now


class VacancyStatus(str, Enum):
    """Estatus de vacante"""
    OPEN = "abierta"
    CLOSED = "cerrada"
    CANCELLED = "cancelada"


class WorkMode(str, Enum):
    """Modalidad de trabajo"""
    HYBRID = "hibrido"
    REMOTE = "remoto"
    ON_SITE = "presencial"


# ==================== Campos base ====================

class VacancyBase(SQLModelBase):
    """Campos base de vacante"""
    title: str = Field(..., min_length=1, max_length=200, description="Puesto", index=True)
    client_area: Optional[str] = Field(None, max_length=200, description="Cliente / área solicitante")
    reason: Optional[str] = Field(None, max_length=100, description="Motivo (nueva posición, reemplazo...)")
    replaces: Optional[str] = Field(None, max_length=200, description="Persona a reemplazar")
    work_mode: WorkMode = Field(WorkMode.ON_SITE, description="Modalidad")
    location: Optional[str] = Field(None, max_length=200, description="Ubicación")
    approved_gross_salary: Optional[float] = Field(None, ge=0, description="Sueldo bruto aprobado")
    required_profile: Optional[str] = Field(None, description="Perfil requerido")
    notes: Optional[str] = Field(None, description="Observaciones")


# ==================== Tablas ====================

class Vacancy(VacancyBase, TimestampMixin, IDMixin, table=True):
    """Vacante"""
    __tablename__ = "vacancies"

    folio: str = Field(..., max_length=20, unique=True, index=True, description="Folio")
    owner_user_id: str = Field(..., index=True, description="Usuario que registró la vacante")
    company_id: Optional[str] = Field(None, foreign_key="companies.id", index=True, description="Empresa")
    assigned_recruiter_id: Optional[str] = Field(
        None, foreign_key="recruiter_profiles.id", index=True, description="Reclutador asignado"
    )
    status: str = Field(VacancyStatus.OPEN.value, index=True, description="Estatus")
    requested_at: datetime = Field(default_factory=utc_now, description="Fecha de solicitud")
    closed_at: Optional[datetime] = Field(None, description="Fecha de cierre")
    close_requested: bool = Field(False, description="El reclutador solicitó el cierre")
    close_request_reason: Optional[str] = Field(None, max_length=500, description="Motivo de la solicitud de cierre")

    def __repr__(self) -> str:
        return f"<Vacancy(id={self.id}, folio={self.folio}, status={self.status})>"


class MarketplacePublication(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """Publicación de una vacante en el marketplace"""
    __tablename__ = "marketplace_publications"

    vacancy_id: str = Field(..., foreign_key="vacancies.id", unique=True, index=True, description="Vacante")
    user_id: str = Field(..., index=True, description="Usuario que publicó")
    company_id: Optional[str] = Field(None, foreign_key="companies.id", index=True, description="Empresa")
    title: str = Field(..., max_length=200, description="Puesto")
    work_mode: str = Field(..., description="Modalidad")
    location: Optional[str] = Field(None, description="Ubicación")
    client_area: Optional[str] = Field(None, description="Cliente / área (si se muestra)")
    approved_gross_salary: Optional[float] = Field(None, description="Sueldo (si se muestra)")
    required_profile: Optional[str] = Field(None, description="Perfil requerido")
    notes: Optional[str] = Field(None, description="Observaciones")
    visible_fields: List[str] = Field(default_factory=list, sa_column=Column(JSON), description="Campos visibles")
    published: bool = Field(True, index=True, description="Publicada")
    published_at: datetime = Field(default_factory=utc_now, description="Fecha de publicación")


# ==================== Esquemas de petición ====================

class VacancyCreate(VacancyBase):
    """Alta de vacante"""
    assigned_recruiter_id: Optional[str] = Field(None, description="Reclutador asignado")
    requested_at: Optional[datetime] = Field(None, description="Fecha de solicitud")


class VacancyUpdate(SQLModelBase):
    """Actualización de vacante"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    client_area: Optional[str] = None
    reason: Optional[str] = None
    replaces: Optional[str] = None
    work_mode: Optional[WorkMode] = None
    location: Optional[str] = None
    approved_gross_salary: Optional[float] = Field(None, ge=0)
    required_profile: Optional[str] = None
    notes: Optional[str] = None


class VacancyAssign(SQLModelBase):
    """Asignación de reclutador"""
    recruiter_id: str = Field(..., description="Reclutador")


class CloseRequest(SQLModelBase):
    """Solicitud de cierre por parte del reclutador"""
    reason: str = Field(..., min_length=5, max_length=500, description="Motivo")


class PublicationCreate(SQLModelBase):
    """Publicar vacante en el marketplace"""
    show_client: bool = Field(False, description="Mostrar cliente / área")
    show_salary: bool = Field(False, description="Mostrar sueldo")
    show_location: bool = Field(False, description="Mostrar ubicación")
    show_profile: bool = Field(True, description="Mostrar perfil requerido")
    show_notes: bool = Field(False, description="Mostrar observaciones")


# ==================== Esquemas de respuesta ====================

class VacancyResponse(TimestampResponse):
    """Vacante"""
    folio: str
    title: str
    owner_user_id: str
    company_id: Optional[str]
    assigned_recruiter_id: Optional[str]
    client_area: Optional[str]
    reason: Optional[str]
    replaces: Optional[str]
    work_mode: str
    location: Optional[str]
    approved_gross_salary: Optional[float]
    required_profile: Optional[str]
    notes: Optional[str]
    status: str
    requested_at: datetime
    closed_at: Optional[datetime]
    close_requested: bool
    close_request_reason: Optional[str]


class PublicationResponse(TimestampResponse):
    """Publicación del marketplace"""
    vacancy_id: str
    user_id: str
    company_id: Optional[str]
    title: str
    work_mode: str
    location: Optional[str]
    client_area: Optional[str]
    approved_gross_salary: Optional[float]
    required_profile: Optional[str]
    notes: Optional[str]
    published: bool
    published_at: datetime

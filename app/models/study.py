"""
Modelo de estudios socioeconómicos

El solicitante (empresa o reclutador) pide el estudio, un verificador
realiza la visita y captura las secciones, y al entregarlo se puede calificar.
"""
from datetime import datetime
from typing import Optional
from enum import Enum
from sqlmodel import Field, Column, JSON

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse, utc_now


class StudyStatus(str, Enum):
    """Estatus del estudio"""
    REQUESTED = "solicitado"
    ASSIGNED = "asignado"
    IN_PROGRESS = "en_proceso"
    PENDING_UPLOAD = "pendiente_carga"
    DELIVERED = "entregado"
    CANCELLED = "cancelado"


class GeneralResult(str, Enum):
    """Resultado del estudio"""
    VIABLE = "viable"
    VIABLE_WITH_NOTES = "viable_con_observaciones"
    NOT_VIABLE = "no_viable"


class RiskRating(str, Enum):
    """Calificación de riesgo"""
    LOW = "bajo"
    MEDIUM = "medio"
    HIGH = "alto"


# ==================== Tablas ====================

class SocioeconomicStudy(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """Estudio socioeconómico"""
    __tablename__ = "socioeconomic_studies"

    folio: str = Field(..., max_length=20, unique=True, index=True, description="Folio")

    # ========== Solicitud ==========
    requester_user_id: str = Field(..., index=True, description="Solicitante")
    company_id: Optional[str] = Field(None, foreign_key="companies.id", index=True)
    application_id: Optional[str] = Field(None, foreign_key="applications.id", index=True)
    candidate_user_id: Optional[str] = Field(None, index=True)
    candidate_name: str = Field(..., max_length=200, description="Candidato")
    position: str = Field(..., max_length=200, description="Puesto")
    visit_address: Optional[str] = Field(None, description="Dirección de visita")
    observations: Optional[str] = Field(None, description="Observaciones del solicitante")

    # ========== Asignación ==========
    verifier_id: Optional[str] = Field(None, foreign_key="verifier_profiles.id", index=True)
    status: str = Field(StudyStatus.REQUESTED.value, index=True, description="Estatus")
    requested_at: datetime = Field(default_factory=utc_now)
    assigned_at: Optional[datetime] = Field(None)
    deadline: datetime = Field(..., description="Fecha límite de entrega")
    delivered_at: Optional[datetime] = Field(None)

    # ========== Visita ==========
    visit_date: Optional[str] = Field(None, description="Fecha de visita")
    visit_time: Optional[str] = Field(None, description="Hora de visita")
    candidate_present: Optional[bool] = Field(None)
    absence_reason: Optional[str] = Field(None)
    visit_notes: Optional[str] = Field(None)

    # ========== Secciones ==========
    sociodemographic: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    housing: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    economic: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    references: Optional[list] = Field(default=None, sa_column=Column(JSON))

    # ========== Resultado ==========
    general_result: Optional[str] = Field(None, description="Resultado general")
    risk_rating: Optional[str] = Field(None, description="Riesgo")
    final_notes: Optional[str] = Field(None)
    draft: bool = Field(False, description="Borrador")


class StudyRating(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """Calificación de un estudio entregado"""
    __tablename__ = "study_ratings"

    study_id: str = Field(..., foreign_key="socioeconomic_studies.id", unique=True, index=True)
    verifier_id: Optional[str] = Field(None, index=True)
    rater_user_id: str = Field(..., index=True)
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


# ==================== Esquemas de petición ====================

class StudyCreate(SQLModelBase):
    """Solicitar estudio"""
    candidate_name: str = Field(..., min_length=1, max_length=200)
    position: str = Field(..., min_length=1, max_length=200)
    application_id: Optional[str] = None
    candidate_user_id: Optional[str] = None
    visit_address: Optional[str] = None
    observations: Optional[str] = None
    verifier_id: Optional[str] = None
    deadline: Optional[datetime] = Field(None, description="Por defecto hoy + 7 días")


class StudyAssign(SQLModelBase):
    """Asignar verificador"""
    verifier_id: str


class StudyCapture(SQLModelBase):
    """Captura del verificador (borrador o entrega)"""
    visit_date: Optional[str] = None
    visit_time: Optional[str] = None
    candidate_present: Optional[bool] = None
    absence_reason: Optional[str] = None
    visit_notes: Optional[str] = None
    sociodemographic: Optional[dict] = None
    housing: Optional[dict] = None
    economic: Optional[dict] = None
    references: Optional[list] = None
    general_result: Optional[GeneralResult] = None
    risk_rating: Optional[RiskRating] = None
    final_notes: Optional[str] = None


class StudyRatingCreate(SQLModelBase):
    """Calificar estudio"""
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


# ==================== Esquemas de respuesta ====================

class StudyResponse(TimestampResponse):
    """Estudio socioeconómico"""
    folio: str
    requester_user_id: str
    company_id: Optional[str]
    application_id: Optional[str]
    candidate_user_id: Optional[str]
    candidate_name: str
    position: str
    visit_address: Optional[str]
    observations: Optional[str]
    verifier_id: Optional[str]
    status: str
    requested_at: datetime
    assigned_at: Optional[datetime]
    deadline: datetime
    delivered_at: Optional[datetime]
    visit_date: Optional[str]
    visit_time: Optional[str]
    candidate_present: Optional[bool]
    absence_reason: Optional[str]
    visit_notes: Optional[str]
    sociodemographic: Optional[dict]
    housing: Optional[dict]
    economic: Optional[dict]
    references: Optional[list]
    general_result: Optional[str]
    risk_rating: Optional[str]
    final_notes: Optional[str]
    draft: bool


class StudyRatingResponse(TimestampResponse):
    """Calificación"""
    study_id: str
    verifier_id: Optional[str]
    rater_user_id: str
    rating: int
    comment: Optional[str]

"""
Modelo de postulaciones

Una postulación une a un candidato con una publicación del marketplace
y avanza por las etapas del proceso de selección.
"""
from datetime import datetime
from typing import Optional
from enum import Enum
from sqlmodel import Field, UniqueConstraint

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse, utc_now


class ApplicationStatus(str, Enum):
    """Estado general de la postulación"""
    PENDING = "pendiente"
    ACCEPTED = "aceptado"
    REJECTED = "rechazado"


class ApplicationStage(str, Enum):
    """Etapas del proceso"""
    RECEIVED = "recibida"
    REVIEW = "revision"
    INTERVIEW = "entrevista"
    ON_SITE_INTERVIEW = "entrevista_presencial"
    REMOTE_INTERVIEW = "entrevista_distancia"
    NO_RESPONSE = "no_respondio_contacto"
    IN_PROCESS = "continua_proceso"
    CANDIDATE_WITHDREW = "candidato_abandona"
    NO_SHOW = "no_asistio"
    NOT_VIABLE_SCREENING = "no_viable_filtro"
    NOT_VIABLE_INTERVIEW = "no_viable_entrevista"
    NOT_VIABLE_SKILLS = "no_viable_conocimientos"
    NOT_VIABLE_PSYCHOMETRIC = "no_viable_psicometria"
    NOT_VIABLE_SECOND_INTERVIEW = "no_viable_segunda_entrevista"
    HIRED = "contratado"
    DISCARDED = "descartado"


# Etapas que generan una entrevista propuesta y su tipo
INTERVIEW_STAGES = {
    ApplicationStage.ON_SITE_INTERVIEW.value: "presencial",
    ApplicationStage.REMOTE_INTERVIEW.value: "virtual",
}

REJECTION_STAGES = {
    ApplicationStage.NOT_VIABLE_SCREENING.value,
    ApplicationStage.NOT_VIABLE_INTERVIEW.value,
    ApplicationStage.NOT_VIABLE_SKILLS.value,
    ApplicationStage.NOT_VIABLE_PSYCHOMETRIC.value,
    ApplicationStage.NOT_VIABLE_SECOND_INTERVIEW.value,
    ApplicationStage.DISCARDED.value,
}

# Etapas que cierran el proceso sin contratación
CLOSING_STAGES = REJECTION_STAGES | {
    ApplicationStage.NO_RESPONSE.value,
    ApplicationStage.CANDIDATE_WITHDREW.value,
    ApplicationStage.NO_SHOW.value,
}

STAGE_LABELS = {
    "recibida": "Recibida",
    "revision": "En revisión",
    "entrevista": "Entrevista agendada",
    "entrevista_presencial": "Entrevista presencial",
    "entrevista_distancia": "Entrevista a distancia",
    "no_respondio_contacto": "No respondió contacto",
    "continua_proceso": "Continúa en proceso",
    "candidato_abandona": "Candidato abandona proceso",
    "no_asistio": "No asistió",
    "no_viable_filtro": "No viable en llamada filtro",
    "no_viable_entrevista": "No viable en entrevista",
    "no_viable_conocimientos": "No viable por conocimientos",
    "no_viable_psicometria": "No viable por psicometría",
    "no_viable_segunda_entrevista": "No viable en segunda entrevista",
    "contratado": "Contratado",
    "descartado": "Descartado",
}


def status_for_stage(stage: str) -> str:
    """Estado general que corresponde a una etapa"""
    if stage == ApplicationStage.HIRED.value:
        return ApplicationStatus.ACCEPTED.value
    if stage in REJECTION_STAGES:
        return ApplicationStatus.REJECTED.value
    return ApplicationStatus.PENDING.value


# ==================== Tablas ====================

class Application(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """Postulación"""
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("publication_id", "candidate_user_id", name="uq_application_candidate"),
    )

    # ========== Relaciones ==========
    publication_id: str = Field(..., foreign_key="marketplace_publications.id", index=True, description="Publicación")
    vacancy_id: str = Field(..., foreign_key="vacancies.id", index=True, description="Vacante")
    candidate_user_id: str = Field(..., index=True, description="Candidato")

    # ========== Proceso ==========
    status: str = Field(ApplicationStatus.PENDING.value, index=True, description="Estado")
    stage: str = Field(ApplicationStage.RECEIVED.value, index=True, description="Etapa")
    recruiter_notes: Optional[str] = Field(None, description="Notas del reclutador")
    cover_letter: Optional[str] = Field(None, max_length=2000, description="Mensaje del candidato")
    applied_at: datetime = Field(default_factory=utc_now, description="Fecha de postulación")
    stage_updated_at: Optional[datetime] = Field(None, description="Último cambio de etapa")

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, stage={self.stage})>"


# ==================== Esquemas de petición ====================

class ApplicationCreate(SQLModelBase):
    """Postularse a una publicación"""
    cover_letter: Optional[str] = Field(None, max_length=2000, description="Mensaje para el reclutador")


class StageChange(SQLModelBase):
    """Cambio de etapa"""
    stage: ApplicationStage = Field(..., description="Nueva etapa")
    notes: Optional[str] = Field(None, max_length=2000, description="Notas del reclutador")
    interview_date: Optional[str] = Field(None, description="Fecha (YYYY-MM-DD) para etapas de entrevista")
    interview_time: Optional[str] = Field(None, description="Hora (HH:MM) para etapas de entrevista")
    meeting_details: Optional[str] = Field(None, max_length=1000, description="Liga o dirección")


# ==================== Esquemas de respuesta ====================

class ApplicationResponse(TimestampResponse):
    """Postulación"""
    publication_id: str
    vacancy_id: str
    candidate_user_id: str
    status: str
    stage: str
    recruiter_notes: Optional[str]
    cover_letter: Optional[str]
    applied_at: datetime
    stage_updated_at: Optional[datetime]


class ApplicantResponse(ApplicationResponse):
    """Postulación vista por el reclutador (identidad según desbloqueo)"""
    identity_unlocked: bool = False
    candidate_name: Optional[str] = None
    candidate_email: Optional[str] = None
    candidate_phone: Optional[str] = None
    current_position: Optional[str] = None
    technical_skills: list = Field(default_factory=list)

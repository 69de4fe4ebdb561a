"""
Modelo de entrevistas y feedback al candidato
"""
from datetime import datetime
from typing import Optional, List
from enum import Enum
from sqlmodel import Field, Column, JSON

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class InterviewState(str, Enum):
    """Estado de entrevista"""
    PROPOSED = "propuesta"
    ACCEPTED = "aceptada"
    REJECTED = "rechazada"
    RESCHEDULED = "reagendada"
    POSTPONED = "pospuesta"
    COMPLETED = "completada"


class InterviewType(str, Enum):
    """Tipo de entrevista"""
    ON_SITE = "presencial"
    VIRTUAL = "virtual"


# ==================== Tablas ====================

class Interview(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """Entrevista propuesta al candidato"""
    __tablename__ = "interviews"

    application_id: str = Field(..., foreign_key="applications.id", index=True, description="Postulación")
    candidate_user_id: str = Field(..., index=True, description="Candidato")
    recruiter_user_id: str = Field(..., index=True, description="Reclutador")
    scheduled_at: datetime = Field(..., index=True, description="Fecha y hora")
    interview_type: str = Field(InterviewType.ON_SITE.value, description="Tipo")
    meeting_details: Optional[str] = Field(None, max_length=1000, description="Liga o dirección")
    state: str = Field(InterviewState.PROPOSED.value, index=True, description="Estado")
    rejection_reason: Optional[str] = Field(None, max_length=500, description="Motivo de rechazo")
    attended: Optional[bool] = Field(None, description="Asistió")
    duration_minutes: Optional[int] = Field(None, ge=0, description="Duración (min)")
    notes: Optional[str] = Field(None, description="Notas")


class CandidateFeedback(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """Feedback del reclutador al candidato"""
    __tablename__ = "candidate_feedback"

    application_id: str = Field(..., foreign_key="applications.id", index=True, description="Postulación")
    candidate_user_id: str = Field(..., index=True, description="Candidato")
    recruiter_user_id: str = Field(..., index=True, description="Reclutador")
    score: int = Field(..., ge=1, le=5, description="Puntuación")
    comment: str = Field(..., description="Comentario")
    positives: List[str] = Field(default_factory=list, sa_column=Column(JSON), description="Aspectos positivos")
    improvements: List[str] = Field(default_factory=list, sa_column=Column(JSON), description="Áreas de mejora")


# ==================== Esquemas de petición ====================

class InterviewCreate(SQLModelBase):
    """Agendar entrevista"""
    application_id: str = Field(..., description="Postulación")
    scheduled_at: datetime = Field(..., description="Fecha y hora")
    interview_type: InterviewType = Field(InterviewType.ON_SITE, description="Tipo")
    meeting_details: Optional[str] = Field(None, max_length=1000, description="Liga o dirección")


class InterviewReject(SQLModelBase):
    """Rechazo por parte del candidato"""
    reason: str = Field(..., min_length=5, max_length=500, description="Motivo")


class InterviewReschedule(SQLModelBase):
    """Reagendar"""
    scheduled_at: datetime = Field(..., description="Nueva fecha y hora")
    interview_type: Optional[InterviewType] = None
    meeting_details: Optional[str] = Field(None, max_length=1000)
    message: Optional[str] = Field(None, max_length=1000, description="Mensaje al candidato")


class InterviewPostpone(SQLModelBase):
    """Posponer o cancelar"""
    message: Optional[str] = Field(None, max_length=1000, description="Mensaje al candidato")


class InterviewComplete(SQLModelBase):
    """Cerrar entrevista"""
    attended: bool = Field(True, description="Asistió")
    duration_minutes: Optional[int] = Field(None, ge=0, le=600)
    notes: Optional[str] = None


class FeedbackCreate(SQLModelBase):
    """Registrar feedback"""
    application_id: str = Field(..., description="Postulación")
    score: int = Field(..., ge=1, le=5, description="Puntuación 1-5")
    comment: str = Field(..., min_length=1, max_length=2000, description="Comentario")
    positives: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)


# ==================== Esquemas de respuesta ====================

class InterviewResponse(TimestampResponse):
    """Entrevista"""
    application_id: str
    candidate_user_id: str
    recruiter_user_id: str
    scheduled_at: datetime
    interview_type: str
    meeting_details: Optional[str]
    state: str
    rejection_reason: Optional[str]
    attended: Optional[bool]
    duration_minutes: Optional[int]
    notes: Optional[str]


class FeedbackResponse(TimestampResponse):
    """Feedback"""
    application_id: str
    candidate_user_id: str
    recruiter_user_id: str
    score: int
    comment: str
    positives: List[str]
    improvements: List[str]

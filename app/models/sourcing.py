"""
Modelo de resultados de sourcing con IA
"""
from typing import Optional, List
from enum import Enum
from sqlmodel import Field, Column, JSON

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class SourcingState(str, Enum):
    """Estado del candidato sugerido"""
    PENDING = "pendiente"
    CONTACTED = "contactado"
    DISCARDED = "descartado"


class SourcingResult(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """Candidato sugerido por IA para una vacante"""
    __tablename__ = "sourcing_results"

    vacancy_id: str = Field(..., foreign_key="vacancies.id", index=True)
    publication_id: str = Field(..., foreign_key="marketplace_publications.id", index=True)
    candidate_user_id: str = Field(..., index=True)
    recruiter_id: Optional[str] = Field(None, index=True)
    company_id: Optional[str] = Field(None, index=True)
    executor_user_id: str = Field(..., index=True)
    match_score: int = Field(..., ge=0, le=100)
    match_reason: str = Field(..., max_length=255)
    matched_skills: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    relevant_experience: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    state: str = Field(SourcingState.PENDING.value, index=True)
    credits_spent: int = Field(0, ge=0)
    batch_id: str = Field(..., index=True)


class SourcingAudit(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """Bitácora de ejecuciones (para límites de simulación)"""
    __tablename__ = "sourcing_audit"

    user_id: str = Field(..., index=True)
    vacancy_id: str = Field(..., index=True)
    publication_id: str = Field(..., index=True)
    action: str = Field(..., description="dry_run | execution")
    candidates_analyzed: int = Field(0)


# ==================== Esquemas ====================

class SourcingRequest(SQLModelBase):
    """Ejecutar sourcing"""
    publication_id: str
    dry_run: bool = Field(True, description="Simular sin cobrar (por defecto)")


class SourcingStateUpdate(SQLModelBase):
    """Cambiar estado de un candidato sugerido"""
    state: SourcingState


class SourcingResultResponse(TimestampResponse):
    """Candidato sugerido"""
    vacancy_id: str
    publication_id: str
    candidate_user_id: str
    recruiter_id: Optional[str]
    company_id: Optional[str]
    executor_user_id: str
    match_score: int
    match_reason: str
    matched_skills: List[str]
    relevant_experience: List[str]
    state: str
    credits_spent: int
    batch_id: str

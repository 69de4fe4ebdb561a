"""
Modelos de perfiles - candidato, reclutador y verificador

Cada perfil pertenece a un usuario del servicio de autenticación (user_id)
"""
from datetime import datetime
from typing import Optional, List
from enum import Enum
from sqlmodel import Field, Column, JSON

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class RecruiterType(str, Enum):
    """Tipo de vinculación del reclutador"""
    INTERNAL = "interno"
    FREELANCE = "freelance"


class ExperienceLevel(str, Enum):
    """Nivel de experiencia detectado por IA"""
    JUNIOR = "junior"
    MID = "mid"
    SENIOR = "senior"
    LEAD = "lead"
    EXECUTIVE = "executive"


# ==================== Candidato ====================

class WorkExperience(SQLModelBase):
    """Experiencia laboral"""
    company: str = Field(..., description="Empresa")
    position: str = Field(..., description="Puesto")
    start_date: Optional[str] = Field(None, description="Inicio (YYYY-MM)")
    end_date: Optional[str] = Field(None, description="Fin (YYYY-MM)")
    current: bool = Field(False, description="Empleo actual")
    description: Optional[str] = Field(None, description="Descripción")


class CandidateProfileBase(SQLModelBase):
    """Campos base del perfil de candidato"""
    full_name: str = Field(..., min_length=1, max_length=200, description="Nombre completo")
    email: str = Field(..., max_length=200, description="Correo")
    phone: Optional[str] = Field(None, max_length=30, description="Teléfono")
    location: Optional[str] = Field(None, max_length=200, description="Ubicación")
    current_position: Optional[str] = Field(None, max_length=200, description="Puesto actual")
    current_company: Optional[str] = Field(None, max_length=200, description="Empresa actual")
    education_level: Optional[str] = Field(None, max_length=100, description="Nivel de estudios")
    degree: Optional[str] = Field(None, max_length=200, description="Carrera")
    institution: Optional[str] = Field(None, max_length=200, description="Institución")
    technical_skills: List[str] = Field(default_factory=list, sa_column=Column(JSON), description="Habilidades técnicas")
    soft_skills: List[str] = Field(default_factory=list, sa_column=Column(JSON), description="Habilidades blandas")
    work_experience: List[dict] = Field(default_factory=list, sa_column=Column(JSON), description="Experiencia laboral")
    expected_salary_min: Optional[float] = Field(None, ge=0, description="Salario esperado mínimo")
    expected_salary_max: Optional[float] = Field(None, ge=0, description="Salario esperado máximo")
    availability: Optional[str] = Field(None, max_length=100, description="Disponibilidad")
    preferred_work_mode: Optional[str] = Field(None, max_length=20, description="Modalidad preferida")
    professional_summary: Optional[str] = Field(None, description="Resumen profesional")
    cv_url: Optional[str] = Field(None, description="URL del CV")
    linkedin_url: Optional[str] = Field(None, description="LinkedIn")


class CandidateProfile(CandidateProfileBase, TimestampMixin, IDMixin, table=True):
    """Perfil de candidato"""
    __tablename__ = "candidate_profiles"

    user_id: str = Field(..., unique=True, index=True, description="Usuario")

    # ========== Indexación IA ==========
    indexed_summary: Optional[str] = Field(None, description="Resumen indexado para búsqueda")
    sourcing_keywords: List[str] = Field(default_factory=list, sa_column=Column(JSON), description="Palabras clave")
    detected_industries: List[str] = Field(default_factory=list, sa_column=Column(JSON), description="Industrias detectadas")
    ai_experience_level: Optional[str] = Field(None, max_length=20, description="Nivel detectado por IA")
    indexed_at: Optional[datetime] = Field(None, description="Fecha de indexación")

    def __repr__(self) -> str:
        return f"<CandidateProfile(id={self.id}, user_id={self.user_id})>"


class CandidateProfileCreate(CandidateProfileBase):
    """Alta de perfil de candidato"""
    pass


class CandidateProfileUpdate(SQLModelBase):
    """Actualización de perfil de candidato"""
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = None
    location: Optional[str] = None
    current_position: Optional[str] = None
    current_company: Optional[str] = None
    education_level: Optional[str] = None
    degree: Optional[str] = None
    institution: Optional[str] = None
    technical_skills: Optional[List[str]] = None
    soft_skills: Optional[List[str]] = None
    work_experience: Optional[List[dict]] = None
    expected_salary_min: Optional[float] = Field(None, ge=0)
    expected_salary_max: Optional[float] = Field(None, ge=0)
    availability: Optional[str] = None
    preferred_work_mode: Optional[str] = None
    professional_summary: Optional[str] = None
    cv_url: Optional[str] = None
    linkedin_url: Optional[str] = None


class CandidateProfileResponse(TimestampResponse):
    """Perfil de candidato completo"""
    user_id: str
    full_name: str
    email: str
    phone: Optional[str]
    location: Optional[str]
    current_position: Optional[str]
    current_company: Optional[str]
    education_level: Optional[str]
    degree: Optional[str]
    institution: Optional[str]
    technical_skills: List[str]
    soft_skills: List[str]
    work_experience: List[dict]
    expected_salary_min: Optional[float]
    expected_salary_max: Optional[float]
    availability: Optional[str]
    preferred_work_mode: Optional[str]
    professional_summary: Optional[str]
    indexed_summary: Optional[str]
    sourcing_keywords: List[str]
    detected_industries: List[str]
    ai_experience_level: Optional[str]
    indexed_at: Optional[datetime]
    cv_url: Optional[str]
    linkedin_url: Optional[str]


# ==================== Reclutador ====================

class RecruiterProfileBase(SQLModelBase):
    """Campos base del perfil de reclutador"""
    name: str = Field(..., min_length=1, max_length=200, description="Nombre")
    email: str = Field(..., max_length=200, description="Correo")
    phone: Optional[str] = Field(None, max_length=30, description="Teléfono")
    recruiter_type: RecruiterType = Field(RecruiterType.FREELANCE, description="Tipo de reclutador")
    years_experience: int = Field(0, ge=0, description="Años de experiencia")
    specialties: List[str] = Field(default_factory=list, sa_column=Column(JSON), description="Especialidades")
    description: Optional[str] = Field(None, description="Presentación")
    linkedin_url: Optional[str] = Field(None, description="LinkedIn")
    show_phone: bool = Field(False, description="Mostrar teléfono a candidatos")


class RecruiterProfile(RecruiterProfileBase, TimestampMixin, IDMixin, table=True):
    """Perfil de reclutador"""
    __tablename__ = "recruiter_profiles"

    user_id: str = Field(..., unique=True, index=True, description="Usuario")
    recruiter_code: str = Field(..., max_length=20, unique=True, index=True, description="Código de reclutador")

    def __repr__(self) -> str:
        return f"<RecruiterProfile(id={self.id}, code={self.recruiter_code})>"


class RecruiterProfileCreate(RecruiterProfileBase):
    """Alta de perfil de reclutador"""
    pass


class RecruiterProfileUpdate(SQLModelBase):
    """Actualización de perfil de reclutador"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = None
    recruiter_type: Optional[RecruiterType] = None
    years_experience: Optional[int] = Field(None, ge=0)
    specialties: Optional[List[str]] = None
    description: Optional[str] = None
    linkedin_url: Optional[str] = None
    show_phone: Optional[bool] = None


class RecruiterProfileResponse(TimestampResponse):
    """Perfil de reclutador"""
    user_id: str
    recruiter_code: str
    name: str
    email: str
    phone: Optional[str]
    recruiter_type: str
    years_experience: int
    specialties: List[str]
    description: Optional[str]
    linkedin_url: Optional[str]
    show_phone: bool


# ==================== Verificador ====================

class VerifierProfileBase(SQLModelBase):
    """Campos base del perfil de verificador"""
    name: str = Field(..., min_length=1, max_length=200, description="Nombre")
    email: str = Field(..., max_length=200, description="Correo")
    phone: Optional[str] = Field(None, max_length=30, description="Teléfono")
    coverage_zones: List[str] = Field(default_factory=list, sa_column=Column(JSON), description="Zonas de cobertura")
    available: bool = Field(True, description="Disponible para asignaciones")


class VerifierProfile(VerifierProfileBase, TimestampMixin, IDMixin, table=True):
    """Perfil de verificador"""
    __tablename__ = "verifier_profiles"

    user_id: str = Field(..., unique=True, index=True, description="Usuario")
    verifier_code: str = Field(..., max_length=20, unique=True, index=True, description="Código de verificador")


class VerifierProfileCreate(VerifierProfileBase):
    """Alta de perfil de verificador"""
    pass


class VerifierProfileResponse(TimestampResponse):
    """Perfil de verificador"""
    user_id: str
    verifier_code: str
    name: str
    email: str
    phone: Optional[str]
    coverage_zones: List[str]
    available: bool

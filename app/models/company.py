"""
Modelo de empresas y roles de usuario
"""
from typing import Optional
from enum import Enum
from sqlmodel import Field, UniqueConstraint

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class AppRole(str, Enum):
    """Roles de la plataforma"""
    ADMIN = "admin"
    RRHH = "rrhh"
    READ_ONLY = "solo_lectura"
    COMPANY_ADMIN = "admin_empresa"
    RECRUITER = "reclutador"
    CANDIDATE = "candidato"
    VERIFIER = "verificador"


class CompanySize(str, Enum):
    """Tamaño de empresa"""
    MICRO = "micro"
    PYME = "pyme"
    MEDIUM = "mediana"
    LARGE = "grande"


# ==================== Campos base ====================

class CompanyBase(SQLModelBase):
    """Campos base de empresa"""
    name: str = Field(..., min_length=1, max_length=200, description="Razón social", index=True)
    rfc: Optional[str] = Field(None, max_length=13, description="RFC")
    contact_email: Optional[str] = Field(None, max_length=200, description="Correo de contacto")
    phone: Optional[str] = Field(None, max_length=30, description="Teléfono")
    sector: Optional[str] = Field(None, max_length=100, description="Sector")
    size: Optional[CompanySize] = Field(None, description="Tamaño")
    city: Optional[str] = Field(None, max_length=100, description="Ciudad")
    state: Optional[str] = Field(None, max_length=100, description="Estado")
    country: str = Field("México", max_length=100, description="País")
    website: Optional[str] = Field(None, max_length=300, description="Sitio web")
    description: Optional[str] = Field(None, description="Descripción")


# ==================== Tablas ====================

class Company(CompanyBase, TimestampMixin, IDMixin, table=True):
    """Empresa"""
    __tablename__ = "companies"

    company_code: str = Field(..., max_length=20, unique=True, index=True, description="Código de empresa")
    created_by: str = Field(..., index=True, description="Usuario que registró la empresa")
    active: bool = Field(default=True, description="Activa")

    def __repr__(self) -> str:
        return f"<Company(id={self.id}, name={self.name})>"


class UserRole(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """Rol asignado a un usuario (opcionalmente ligado a una empresa)"""
    __tablename__ = "user_roles"
    __table_args__ = (
        UniqueConstraint("user_id", "role", "company_id", name="uq_user_role_company"),
    )

    user_id: str = Field(..., index=True, description="ID de usuario del servicio de auth")
    role: str = Field(..., index=True, description="Rol")
    company_id: Optional[str] = Field(None, foreign_key="companies.id", index=True, description="Empresa")


# ==================== Esquemas de petición ====================

class CompanyCreate(CompanyBase):
    """Alta de empresa"""
    pass


class CompanyUpdate(SQLModelBase):
    """Actualización de empresa - todo opcional"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    rfc: Optional[str] = Field(None, max_length=13)
    contact_email: Optional[str] = None
    phone: Optional[str] = None
    sector: Optional[str] = None
    size: Optional[CompanySize] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None


# ==================== Esquemas de respuesta ====================

class CompanyResponse(TimestampResponse):
    """Detalle de empresa"""
    name: str
    company_code: str
    rfc: Optional[str]
    contact_email: Optional[str]
    phone: Optional[str]
    sector: Optional[str]
    size: Optional[str]
    city: Optional[str]
    state: Optional[str]
    country: Optional[str]
    website: Optional[str]
    description: Optional[str]
    active: bool

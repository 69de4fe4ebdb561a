"""
Modelo de conceptos de costo de reclutamiento
"""
from typing import Optional
from sqlmodel import Field

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class CostConceptBase(SQLModelBase):
    """Campos base de concepto de costo"""
    concept: str = Field(..., min_length=1, max_length=200, description="Concepto")
    cost: float = Field(..., ge=0, description="Costo")
    periodicity: str = Field("mensual", max_length=30, description="hora, diario, semanal, ..., anual o unico_N")
    unit: Optional[str] = Field(None, max_length=50, description="por_contratacion, por_candidato, por_reclutador")
    description: Optional[str] = Field(None, description="Descripción")


class CostConcept(CostConceptBase, TimestampMixin, IDMixin, table=True):
    """Concepto de costo de una empresa"""
    __tablename__ = "cost_concepts"

    company_id: str = Field(..., foreign_key="companies.id", index=True)
    active: bool = Field(True, index=True, description="Activo")


class CostConceptCreate(CostConceptBase):
    """Alta de concepto"""
    pass


class CostConceptUpdate(SQLModelBase):
    """Actualización de concepto"""
    concept: Optional[str] = Field(None, min_length=1, max_length=200)
    cost: Optional[float] = Field(None, ge=0)
    periodicity: Optional[str] = None
    unit: Optional[str] = None
    description: Optional[str] = None


class CostConceptResponse(TimestampResponse):
    """Concepto de costo"""
    company_id: str
    concept: str
    cost: float
    periodicity: str
    unit: Optional[str]
    description: Optional[str]
    active: bool

"""
API de tableros

KPIs de empresa, estadísticas de reclutador y verificador, ranking global
y costos de reclutamiento.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import NotFoundException
from app.core.response import success_response, ResponseModel, ListResponse, DictResponse, MessageResponse
from app.core.security import (
    CurrentUser,
    get_current_user,
    require_company_admin,
    require_recruiter,
    require_verifier,
)
from app.crud import cost_concept_crud
from app.models import CostConceptCreate, CostConceptResponse, CostConceptUpdate
from app.services import kpi, ranking, costs

router = APIRouter()


# ==================== KPIs ====================

@router.get("/company-kpis", summary="KPIs de la empresa", response_model=DictResponse)
async def get_company_kpis(
    client_area: Optional[str] = Query(None, description="Cliente / área o 'todos'"),
    recruiter_id: Optional[str] = Query(None, description="Reclutador asignado"),
    status: Optional[str] = Query(None, description="Estatus o 'todos'"),
    user: CurrentUser = Depends(require_company_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await kpi.get_company_kpis(
        db,
        company_id=user.company_id,
        client_area=client_area,
        recruiter_id=recruiter_id,
        status=status,
    )
    return success_response(data=result)


@router.get("/recruiter-stats", summary="Estadísticas del reclutador", response_model=DictResponse)
async def get_recruiter_stats(
    user: CurrentUser = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db),
):
    result = await kpi.get_recruiter_stats(db, recruiter_id=user.recruiter.id, user_id=user.user_id)
    return success_response(data=result)


@router.get("/verifier-stats", summary="Estadísticas del verificador", response_model=DictResponse)
async def get_verifier_stats(
    user: CurrentUser = Depends(require_verifier),
    db: AsyncSession = Depends(get_db),
):
    result = await kpi.get_verifier_stats(db, verifier_id=user.verifier.id)
    return success_response(data=result)


@router.get("/leaderboard", summary="Ranking global de reclutadores", response_model=ListResponse)
async def get_leaderboard(
    limit: int = Query(10, ge=1, le=100, description="Posiciones a mostrar"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Ranking por índice de productividad sobre los últimos 28 días"""
    rows = await ranking.get_global_ranking(db)
    return success_response(data=rows[:limit])


# ==================== Costos ====================

@router.get("/costs", summary="Conceptos de costo", response_model=ListResponse)
async def get_cost_concepts(
    user: CurrentUser = Depends(require_company_admin),
    db: AsyncSession = Depends(get_db),
):
    items = await cost_concept_crud.get_active(db, user.company_id)
    return success_response(data=[CostConceptResponse.model_validate(c).model_dump() for c in items])


@router.post("/costs", summary="Agregar concepto de costo", response_model=ResponseModel[CostConceptResponse])
async def create_cost_concept(
    data: CostConceptCreate,
    user: CurrentUser = Depends(require_company_admin),
    db: AsyncSession = Depends(get_db),
):
    concept = await cost_concept_crud.create(db, obj_in={**data.model_dump(), "company_id": user.company_id})
    return success_response(
        data=CostConceptResponse.model_validate(concept).model_dump(),
        message="Concepto agregado"
    )


async def _get_own_concept(db: AsyncSession, concept_id: str, company_id: str):
    concept = await cost_concept_crud.get(db, concept_id)
    if concept is None or concept.company_id != company_id or not concept.active:
        raise NotFoundException("Concepto no encontrado")
    return concept


@router.patch(
    "/costs/{concept_id}",
    summary="Actualizar concepto de costo",
    response_model=ResponseModel[CostConceptResponse]
)
async def update_cost_concept(
    concept_id: str,
    data: CostConceptUpdate,
    user: CurrentUser = Depends(require_company_admin),
    db: AsyncSession = Depends(get_db),
):
    concept = await _get_own_concept(db, concept_id, user.company_id)
    concept = await cost_concept_crud.update(db, db_obj=concept, obj_in=data)
    return success_response(
        data=CostConceptResponse.model_validate(concept).model_dump(),
        message="Concepto actualizado"
    )


@router.delete("/costs/{concept_id}", summary="Eliminar concepto de costo", response_model=MessageResponse)
async def delete_cost_concept(
    concept_id: str,
    user: CurrentUser = Depends(require_company_admin),
    db: AsyncSession = Depends(get_db),
):
    concept = await _get_own_concept(db, concept_id, user.company_id)
    await cost_concept_crud.deactivate(db, db_obj=concept)
    return success_response(message="Concepto eliminado")


@router.get("/costs/report", summary="Reporte de costos", response_model=DictResponse)
async def get_cost_report(
    user: CurrentUser = Depends(require_company_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await costs.get_cost_report(db, user.company_id)
    return success_response(data=result)

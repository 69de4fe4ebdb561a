"""
API de vacantes
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.response import success_response, paged_response, page_offset, ResponseModel, PagedResponseModel
from app.core.security import CurrentUser, get_optional_recruiter, require_recruiter
from app.crud import vacancy_crud
from app.models import (
    CloseRequest,
    VacancyAssign,
    VacancyCreate,
    VacancyResponse,
    VacancyUpdate,
)
from app.services import marketplace
from app.services.pipeline import ensure_can_manage

router = APIRouter()


@router.post("", summary="Registrar vacante", response_model=ResponseModel[VacancyResponse])
async def create_vacancy(
    data: VacancyCreate,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    vacancy = await marketplace.create_vacancy(db, data=data, user=user)
    return success_response(
        data=VacancyResponse.model_validate(vacancy).model_dump(),
        message="Vacante registrada"
    )


@router.get("", summary="Listar vacantes", response_model=PagedResponseModel[VacancyResponse])
async def get_vacancies(
    page: int = Query(1, ge=1, description="Página"),
    page_size: int = Query(10, ge=1, le=100, description="Registros por página"),
    status: Optional[str] = Query(None, description="abierta | cerrada | cancelada | todos"),
    client_area: Optional[str] = Query(None, description="Cliente / área"),
    recruiter_id: Optional[str] = Query(None, description="Reclutador asignado (solo empresas)"),
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    """
    Vacantes visibles para el usuario

    - Administrador de empresa: las de su empresa
    - Reclutador: las que tiene asignadas
    - Otros: las que registró
    """
    filters = {"status": status, "client_area": client_area}
    if user.company_id:
        filters.update(company_id=user.company_id, recruiter_id=recruiter_id)
    elif user.recruiter:
        filters["recruiter_id"] = user.recruiter.id
    else:
        filters["owner_user_id"] = user.user_id

    skip = page_offset(page, page_size)
    vacancies = await vacancy_crud.list_filtered(db, skip=skip, limit=page_size, **filters)
    total = await vacancy_crud.count_filtered(db, **filters)
    items = [VacancyResponse.model_validate(v).model_dump() for v in vacancies]
    return paged_response(items, total, page, page_size)


@router.get("/{vacancy_id}", summary="Detalle de vacante", response_model=ResponseModel[VacancyResponse])
async def get_vacancy(
    vacancy_id: str,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    vacancy = await marketplace.get_vacancy(db, vacancy_id)
    ensure_can_manage(vacancy, user)
    return success_response(data=VacancyResponse.model_validate(vacancy).model_dump())


@router.patch("/{vacancy_id}", summary="Actualizar vacante", response_model=ResponseModel[VacancyResponse])
async def update_vacancy(
    vacancy_id: str,
    data: VacancyUpdate,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    vacancy = await marketplace.get_vacancy(db, vacancy_id)
    ensure_can_manage(vacancy, user)
    vacancy = await vacancy_crud.update(db, db_obj=vacancy, obj_in=data)
    return success_response(
        data=VacancyResponse.model_validate(vacancy).model_dump(),
        message="Vacante actualizada"
    )


@router.post("/{vacancy_id}/assign", summary="Asignar reclutador", response_model=ResponseModel[VacancyResponse])
async def assign_vacancy(
    vacancy_id: str,
    data: VacancyAssign,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    vacancy = await marketplace.assign_recruiter(
        db, vacancy_id=vacancy_id, recruiter_id=data.recruiter_id, user=user
    )
    return success_response(
        data=VacancyResponse.model_validate(vacancy).model_dump(),
        message="Reclutador asignado"
    )


@router.post("/{vacancy_id}/close", summary="Cerrar vacante", response_model=ResponseModel[VacancyResponse])
async def close_vacancy(
    vacancy_id: str,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    vacancy = await marketplace.close_vacancy(db, vacancy_id=vacancy_id, user=user)
    return success_response(
        data=VacancyResponse.model_validate(vacancy).model_dump(),
        message="Vacante cerrada"
    )


@router.post("/{vacancy_id}/cancel", summary="Cancelar vacante", response_model=ResponseModel[VacancyResponse])
async def cancel_vacancy(
    vacancy_id: str,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    vacancy = await marketplace.cancel_vacancy(db, vacancy_id=vacancy_id, user=user)
    return success_response(
        data=VacancyResponse.model_validate(vacancy).model_dump(),
        message="Vacante cancelada"
    )


@router.post(
    "/{vacancy_id}/close-request",
    summary="Solicitar cierre",
    response_model=ResponseModel[VacancyResponse]
)
async def request_close(
    vacancy_id: str,
    data: CloseRequest,
    user: CurrentUser = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db),
):
    vacancy = await marketplace.request_close(db, vacancy_id=vacancy_id, data=data, user=user)
    return success_response(
        data=VacancyResponse.model_validate(vacancy).model_dump(),
        message="Solicitud de cierre enviada"
    )

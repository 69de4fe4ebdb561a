"""
API del marketplace

Publicación de vacantes con créditos y búsqueda de vacantes para candidatos
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import NotFoundException
from app.core.response import (
    success_response,
    paged_response,
    page_offset,
    ResponseModel,
    PagedResponseModel,
    DictResponse,
    MessageResponse,
)
from app.core.security import CurrentUser, get_current_user, require_candidate, require_recruiter
from app.crud import publication_crud
from app.models import (
    ApplicationCreate,
    ApplicationResponse,
    PublicationCreate,
    PublicationResponse,
)
from app.services import marketplace, pipeline

router = APIRouter()


# ==================== Publicación ====================

@router.get("/credits-check", summary="Verificar créditos para publicar", response_model=DictResponse)
async def check_credits(
    vacancy_id: str = Query(..., description="Vacante a publicar"),
    user: CurrentUser = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db),
):
    result = await marketplace.credits_check(db, vacancy_id=vacancy_id, user=user)
    return success_response(data=result)


@router.post("/vacancies/{vacancy_id}/publish", summary="Publicar vacante", response_model=DictResponse)
async def publish_vacancy(
    vacancy_id: str,
    data: PublicationCreate,
    user: CurrentUser = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db),
):
    """
    Publica la vacante y cobra el costo de publicación

    Se usan primero los créditos heredados de la empresa de la vacante y,
    si no alcanzan, los créditos propios del reclutador.
    """
    result = await marketplace.publish(db, vacancy_id=vacancy_id, data=data, user=user)
    publication = result.pop("publication")
    return success_response(
        data={
            "publication": PublicationResponse.model_validate(publication).model_dump(),
            **result,
        },
        message="Vacante publicada"
    )


@router.delete("/vacancies/{vacancy_id}/publish", summary="Retirar publicación", response_model=MessageResponse)
async def unpublish_vacancy(
    vacancy_id: str,
    user: CurrentUser = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db),
):
    publication = await marketplace.unpublish(db, vacancy_id=vacancy_id, user=user)
    data = PublicationResponse.model_validate(publication).model_dump() if publication else None
    return success_response(data=data, message="Publicación retirada")


# ==================== Búsqueda ====================

@router.get("/publications", summary="Vacantes publicadas", response_model=PagedResponseModel[PublicationResponse])
async def get_publications(
    page: int = Query(1, ge=1, description="Página"),
    page_size: int = Query(20, ge=1, le=100, description="Registros por página"),
    search: Optional[str] = Query(None, description="Busca en puesto y perfil"),
    work_mode: Optional[str] = Query(None, description="hibrido | remoto | presencial"),
    location: Optional[str] = Query(None, description="Ubicación"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    skip = page_offset(page, page_size)
    publications = await publication_crud.search_published(
        db, search=search, work_mode=work_mode, location=location, skip=skip, limit=page_size
    )
    total = await publication_crud.count_published(
        db, search=search, work_mode=work_mode, location=location
    )
    items = [PublicationResponse.model_validate(p).model_dump() for p in publications]
    return paged_response(items, total, page, page_size)


@router.get(
    "/publications/{publication_id}",
    summary="Detalle de publicación",
    response_model=ResponseModel[PublicationResponse]
)
async def get_publication(
    publication_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    publication = await publication_crud.get(db, publication_id)
    if publication is None or not publication.published:
        raise NotFoundException("Publicación no encontrada")
    return success_response(data=PublicationResponse.model_validate(publication).model_dump())


@router.post(
    "/publications/{publication_id}/apply",
    summary="Postularme",
    response_model=ResponseModel[ApplicationResponse]
)
async def apply_to_publication(
    publication_id: str,
    data: Optional[ApplicationCreate] = None,
    user: CurrentUser = Depends(require_candidate),
    db: AsyncSession = Depends(get_db),
):
    application = await pipeline.apply(
        db,
        publication_id=publication_id,
        user=user,
        cover_letter=data.cover_letter if data else None,
    )
    return success_response(
        data=ApplicationResponse.model_validate(application).model_dump(),
        message="Postulación enviada"
    )

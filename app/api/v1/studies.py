"""
API de estudios socioeconómicos
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import ForbiddenException
from app.core.response import success_response, ResponseModel, ListResponse
from app.core.security import CurrentUser, get_current_user, require_verifier
from app.crud import study_crud, verifier_crud
from app.models import (
    StudyAssign,
    StudyCapture,
    StudyCreate,
    StudyRatingCreate,
    StudyRatingResponse,
    StudyResponse,
)
from app.services import studies
from app.services.pdf import study_report_pdf

router = APIRouter()


async def _with_verifier(db: AsyncSession, user: CurrentUser) -> CurrentUser:
    """Carga el perfil de verificador si el usuario lo tiene"""
    user.verifier = await verifier_crud.get_by_user(db, user.user_id)
    return user


@router.post("", summary="Solicitar estudio", response_model=ResponseModel[StudyResponse])
async def request_study(
    data: StudyCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    study = await studies.request_study(db, data=data, user=user)
    return success_response(
        data=StudyResponse.model_validate(study).model_dump(),
        message="Estudio solicitado"
    )


@router.get("/mine", summary="Estudios solicitados", response_model=ListResponse)
async def get_requested_studies(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items = await study_crud.get_by_requester(db, user_id=user.user_id, company_id=user.company_id)
    return success_response(data=[StudyResponse.model_validate(s).model_dump() for s in items])


@router.get("/assigned", summary="Estudios asignados", response_model=ListResponse)
async def get_assigned_studies(
    status: Optional[str] = Query(None, description="Filtrar por estatus"),
    user: CurrentUser = Depends(require_verifier),
    db: AsyncSession = Depends(get_db),
):
    """Estudios del verificador ordenados por fecha límite"""
    items = await study_crud.get_by_verifier(db, user.verifier.id, status)
    return success_response(data=[StudyResponse.model_validate(s).model_dump() for s in items])


@router.get("/{study_id}", summary="Detalle de estudio", response_model=ResponseModel[StudyResponse])
async def get_study(
    study_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    study = await studies.get_study(db, study_id)
    if not studies.can_view(study, await _with_verifier(db, user)):
        raise ForbiddenException("No tienes acceso a este estudio")
    return success_response(data=StudyResponse.model_validate(study).model_dump())


@router.post("/{study_id}/assign", summary="Asignar verificador", response_model=ResponseModel[StudyResponse])
async def assign_verifier(
    study_id: str,
    data: StudyAssign,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    study = await studies.assign_verifier(db, study_id=study_id, verifier_id=data.verifier_id, user=user)
    return success_response(
        data=StudyResponse.model_validate(study).model_dump(),
        message="Verificador asignado"
    )


@router.put("/{study_id}/draft", summary="Guardar borrador", response_model=ResponseModel[StudyResponse])
async def save_draft(
    study_id: str,
    data: StudyCapture,
    user: CurrentUser = Depends(require_verifier),
    db: AsyncSession = Depends(get_db),
):
    study = await studies.save_draft(db, study_id=study_id, data=data, user=user)
    return success_response(
        data=StudyResponse.model_validate(study).model_dump(),
        message="Borrador guardado"
    )


@router.post("/{study_id}/submit", summary="Entregar estudio", response_model=ResponseModel[StudyResponse])
async def submit_study(
    study_id: str,
    data: StudyCapture,
    user: CurrentUser = Depends(require_verifier),
    db: AsyncSession = Depends(get_db),
):
    study = await studies.submit(db, study_id=study_id, data=data, user=user)
    return success_response(
        data=StudyResponse.model_validate(study).model_dump(),
        message="Estudio entregado"
    )


@router.post("/{study_id}/cancel", summary="Cancelar estudio", response_model=ResponseModel[StudyResponse])
async def cancel_study(
    study_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    study = await studies.cancel(db, study_id=study_id, user=user)
    return success_response(
        data=StudyResponse.model_validate(study).model_dump(),
        message="Estudio cancelado"
    )


@router.post("/{study_id}/rating", summary="Calificar estudio", response_model=ResponseModel[StudyRatingResponse])
async def rate_study(
    study_id: str,
    data: StudyRatingCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rating = await studies.rate(db, study_id=study_id, data=data, user=user)
    return success_response(
        data=StudyRatingResponse.model_validate(rating).model_dump(),
        message="Calificación registrada"
    )


@router.get("/{study_id}/pdf", summary="Reporte del estudio (PDF)")
async def export_study_pdf(
    study_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    study = await studies.get_study(db, study_id)
    if not studies.can_view(study, await _with_verifier(db, user)):
        raise ForbiddenException("No tienes acceso a este estudio")

    content = study_report_pdf(study, await studies.verifier_name(db, study.verifier_id))
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="estudio_{study.folio}.pdf"'},
    )

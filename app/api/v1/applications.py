"""
API de postulaciones

Proceso de selección y mensajes entre reclutador y candidato
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import ForbiddenException
from app.core.response import success_response, ResponseModel, ListResponse, DictResponse
from app.core.security import CurrentUser, get_current_user, get_optional_recruiter
from app.crud import application_crud, message_crud, publication_crud, vacancy_crud
from app.models import (
    ApplicationMessageResponse,
    ApplicationResponse,
    ApplicantResponse,
    MessageCreate,
    StageChange,
)
from app.services import pipeline

router = APIRouter()


@router.get("/mine", summary="Mis postulaciones", response_model=ListResponse)
async def get_my_applications(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    applications = await application_crud.get_by_candidate(db, user.user_id)
    items = []
    for application in applications:
        publication = await publication_crud.get(db, application.publication_id)
        items.append({
            **ApplicationResponse.model_validate(application).model_dump(),
            "title": publication.title if publication else None,
            "location": publication.location if publication else None,
            "work_mode": publication.work_mode if publication else None,
        })
    return success_response(data=items)


@router.get("/publication/{publication_id}", summary="Postulantes de una publicación", response_model=ListResponse)
async def get_publication_applicants(
    publication_id: str,
    stage: Optional[str] = Query(None, description="Filtrar por etapa"),
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    """
    Postulantes de una publicación

    Nombre, correo y teléfono solo aparecen para candidatos cuya identidad
    desbloqueó el reclutador. La empresa dueña de la vacante los ve todos.
    """
    publication = await publication_crud.get_or_404(db, publication_id, "Publicación no encontrada")
    vacancy = await vacancy_crud.get_or_404(db, publication.vacancy_id, "Vacante no encontrada")
    pipeline.ensure_can_manage(vacancy, user)

    applications = await application_crud.get_by_publication(db, publication_id, stage=stage)
    items = await pipeline.applicants_view(
        db,
        applications,
        recruiter_id=user.recruiter_id,
        reveal_all=bool(vacancy.company_id and vacancy.company_id == user.company_id),
    )
    return success_response(data=[ApplicantResponse.model_validate(i).model_dump() for i in items])


@router.patch("/{application_id}/stage", summary="Cambiar etapa", response_model=ResponseModel[ApplicationResponse])
async def change_stage(
    application_id: str,
    data: StageChange,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    """
    Cambia la etapa del proceso

    Las etapas `entrevista_presencial` y `entrevista_distancia` requieren
    `interview_date` y `interview_time` y generan una entrevista propuesta.
    """
    application = await pipeline.change_stage(db, application_id=application_id, data=data, user=user)
    return success_response(
        data=ApplicationResponse.model_validate(application).model_dump(),
        message="Etapa actualizada"
    )


# ==================== Mensajes ====================

@router.get("/messages/unread-count", summary="Mensajes sin leer", response_model=DictResponse)
async def get_unread_count(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await message_crud.count_unread(db, user.user_id)
    return success_response(data={"unread": count})


@router.get("/{application_id}/messages", summary="Conversación", response_model=ListResponse)
async def get_messages(
    application_id: str,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    messages = await pipeline.read_thread(db, application_id=application_id, user=user)
    return success_response(
        data=[ApplicationMessageResponse.model_validate(m).model_dump() for m in messages]
    )


@router.post(
    "/{application_id}/messages",
    summary="Enviar mensaje",
    response_model=ResponseModel[ApplicationMessageResponse]
)
async def send_message(
    application_id: str,
    data: MessageCreate,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    application, vacancy = await pipeline.get_application_context(db, application_id)
    if application.candidate_user_id != user.user_id and not pipeline.can_manage(vacancy, user):
        raise ForbiddenException("No participas en esta conversación")

    message = await pipeline.send_message(
        db,
        application=application,
        vacancy=vacancy,
        sender_user_id=user.user_id,
        body=data.body,
    )
    return success_response(
        data=ApplicationMessageResponse.model_validate(message).model_dump(),
        message="Mensaje enviado"
    )

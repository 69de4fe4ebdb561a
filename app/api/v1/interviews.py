"""
API de entrevistas y feedback
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import ForbiddenException
from app.core.response import success_response, ResponseModel, ListResponse, MessageResponse
from app.core.security import CurrentUser, get_current_user, get_optional_recruiter
from app.crud import feedback_crud
from app.models import (
    FeedbackCreate,
    FeedbackResponse,
    InterviewComplete,
    InterviewCreate,
    InterviewPostpone,
    InterviewReject,
    InterviewReschedule,
    InterviewResponse,
)
from app.services import interviews
from app.services.pipeline import can_manage, get_application_context

router = APIRouter()


@router.post("", summary="Agendar entrevista", response_model=ResponseModel[InterviewResponse])
async def schedule_interview(
    data: InterviewCreate,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    interview = await interviews.schedule(db, data=data, user=user)
    return success_response(
        data=InterviewResponse.model_validate(interview).model_dump(),
        message="Entrevista agendada"
    )


@router.get("/upcoming", summary="Próximas entrevistas", response_model=ListResponse)
async def get_upcoming(
    as_recruiter: Optional[bool] = Query(None, description="Ver como reclutador; por defecto según el perfil"),
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    items = await interviews.upcoming_for(db, user, as_recruiter=as_recruiter)
    return success_response(data=[InterviewResponse.model_validate(i).model_dump() for i in items])


# ==================== Respuesta del candidato ====================

@router.post("/{interview_id}/accept", summary="Aceptar entrevista", response_model=ResponseModel[InterviewResponse])
async def accept_interview(
    interview_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    interview = await interviews.accept(db, interview_id=interview_id, user=user)
    return success_response(
        data=InterviewResponse.model_validate(interview).model_dump(),
        message="Asistencia confirmada"
    )


@router.post("/{interview_id}/reject", summary="Rechazar entrevista", response_model=ResponseModel[InterviewResponse])
async def reject_interview(
    interview_id: str,
    data: InterviewReject,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    interview = await interviews.reject(db, interview_id=interview_id, data=data, user=user)
    return success_response(
        data=InterviewResponse.model_validate(interview).model_dump(),
        message="Entrevista rechazada"
    )


# ==================== Gestión del reclutador ====================

@router.post(
    "/{interview_id}/reschedule",
    summary="Reagendar entrevista",
    response_model=ResponseModel[InterviewResponse]
)
async def reschedule_interview(
    interview_id: str,
    data: InterviewReschedule,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    interview = await interviews.reschedule(db, interview_id=interview_id, data=data, user=user)
    return success_response(
        data=InterviewResponse.model_validate(interview).model_dump(),
        message="Entrevista reagendada"
    )


@router.post("/{interview_id}/postpone", summary="Posponer entrevista", response_model=ResponseModel[InterviewResponse])
async def postpone_interview(
    interview_id: str,
    data: InterviewPostpone,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    interview = await interviews.postpone(db, interview_id=interview_id, data=data, user=user)
    return success_response(
        data=InterviewResponse.model_validate(interview).model_dump(),
        message="Entrevista pospuesta"
    )


@router.post("/{interview_id}/cancel", summary="Cancelar entrevista", response_model=MessageResponse)
async def cancel_interview(
    interview_id: str,
    data: InterviewPostpone,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    """Elimina la entrevista y envía el aviso al candidato"""
    await interviews.cancel(db, interview_id=interview_id, data=data, user=user)
    return success_response(message="Entrevista cancelada")


@router.post("/{interview_id}/complete", summary="Completar entrevista", response_model=ResponseModel[InterviewResponse])
async def complete_interview(
    interview_id: str,
    data: InterviewComplete,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    interview = await interviews.complete(db, interview_id=interview_id, data=data, user=user)
    return success_response(
        data=InterviewResponse.model_validate(interview).model_dump(),
        message="Entrevista completada"
    )


# ==================== Feedback ====================

@router.post("/feedback", summary="Dar feedback al candidato", response_model=ResponseModel[FeedbackResponse])
async def create_feedback(
    data: FeedbackCreate,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    feedback = await interviews.give_feedback(db, data=data, user=user)
    return success_response(
        data=FeedbackResponse.model_validate(feedback).model_dump(),
        message="Feedback registrado"
    )


@router.get("/feedback/mine", summary="Feedback recibido", response_model=ListResponse)
async def get_my_feedback(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items = await feedback_crud.get_by_candidate(db, user.user_id)
    return success_response(data=[FeedbackResponse.model_validate(f).model_dump() for f in items])


@router.get("/feedback/application/{application_id}", summary="Feedback de una postulación", response_model=ListResponse)
async def get_application_feedback(
    application_id: str,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    application, vacancy = await get_application_context(db, application_id)
    if application.candidate_user_id != user.user_id and not can_manage(vacancy, user):
        raise ForbiddenException("No tienes acceso a esta postulación")
    items = await feedback_crud.get_multi(
        db, where=[feedback_crud.model.application_id == application_id]
    )
    return success_response(data=[FeedbackResponse.model_validate(f).model_dump() for f in items])

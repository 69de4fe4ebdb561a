"""
Entrevistas y feedback

El reclutador agenda, reagenda, pospone, cancela y cierra; el candidato
acepta o rechaza. Cada cambio relevante deja un mensaje en la postulación.
"""
from typing import Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestException, ForbiddenException
from app.core.security import CurrentUser
from app.crud import feedback_crud, interview_crud
from app.models.application import ApplicationStage
from app.models.base import as_utc, utc_now
from app.models.interview import (
    CandidateFeedback,
    FeedbackCreate,
    Interview,
    InterviewComplete,
    InterviewCreate,
    InterviewPostpone,
    InterviewReject,
    InterviewReschedule,
    InterviewState,
    InterviewType,
)
from .pipeline import (
    ensure_can_manage,
    format_long_date,
    get_application_context,
    send_message,
)

OPEN_STATES = {
    InterviewState.PROPOSED.value,
    InterviewState.ACCEPTED.value,
    InterviewState.RESCHEDULED.value,
    InterviewState.POSTPONED.value,
}


def _when(interview: Interview) -> str:
    return f"{format_long_date(interview.scheduled_at)} a las {interview.scheduled_at.strftime('%H:%M')}"


async def _get_interview(db: AsyncSession, interview_id: str) -> Interview:
    interview = await interview_crud.get_or_404(db, interview_id, "Entrevista no encontrada")
    return interview


async def _get_for_recruiter(db: AsyncSession, interview_id: str, user: CurrentUser):
    interview = await _get_interview(db, interview_id)
    application, vacancy = await get_application_context(db, interview.application_id)
    if interview.recruiter_user_id != user.user_id:
        ensure_can_manage(vacancy, user)
    return interview, application, vacancy


async def _get_for_candidate(db: AsyncSession, interview_id: str, user: CurrentUser) -> Interview:
    interview = await _get_interview(db, interview_id)
    if interview.candidate_user_id != user.user_id:
        raise ForbiddenException("La entrevista no te pertenece")
    return interview


def _ensure_open(interview: Interview):
    if interview.state not in OPEN_STATES:
        raise BadRequestException("La entrevista ya no puede modificarse")


# ==================== Reclutador ====================

async def schedule(db: AsyncSession, *, data: InterviewCreate, user: CurrentUser) -> Interview:
    """Agenda una entrevista propuesta y mueve la postulación a "entrevista" """
    application, vacancy = await get_application_context(db, data.application_id)
    ensure_can_manage(vacancy, user)

    interview = await interview_crud.create(db, obj_in={
        "application_id": application.id,
        "candidate_user_id": application.candidate_user_id,
        "recruiter_user_id": user.user_id,
        "scheduled_at": as_utc(data.scheduled_at),
        "interview_type": InterviewType(data.interview_type).value,
        "meeting_details": data.meeting_details,
        "state": InterviewState.PROPOSED.value,
    })

    now = utc_now()
    application.stage = ApplicationStage.INTERVIEW.value
    application.stage_updated_at = now
    application.updated_at = now

    kind = "presencial" if interview.interview_type == InterviewType.ON_SITE.value else "virtual"
    body = f"📅 Entrevista {kind} propuesta para el {_when(interview)}."
    if interview.meeting_details:
        body += f"\n\nDetalles: {interview.meeting_details}"
    await send_message(db, application=application, vacancy=vacancy, sender_user_id=user.user_id, body=body)
    logger.info("Entrevista agendada: interview_id={} application_id={}", interview.id, application.id)
    return interview


async def reschedule(
    db: AsyncSession,
    *,
    interview_id: str,
    data: InterviewReschedule,
    user: CurrentUser
) -> Interview:
    interview, application, vacancy = await _get_for_recruiter(db, interview_id, user)
    _ensure_open(interview)

    interview.scheduled_at = as_utc(data.scheduled_at)
    if data.interview_type is not None:
        interview.interview_type = InterviewType(data.interview_type).value
    if data.meeting_details is not None:
        interview.meeting_details = data.meeting_details
    interview.state = InterviewState.RESCHEDULED.value
    interview.rejection_reason = None
    interview.updated_at = utc_now()

    body = f"🔄 Tu entrevista fue reagendada para el {_when(interview)}."
    if data.message:
        body += f"\n\n{data.message}"
    await send_message(db, application=application, vacancy=vacancy, sender_user_id=user.user_id, body=body)
    await db.flush()
    return interview


async def postpone(
    db: AsyncSession,
    *,
    interview_id: str,
    data: InterviewPostpone,
    user: CurrentUser
) -> Interview:
    interview, application, vacancy = await _get_for_recruiter(db, interview_id, user)
    _ensure_open(interview)

    interview.state = InterviewState.POSTPONED.value
    interview.updated_at = utc_now()
    body = "⏸️ Tu entrevista fue pospuesta. Te compartiremos una nueva fecha."
    if data.message:
        body += f"\n\n{data.message}"
    await send_message(db, application=application, vacancy=vacancy, sender_user_id=user.user_id, body=body)
    await db.flush()
    return interview


async def cancel(
    db: AsyncSession,
    *,
    interview_id: str,
    data: InterviewPostpone,
    user: CurrentUser
) -> None:
    """Elimina la entrevista y avisa al candidato"""
    interview, application, vacancy = await _get_for_recruiter(db, interview_id, user)
    if interview.state == InterviewState.COMPLETED.value:
        raise BadRequestException("No se puede cancelar una entrevista completada")

    body = f"❌ La entrevista del {_when(interview)} fue cancelada."
    if data.message:
        body += f"\n\n{data.message}"
    await send_message(db, application=application, vacancy=vacancy, sender_user_id=user.user_id, body=body)
    await interview_crud.delete(db, id=interview.id)
    logger.info("Entrevista cancelada: interview_id={}", interview_id)


async def complete(
    db: AsyncSession,
    *,
    interview_id: str,
    data: InterviewComplete,
    user: CurrentUser
) -> Interview:
    interview, _, _ = await _get_for_recruiter(db, interview_id, user)
    if interview.state in (InterviewState.REJECTED.value, InterviewState.COMPLETED.value):
        raise BadRequestException("La entrevista no puede cerrarse en su estado actual")

    interview.state = InterviewState.COMPLETED.value
    interview.attended = data.attended
    interview.duration_minutes = data.duration_minutes
    interview.notes = data.notes
    interview.updated_at = utc_now()
    await db.flush()
    return interview


# ==================== Candidato ====================

async def accept(db: AsyncSession, *, interview_id: str, user: CurrentUser) -> Interview:
    interview = await _get_for_candidate(db, interview_id, user)
    if interview.state not in (InterviewState.PROPOSED.value, InterviewState.RESCHEDULED.value):
        raise BadRequestException("Solo se pueden aceptar entrevistas propuestas o reagendadas")

    application, vacancy = await get_application_context(db, interview.application_id)
    interview.state = InterviewState.ACCEPTED.value
    interview.updated_at = utc_now()
    await send_message(
        db,
        application=application,
        vacancy=vacancy,
        sender_user_id=user.user_id,
        body=f"✅ Confirmo mi asistencia a la entrevista del {_when(interview)}.",
    )
    await db.flush()
    return interview


async def reject(
    db: AsyncSession,
    *,
    interview_id: str,
    data: InterviewReject,
    user: CurrentUser
) -> Interview:
    interview = await _get_for_candidate(db, interview_id, user)
    if interview.state not in (InterviewState.PROPOSED.value, InterviewState.RESCHEDULED.value):
        raise BadRequestException("Solo se pueden rechazar entrevistas propuestas o reagendadas")

    application, vacancy = await get_application_context(db, interview.application_id)
    interview.state = InterviewState.REJECTED.value
    interview.rejection_reason = data.reason.strip()
    interview.updated_at = utc_now()
    await send_message(
        db,
        application=application,
        vacancy=vacancy,
        sender_user_id=user.user_id,
        body=f"No podré asistir a la entrevista del {_when(interview)}.\n\nMotivo: {interview.rejection_reason}",
    )
    await db.flush()
    return interview


# ==================== Feedback ====================

async def give_feedback(
    db: AsyncSession,
    *,
    data: FeedbackCreate,
    user: CurrentUser
) -> CandidateFeedback:
    application, vacancy = await get_application_context(db, data.application_id)
    ensure_can_manage(vacancy, user)
    if not data.comment.strip():
        raise BadRequestException("El comentario es obligatorio")

    feedback = await feedback_crud.create(db, obj_in={
        "application_id": application.id,
        "candidate_user_id": application.candidate_user_id,
        "recruiter_user_id": user.user_id,
        "score": data.score,
        "comment": data.comment.strip(),
        "positives": data.positives,
        "improvements": data.improvements,
    })
    logger.info("Feedback registrado: application_id={} score={}", application.id, data.score)
    return feedback


async def upcoming_for(db: AsyncSession, user: CurrentUser, *, as_recruiter: Optional[bool] = None):
    """Próximas entrevistas del usuario"""
    if as_recruiter is None:
        as_recruiter = user.recruiter is not None or user.company_id is not None
    return await interview_crud.get_for_user(db, user.user_id, as_recruiter=as_recruiter, since=utc_now())

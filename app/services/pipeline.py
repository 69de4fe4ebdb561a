"""
Proceso de selección

Postulación, cambio de etapa, mensajes entre reclutador y candidato y
enmascarado de identidad para reclutadores.
"""
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    BadRequestException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
)
from app.core.security import CurrentUser
from app.crud import (
    application_crud,
    candidate_crud,
    identity_access_crud,
    interview_crud,
    message_crud,
    publication_crud,
    recruiter_crud,
    vacancy_crud,
)
from app.models.application import (
    Application,
    ApplicationStage,
    CLOSING_STAGES,
    INTERVIEW_STAGES,
    STAGE_LABELS,
    StageChange,
    status_for_stage,
)
from app.models.base import utc_now
from app.models.interview import InterviewState
from app.models.message import ApplicationMessage
from app.models.vacancy import MarketplacePublication, Vacancy, VacancyStatus

WEEKDAYS = ["lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"]
MONTHS = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]


def format_long_date(value: datetime) -> str:
    """martes, 5 de marzo de 2024"""
    return f"{WEEKDAYS[value.weekday()]}, {value.day} de {MONTHS[value.month - 1]} de {value.year}"


def parse_interview_datetime(date_str: Optional[str], time_str: Optional[str]) -> datetime:
    """Combina fecha YYYY-MM-DD y hora HH:MM"""
    if not date_str or not time_str:
        raise BadRequestException("Las etapas de entrevista requieren fecha y hora")
    try:
        parsed = datetime.strptime(f"{date_str} {time_str}", "%Y-%m-%d %H:%M")
    except ValueError:
        raise BadRequestException("Fecha u hora de entrevista inválida")
    return parsed.replace(tzinfo=timezone.utc)


# ==================== Contexto y permisos ====================

async def get_application_context(
    db: AsyncSession,
    application_id: str
) -> Tuple[Application, Vacancy]:
    application = await application_crud.get_or_404(db, application_id, "Postulación no encontrada")
    vacancy = await vacancy_crud.get_or_404(db, application.vacancy_id, "Vacante no encontrada")
    return application, vacancy


def can_manage(vacancy: Vacancy, user: CurrentUser) -> bool:
    """Dueño, admin de la empresa de la vacante o reclutador asignado"""
    if vacancy.owner_user_id == user.user_id:
        return True
    if vacancy.company_id and vacancy.company_id == user.company_id:
        return True
    return bool(user.recruiter and vacancy.assigned_recruiter_id == user.recruiter.id)


def ensure_can_manage(vacancy: Vacancy, user: CurrentUser):
    if not can_manage(vacancy, user):
        raise ForbiddenException("No tienes permisos sobre esta vacante")


async def recruiter_user_for(db: AsyncSession, vacancy: Vacancy) -> str:
    """Usuario que atiende la vacante: reclutador asignado o dueño"""
    if vacancy.assigned_recruiter_id:
        recruiter = await recruiter_crud.get(db, vacancy.assigned_recruiter_id)
        if recruiter:
            return recruiter.user_id
    return vacancy.owner_user_id


# ==================== Postulación ====================

async def apply(
    db: AsyncSession,
    *,
    publication_id: str,
    user: CurrentUser,
    cover_letter: Optional[str] = None
) -> Application:
    """Postula al candidato a una publicación activa"""
    publication: Optional[MarketplacePublication] = await publication_crud.get(db, publication_id)
    if publication is None or not publication.published:
        raise NotFoundException("Publicación no encontrada o no disponible")
    vacancy = await vacancy_crud.get(db, publication.vacancy_id)
    if vacancy is None or vacancy.status != VacancyStatus.OPEN.value:
        raise BadRequestException("La vacante ya no recibe postulaciones")

    existing = await application_crud.get_for_candidate(
        db, publication_id=publication_id, candidate_user_id=user.user_id
    )
    if existing:
        raise ConflictException("Ya te postulaste a esta vacante")

    application = await application_crud.create(db, obj_in={
        "publication_id": publication.id,
        "vacancy_id": publication.vacancy_id,
        "candidate_user_id": user.user_id,
        "cover_letter": cover_letter,
    })
    logger.info("Nueva postulación: publication_id={} candidate={}", publication.id, user.user_id)
    return application


# ==================== Mensajes ====================

def stage_message(
    stage: str,
    notes: Optional[str] = None,
    scheduled_at: Optional[datetime] = None,
    details: Optional[str] = None
) -> str:
    """Mensaje que recibe el candidato al cambiar de etapa"""
    if stage in INTERVIEW_STAGES:
        on_site = stage == ApplicationStage.ON_SITE_INTERVIEW.value
        header = "🎯 ENTREVISTA PRESENCIAL PROGRAMADA" if on_site else "💻 ENTREVISTA REMOTA PROGRAMADA"
        place = f"📍 Lugar: {details or 'Por confirmar'}" if on_site else f"🔗 Enlace: {details or 'Por confirmar'}"
        closing = (
            "Por favor, confirma tu asistencia. ¡Te esperamos!" if on_site
            else "Por favor, confirma tu asistencia y asegúrate de tener una buena conexión a internet."
        )
        lines = [
            header,
            "",
            f"📅 Fecha: {format_long_date(scheduled_at)}",
            f"🕐 Hora: {scheduled_at.strftime('%H:%M')}",
            place,
            "",
        ]
        if notes:
            lines += [f"ℹ️ Detalles: {notes}", ""]
        lines.append(closing)
        return "\n".join(lines)

    if stage == ApplicationStage.IN_PROCESS.value:
        return "✅ Tu proceso continúa avanzando.\n\n" + (
            f"Comentarios: {notes}" if notes else "Pronto tendrás noticias nuestras."
        )
    if stage == ApplicationStage.HIRED.value:
        comments = f"Comentarios: {notes}\n\n" if notes else ""
        return (
            "🎉 ¡FELICIDADES! Has sido seleccionado para el puesto.\n\n"
            f"{comments}Pronto nos contactaremos contigo con los siguientes pasos."
        )
    if stage in CLOSING_STAGES:
        return "Gracias por tu interés en la posición." + (f"\n\nComentarios: {notes}" if notes else "")
    return f"Estado de tu postulación actualizado: {STAGE_LABELS.get(stage, stage)}" + (
        f"\n\nComentarios: {notes}" if notes else ""
    )


async def send_message(
    db: AsyncSession,
    *,
    application: Application,
    vacancy: Vacancy,
    sender_user_id: str,
    body: str
) -> ApplicationMessage:
    """El destinatario se resuelve a partir de la postulación"""
    if sender_user_id == application.candidate_user_id:
        recipient = await recruiter_user_for(db, vacancy)
    else:
        recipient = application.candidate_user_id
    return await message_crud.create(db, obj_in={
        "application_id": application.id,
        "sender_user_id": sender_user_id,
        "recipient_user_id": recipient,
        "body": body,
    })


async def read_thread(
    db: AsyncSession,
    *,
    application_id: str,
    user: CurrentUser
) -> List[ApplicationMessage]:
    """Conversación de la postulación; marca como leídos los mensajes recibidos"""
    application, vacancy = await get_application_context(db, application_id)
    if application.candidate_user_id != user.user_id and not can_manage(vacancy, user):
        raise ForbiddenException("No participas en esta conversación")
    await message_crud.mark_read(db, application_id=application.id, recipient_user_id=user.user_id)
    messages = await message_crud.get_thread(db, application.id)
    for m in messages:
        # el UPDATE masivo no refresca objetos ya cargados en la sesión
        if m.recipient_user_id == user.user_id:
            m.read = True
    return messages


# ==================== Cambio de etapa ====================

async def change_stage(
    db: AsyncSession,
    *,
    application_id: str,
    data: StageChange,
    user: CurrentUser
) -> Application:
    """
    Mueve la postulación a otra etapa

    - Etapas de entrevista: requieren fecha y hora y crean una entrevista propuesta
    - Se envía un mensaje al candidato
    - Contratado: cierra la vacante
    """
    application, vacancy = await get_application_context(db, application_id)
    ensure_can_manage(vacancy, user)

    stage = data.stage.value
    scheduled_at = None
    if stage in INTERVIEW_STAGES:
        scheduled_at = parse_interview_datetime(data.interview_date, data.interview_time)
        await interview_crud.create(db, obj_in={
            "application_id": application.id,
            "candidate_user_id": application.candidate_user_id,
            "recruiter_user_id": user.user_id,
            "scheduled_at": scheduled_at,
            "interview_type": INTERVIEW_STAGES[stage],
            "meeting_details": data.meeting_details,
            "state": InterviewState.PROPOSED.value,
        })

    now = utc_now()
    application.stage = stage
    application.status = status_for_stage(stage)
    application.stage_updated_at = now
    application.updated_at = now
    if data.notes:
        application.recruiter_notes = data.notes

    await message_crud.create(db, obj_in={
        "application_id": application.id,
        "sender_user_id": user.user_id,
        "recipient_user_id": application.candidate_user_id,
        "body": stage_message(stage, data.notes, scheduled_at, data.meeting_details),
    })

    if stage == ApplicationStage.HIRED.value and vacancy.status == VacancyStatus.OPEN.value:
        vacancy.status = VacancyStatus.CLOSED.value
        vacancy.closed_at = now
        vacancy.updated_at = now
        await publication_crud.withdraw(db, vacancy.id)
        logger.info("Vacante cerrada por contratación: vacancy_id={}", vacancy.id)

    await db.flush()
    await db.refresh(application)
    logger.info("Cambio de etapa: application_id={} stage={}", application.id, stage)
    return application


# ==================== Identidad del candidato ====================

async def applicants_view(
    db: AsyncSession,
    applications: Sequence[Application],
    *,
    recruiter_id: Optional[str],
    reveal_all: bool = False
) -> List[dict]:
    """
    Postulaciones con datos del candidato

    El nombre, email y teléfono solo se muestran si el reclutador desbloqueó
    la identidad (o si el lector es la empresa dueña de la vacante).
    """
    profiles = {
        p.user_id: p
        for p in await candidate_crud.get_by_users(db, [a.candidate_user_id for a in applications])
    }
    unlocked = set()
    if recruiter_id and not reveal_all:
        unlocked = await identity_access_crud.unlocked_candidates(db, recruiter_id)

    items = []
    for application in applications:
        profile = profiles.get(application.candidate_user_id)
        visible = reveal_all or application.candidate_user_id in unlocked
        item = application.model_dump()
        item.update({
            "identity_unlocked": visible,
            "candidate_name": profile.full_name if profile and visible else None,
            "candidate_email": profile.email if profile and visible else None,
            "candidate_phone": profile.phone if profile and visible else None,
            "current_position": profile.current_position if profile else None,
            "technical_skills": (profile.technical_skills or []) if profile else [],
        })
        items.append(item)
    return items

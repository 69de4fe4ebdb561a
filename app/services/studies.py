"""
Estudios socioeconómicos

solicitado → asignado → en_proceso → entregado (o cancelado)
"""
from datetime import timedelta
from typing import Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    BadRequestException,
    ConflictException,
    ForbiddenException,
)
from app.core.security import CurrentUser
from app.crud import study_crud, study_rating_crud, verifier_crud
from app.models.base import as_utc, utc_now
from app.models.study import (
    SocioeconomicStudy,
    StudyCapture,
    StudyCreate,
    StudyRating,
    StudyRatingCreate,
    StudyStatus,
)

DEFAULT_DEADLINE_DAYS = 7

CLOSED_STATUSES = {StudyStatus.DELIVERED.value, StudyStatus.CANCELLED.value}


async def get_study(db: AsyncSession, study_id: str) -> SocioeconomicStudy:
    study = await study_crud.get_or_404(db, study_id, "Estudio no encontrado")
    return study


def is_requester(study: SocioeconomicStudy, user: CurrentUser) -> bool:
    if study.requester_user_id == user.user_id:
        return True
    return bool(study.company_id and study.company_id == user.company_id)


def can_view(study: SocioeconomicStudy, user: CurrentUser) -> bool:
    if is_requester(study, user):
        return True
    return bool(user.verifier and study.verifier_id == user.verifier.id)


async def _ensure_verifier(db: AsyncSession, verifier_id: str):
    verifier = await verifier_crud.get_or_404(db, verifier_id, "Verificador no encontrado")
    return verifier


async def request_study(db: AsyncSession, *, data: StudyCreate, user: CurrentUser) -> SocioeconomicStudy:
    """Solicita un estudio; con verificador queda asignado de inmediato"""
    now = utc_now()
    payload = data.model_dump(exclude={"deadline", "verifier_id"})
    payload.update({
        "folio": await study_crud.next_folio(db),
        "requester_user_id": user.user_id,
        "company_id": user.company_id,
        "requested_at": now,
        "deadline": as_utc(data.deadline) or now + timedelta(days=DEFAULT_DEADLINE_DAYS),
        "status": StudyStatus.REQUESTED.value,
    })
    if data.verifier_id:
        await _ensure_verifier(db, data.verifier_id)
        payload.update({
            "verifier_id": data.verifier_id,
            "status": StudyStatus.ASSIGNED.value,
            "assigned_at": now,
        })

    study = await study_crud.create(db, obj_in=payload)
    logger.info("Estudio solicitado: folio={} status={}", study.folio, study.status)
    return study


async def assign_verifier(
    db: AsyncSession,
    *,
    study_id: str,
    verifier_id: str,
    user: CurrentUser
) -> SocioeconomicStudy:
    study = await get_study(db, study_id)
    if not is_requester(study, user):
        raise ForbiddenException("Solo el solicitante puede asignar verificador")
    if study.status not in (StudyStatus.REQUESTED.value, StudyStatus.ASSIGNED.value):
        raise BadRequestException("El estudio ya está en proceso o cerrado")
    await _ensure_verifier(db, verifier_id)

    now = utc_now()
    study.verifier_id = verifier_id
    study.status = StudyStatus.ASSIGNED.value
    study.assigned_at = now
    study.updated_at = now
    await db.flush()
    return study


def _apply_capture(study: SocioeconomicStudy, data: StudyCapture):
    for field, value in data.model_dump(exclude_unset=True).items():
        if hasattr(value, "value"):
            value = value.value
        setattr(study, field, value)


async def _get_for_verifier(db: AsyncSession, study_id: str, user: CurrentUser) -> SocioeconomicStudy:
    study = await get_study(db, study_id)
    if not user.verifier or study.verifier_id != user.verifier.id:
        raise ForbiddenException("El estudio no está asignado a ti")
    if study.status in CLOSED_STATUSES:
        raise BadRequestException("El estudio ya está cerrado")
    return study


async def save_draft(
    db: AsyncSession,
    *,
    study_id: str,
    data: StudyCapture,
    user: CurrentUser
) -> SocioeconomicStudy:
    study = await _get_for_verifier(db, study_id, user)
    _apply_capture(study, data)
    study.status = StudyStatus.IN_PROGRESS.value
    study.draft = True
    study.updated_at = utc_now()
    await db.flush()
    return study


async def submit(
    db: AsyncSession,
    *,
    study_id: str,
    data: StudyCapture,
    user: CurrentUser
) -> SocioeconomicStudy:
    """Entrega el estudio; requiere resultado general"""
    study = await _get_for_verifier(db, study_id, user)
    _apply_capture(study, data)
    if not study.general_result:
        raise BadRequestException("Indica el resultado general antes de entregar")
    if study.candidate_present is False and not study.absence_reason:
        raise BadRequestException("Indica el motivo de ausencia del candidato")

    now = utc_now()
    study.status = StudyStatus.DELIVERED.value
    study.draft = False
    study.delivered_at = now
    study.updated_at = now
    await db.flush()
    logger.info("Estudio entregado: folio={}", study.folio)
    return study


async def cancel(db: AsyncSession, *, study_id: str, user: CurrentUser) -> SocioeconomicStudy:
    study = await get_study(db, study_id)
    if not is_requester(study, user):
        raise ForbiddenException("Solo el solicitante puede cancelar el estudio")
    if study.status in CLOSED_STATUSES:
        raise BadRequestException("El estudio ya está cerrado")
    study.status = StudyStatus.CANCELLED.value
    study.updated_at = utc_now()
    await db.flush()
    return study


async def rate(
    db: AsyncSession,
    *,
    study_id: str,
    data: StudyRatingCreate,
    user: CurrentUser
) -> StudyRating:
    """Calificación del solicitante a un estudio entregado"""
    study = await get_study(db, study_id)
    if not is_requester(study, user):
        raise ForbiddenException("Solo el solicitante puede calificar el estudio")
    if study.status != StudyStatus.DELIVERED.value:
        raise BadRequestException("Solo se pueden calificar estudios entregados")
    if await study_rating_crud.get_by(db, study_id=study.id):
        raise ConflictException("El estudio ya fue calificado")

    return await study_rating_crud.create(db, obj_in={
        "study_id": study.id,
        "verifier_id": study.verifier_id,
        "rater_user_id": user.user_id,
        "rating": data.rating,
        "comment": data.comment,
    })


async def verifier_name(db: AsyncSession, verifier_id: Optional[str]) -> Optional[str]:
    if not verifier_id:
        return None
    verifier = await verifier_crud.get(db, verifier_id)
    return verifier.name if verifier else None

"""
Asociación empresa - reclutador

La empresa invita por código; el reclutador acepta o rechaza. Desvincular
exige que el reclutador no tenga vacantes abiertas de la empresa ni
créditos heredados sin devolver.
"""
from datetime import timedelta

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    BadRequestException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
)
from app.crud import (
    inherited_credit_crud,
    invitation_crud,
    link_crud,
    recruiter_crud,
    vacancy_crud,
)
from app.models.association import (
    InvitationCreate,
    InvitationState,
    LinkState,
    LinkType,
    RecruiterCompanyLink,
    RecruiterInvitation,
)
from app.models.base import as_utc, utc_now


async def invite(
    db: AsyncSession,
    *,
    company_id: str,
    data: InvitationCreate,
    invited_by: str
) -> RecruiterInvitation:
    """Invita a un reclutador usando su código"""
    recruiter = await recruiter_crud.get_by_code(db, data.recruiter_code)
    if recruiter is None:
        raise NotFoundException("No existe un reclutador con ese código")

    if await link_crud.get_active(db, recruiter_id=recruiter.id, company_id=company_id):
        raise ConflictException("El reclutador ya está asociado a la empresa")
    if await invitation_crud.get_pending(db, company_id=company_id, recruiter_id=recruiter.id):
        raise ConflictException("Ya existe una invitación pendiente para este reclutador")

    invitation = await invitation_crud.create(db, obj_in={
        "company_id": company_id,
        "recruiter_id": recruiter.id,
        "recruiter_code": recruiter.recruiter_code,
        "link_type": LinkType(data.link_type).value,
        "message": data.message,
        "invited_by": invited_by,
        "expires_at": utc_now() + timedelta(days=data.expires_in_days),
    })
    logger.info("Invitación enviada: company_id={} recruiter_id={}", company_id, recruiter.id)
    return invitation


async def _get_own_pending(db: AsyncSession, invitation_id: str, recruiter_id: str) -> RecruiterInvitation:
    invitation = await invitation_crud.get_or_404(db, invitation_id, "Invitación no encontrada")
    if invitation.recruiter_id != recruiter_id:
        raise ForbiddenException("La invitación no es para ti")
    if invitation.state != InvitationState.PENDING.value:
        raise BadRequestException("La invitación ya fue respondida")

    if invitation.expires_at and as_utc(invitation.expires_at) < utc_now():
        invitation.state = InvitationState.EXPIRED.value
        invitation.updated_at = utc_now()
        # se confirma el estado expirado aunque la petición falle
        await db.commit()
        raise BadRequestException("La invitación ha expirado")
    return invitation


async def accept_invitation(
    db: AsyncSession,
    *,
    invitation_id: str,
    recruiter_id: str
) -> RecruiterCompanyLink:
    """Acepta la invitación y crea un vínculo activo nuevo"""
    invitation = await _get_own_pending(db, invitation_id, recruiter_id)
    if await link_crud.get_active(db, recruiter_id=recruiter_id, company_id=invitation.company_id):
        raise ConflictException("Ya estás asociado a esta empresa")

    now = utc_now()
    invitation.state = InvitationState.ACCEPTED.value
    invitation.answered_at = now
    invitation.updated_at = now

    link = await link_crud.create(db, obj_in={
        "recruiter_id": recruiter_id,
        "company_id": invitation.company_id,
        "link_type": invitation.link_type,
        "invitation_id": invitation.id,
        "started_at": now,
    })
    logger.info("Invitación aceptada: invitation_id={} link_id={}", invitation.id, link.id)
    return link


async def reject_invitation(
    db: AsyncSession,
    *,
    invitation_id: str,
    recruiter_id: str
) -> RecruiterInvitation:
    invitation = await _get_own_pending(db, invitation_id, recruiter_id)
    now = utc_now()
    invitation.state = InvitationState.REJECTED.value
    invitation.answered_at = now
    invitation.updated_at = now
    await db.flush()
    return invitation


async def unlink(
    db: AsyncSession,
    *,
    recruiter_id: str,
    company_id: str
) -> RecruiterCompanyLink:
    """
    Finaliza el vínculo activo

    Raises:
        BadRequestException: si hay vacantes abiertas o créditos heredados sin devolver
    """
    link = await link_crud.get_active(db, recruiter_id=recruiter_id, company_id=company_id)
    if link is None:
        raise NotFoundException("No existe una asociación activa")

    open_vacancies = await vacancy_crud.count_open_for_recruiter(
        db, recruiter_id=recruiter_id, company_id=company_id
    )
    if open_vacancies > 0:
        raise BadRequestException(
            f"El reclutador tiene {open_vacancies} vacantes abiertas de la empresa. "
            "Reasígnalas o ciérralas antes de desvincular"
        )

    inherited = await inherited_credit_crud.get_pair(db, recruiter_id=recruiter_id, company_id=company_id)
    if inherited and inherited.available_credits > 0:
        raise BadRequestException(
            f"El reclutador tiene {inherited.available_credits} créditos heredados sin devolver"
        )

    now = utc_now()
    link.state = LinkState.FINISHED.value
    link.ended_at = now
    link.updated_at = now
    await db.flush()
    logger.info("Asociación finalizada: recruiter_id={} company_id={}", recruiter_id, company_id)
    return link

"""
Vacantes y marketplace

Alta y ciclo de vida de vacantes, publicación con cobro de créditos y retiro
de publicaciones.
"""
from typing import Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    BadRequestException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
)
from app.core.security import CurrentUser
from app.crud import application_crud, link_crud, publication_crud, recruiter_crud, vacancy_crud
from app.models.base import as_utc, utc_now
from app.models.vacancy import (
    CloseRequest,
    MarketplacePublication,
    PublicationCreate,
    Vacancy,
    VacancyCreate,
    VacancyStatus,
)
from . import ledger
from .pipeline import ensure_can_manage


async def get_vacancy(db: AsyncSession, vacancy_id: str) -> Vacancy:
    vacancy = await vacancy_crud.get_or_404(db, vacancy_id, "Vacante no encontrada")
    return vacancy


async def _ensure_linked(db: AsyncSession, recruiter_id: str, company_id: Optional[str]):
    if await recruiter_crud.get(db, recruiter_id) is None:
        raise NotFoundException("Reclutador no encontrado")
    if company_id and not await link_crud.get_active(db, recruiter_id=recruiter_id, company_id=company_id):
        raise BadRequestException("El reclutador no está asociado a la empresa")


# ==================== Vacantes ====================

async def create_vacancy(db: AsyncSession, *, data: VacancyCreate, user: CurrentUser) -> Vacancy:
    """
    Registra una vacante

    Un administrador de empresa la crea para su empresa y puede asignarla a un
    reclutador vinculado; un reclutador independiente la crea asignada a sí mismo.
    """
    company_id = user.company_id
    recruiter_id = data.assigned_recruiter_id
    if company_id is None:
        if user.recruiter is None:
            raise ForbiddenException("Solo empresas o reclutadores pueden registrar vacantes")
        recruiter_id = user.recruiter.id
    elif recruiter_id:
        await _ensure_linked(db, recruiter_id, company_id)

    payload = data.model_dump(exclude={"assigned_recruiter_id", "requested_at"})
    payload.update({
        "folio": await vacancy_crud.next_folio(db),
        "owner_user_id": user.user_id,
        "company_id": company_id,
        "assigned_recruiter_id": recruiter_id,
        "requested_at": as_utc(data.requested_at) or utc_now(),
    })
    vacancy = await vacancy_crud.create(db, obj_in=payload)
    logger.info("Vacante registrada: folio={} company_id={}", vacancy.folio, company_id)
    return vacancy


async def assign_recruiter(
    db: AsyncSession,
    *,
    vacancy_id: str,
    recruiter_id: str,
    user: CurrentUser
) -> Vacancy:
    vacancy = await get_vacancy(db, vacancy_id)
    if not vacancy.company_id or vacancy.company_id != user.company_id:
        raise ForbiddenException("Solo la empresa dueña puede asignar la vacante")
    if vacancy.status != VacancyStatus.OPEN.value:
        raise BadRequestException("Solo se pueden asignar vacantes abiertas")
    await _ensure_linked(db, recruiter_id, vacancy.company_id)

    vacancy.assigned_recruiter_id = recruiter_id
    vacancy.updated_at = utc_now()
    await db.flush()
    return vacancy


async def _finish(db: AsyncSession, vacancy: Vacancy, status: str) -> Vacancy:
    if vacancy.status != VacancyStatus.OPEN.value:
        raise BadRequestException("La vacante ya no está abierta")
    now = utc_now()
    vacancy.status = status
    vacancy.closed_at = now
    vacancy.close_requested = False
    vacancy.updated_at = now

    await publication_crud.withdraw(db, vacancy.id)
    await db.flush()
    logger.info("Vacante {}: folio={}", status, vacancy.folio)
    return vacancy


async def close_vacancy(db: AsyncSession, *, vacancy_id: str, user: CurrentUser) -> Vacancy:
    vacancy = await get_vacancy(db, vacancy_id)
    ensure_can_manage(vacancy, user)
    return await _finish(db, vacancy, VacancyStatus.CLOSED.value)


async def cancel_vacancy(db: AsyncSession, *, vacancy_id: str, user: CurrentUser) -> Vacancy:
    vacancy = await get_vacancy(db, vacancy_id)
    if vacancy.owner_user_id != user.user_id and vacancy.company_id != user.company_id:
        raise ForbiddenException("Solo el dueño de la vacante puede cancelarla")
    return await _finish(db, vacancy, VacancyStatus.CANCELLED.value)


async def request_close(
    db: AsyncSession,
    *,
    vacancy_id: str,
    data: CloseRequest,
    user: CurrentUser
) -> Vacancy:
    """El reclutador asignado pide a la empresa cerrar la vacante"""
    vacancy = await get_vacancy(db, vacancy_id)
    if not user.recruiter or vacancy.assigned_recruiter_id != user.recruiter.id:
        raise ForbiddenException("Solo el reclutador asignado puede solicitar el cierre")
    if vacancy.status != VacancyStatus.OPEN.value:
        raise BadRequestException("La vacante ya no está abierta")
    if vacancy.close_requested:
        raise ConflictException("Ya existe una solicitud de cierre")

    vacancy.close_requested = True
    vacancy.close_request_reason = data.reason
    vacancy.updated_at = utc_now()
    await db.flush()
    return vacancy


# ==================== Publicación ====================

async def credits_check(db: AsyncSession, *, vacancy_id: str, user: CurrentUser) -> dict:
    """Saldo del reclutador frente al costo de publicar la vacante"""
    vacancy = await get_vacancy(db, vacancy_id)
    return await ledger.check_publication_credits(
        db, recruiter_id=user.recruiter.id, company_id=vacancy.company_id
    )


async def publish(
    db: AsyncSession,
    *,
    vacancy_id: str,
    data: PublicationCreate,
    user: CurrentUser
) -> dict:
    """
    Publica la vacante en el marketplace

    Solo el reclutador asignado publica. Se cobra el costo de publicación y se
    crea (o reactiva) la publicación con los campos visibles elegidos.

    Raises:
        InsufficientCreditsException: sin créditos suficientes
    """
    vacancy = await get_vacancy(db, vacancy_id)
    if vacancy.assigned_recruiter_id != user.recruiter.id:
        raise ForbiddenException("Solo el reclutador asignado puede publicar la vacante")
    if vacancy.status != VacancyStatus.OPEN.value:
        raise BadRequestException("Solo se pueden publicar vacantes abiertas")

    publication = await publication_crud.get_by_vacancy(db, vacancy.id)
    if publication and publication.published:
        raise ConflictException("La vacante ya está publicada")

    charge = await ledger.charge_publication(
        db,
        recruiter_id=user.recruiter.id,
        actor_user_id=user.user_id,
        vacancy_id=vacancy.id,
        company_id=vacancy.company_id,
        vacancy_title=vacancy.title,
    )

    visible = {
        "client_area": data.show_client,
        "approved_gross_salary": data.show_salary,
        "location": data.show_location,
        "required_profile": data.show_profile,
        "notes": data.show_notes,
    }
    fields = {
        "vacancy_id": vacancy.id,
        "user_id": user.user_id,
        "company_id": vacancy.company_id,
        "title": vacancy.title,
        "work_mode": vacancy.work_mode,
        "visible_fields": [name for name, shown in visible.items() if shown],
        "published": True,
        "published_at": utc_now(),
    }
    for name, shown in visible.items():
        fields[name] = getattr(vacancy, name) if shown else None

    if publication is None:
        publication = await publication_crud.create(db, obj_in=fields)
    else:
        publication = await publication_crud.update(db, db_obj=publication, obj_in=fields)
        # update() ignora los None
        for name, shown in visible.items():
            if not shown:
                setattr(publication, name, None)
        await db.flush()

    logger.info(
        "Vacante publicada: folio={} origin={} credits={}",
        vacancy.folio, charge["payment_origin"], charge["credits_spent"],
    )
    return {"publication": publication, **charge}


async def unpublish(db: AsyncSession, *, vacancy_id: str, user: CurrentUser) -> Optional[MarketplacePublication]:
    """
    Retira la publicación

    Sin postulaciones se elimina; con postulaciones solo se oculta para
    conservar el historial. No hay reembolso.
    """
    vacancy = await get_vacancy(db, vacancy_id)
    ensure_can_manage(vacancy, user)
    publication = await publication_crud.get_by_vacancy(db, vacancy.id)
    if publication is None:
        raise NotFoundException("La vacante no está publicada")

    if await application_crud.count(db, where=[application_crud.model.publication_id == publication.id]):
        publication.published = False
        publication.updated_at = utc_now()
        await db.flush()
        return publication

    await publication_crud.delete(db, id=publication.id)
    return None

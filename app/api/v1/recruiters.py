"""
API de reclutadores

Perfil, invitaciones de empresas y vínculos
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import ConflictException
from app.core.response import success_response, ResponseModel, ListResponse, MessageResponse
from app.core.security import CurrentUser, get_current_user, require_recruiter
from app.crud import (
    company_crud,
    inherited_credit_crud,
    invitation_crud,
    link_crud,
    recruiter_crud,
    recruiter_wallet_crud,
    user_role_crud,
)
from app.models import (
    AppRole,
    InvitationResponse,
    LinkResponse,
    RecruiterProfileCreate,
    RecruiterProfileResponse,
    RecruiterProfileUpdate,
)
from app.services import association

router = APIRouter()


# ==================== Perfil ====================

@router.post("/profile", summary="Crear perfil de reclutador", response_model=ResponseModel[RecruiterProfileResponse])
async def create_profile(
    data: RecruiterProfileCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Crea el perfil con su código único de reclutador y su monedero
    """
    if await recruiter_crud.get_by_user(db, user.user_id):
        raise ConflictException("Ya tienes un perfil de reclutador")

    profile = await recruiter_crud.create_profile(db, data=data.model_dump(), user_id=user.user_id)
    await user_role_crud.grant(db, user_id=user.user_id, role=AppRole.RECRUITER.value)
    await recruiter_wallet_crud.get_or_create(db, profile.id)
    return success_response(
        data=RecruiterProfileResponse.model_validate(profile).model_dump(),
        message="Perfil creado"
    )


@router.get("/profile", summary="Mi perfil de reclutador", response_model=ResponseModel[RecruiterProfileResponse])
async def get_profile(user: CurrentUser = Depends(require_recruiter)):
    return success_response(data=RecruiterProfileResponse.model_validate(user.recruiter).model_dump())


@router.patch("/profile", summary="Actualizar perfil", response_model=ResponseModel[RecruiterProfileResponse])
async def update_profile(
    data: RecruiterProfileUpdate,
    user: CurrentUser = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db),
):
    profile = await recruiter_crud.update(db, db_obj=user.recruiter, obj_in=data)
    return success_response(
        data=RecruiterProfileResponse.model_validate(profile).model_dump(),
        message="Perfil actualizado"
    )


# ==================== Invitaciones ====================

@router.get("/invitations", summary="Mis invitaciones", response_model=ListResponse)
async def get_invitations(
    state: Optional[str] = Query(None, description="pendiente | aceptada | rechazada | expirada"),
    user: CurrentUser = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db),
):
    invitations = await invitation_crud.get_for_recruiter(db, user.recruiter.id, state)
    items = []
    for invitation in invitations:
        company = await company_crud.get(db, invitation.company_id)
        items.append({
            **InvitationResponse.model_validate(invitation).model_dump(),
            "company_name": company.name if company else None,
        })
    return success_response(data=items)


@router.post(
    "/invitations/{invitation_id}/accept",
    summary="Aceptar invitación",
    response_model=ResponseModel[LinkResponse]
)
async def accept_invitation(
    invitation_id: str,
    user: CurrentUser = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db),
):
    link = await association.accept_invitation(db, invitation_id=invitation_id, recruiter_id=user.recruiter.id)
    return success_response(
        data=LinkResponse.model_validate(link).model_dump(),
        message="Invitación aceptada"
    )


@router.post(
    "/invitations/{invitation_id}/reject",
    summary="Rechazar invitación",
    response_model=ResponseModel[InvitationResponse]
)
async def reject_invitation(
    invitation_id: str,
    user: CurrentUser = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db),
):
    invitation = await association.reject_invitation(
        db, invitation_id=invitation_id, recruiter_id=user.recruiter.id
    )
    return success_response(
        data=InvitationResponse.model_validate(invitation).model_dump(),
        message="Invitación rechazada"
    )


# ==================== Empresas ====================

@router.get("/links", summary="Mis empresas", response_model=ListResponse)
async def get_links(
    active_only: bool = Query(True, description="Solo vínculos activos"),
    user: CurrentUser = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db),
):
    links = await link_crud.get_by_recruiter(db, user.recruiter.id, active_only=active_only)
    items = []
    for link in links:
        company = await company_crud.get(db, link.company_id)
        inherited = await inherited_credit_crud.get_pair(
            db, recruiter_id=user.recruiter.id, company_id=link.company_id
        )
        items.append({
            **LinkResponse.model_validate(link).model_dump(),
            "company_name": company.name if company else None,
            "inherited_credits": inherited.available_credits if inherited else 0,
        })
    return success_response(data=items)


@router.delete("/links/{company_id}", summary="Desvincularme de una empresa", response_model=MessageResponse)
async def unlink_company(
    company_id: str,
    user: CurrentUser = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db),
):
    link = await association.unlink(db, recruiter_id=user.recruiter.id, company_id=company_id)
    return success_response(
        data=LinkResponse.model_validate(link).model_dump(),
        message="Desvinculación realizada"
    )

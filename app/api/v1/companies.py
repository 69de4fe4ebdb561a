"""
API de empresas

Alta de empresa, perfil y gestión de reclutadores asociados
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import ConflictException, NotFoundException
from app.core.response import success_response, ResponseModel, ListResponse, MessageResponse
from app.core.security import CurrentUser, get_current_user, require_company_admin
from app.crud import (
    company_crud,
    company_wallet_crud,
    inherited_credit_crud,
    invitation_crud,
    link_crud,
    recruiter_crud,
    user_role_crud,
    vacancy_crud,
)
from app.models import (
    AppRole,
    CompanyCreate,
    CompanyResponse,
    CompanyUpdate,
    InvitationCreate,
    InvitationResponse,
    LinkResponse,
)
from app.services import association

router = APIRouter()


@router.post("", summary="Registrar empresa", response_model=ResponseModel[CompanyResponse])
async def create_company(
    data: CompanyCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Registra la empresa y convierte al usuario en su administrador
    """
    if user.company_id:
        raise ConflictException("Ya administras una empresa")

    company = await company_crud.create_company(db, data=data.model_dump(), created_by=user.user_id)
    await user_role_crud.grant(
        db, user_id=user.user_id, role=AppRole.COMPANY_ADMIN.value, company_id=company.id
    )
    await company_wallet_crud.get_or_create(db, company.id)
    return success_response(
        data=CompanyResponse.model_validate(company).model_dump(),
        message="Empresa registrada"
    )


@router.get("/me", summary="Mi empresa", response_model=ResponseModel[CompanyResponse])
async def get_my_company(
    user: CurrentUser = Depends(require_company_admin),
    db: AsyncSession = Depends(get_db),
):
    company = await company_crud.get(db, user.company_id)
    if not company:
        raise NotFoundException("Empresa no encontrada")
    return success_response(data=CompanyResponse.model_validate(company).model_dump())


@router.patch("/me", summary="Actualizar empresa", response_model=ResponseModel[CompanyResponse])
async def update_my_company(
    data: CompanyUpdate,
    user: CurrentUser = Depends(require_company_admin),
    db: AsyncSession = Depends(get_db),
):
    company = await company_crud.get(db, user.company_id)
    if not company:
        raise NotFoundException("Empresa no encontrada")
    company = await company_crud.update(db, db_obj=company, obj_in=data)
    return success_response(
        data=CompanyResponse.model_validate(company).model_dump(),
        message="Empresa actualizada"
    )


# ==================== Reclutadores asociados ====================

@router.get("/me/recruiters", summary="Reclutadores asociados", response_model=ListResponse)
async def get_company_recruiters(
    user: CurrentUser = Depends(require_company_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Reclutadores con vínculo activo, con sus créditos heredados y vacantes abiertas
    """
    links = await link_crud.get_by_company(db, user.company_id)
    items = []
    for link in links:
        recruiter = await recruiter_crud.get(db, link.recruiter_id)
        inherited = await inherited_credit_crud.get_pair(
            db, recruiter_id=link.recruiter_id, company_id=user.company_id
        )
        items.append({
            **LinkResponse.model_validate(link).model_dump(),
            "recruiter_name": recruiter.name if recruiter else None,
            "recruiter_code": recruiter.recruiter_code if recruiter else None,
            "recruiter_email": recruiter.email if recruiter else None,
            "inherited_credits": inherited.available_credits if inherited else 0,
            "open_vacancies": await vacancy_crud.count_open_for_recruiter(
                db, recruiter_id=link.recruiter_id, company_id=user.company_id
            ),
        })
    return success_response(data=items)


@router.post("/me/invitations", summary="Invitar reclutador", response_model=ResponseModel[InvitationResponse])
async def invite_recruiter(
    data: InvitationCreate,
    user: CurrentUser = Depends(require_company_admin),
    db: AsyncSession = Depends(get_db),
):
    invitation = await association.invite(
        db, company_id=user.company_id, data=data, invited_by=user.user_id
    )
    return success_response(
        data=InvitationResponse.model_validate(invitation).model_dump(),
        message="Invitación enviada"
    )


@router.get("/me/invitations", summary="Invitaciones enviadas", response_model=ListResponse)
async def get_company_invitations(
    user: CurrentUser = Depends(require_company_admin),
    db: AsyncSession = Depends(get_db),
):
    invitations = await invitation_crud.get_for_company(db, user.company_id)
    return success_response(
        data=[InvitationResponse.model_validate(i).model_dump() for i in invitations]
    )


@router.delete("/me/recruiters/{recruiter_id}", summary="Desvincular reclutador", response_model=MessageResponse)
async def unlink_recruiter(
    recruiter_id: str,
    user: CurrentUser = Depends(require_company_admin),
    db: AsyncSession = Depends(get_db),
):
    link = await association.unlink(db, recruiter_id=recruiter_id, company_id=user.company_id)
    return success_response(
        data=LinkResponse.model_validate(link).model_dump(),
        message="Reclutador desvinculado"
    )

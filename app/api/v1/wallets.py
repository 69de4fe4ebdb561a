"""
API de monederos de créditos

Saldos, herencia y devolución de créditos, desbloqueo de identidad,
historial de movimientos y estado de cuenta en PDF.
"""
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import NotFoundException
from app.core.response import success_response, paged_response, page_offset, DictResponse, PagedResponseModel
from app.core.security import CurrentUser, require_company_admin, require_recruiter
from app.crud import (
    candidate_crud,
    company_crud,
    company_wallet_crud,
    inherited_credit_crud,
    recruiter_wallet_crud,
)
from app.models import (
    CompanyWalletResponse,
    CreditMovementResponse,
    CreditReturn,
    CreditTransfer,
    IdentityUnlock,
    InheritedCreditResponse,
    RecruiterWalletResponse,
    WalletType,
)
from app.services import ledger
from app.services.pdf import statement_filename, wallet_statement_pdf

router = APIRouter()

STATEMENT_LIMIT = 500


def _pdf_response(content: bytes, wallet_type: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{statement_filename(wallet_type)}"'},
    )


# ==================== Empresa ====================

@router.get("/company", summary="Monedero de la empresa", response_model=DictResponse)
async def get_company_wallet(
    user: CurrentUser = Depends(require_company_admin),
    db: AsyncSession = Depends(get_db),
):
    wallet = await company_wallet_crud.get_or_create(db, user.company_id)
    inherited = await inherited_credit_crud.get_by_company(db, user.company_id)
    return success_response(data={
        "wallet": CompanyWalletResponse.model_validate(wallet).model_dump(),
        "inherited": [InheritedCreditResponse.model_validate(i).model_dump() for i in inherited],
    })


@router.post("/company/assign", summary="Heredar créditos a un reclutador", response_model=DictResponse)
async def assign_credits(
    data: CreditTransfer,
    user: CurrentUser = Depends(require_company_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await ledger.assign_credits(
        db,
        company_id=user.company_id,
        recruiter_id=data.recruiter_id,
        quantity=data.quantity,
        actor_user_id=user.user_id,
    )
    return success_response(data=result, message=f"Se heredaron {data.quantity} créditos")


@router.post("/company/return", summary="Recuperar créditos heredados", response_model=DictResponse)
async def recover_credits(
    data: CreditTransfer,
    user: CurrentUser = Depends(require_company_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await ledger.return_credits(
        db,
        company_id=user.company_id,
        recruiter_id=data.recruiter_id,
        quantity=data.quantity,
        actor_user_id=user.user_id,
    )
    return success_response(data=result, message=f"Se recuperaron {data.quantity} créditos")


@router.get(
    "/company/movements",
    summary="Movimientos de la empresa",
    response_model=PagedResponseModel[CreditMovementResponse]
)
async def get_company_movements(
    page: int = Query(1, ge=1, description="Página"),
    page_size: int = Query(20, ge=1, le=100, description="Registros por página"),
    action: Optional[str] = Query(None, description="Tipo de acción o 'todos'"),
    date_from: Optional[datetime] = Query(None, description="Desde"),
    date_to: Optional[datetime] = Query(None, description="Hasta"),
    user: CurrentUser = Depends(require_company_admin),
    db: AsyncSession = Depends(get_db),
):
    items, total = await ledger.list_movements(
        db,
        company_id=user.company_id,
        action=action,
        date_from=date_from,
        date_to=date_to,
        skip=page_offset(page, page_size),
        limit=page_size,
    )
    return paged_response(
        [CreditMovementResponse.model_validate(m).model_dump() for m in items], total, page, page_size
    )


@router.get("/company/statement.pdf", summary="Estado de cuenta de la empresa (PDF)")
async def get_company_statement(
    user: CurrentUser = Depends(require_company_admin),
    db: AsyncSession = Depends(get_db),
):
    company = await company_crud.get_or_404(db, user.company_id, "Empresa no encontrada")
    wallet = await company_wallet_crud.get_or_create(db, company.id)
    movements, _ = await ledger.list_movements(db, company_id=company.id, limit=STATEMENT_LIMIT)
    content = wallet_statement_pdf(
        holder_name=company.name,
        wallet_type=WalletType.COMPANY.value,
        available=wallet.available_credits,
        total_purchased=wallet.total_purchased_credits,
        movements=movements,
    )
    return _pdf_response(content, WalletType.COMPANY.value)


# ==================== Reclutador ====================

@router.get("/recruiter", summary="Monedero del reclutador", response_model=DictResponse)
async def get_recruiter_wallet(
    user: CurrentUser = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db),
):
    """Saldo propio, heredado total y desglose de heredados por empresa"""
    wallet = await recruiter_wallet_crud.get_or_create(db, user.recruiter.id)
    inherited = await inherited_credit_crud.get_by_recruiter(db, user.recruiter.id)
    breakdown = []
    for row in inherited:
        company = await company_crud.get(db, row.company_id)
        breakdown.append({
            **InheritedCreditResponse.model_validate(row).model_dump(),
            "company_name": company.name if company else None,
        })
    return success_response(data={
        "wallet": RecruiterWalletResponse.model_validate(wallet).model_dump(),
        "total": wallet.own_credits + wallet.inherited_credits,
        "inherited": breakdown,
    })


@router.post("/recruiter/return", summary="Devolver créditos heredados", response_model=DictResponse)
async def return_credits(
    data: CreditReturn,
    user: CurrentUser = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db),
):
    result = await ledger.return_credits(
        db,
        company_id=data.company_id,
        recruiter_id=user.recruiter.id,
        quantity=data.quantity,
        actor_user_id=user.user_id,
    )
    return success_response(data=result, message=f"Se devolvieron {data.quantity} créditos")


@router.post("/recruiter/unlock-identity", summary="Desbloquear identidad de candidato", response_model=DictResponse)
async def unlock_identity(
    data: IdentityUnlock,
    user: CurrentUser = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db),
):
    """
    Desbloquea nombre, correo y teléfono de un candidato

    Cuesta 2 créditos; si ya estaba desbloqueado no se cobra.
    """
    candidate = await candidate_crud.get_by_user(db, data.candidate_user_id)
    if candidate is None:
        raise NotFoundException("Candidato no encontrado")

    result = await ledger.unlock_identity(
        db,
        recruiter_id=user.recruiter.id,
        actor_user_id=user.user_id,
        candidate_user_id=data.candidate_user_id,
        candidate_name=candidate.full_name,
        company_id=data.company_id,
    )
    result["candidate"] = {
        "full_name": candidate.full_name,
        "email": candidate.email,
        "phone": candidate.phone,
    }
    message = "La identidad ya estaba desbloqueada" if result["already_unlocked"] else "Identidad desbloqueada"
    return success_response(data=result, message=message)


@router.get(
    "/recruiter/movements",
    summary="Movimientos del reclutador",
    response_model=PagedResponseModel[CreditMovementResponse]
)
async def get_recruiter_movements(
    page: int = Query(1, ge=1, description="Página"),
    page_size: int = Query(20, ge=1, le=100, description="Registros por página"),
    action: Optional[str] = Query(None, description="Tipo de acción o 'todos'"),
    date_from: Optional[datetime] = Query(None, description="Desde"),
    date_to: Optional[datetime] = Query(None, description="Hasta"),
    user: CurrentUser = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db),
):
    items, total = await ledger.list_movements(
        db,
        recruiter_id=user.recruiter.id,
        action=action,
        date_from=date_from,
        date_to=date_to,
        skip=page_offset(page, page_size),
        limit=page_size,
    )
    return paged_response(
        [CreditMovementResponse.model_validate(m).model_dump() for m in items], total, page, page_size
    )


@router.get("/recruiter/statement.pdf", summary="Estado de cuenta del reclutador (PDF)")
async def get_recruiter_statement(
    user: CurrentUser = Depends(require_recruiter),
    db: AsyncSession = Depends(get_db),
):
    wallet = await recruiter_wallet_crud.get_or_create(db, user.recruiter.id)
    movements, _ = await ledger.list_movements(db, recruiter_id=user.recruiter.id, limit=STATEMENT_LIMIT)
    content = wallet_statement_pdf(
        holder_name=user.recruiter.name,
        wallet_type=WalletType.RECRUITER.value,
        available=wallet.own_credits,
        total_purchased=wallet.total_purchased_credits,
        movements=movements,
        inherited=wallet.inherited_credits,
    )
    return _pdf_response(content, WalletType.RECRUITER.value)

"""
API de verificadores
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import ConflictException
from app.core.response import success_response, ResponseModel, ListResponse
from app.core.security import CurrentUser, get_current_user, require_verifier
from app.crud import user_role_crud, verifier_crud
from app.models import AppRole, VerifierProfileCreate, VerifierProfileResponse

router = APIRouter()


@router.post("/profile", summary="Crear perfil de verificador", response_model=ResponseModel[VerifierProfileResponse])
async def create_profile(
    data: VerifierProfileCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if await verifier_crud.get_by_user(db, user.user_id):
        raise ConflictException("Ya tienes un perfil de verificador")

    profile = await verifier_crud.create_profile(db, data=data.model_dump(), user_id=user.user_id)
    await user_role_crud.grant(db, user_id=user.user_id, role=AppRole.VERIFIER.value)
    return success_response(
        data=VerifierProfileResponse.model_validate(profile).model_dump(),
        message="Perfil creado"
    )


@router.get("/profile", summary="Mi perfil de verificador", response_model=ResponseModel[VerifierProfileResponse])
async def get_profile(user: CurrentUser = Depends(require_verifier)):
    return success_response(data=VerifierProfileResponse.model_validate(user.verifier).model_dump())


@router.get("", summary="Verificadores disponibles", response_model=ListResponse)
async def get_available_verifiers(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    verifiers = await verifier_crud.get_available(db)
    return success_response(
        data=[VerifierProfileResponse.model_validate(v).model_dump() for v in verifiers]
    )

"""
API de candidatos
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import ConflictException
from app.core.response import success_response, ResponseModel, DictResponse
from app.core.security import CurrentUser, get_current_user, require_candidate
from app.crud import candidate_crud, user_role_crud
from app.models import (
    AppRole,
    CandidateProfileCreate,
    CandidateProfileResponse,
    CandidateProfileUpdate,
)
from app.services.summary import SummaryRequest, improve_summary

router = APIRouter()


@router.post("/profile", summary="Crear perfil de candidato", response_model=ResponseModel[CandidateProfileResponse])
async def create_profile(
    data: CandidateProfileCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if await candidate_crud.get_by_user(db, user.user_id):
        raise ConflictException("Ya tienes un perfil de candidato")

    profile = await candidate_crud.create(db, obj_in={**data.model_dump(), "user_id": user.user_id})
    await user_role_crud.grant(db, user_id=user.user_id, role=AppRole.CANDIDATE.value)
    return success_response(
        data=CandidateProfileResponse.model_validate(profile).model_dump(),
        message="Perfil creado"
    )


@router.get("/profile", summary="Mi perfil de candidato", response_model=ResponseModel[CandidateProfileResponse])
async def get_profile(user: CurrentUser = Depends(require_candidate)):
    return success_response(data=CandidateProfileResponse.model_validate(user.candidate).model_dump())


@router.patch("/profile", summary="Actualizar perfil", response_model=ResponseModel[CandidateProfileResponse])
async def update_profile(
    data: CandidateProfileUpdate,
    user: CurrentUser = Depends(require_candidate),
    db: AsyncSession = Depends(get_db),
):
    profile = await candidate_crud.update(db, db_obj=user.candidate, obj_in=data)
    return success_response(
        data=CandidateProfileResponse.model_validate(profile).model_dump(),
        message="Perfil actualizado"
    )


@router.post("/profile/improve-summary", summary="Mejorar resumen con IA", response_model=DictResponse)
async def improve_profile_summary(
    data: SummaryRequest,
    user: CurrentUser = Depends(require_candidate),
    db: AsyncSession = Depends(get_db),
):
    """
    Mejora la redacción del resumen profesional y extrae keywords,
    industrias y nivel de experiencia para el sourcing.

    Con `save=true` el resultado se guarda en el perfil.
    """
    result = await improve_summary(db, data, profile=user.candidate)
    return success_response(data=result, message="Resumen mejorado")

"""
API de sourcing con IA
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.response import success_response, ResponseModel, ListResponse, DictResponse
from app.core.security import CurrentUser, get_optional_recruiter
from app.crud import candidate_crud, identity_access_crud, sourcing_result_crud, vacancy_crud
from app.models import SourcingRequest, SourcingResultResponse, SourcingStateUpdate
from app.services import sourcing
from app.services.pipeline import ensure_can_manage

router = APIRouter()


@router.post("/run", summary="Ejecutar sourcing", response_model=DictResponse)
async def run_sourcing(
    data: SourcingRequest,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    """
    Busca en el pool de candidatos los más afines a una vacante publicada

    - `dry_run=true`: solo informa cuántos candidatos se analizarían; no cobra
    - Ejecución real: cuesta 50 créditos y devuelve hasta 10 candidatos
    """
    result = await sourcing.run_sourcing(
        db, publication_id=data.publication_id, user=user, dry_run=data.dry_run
    )
    if result["dry_run"]:
        return success_response(data=result, message="Simulación completada")

    result["results"] = [SourcingResultResponse.model_validate(r).model_dump() for r in result["results"]]
    return success_response(
        data=result,
        message=f"Se encontraron {len(result['results'])} candidatos"
    )


@router.get("/vacancies/{vacancy_id}/results", summary="Candidatos sugeridos", response_model=ListResponse)
async def get_results(
    vacancy_id: str,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    vacancy = await vacancy_crud.get_or_404(db, vacancy_id, "Vacante no encontrada")
    ensure_can_manage(vacancy, user)

    results = await sourcing_result_crud.get_by_vacancy(db, vacancy_id)
    profiles = {
        p.user_id: p
        for p in await candidate_crud.get_by_users(db, [r.candidate_user_id for r in results])
    }
    unlocked = set()
    if user.recruiter:
        unlocked = await identity_access_crud.unlocked_candidates(db, user.recruiter.id)
    is_company = bool(vacancy.company_id and vacancy.company_id == user.company_id)

    items = []
    for row in results:
        profile = profiles.get(row.candidate_user_id)
        visible = is_company or row.candidate_user_id in unlocked
        items.append({
            **SourcingResultResponse.model_validate(row).model_dump(),
            "candidate_name": profile.full_name if profile and visible else None,
            "candidate_email": profile.email if profile and visible else None,
            "current_position": profile.current_position if profile else None,
            "location": profile.location if profile else None,
        })
    return success_response(data=items)


@router.patch("/results/{result_id}", summary="Actualizar estado", response_model=ResponseModel[SourcingResultResponse])
async def update_result_state(
    result_id: str,
    data: SourcingStateUpdate,
    user: CurrentUser = Depends(get_optional_recruiter),
    db: AsyncSession = Depends(get_db),
):
    row = await sourcing_result_crud.get_or_404(db, result_id, "Resultado no encontrado")
    vacancy = await vacancy_crud.get_or_404(db, row.vacancy_id, "Vacante no encontrada")
    ensure_can_manage(vacancy, user)

    row = await sourcing_result_crud.update(db, db_obj=row, obj_in={"state": data.state.value})
    return success_response(
        data=SourcingResultResponse.model_validate(row).model_dump(),
        message="Estado actualizado"
    )

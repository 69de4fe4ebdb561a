"""
Sourcing con IA

Busca en el pool de candidatos los mejores perfiles para una vacante publicada.
La simulación (dry run) no cobra créditos pero está limitada por día.
"""
import re
import uuid
from datetime import timedelta
from typing import List, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    BadRequestException,
    ExternalServiceException,
    ForbiddenException,
    InsufficientCreditsException,
)
from app.core.security import CurrentUser
from app.crud import (
    application_crud,
    candidate_crud,
    company_crud,
    company_wallet_crud,
    identity_access_crud,
    publication_crud,
    sourcing_audit_crud,
    sourcing_result_crud,
    vacancy_crud,
)
from app.models.base import utc_now
from app.models.profile import CandidateProfile
from app.models.vacancy import Vacancy, VacancyStatus
from . import ledger
from .llm_client import get_llm_client

MAX_RESULTS = 10
POOL_SIZE_INDEXED = 150
POOL_SIZE_UNINDEXED = 50
MAX_ANALYSIS_CANDIDATES = 50
MIN_ANALYSIS_CANDIDATES = 10
MAX_PROMPT_LENGTH = 120000
DRY_RUN_DAILY_LIMIT = 20
DRY_RUN_PER_VACANCY_LIMIT = 3
MAX_FIELD_LENGTH = 2000
MAX_REASON_LENGTH = 255

_INJECTION_PATTERN = re.compile(
    r"IGNORA|IGNORE|OLVIDA|FORGET|NUEVA INSTRUCCIÓN|NEW INSTRUCTION|BYPASS|SYSTEM:|ASSISTANT:|USER:",
    re.IGNORECASE,
)

SYSTEM_PROMPT = (
    "Eres un experto en reclutamiento mexicano. "
    "Responde SOLO con JSON válido, sin markdown, sin texto adicional."
)


def sanitize_for_prompt(text: Optional[str]) -> str:
    """Neutraliza intentos de inyección y limita la longitud"""
    if not text:
        return "No especificado"
    cleaned = _INJECTION_PATTERN.sub("[filtrado]", text).replace("`", "'")
    return cleaned[:MAX_FIELD_LENGTH].strip()


def _join(values: List[str], default: str = "No especificadas") -> str:
    return ", ".join(values) if values else default


def describe_candidate(index: int, c: CandidateProfile) -> str:
    indexed = "✓ PERFIL INDEXADO" if c.indexed_summary else "○ SIN INDEXAR"
    education = sanitize_for_prompt(c.education_level)
    if c.degree:
        education += f" en {sanitize_for_prompt(c.degree)}"
    salary = (
        f"${c.expected_salary_min} - ${c.expected_salary_max} MXN"
        if c.expected_salary_min else "No especificada"
    )
    return "\n".join([
        f"[{index}] {indexed}",
        f"- Nivel experiencia: {c.ai_experience_level or 'No clasificado'}",
        f"- Puesto actual: {sanitize_for_prompt(c.current_position)}",
        f"- Empresa actual: {sanitize_for_prompt(c.current_company)}",
        f"- Educación: {education}",
        f"- Keywords técnicas: {_join(c.sourcing_keywords or c.technical_skills or [])}",
        f"- Industrias: {_join(c.detected_industries or [])}",
        f"- Habilidades blandas: {_join(c.soft_skills or [])}",
        f"- Ubicación: {sanitize_for_prompt(c.location)}",
        f"- Modalidad preferida: {sanitize_for_prompt(c.preferred_work_mode)}",
        f"- Disponibilidad: {sanitize_for_prompt(c.availability)}",
        f"- Expectativa salarial: {salary}",
        f"- Resumen profesional: {sanitize_for_prompt(c.indexed_summary or c.professional_summary)}",
    ])


def build_prompt(vacancy_info: dict, candidates: List[CandidateProfile], max_results: int) -> str:
    """Prompt de matching"""
    salary = vacancy_info.get("salary")
    pool = "\n\n".join(describe_candidate(i, c) for i, c in enumerate(candidates))
    notes = vacancy_info["notes"]
    notes_block = f"OBSERVACIONES ADICIONALES:\n{notes}\n" if notes != "No especificado" else ""
    return f"""Eres un experto en reclutamiento y selección de talento para el mercado mexicano. Analiza los candidatos y selecciona los {max_results} mejores matches para la vacante.

===== CONTEXTO DE LA VACANTE =====
- Empresa: {vacancy_info['company']}
- Sector/Industria: {vacancy_info['sector']}
- Cliente / área: {vacancy_info['client_area']}
- Título del puesto: {vacancy_info['title']}
- Motivo de la vacante: {vacancy_info['reason']}
- Modalidad de trabajo: {vacancy_info['work_mode']}
- Ubicación: {vacancy_info['location']}
- Rango salarial: {f"${salary} MXN brutos" if salary else "No especificado"}

PERFIL REQUERIDO:
{vacancy_info['required_profile']}

{notes_block}
===== POOL DE CANDIDATOS =====
{pool}

===== CRITERIOS DE MATCHING =====
1. PRIORIZA candidatos marcados como "✓ PERFIL INDEXADO".
2. Considera la COMPATIBILIDAD DE SECTOR/INDUSTRIA.
3. Evalúa la COHERENCIA DEL NIVEL DE EXPERIENCIA.
4. Verifica COMPATIBILIDAD GEOGRÁFICA y de modalidad.
5. Compara EXPECTATIVAS SALARIALES vs el rango ofrecido.
6. Analiza las KEYWORDS TÉCNICAS vs los requisitos del perfil.

===== FORMATO DE RESPUESTA =====
Responde SOLO con un JSON array de los {max_results} mejores candidatos, ordenados por score (100=match perfecto):
[
  {{
    "index": 0,
    "score": 85,
    "razon": "Explicación concisa del match (máx 100 caracteres)",
    "habilidades_match": ["habilidad1", "habilidad2"],
    "experiencia_relevante": ["experiencia1", "experiencia2"]
  }}
]"""


def validate_matches(data) -> bool:
    """Estructura esperada de la respuesta de IA"""
    if not isinstance(data, list) or not data:
        return False
    return all(
        isinstance(item, dict)
        and isinstance(item.get("index"), (int, float))
        and isinstance(item.get("score"), (int, float))
        and isinstance(item.get("razon"), str)
        and isinstance(item.get("habilidades_match"), list)
        and isinstance(item.get("experiencia_relevante"), list)
        for item in data
    )


def fit_prompt(vacancy_info: dict, candidates: List[CandidateProfile]) -> tuple:
    """Reduce el pool a la mitad mientras el prompt exceda el límite"""
    subset = candidates[:MAX_ANALYSIS_CANDIDATES]
    prompt = build_prompt(vacancy_info, subset, MAX_RESULTS)
    while len(prompt) > MAX_PROMPT_LENGTH and len(subset) > MIN_ANALYSIS_CANDIDATES:
        subset = subset[:max(MIN_ANALYSIS_CANDIDATES, len(subset) // 2)]
        prompt = build_prompt(vacancy_info, subset, MAX_RESULTS)
    return prompt, subset


async def _load_context(db: AsyncSession, publication_id: str, user: CurrentUser):
    publication = await publication_crud.get_or_404(db, publication_id, "Publicación no encontrada")
    vacancy = await vacancy_crud.get_or_404(db, publication.vacancy_id, "Vacante no encontrada")
    if vacancy.status != VacancyStatus.OPEN.value:
        raise BadRequestException("La vacante no está abierta")

    is_assigned = user.recruiter is not None and vacancy.assigned_recruiter_id == user.recruiter.id
    is_owner = vacancy.owner_user_id == user.user_id or (
        vacancy.company_id is not None and vacancy.company_id == user.company_id
    )
    if not (is_assigned or is_owner):
        raise ForbiddenException("Solo el reclutador asignado o el dueño de la vacante puede ejecutar sourcing")
    return publication, vacancy, is_assigned


async def _available_credits(db: AsyncSession, user: CurrentUser, vacancy: Vacancy, is_assigned: bool) -> int:
    if is_assigned:
        own = (await ledger.get_recruiter_balance(db, user.recruiter.id))["own_credits"]
        inherited = 0
        if vacancy.company_id:
            inherited = (await ledger.get_recruiter_balance(db, user.recruiter.id, vacancy.company_id))["inherited_credits"]
        return max(own, inherited)
    wallet = await company_wallet_crud.get_by_company(db, vacancy.company_id) if vacancy.company_id else None
    return wallet.available_credits if wallet else 0


async def run_sourcing(
    db: AsyncSession,
    *,
    publication_id: str,
    user: CurrentUser,
    dry_run: bool = True
) -> dict:
    """Ejecuta (o simula) el sourcing para una publicación"""
    publication, vacancy, is_assigned = await _load_context(db, publication_id, user)

    available = await _available_credits(db, user, vacancy, is_assigned)
    if available < ledger.SOURCING_COST:
        raise InsufficientCreditsException(required=ledger.SOURCING_COST, available=available)

    excluded = await application_crud.get_candidate_ids_for_vacancy(db, vacancy.id)
    excluded |= await sourcing_result_crud.get_candidate_ids_for_vacancy(db, vacancy.id)
    pool = await candidate_crud.get_sourcing_pool(
        db,
        exclude_user_ids=excluded,
        indexed_limit=POOL_SIZE_INDEXED,
        unindexed_limit=POOL_SIZE_UNINDEXED,
    )

    if dry_run:
        since = utc_now() - timedelta(days=1)
        daily = await sourcing_audit_crud.count_since(db, since=since, action="dry_run", user_id=user.user_id)
        if daily >= DRY_RUN_DAILY_LIMIT:
            raise BadRequestException(f"Límite diario de simulaciones alcanzado ({DRY_RUN_DAILY_LIMIT})")
        per_vacancy = await sourcing_audit_crud.count_since(
            db, since=since, action="dry_run", vacancy_id=vacancy.id
        )
        if per_vacancy >= DRY_RUN_PER_VACANCY_LIMIT:
            raise BadRequestException(
                f"Límite de simulaciones para esta vacante alcanzado ({DRY_RUN_PER_VACANCY_LIMIT})"
            )
        await sourcing_audit_crud.create(db, obj_in={
            "user_id": user.user_id,
            "vacancy_id": vacancy.id,
            "publication_id": publication.id,
            "action": "dry_run",
            "candidates_analyzed": min(len(pool), MAX_ANALYSIS_CANDIDATES),
        })
        return {
            "dry_run": True,
            "available_candidates": len(pool),
            "candidates_to_analyze": min(len(pool), MAX_ANALYSIS_CANDIDATES),
            "credits_required": ledger.SOURCING_COST,
            "credits_available": available,
        }

    if not pool:
        raise BadRequestException("No hay candidatos disponibles para esta vacante")

    company = await company_crud.get(db, vacancy.company_id) if vacancy.company_id else None
    vacancy_info = {
        "company": sanitize_for_prompt(company.name if company else None),
        "sector": sanitize_for_prompt(company.sector if company else None),
        "client_area": sanitize_for_prompt(vacancy.client_area),
        "title": sanitize_for_prompt(publication.title),
        "reason": sanitize_for_prompt(vacancy.reason),
        "work_mode": sanitize_for_prompt(str(publication.work_mode)),
        "location": sanitize_for_prompt(publication.location or vacancy.location),
        "salary": vacancy.approved_gross_salary,
        "required_profile": sanitize_for_prompt(publication.required_profile or vacancy.required_profile),
        "notes": sanitize_for_prompt(publication.notes or vacancy.notes),
    }
    prompt, analyzed = fit_prompt(vacancy_info, pool)
    logger.info(
        "Sourcing IA: vacancy_id={} pool={} analizados={} prompt_len={}",
        vacancy.id, len(pool), len(analyzed), len(prompt),
    )

    try:
        matches = await get_llm_client().complete_json(SYSTEM_PROMPT, prompt, temperature=0.3, max_tokens=4000)
    except Exception as exc:
        logger.error("Error de IA en sourcing: {}", exc)
        raise ExternalServiceException("El servicio de IA no está disponible") from exc
    if not validate_matches(matches):
        raise ExternalServiceException("La respuesta de IA no tiene el formato esperado")

    selected = []
    seen = set()
    for match in sorted(matches, key=lambda m: m["score"], reverse=True):
        index = int(match["index"])
        if 0 <= index < len(analyzed) and index not in seen:
            seen.add(index)
            selected.append((analyzed[index], match))
        if len(selected) >= MAX_RESULTS:
            break
    if not selected:
        raise ExternalServiceException("La IA no devolvió candidatos válidos")

    batch_id = str(uuid.uuid4())
    recruiter_id = user.recruiter.id if is_assigned else None
    charge = await ledger.charge_sourcing(
        db,
        actor_user_id=user.user_id,
        vacancy_id=vacancy.id,
        batch_id=batch_id,
        candidates_found=len(selected),
        recruiter_id=recruiter_id,
        company_id=vacancy.company_id,
    )

    credits_each = ledger.SOURCING_COST // MAX_RESULTS
    results = []
    for profile, match in selected:
        row = await sourcing_result_crud.create(db, obj_in={
            "vacancy_id": vacancy.id,
            "publication_id": publication.id,
            "candidate_user_id": profile.user_id,
            "recruiter_id": recruiter_id,
            "company_id": vacancy.company_id,
            "executor_user_id": user.user_id,
            "match_score": max(0, min(100, round(match["score"]))),
            "match_reason": match["razon"][:MAX_REASON_LENGTH],
            "matched_skills": [str(s) for s in match["habilidades_match"]],
            "relevant_experience": [str(e) for e in match["experiencia_relevante"]],
            "credits_spent": credits_each,
            "batch_id": batch_id,
        })
        results.append(row)

        # el reclutador que ejecuta ve la identidad sin costo adicional
        if is_assigned and not await identity_access_crud.get_pair(
            db, recruiter_id=recruiter_id, candidate_user_id=profile.user_id
        ):
            await identity_access_crud.create(db, obj_in={
                "recruiter_id": recruiter_id,
                "candidate_user_id": profile.user_id,
                "company_id": vacancy.company_id,
                "payment_origin": charge["payment_origin"],
                "credits_spent": 0,
            })

    await sourcing_audit_crud.create(db, obj_in={
        "user_id": user.user_id,
        "vacancy_id": vacancy.id,
        "publication_id": publication.id,
        "action": "execution",
        "candidates_analyzed": len(analyzed),
    })
    logger.info("Sourcing completado: batch_id={} resultados={}", batch_id, len(results))
    return {
        "dry_run": False,
        "batch_id": batch_id,
        "credits_spent": charge["credits_spent"],
        "payment_origin": charge["payment_origin"],
        "candidates_analyzed": len(analyzed),
        "results": results,
    }

"""
Mejora e indexación del resumen profesional del candidato con IA
"""
from typing import List, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestException, ExternalServiceException
from app.models.base import SQLModelBase, utc_now
from app.models.profile import CandidateProfile, ExperienceLevel
from .llm_client import get_llm_client

MIN_SUMMARY_LENGTH = 20
MAX_KEYWORDS = 15
MAX_INDUSTRIES = 5

SYSTEM_PROMPT = "Eres un experto en RH. Responde SOLO con JSON válido, sin markdown ni explicaciones."

USER_PROMPT = """Eres un experto en recursos humanos y redacción de perfiles profesionales para plataformas de empleo en México y Latinoamérica.

TAREA: Analiza y mejora el siguiente resumen profesional de un candidato. Debes:
1. Mejorar la redacción para hacerla más profesional, clara y atractiva
2. Mantener la esencia y logros del candidato
3. Optimizar para que sea encontrado por reclutadores (keywords relevantes)
4. Extraer metadatos para indexación

RESUMEN ORIGINAL:
{summary}
{context}

RESPONDE ÚNICAMENTE con un JSON válido con esta estructura exacta:
{{
  "resumen_mejorado": "Resumen mejorado (máximo 500 caracteres)",
  "resumen_indexado": "Versión compacta para matching (máximo 150 caracteres)",
  "keywords": ["hasta 10 keywords relevantes para sourcing"],
  "industrias": ["industrias o sectores detectados"],
  "nivel_experiencia": "junior|mid|senior|lead|executive"
}}

CRITERIOS PARA nivel_experiencia:
- junior: 0-2 años de experiencia o recién egresado
- mid: 2-5 años con experiencia sólida
- senior: 5-10 años, especialista o experto
- lead: 8+ años con liderazgo de equipos o proyectos
- executive: Director, C-level, o +15 años en posiciones estratégicas"""


class SummaryRequest(SQLModelBase):
    """Petición de mejora de resumen"""
    current_summary: str
    target_position: Optional[str] = None
    technical_skills: List[str] = []
    soft_skills: List[str] = []
    work_experience: List[dict] = []
    save: bool = False


def build_context(request: SummaryRequest) -> str:
    """Contexto adicional: puesto, habilidades y hasta 3 experiencias"""
    lines = []
    if request.target_position:
        lines.append(f"Puesto buscado: {request.target_position}")
    if request.technical_skills:
        lines.append(f"Habilidades técnicas: {', '.join(request.technical_skills)}")
    if request.soft_skills:
        lines.append(f"Habilidades blandas: {', '.join(request.soft_skills)}")
    if request.work_experience:
        lines.append("Experiencia laboral reciente:")
        for i, exp in enumerate(request.work_experience[:3], start=1):
            description = (exp.get("description") or "")[:150]
            line = f"{i}. {exp.get('position', '')} en {exp.get('company', '')}"
            if description:
                line += f": {description}"
            lines.append(line)
    return "\n".join(lines)


def normalize_result(parsed: dict, original: str) -> dict:
    """Valida y recorta la respuesta del modelo"""
    keywords = parsed.get("keywords")
    industries = parsed.get("industrias")
    level = parsed.get("nivel_experiencia")
    valid_levels = {lvl.value for lvl in ExperienceLevel}
    return {
        "improved_summary": parsed.get("resumen_mejorado") or original,
        "indexed_summary": parsed.get("resumen_indexado") or "",
        "keywords": keywords[:MAX_KEYWORDS] if isinstance(keywords, list) else [],
        "industries": industries[:MAX_INDUSTRIES] if isinstance(industries, list) else [],
        "experience_level": level if level in valid_levels else ExperienceLevel.MID.value,
    }


async def improve_summary(
    db: AsyncSession,
    request: SummaryRequest,
    *,
    profile: Optional[CandidateProfile] = None
) -> dict:
    """
    Mejora el resumen y, si se pide, lo guarda en el perfil del candidato
    """
    summary = (request.current_summary or "").strip()
    if len(summary) < MIN_SUMMARY_LENGTH:
        raise BadRequestException(f"El resumen debe tener al menos {MIN_SUMMARY_LENGTH} caracteres")

    client = get_llm_client()
    prompt = USER_PROMPT.format(summary=summary, context=build_context(request))
    logger.info("Mejorando resumen: longitud={}", len(summary))
    try:
        parsed = await client.complete_json(SYSTEM_PROMPT, prompt, temperature=0.4)
    except ValueError as exc:
        raise ExternalServiceException("Error al procesar la respuesta de IA") from exc
    except Exception as exc:
        logger.error("Error de IA al mejorar resumen: {}", exc)
        raise ExternalServiceException("Error al procesar con IA") from exc

    if not isinstance(parsed, dict):
        raise ExternalServiceException("Error al procesar la respuesta de IA")
    result = normalize_result(parsed, summary)

    if request.save and profile is not None:
        profile.professional_summary = result["improved_summary"]
        profile.indexed_summary = result["indexed_summary"]
        profile.sourcing_keywords = result["keywords"]
        profile.detected_industries = result["industries"]
        profile.ai_experience_level = result["experience_level"]
        profile.indexed_at = utc_now()
        profile.updated_at = utc_now()
        await db.flush()
        logger.info("Perfil indexado: user_id={}", profile.user_id)
    result["saved"] = bool(request.save and profile is not None)

    logger.info(
        "Resumen mejorado: {} keywords, {} industrias",
        len(result["keywords"]), len(result["industries"]),
    )
    return result

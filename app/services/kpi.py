"""
Agregación de KPIs

Las funciones puras (company_kpis, recruiter_stats, verifier_stats) hacen la
aritmética sobre filas ya filtradas; las funciones get_* hacen las consultas.
"""
import math
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud import (
    vacancy_crud,
    publication_crud,
    interview_crud,
    feedback_crud,
    study_crud,
    study_rating_crud,
)
from app.models.application import Application, ApplicationStage
from app.models.base import as_utc, utc_now
from app.models.interview import Interview, InterviewState
from app.models.study import StudyStatus
from app.models.vacancy import VacancyStatus


def round_half_up(value: float, digits: int = 0) -> float:
    """Redondeo comercial (0.5 hacia arriba)"""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def percentage(part: int, total: int) -> int:
    if not total:
        return 0
    return round_half_up(part / total * 100)


def _same_month(value: Optional[datetime], now: datetime) -> bool:
    return value is not None and value.year == now.year and value.month == now.month


# ==================== Empresa ====================

def company_kpis(
    vacancies: Sequence,
    *,
    interviewed: int = 0,
    hired: int = 0
) -> dict:
    """
    KPIs del tablero de empresa

    Args:
        vacancies: vacantes ya filtradas
        interviewed: postulaciones con al menos una entrevista completada
        hired: postulaciones en etapa contratado
    """
    total = len(vacancies)
    open_count = sum(1 for v in vacancies if v.status == VacancyStatus.OPEN.value)
    closed = [v for v in vacancies if v.status == VacancyStatus.CLOSED.value]
    cancelled = sum(1 for v in vacancies if v.status == VacancyStatus.CANCELLED.value)

    coverage_days = []
    for v in closed:
        if v.requested_at and v.closed_at:
            delta = as_utc(v.closed_at) - as_utc(v.requested_at)
            coverage_days.append(math.ceil(delta.total_seconds() / 86400))

    avg_coverage = round_half_up(sum(coverage_days) / len(coverage_days)) if coverage_days else 0

    return {
        "total_vacancies": total,
        "open_vacancies": open_count,
        "closed_vacancies": len(closed),
        "cancelled_vacancies": cancelled,
        "avg_coverage_days": avg_coverage,
        "success_rate": percentage(len(closed), total),
        "cancellation_rate": percentage(cancelled, total),
        "interviewed": interviewed,
        "hired": hired,
        "interviewed_to_hired": f"{interviewed}:{hired}",
        "hire_conversion_rate": percentage(hired, interviewed),
    }


async def get_company_kpis(
    db: AsyncSession,
    *,
    company_id: str,
    client_area: Optional[str] = None,
    recruiter_id: Optional[str] = None,
    status: Optional[str] = None
) -> dict:
    """Consulta y calcula los KPIs de una empresa con filtros"""
    vacancies = await vacancy_crud.all_filtered(
        db,
        company_id=company_id,
        client_area=client_area,
        recruiter_id=recruiter_id,
        status=status,
    )
    vacancy_ids = [v.id for v in vacancies]

    interviewed = hired = 0
    if vacancy_ids:
        result = await db.execute(
            select(Application.id, Application.stage).where(Application.vacancy_id.in_(vacancy_ids))
        )
        rows = result.all()
        hired = sum(1 for _, stage in rows if stage == ApplicationStage.HIRED.value)
        application_ids = [app_id for app_id, _ in rows]
        if application_ids:
            result = await db.execute(
                select(Interview.application_id)
                .where(
                    Interview.application_id.in_(application_ids),
                    Interview.state == InterviewState.COMPLETED.value,
                )
                .distinct()
            )
            interviewed = len(result.all())

    return company_kpis(vacancies, interviewed=interviewed, hired=hired)


# ==================== Reclutador ====================

def recruiter_stats(
    vacancies: Sequence,
    *,
    published_count: int,
    interviews: Sequence,
    feedback_scores: Iterable[int],
    now: Optional[datetime] = None
) -> dict:
    """Estadísticas del tablero del reclutador"""
    now = as_utc(now) if now else utc_now()
    open_assigned = [v for v in vacancies if v.status == VacancyStatus.OPEN.value]
    closed = [v for v in vacancies if v.status == VacancyStatus.CLOSED.value]

    closing_days = []
    for v in closed:
        if v.requested_at and v.closed_at:
            closing_days.append((as_utc(v.closed_at) - as_utc(v.requested_at)).days)
    avg_closing_days = round_half_up(sum(closing_days) / len(closing_days)) if closing_days else 0

    scheduled = [as_utc(i.scheduled_at) for i in interviews]
    interviews_this_month = sum(1 for s in scheduled if _same_month(s, now) and s <= now)

    scores = list(feedback_scores)
    avg_score = round_half_up(sum(scores) / len(scores), 1) if scores else 0

    return {
        "open_vacancies": len(open_assigned),
        "published_vacancies": published_count,
        "closed_vacancies": len(closed),
        "closed_this_month": sum(1 for v in closed if _same_month(as_utc(v.closed_at), now)),
        "avg_closing_days": avg_closing_days,
        "total_interviews": len(interviews),
        "interviews_this_month": interviews_this_month,
        "success_rate": percentage(len(closed), len(interviews)),
        "avg_feedback_score": avg_score,
        "feedback_count": len(scores),
    }


async def get_recruiter_stats(db: AsyncSession, *, recruiter_id: str, user_id: str) -> dict:
    """Consulta y calcula las estadísticas de un reclutador"""
    vacancies = await vacancy_crud.all_filtered(db, recruiter_id=recruiter_id)
    published = await publication_crud.count_by_user(db, user_id)
    interviews = await interview_crud.get_for_user(db, user_id, as_recruiter=True)
    feedback = await feedback_crud.get_by_recruiter(db, user_id)
    return recruiter_stats(
        vacancies,
        published_count=published,
        interviews=interviews,
        feedback_scores=[f.score for f in feedback],
    )


# ==================== Verificador ====================

IN_PROGRESS_STATUSES = {StudyStatus.IN_PROGRESS.value, StudyStatus.PENDING_UPLOAD.value}
PENDING_STATUSES = {StudyStatus.REQUESTED.value, StudyStatus.ASSIGNED.value}


def verifier_stats(
    studies: Sequence,
    *,
    ratings: Iterable[int],
    now: Optional[datetime] = None
) -> dict:
    """Estadísticas del tablero del verificador"""
    now = as_utc(now) if now else utc_now()
    delivered = [s for s in studies if s.status == StudyStatus.DELIVERED.value]
    last_30 = now - timedelta(days=30)

    on_time = 0
    response_hours: List[int] = []
    completed_last_30 = 0
    for s in delivered:
        delivered_at = as_utc(s.delivered_at)
        if delivered_at is None:
            continue
        if delivered_at >= last_30:
            completed_last_30 += 1
        if s.deadline and delivered_at <= as_utc(s.deadline):
            on_time += 1
        if s.assigned_at:
            hours = (delivered_at - as_utc(s.assigned_at)).total_seconds() // 3600
            response_hours.append(int(hours))

    scores = list(ratings)
    return {
        "completed": len(delivered),
        "in_progress": sum(1 for s in studies if s.status in IN_PROGRESS_STATUSES),
        "pending": sum(1 for s in studies if s.status in PENDING_STATUSES),
        "completed_last_30_days": completed_last_30,
        "on_time": on_time,
        "on_time_rate": percentage(on_time, len(delivered)) if delivered else 100,
        "avg_response_hours": round_half_up(sum(response_hours) / len(response_hours)) if response_hours else 0,
        "avg_rating": round_half_up(sum(scores) / len(scores), 1) if scores else 0,
        "ratings_count": len(scores),
    }


async def get_verifier_stats(db: AsyncSession, *, verifier_id: str) -> dict:
    studies = await study_crud.get_by_verifier(db, verifier_id)
    ratings = await study_rating_crud.get_by_verifier(db, verifier_id)
    return verifier_stats(studies, ratings=[r.rating for r in ratings])

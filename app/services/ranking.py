"""
Índice de productividad y ranking global de reclutadores

Índice = (vacantes cerradas / promedio de días de cierre) × 100
- sin vacantes cerradas: 0
- con vacantes pero promedio 0 o desconocido: vacantes × 10000

El ranking global usa una ventana móvil de 28 días sobre la fecha de cierre.
"""
import math
from collections import defaultdict
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import as_utc, utc_now
from app.models.profile import RecruiterProfile
from app.models.vacancy import Vacancy, VacancyStatus
from .kpi import round_half_up

RANKING_WINDOW_DAYS = 28


def productivity_index(closed: int, avg_days: Optional[float]) -> float:
    if closed == 0:
        return 0
    if not avg_days:
        return closed * 10000
    return round_half_up(closed / avg_days * 100, 2)


def build_ranking(rows: List[dict]) -> List[dict]:
    """
    Calcula el índice y ordena

    Cada fila trae recruiter_id, name, closed_vacancies y avg_closing_days.
    Orden: índice desc, luego más vacantes, luego menos días.
    """
    scored = [
        {**row, "score": productivity_index(row["closed_vacancies"], row["avg_closing_days"])}
        for row in rows
    ]
    scored.sort(key=lambda r: (-r["score"], -r["closed_vacancies"], r["avg_closing_days"] or 0))
    for position, row in enumerate(scored, start=1):
        row["position"] = position
    return scored


async def get_global_ranking(
    db: AsyncSession,
    *,
    now: Optional[datetime] = None,
    window_days: int = RANKING_WINDOW_DAYS
) -> List[dict]:
    """Ranking de reclutadores con las vacantes cerradas en los últimos N días"""
    now = as_utc(now) if now else utc_now()
    since = now - timedelta(days=window_days)

    result = await db.execute(
        select(Vacancy).where(
            Vacancy.status == VacancyStatus.CLOSED.value,
            Vacancy.assigned_recruiter_id.is_not(None),
            Vacancy.closed_at >= since,
        )
    )
    closing_days = defaultdict(list)
    for vacancy in result.scalars().all():
        delta = as_utc(vacancy.closed_at) - as_utc(vacancy.requested_at)
        closing_days[vacancy.assigned_recruiter_id].append(max(0, math.ceil(delta.total_seconds() / 86400)))

    if not closing_days:
        return []

    result = await db.execute(
        select(RecruiterProfile).where(RecruiterProfile.id.in_(list(closing_days.keys())))
    )
    names = {p.id: p.name for p in result.scalars().all()}

    rows = [
        {
            "recruiter_id": recruiter_id,
            "name": names.get(recruiter_id, "Reclutador"),
            "closed_vacancies": len(days),
            "avg_closing_days": round_half_up(sum(days) / len(days), 1),
        }
        for recruiter_id, days in closing_days.items()
    ]
    return build_ranking(rows)

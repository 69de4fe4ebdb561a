"""
Reporte de costos de reclutamiento

Cada concepto se lleva a costo mensual (factor de periodicidad) y se
multiplica según su unidad de medida.
"""
from typing import Sequence

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud import cost_concept_crud, vacancy_crud, link_crud
from app.models.application import Application
from app.models.vacancy import VacancyStatus
from .kpi import round_half_up

# Factor para convertir a costo mensual
PERIODICITY_FACTORS = {
    "unico": 1,
    "hora": 160,
    "diario": 20,
    "semanal": 4.33,
    "quincenal": 2,
    "mensual": 1,
    "bimestral": 0.5,
    "trimestral": 1 / 3,
    "semestral": 1 / 6,
    "anual": 1 / 12,
}

DEFAULT_PRORATION_MONTHS = 12


def monthly_cost(concept, metrics: dict) -> float:
    """Costo mensual de un concepto"""
    periodicity = concept.periodicity or "mensual"
    if periodicity.startswith("unico_"):
        try:
            months = int(periodicity.split("_", 1)[1]) or DEFAULT_PRORATION_MONTHS
        except ValueError:
            months = DEFAULT_PRORATION_MONTHS
        base = concept.cost / months
    else:
        base = concept.cost * PERIODICITY_FACTORS.get(periodicity, 1)

    if concept.unit == "por_contratacion":
        return base * max(metrics.get("closed", 0), 1)
    if concept.unit == "por_candidato":
        return base * max(metrics.get("total_candidates", 0), 1)
    if concept.unit == "por_reclutador":
        return base * max(metrics.get("total_recruiters", 0), 1)
    return base


def weighted_value(closed: int, open_: int, cancelled: int) -> float:
    """Cerradas cuentan 1, abiertas 0.5, canceladas 0.25"""
    return closed * 1 + open_ * 0.5 + cancelled * 0.25


def cost_report(concepts: Sequence, metrics: dict) -> dict:
    """Calcula el reporte sobre los conceptos activos"""
    breakdown = []
    monthly_total = 0.0
    for concept in concepts:
        if not concept.active:
            continue
        cost = monthly_cost(concept, metrics)
        monthly_total += cost
        breakdown.append({
            "concept_id": concept.id,
            "concept": concept.concept,
            "unit": concept.unit,
            "monthly_cost": cost,
        })

    for item in breakdown:
        item["percentage"] = round_half_up(item["monthly_cost"] / monthly_total * 100, 2) if monthly_total > 0 else 0
        item["monthly_cost"] = round_half_up(item["monthly_cost"], 2)
    breakdown.sort(key=lambda item: item["monthly_cost"], reverse=True)

    closed = metrics.get("closed", 0)
    weighted = metrics.get("weighted_value", 0)
    return {
        "metrics": metrics,
        "monthly_total": round_half_up(monthly_total, 2),
        "annual_total": round_half_up(monthly_total * 12, 2),
        "cost_per_effective_vacancy": round_half_up(monthly_total / weighted if weighted > 0 else monthly_total, 2),
        "cost_per_hire": round_half_up(monthly_total / closed if closed > 0 else monthly_total, 2),
        "operational_efficiency": round_half_up(closed * 1000 / monthly_total, 2) if monthly_total > 0 else 0,
        "breakdown": breakdown,
    }


async def get_cost_metrics(db: AsyncSession, company_id: str) -> dict:
    """Métricas de vacantes, candidatos y reclutadores de la empresa"""
    vacancies = await vacancy_crud.all_filtered(db, company_id=company_id)
    closed = sum(1 for v in vacancies if v.status == VacancyStatus.CLOSED.value)
    open_ = sum(1 for v in vacancies if v.status == VacancyStatus.OPEN.value)
    cancelled = sum(1 for v in vacancies if v.status == VacancyStatus.CANCELLED.value)

    total_candidates = 0
    if vacancies:
        result = await db.execute(
            select(func.count())
            .select_from(Application)
            .where(Application.vacancy_id.in_([v.id for v in vacancies]))
        )
        total_candidates = result.scalar() or 0

    recruiters = await link_crud.get_by_company(db, company_id)
    return {
        "closed": closed,
        "open": open_,
        "cancelled": cancelled,
        "total_vacancies": len(vacancies),
        "weighted_value": weighted_value(closed, open_, cancelled),
        "total_candidates": total_candidates,
        "total_recruiters": len(recruiters),
    }


async def get_cost_report(db: AsyncSession, company_id: str) -> dict:
    concepts = await cost_concept_crud.get_active(db, company_id)
    metrics = await get_cost_metrics(db, company_id)
    return cost_report(concepts, metrics)

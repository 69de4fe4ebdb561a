"""
Rutas API v1
"""
from . import (
    companies,
    recruiters,
    candidates,
    verifiers,
    vacancies,
    marketplace,
    applications,
    interviews,
    wallets,
    payments,
    studies,
    dashboard,
    sourcing,
)

__all__ = [
    "companies",
    "recruiters",
    "candidates",
    "verifiers",
    "vacancies",
    "marketplace",
    "applications",
    "interviews",
    "wallets",
    "payments",
    "studies",
    "dashboard",
    "sourcing",
]

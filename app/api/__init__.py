"""
Rutas de la API
"""
from fastapi import APIRouter

from .v1 import (
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

# (módulo, prefijo, etiqueta de OpenAPI)
ROUTES = (
    (companies, "/companies", "Empresas"),
    (recruiters, "/recruiters", "Reclutadores"),
    (candidates, "/candidates", "Candidatos"),
    (verifiers, "/verifiers", "Verificadores"),
    (vacancies, "/vacancies", "Vacantes"),
    (marketplace, "/marketplace", "Marketplace"),
    (applications, "/applications", "Postulaciones"),
    (interviews, "/interviews", "Entrevistas"),
    (wallets, "/wallets", "Monederos"),
    (payments, "/payments", "Pagos"),
    (studies, "/studies", "Estudios socioeconómicos"),
    (dashboard, "/dashboard", "Tableros"),
    (sourcing, "/sourcing", "Sourcing IA"),
)

api_router = APIRouter()
for module, prefix, tag in ROUTES:
    api_router.include_router(module.router, prefix=prefix, tags=[tag])

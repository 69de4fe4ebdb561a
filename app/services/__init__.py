"""
Capa de servicios

Reglas de negocio que abarcan varias tablas
"""
from .llm_client import LLMClient, get_llm_client
from .ledger import PUBLICATION_COST, IDENTITY_UNLOCK_COST, SOURCING_COST

__all__ = [
    "LLMClient",
    "get_llm_client",
    "PUBLICATION_COST",
    "IDENTITY_UNLOCK_COST",
    "SOURCING_COST",
]

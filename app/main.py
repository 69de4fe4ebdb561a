"""
Aplicación FastAPI de Recluta Insight

Marketplace de reclutamiento: empresas, reclutadores, candidatos y
verificadores comparten vacantes, postulaciones, entrevistas y un monedero
de créditos.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.routing import APIRoute
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from loguru import logger

from app.core.config import settings
from app.core.database import init_db, close_db
from app.core.response import success_response, DictResponse
from app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler,
)
from app.api import api_router
from app.services.ledger import PUBLICATION_COST, IDENTITY_UNLOCK_COST, SOURCING_COST

APP_VERSION = "1.0.0"

EXCEPTION_HANDLERS = (
    (AppException, app_exception_handler),
    (HTTPException, http_exception_handler),
    (RequestValidationError, validation_exception_handler),
    (Exception, general_exception_handler),
)


def route_operation_id(route: APIRoute) -> str:
    # operationId = nombre de la función
    return route.name


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Iniciando {} v{} (entorno={}, debug={})",
        settings.app_name, APP_VERSION, settings.app_env, settings.debug,
    )
    if not settings.stripe_secret_key:
        logger.warning("Stripe sin configurar: la compra de créditos responderá 502")
    if not settings.llm_api_key:
        logger.warning("LLM sin API key: sourcing y mejora de resumen fallarán")

    await init_db()
    yield
    await close_db()
    logger.info("Aplicación detenida")


def create_app() -> FastAPI:
    """Arma la aplicación: manejadores de error, rutas /api/v1 y CORS"""
    docs_enabled = settings.docs_enabled
    app = FastAPI(
        title=settings.app_name,
        description="API del marketplace de reclutamiento Recluta Insight",
        version=APP_VERSION,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
        generate_unique_id_function=route_operation_id,
    )

    for exc_class, handler in EXCEPTION_HANDLERS:
        app.add_exception_handler(exc_class, handler)

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health", tags=["Sistema"], response_model=DictResponse)
    async def health_check():
        return success_response(data={
            "status": "healthy",
            "payments": bool(settings.stripe_secret_key),
            "ai": bool(settings.llm_api_key),
        })

    @app.get("/", tags=["Sistema"], response_model=DictResponse)
    async def root():
        """Versión y tarifas vigentes en créditos"""
        return success_response(data={
            "name": settings.app_name,
            "version": APP_VERSION,
            "docs": "/docs" if docs_enabled else None,
            "credit_costs": {
                "publicacion_vacante": PUBLICATION_COST,
                "contacto_candidato": IDENTITY_UNLOCK_COST,
                "sourcing_ia": SOURCING_COST,
            },
        })

    # último middleware agregado = primero en ejecutarse
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = create_app()

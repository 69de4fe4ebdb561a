"""
Compra de créditos con Stripe

El flujo es: crear sesión de checkout → el usuario paga en Stripe →
el frontend regresa con el session_id → verificar y abonar en el libro.
"""
import asyncio
from typing import Optional

import stripe
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    BadRequestException,
    ExternalServiceException,
    ForbiddenException,
    NotFoundException,
)
from app.core.security import CurrentUser
from app.crud import recruiter_crud
from app.models.wallet import WalletType
from . import ledger

# Paquetes de créditos (precio en MXN)
PACKAGES = {
    "20": {"credits": 20, "price_mxn": 2400},
    "50": {"credits": 50, "price_mxn": 5580},
    "100": {"credits": 100, "price_mxn": 10800},
}

WALLET_PAGES = {
    WalletType.COMPANY.value: "wallet-empresa",
    WalletType.RECRUITER.value: "wallet-reclutador",
}


def _configure():
    if not settings.stripe_secret_key:
        raise ExternalServiceException("Stripe no está configurado")
    stripe.api_key = settings.stripe_secret_key


def _return_url_base(origin: Optional[str]) -> str:
    """Base de las URLs de regreso: el frontend o un origen CORS configurado"""
    frontend = settings.frontend_url.rstrip("/")
    if not origin:
        return frontend
    allowed = {frontend} | {o.rstrip("/") for o in settings.cors_origins if o != "*"}
    base = origin.rstrip("/")
    if base not in allowed:
        logger.warning("Origen de checkout rechazado: {}", origin)
        raise BadRequestException("Origen no permitido para el pago")
    return base


async def create_checkout(
    *,
    package_size: str,
    wallet_type: str,
    user: CurrentUser,
    origin: Optional[str] = None
) -> dict:
    """
    Crea la sesión de checkout

    Returns:
        {url, session_id}
    """
    package = PACKAGES.get(str(package_size))
    if package is None:
        raise BadRequestException("Paquete de créditos inválido")
    if wallet_type not in WALLET_PAGES:
        raise BadRequestException("Tipo de monedero inválido")
    if not user.email:
        raise BadRequestException("El usuario no tiene email")

    price_id = settings.stripe_prices[str(package_size)]
    base_url = _return_url_base(origin)
    _configure()
    logger.info(
        "Creando checkout: user_id={} package={} wallet_type={}",
        user.user_id, package_size, wallet_type,
    )

    try:
        customers = await asyncio.to_thread(stripe.Customer.list, email=user.email, limit=1)
        customer_id = customers["data"][0]["id"] if customers["data"] else None

        params = {
            "line_items": [{"price": price_id, "quantity": 1}],
            "mode": "payment",
            "success_url": (
                f"{base_url}/payment-success?credits={package['credits']}"
                f"&wallet_type={wallet_type}&session_id={{CHECKOUT_SESSION_ID}}"
            ),
            "cancel_url": f"{base_url}/{WALLET_PAGES[wallet_type]}?canceled=true",
            "metadata": {
                "user_id": user.user_id,
                "wallet_type": wallet_type,
                "credits": str(package["credits"]),
                "package_size": str(package_size),
            },
        }
        if customer_id:
            params["customer"] = customer_id
        else:
            params["customer_email"] = user.email

        session = await asyncio.to_thread(stripe.checkout.Session.create, **params)
    except stripe.StripeError as exc:
        logger.error("Error de Stripe al crear checkout: {}", exc)
        raise ExternalServiceException("No se pudo crear la sesión de pago") from exc

    logger.info("Checkout creado: session_id={}", session["id"])
    return {"url": session["url"], "session_id": session["id"]}


async def verify_payment(db: AsyncSession, *, session_id: str, user: CurrentUser) -> dict:
    """
    Verifica el pago y abona los créditos

    Es idempotente: el id de sesión queda como referencia del movimiento.
    """
    if not session_id:
        raise BadRequestException("Falta el session_id")
    _configure()

    try:
        session = await asyncio.to_thread(stripe.checkout.Session.retrieve, session_id)
    except stripe.StripeError as exc:
        logger.error("Error de Stripe al verificar pago: {}", exc)
        raise ExternalServiceException("No se pudo verificar el pago") from exc

    logger.info("Verificando pago: session_id={} status={}", session_id, session["payment_status"])
    if session["payment_status"] != "paid":
        return {"success": False, "message": "El pago no se ha completado"}

    metadata = session["metadata"] or {}
    if metadata.get("user_id") != user.user_id:
        raise ForbiddenException("El pago no corresponde al usuario")

    try:
        credits = int(metadata.get("credits") or 0)
    except ValueError:
        credits = 0
    if credits <= 0:
        raise BadRequestException("Cantidad de créditos inválida")

    wallet_type = metadata.get("wallet_type")
    if wallet_type == WalletType.RECRUITER.value:
        profile = await recruiter_crud.get_by_user(db, user.user_id)
        if profile is None:
            raise NotFoundException("Perfil de reclutador no encontrado")
        owner_id = profile.id
    elif wallet_type == WalletType.COMPANY.value:
        if not user.company_id:
            raise NotFoundException("Empresa no encontrada")
        owner_id = user.company_id
    else:
        raise BadRequestException("Tipo de monedero inválido")

    result = await ledger.add_purchased_credits(
        db,
        wallet_type=wallet_type,
        owner_id=owner_id,
        credits=credits,
        actor_user_id=user.user_id,
        reference=session_id,
        extra={"stripe_session_id": session_id, "package_size": metadata.get("package_size")},
    )
    return {
        "success": True,
        "already_processed": result["already_processed"],
        "credits_added": result["credits_added"],
        "new_balance": result["new_balance"],
        "wallet_type": wallet_type,
    }

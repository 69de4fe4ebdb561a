"""
API de pagos
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.response import success_response, DictResponse
from app.core.security import CurrentUser, get_current_user
from app.models import CheckoutCreate, PaymentVerify
from app.services import payments

router = APIRouter()


@router.get("/packages", summary="Paquetes de créditos", response_model=DictResponse)
async def get_packages():
    return success_response(data=payments.PACKAGES)


@router.post("/create-checkout", summary="Crear sesión de pago", response_model=DictResponse)
async def create_checkout(
    data: CheckoutCreate,
    user: CurrentUser = Depends(get_current_user),
):
    result = await payments.create_checkout(
        package_size=data.package_size,
        wallet_type=data.wallet_type.value,
        user=user,
        origin=data.origin,
    )
    return success_response(data=result, message="Sesión de pago creada")


@router.post("/verify", summary="Verificar pago", response_model=DictResponse)
async def verify_payment(
    data: PaymentVerify,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Verifica la sesión de Stripe y abona los créditos

    Llamarlo dos veces con la misma sesión no duplica el abono.
    """
    result = await payments.verify_payment(db, session_id=data.session_id, user=user)
    message = "Pago verificado" if result["success"] else "El pago no se ha completado"
    return success_response(data=result, message=message)

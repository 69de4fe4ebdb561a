"""
Libro de créditos

Toda operación sigue el mismo patrón: leer saldo, validar, descontar o abonar
y registrar el movimiento en la bitácora. Todo ocurre dentro de la transacción
de la petición (ver get_db), de modo que un error revierte el saldo completo.
El registro del movimiento es de mejor esfuerzo: si falla se registra en el
log y la operación continúa.
"""
from datetime import datetime
from typing import List, Optional, Tuple

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AppException,
    BadRequestException,
    ConflictException,
    InsufficientCreditsException,
)
from app.crud import (
    company_wallet_crud,
    recruiter_wallet_crud,
    inherited_credit_crud,
    movement_crud,
    identity_access_crud,
    link_crud,
)
from app.models.base import as_utc, utc_now
from app.models.wallet import (
    CreditMovement,
    CreditAction,
    ExecutionMethod,
    InheritedCredit,
    PaymentOrigin,
    RecruiterWallet,
    WalletType,
)

# Costos en créditos
PUBLICATION_COST = 10
IDENTITY_UNLOCK_COST = 2
SOURCING_COST = 50


async def record_movement(db: AsyncSession, required: bool = False, **fields) -> Optional[CreditMovement]:
    """
    Inserta un movimiento en la bitácora

    Por defecto se ejecuta en un SAVEPOINT: si la inserción falla se revierte
    solo el movimiento y el cambio de saldo ya aplicado se conserva. Con
    `required=True` el error se propaga y revierte la transacción completa.
    """
    await db.flush()
    if required:
        movement = CreditMovement(**fields)
        db.add(movement)
        await db.flush()
    else:
        try:
            async with db.begin_nested():
                movement = CreditMovement(**fields)
                db.add(movement)
                await db.flush()
        except SQLAlchemyError as exc:
            logger.warning(
                "No se pudo registrar el movimiento action={} amount={}: {}",
                fields.get("action"), fields.get("amount"), exc,
            )
            return None

    logger.info(
        "Movimiento registrado: action={} origin={} amount={} balance={}→{}",
        movement.action, movement.payment_origin, movement.amount,
        movement.balance_before, movement.balance_after,
    )
    return movement


# ==================== Consultas de saldo ====================

async def get_recruiter_balance(
    db: AsyncSession,
    recruiter_id: str,
    company_id: Optional[str] = None
) -> dict:
    """Saldo propio, heredado (de una empresa o total) y total disponible"""
    wallet = await recruiter_wallet_crud.get_by_recruiter(db, recruiter_id)
    own = wallet.own_credits if wallet else 0
    if company_id:
        row = await inherited_credit_crud.get_pair(db, recruiter_id=recruiter_id, company_id=company_id)
        inherited = row.available_credits if row else 0
    else:
        inherited = wallet.inherited_credits if wallet else 0
    return {
        "own_credits": own,
        "inherited_credits": inherited,
        "total": own + inherited,
    }


async def check_publication_credits(
    db: AsyncSession,
    *,
    recruiter_id: str,
    company_id: Optional[str] = None
) -> dict:
    """¿Alcanza el saldo para publicar una vacante?"""
    balance = await get_recruiter_balance(db, recruiter_id, company_id)
    balance["required"] = PUBLICATION_COST
    # el cargo sale completo de una sola bolsa
    balance["sufficient"] = (
        balance["inherited_credits"] >= PUBLICATION_COST or balance["own_credits"] >= PUBLICATION_COST
    )
    return balance


# ==================== Cargos del reclutador ====================

async def _debit_recruiter(
    db: AsyncSession,
    *,
    recruiter_id: str,
    company_id: Optional[str],
    cost: int,
    insufficient_message: Optional[str] = None
) -> Tuple[str, RecruiterWallet, Optional[InheritedCredit], int, int]:
    """
    Descuenta créditos a un reclutador

    Usa primero los créditos heredados de la empresa indicada si alcanzan
    para cubrir el costo completo; si no, los créditos propios.

    Returns:
        (origen, monedero, fila heredada usada, saldo anterior, saldo posterior)
    """
    wallet = await recruiter_wallet_crud.get_or_create(db, recruiter_id)
    inherited_row = None
    if company_id:
        inherited_row = await inherited_credit_crud.get_pair(
            db, recruiter_id=recruiter_id, company_id=company_id
        )

    if inherited_row is not None and inherited_row.available_credits >= cost:
        before = inherited_row.available_credits
        inherited_row.available_credits = before - cost
        inherited_row.updated_at = utc_now()
        wallet.inherited_credits = max(0, wallet.inherited_credits - cost)
        wallet.updated_at = utc_now()
        return PaymentOrigin.INHERITED.value, wallet, inherited_row, before, before - cost

    if wallet.own_credits < cost:
        available = wallet.own_credits + (inherited_row.available_credits if inherited_row else 0)
        raise InsufficientCreditsException(
            required=cost,
            available=available,
            message=insufficient_message,
        )

    before = wallet.own_credits
    wallet.own_credits = before - cost
    wallet.updated_at = utc_now()
    return PaymentOrigin.RECRUITER.value, wallet, None, before, before - cost


async def charge_publication(
    db: AsyncSession,
    *,
    recruiter_id: str,
    actor_user_id: str,
    vacancy_id: str,
    company_id: Optional[str] = None,
    vacancy_title: Optional[str] = None
) -> dict:
    """Cobra la publicación de una vacante en el marketplace"""
    own = (await get_recruiter_balance(db, recruiter_id))["own_credits"]
    origin, wallet, _, before, after = await _debit_recruiter(
        db,
        recruiter_id=recruiter_id,
        company_id=company_id,
        cost=PUBLICATION_COST,
        insufficient_message=(
            f"Créditos insuficientes. Necesitas {PUBLICATION_COST} créditos para publicar, "
            f"tienes {own} propios"
        ),
    )
    await record_movement(
        db,
        payment_origin=origin,
        recruiter_wallet_id=wallet.id,
        recruiter_id=recruiter_id,
        company_id=company_id,
        actor_user_id=actor_user_id,
        action=CreditAction.VACANCY_PUBLICATION.value,
        method=ExecutionMethod.MANUAL.value,
        amount=-PUBLICATION_COST,
        balance_before=before,
        balance_after=after,
        description=f"Publicación de vacante: {vacancy_title}" if vacancy_title else "Publicación de vacante",
        vacancy_id=vacancy_id,
    )
    return {
        "credits_spent": PUBLICATION_COST,
        "payment_origin": origin,
        "balance_after": after,
    }


async def unlock_identity(
    db: AsyncSession,
    *,
    recruiter_id: str,
    actor_user_id: str,
    candidate_user_id: str,
    candidate_name: Optional[str] = None,
    company_id: Optional[str] = None
) -> dict:
    """
    Desbloquea la identidad de un candidato

    Si ya estaba desbloqueada no se cobra nada.
    """
    existing = await identity_access_crud.get_pair(
        db, recruiter_id=recruiter_id, candidate_user_id=candidate_user_id
    )
    if existing:
        return {"already_unlocked": True, "credits_spent": 0, "payment_origin": existing.payment_origin}

    balance = await get_recruiter_balance(db, recruiter_id)
    if balance["total"] < IDENTITY_UNLOCK_COST:
        raise InsufficientCreditsException(required=IDENTITY_UNLOCK_COST, available=balance["total"])

    origin, wallet, _, before, after = await _debit_recruiter(
        db,
        recruiter_id=recruiter_id,
        company_id=company_id if balance["inherited_credits"] >= IDENTITY_UNLOCK_COST else None,
        cost=IDENTITY_UNLOCK_COST,
    )
    used_company = company_id if origin == PaymentOrigin.INHERITED.value else None

    await identity_access_crud.create(db, obj_in={
        "recruiter_id": recruiter_id,
        "candidate_user_id": candidate_user_id,
        "company_id": used_company,
        "payment_origin": origin,
        "credits_spent": IDENTITY_UNLOCK_COST,
    })
    await record_movement(
        db,
        payment_origin=origin,
        recruiter_wallet_id=wallet.id,
        recruiter_id=recruiter_id,
        company_id=used_company,
        actor_user_id=actor_user_id,
        action=CreditAction.CANDIDATE_CONTACT.value,
        method=ExecutionMethod.MANUAL.value,
        amount=-IDENTITY_UNLOCK_COST,
        balance_before=before,
        balance_after=after,
        description=f"Desbloqueo de identidad: {candidate_name or 'candidato'}",
        candidate_user_id=candidate_user_id,
    )
    return {"already_unlocked": False, "credits_spent": IDENTITY_UNLOCK_COST, "payment_origin": origin}


async def charge_sourcing(
    db: AsyncSession,
    *,
    actor_user_id: str,
    vacancy_id: str,
    batch_id: str,
    candidates_found: int,
    recruiter_id: Optional[str] = None,
    company_id: Optional[str] = None
) -> dict:
    """
    Cobra una ejecución de sourcing con IA

    Un reclutador paga con heredados de la empresa de la vacante o propios;
    una empresa paga con su monedero.
    """
    extra = {"batch_id": batch_id, "candidates_found": candidates_found}
    description = f"Sourcing IA: {candidates_found} candidatos encontrados"

    if recruiter_id:
        origin, wallet, _, before, after = await _debit_recruiter(
            db, recruiter_id=recruiter_id, company_id=company_id, cost=SOURCING_COST
        )
        await record_movement(
            db,
            payment_origin=origin,
            recruiter_wallet_id=wallet.id,
            recruiter_id=recruiter_id,
            company_id=company_id,
            actor_user_id=actor_user_id,
            action=CreditAction.AI_SOURCING.value,
            method=ExecutionMethod.AI.value,
            amount=-SOURCING_COST,
            balance_before=before,
            balance_after=after,
            description=description,
            vacancy_id=vacancy_id,
            extra=extra,
        )
        return {"credits_spent": SOURCING_COST, "payment_origin": origin, "balance_after": after}

    if not company_id:
        raise BadRequestException("No hay monedero para cobrar el sourcing")

    wallet = await company_wallet_crud.get_by_company(db, company_id)
    available = wallet.available_credits if wallet else 0
    if wallet is None or available < SOURCING_COST:
        raise InsufficientCreditsException(required=SOURCING_COST, available=available)

    before = wallet.available_credits
    wallet.available_credits = before - SOURCING_COST
    wallet.updated_at = utc_now()
    await record_movement(
        db,
        payment_origin=PaymentOrigin.COMPANY.value,
        company_wallet_id=wallet.id,
        company_id=company_id,
        actor_user_id=actor_user_id,
        action=CreditAction.AI_SOURCING.value,
        method=ExecutionMethod.AI.value,
        amount=-SOURCING_COST,
        balance_before=before,
        balance_after=before - SOURCING_COST,
        description=description,
        vacancy_id=vacancy_id,
        extra=extra,
    )
    return {
        "credits_spent": SOURCING_COST,
        "payment_origin": PaymentOrigin.COMPANY.value,
        "balance_after": before - SOURCING_COST,
    }


# ==================== Herencia y devolución ====================

async def assign_credits(
    db: AsyncSession,
    *,
    company_id: str,
    recruiter_id: str,
    quantity: int,
    actor_user_id: str
) -> dict:
    """La empresa hereda créditos a un reclutador vinculado"""
    if quantity <= 0:
        raise BadRequestException("La cantidad debe ser mayor a 0")

    link = await link_crud.get_active(db, recruiter_id=recruiter_id, company_id=company_id)
    if link is None:
        raise BadRequestException("El reclutador no tiene una asociación activa con la empresa")

    company_wallet = await company_wallet_crud.get_by_company(db, company_id)
    available = company_wallet.available_credits if company_wallet else 0
    if company_wallet is None or quantity > available:
        raise InsufficientCreditsException(
            required=quantity,
            available=available,
            message=f"La empresa solo tiene {available} créditos disponibles",
        )

    before = company_wallet.available_credits
    company_wallet.available_credits = before - quantity
    company_wallet.inherited_credits_total += quantity
    company_wallet.updated_at = utc_now()

    row = await inherited_credit_crud.get_pair(db, recruiter_id=recruiter_id, company_id=company_id)
    if row is None:
        row = await inherited_credit_crud.create(db, obj_in={
            "recruiter_id": recruiter_id,
            "company_id": company_id,
        })
    row.available_credits += quantity
    row.total_received_credits += quantity
    row.updated_at = utc_now()

    recruiter_wallet = await recruiter_wallet_crud.get_or_create(db, recruiter_id)
    recruiter_wallet.inherited_credits += quantity
    recruiter_wallet.updated_at = utc_now()

    await record_movement(
        db,
        payment_origin=PaymentOrigin.COMPANY.value,
        company_wallet_id=company_wallet.id,
        company_id=company_id,
        recruiter_id=recruiter_id,
        actor_user_id=actor_user_id,
        action=CreditAction.INHERITANCE.value,
        method=ExecutionMethod.MANUAL.value,
        amount=-quantity,
        balance_before=before,
        balance_after=before - quantity,
        description=f"Herencia de {quantity} créditos a reclutador",
    )
    logger.info(
        "Créditos heredados: company_id={} recruiter_id={} quantity={}",
        company_id, recruiter_id, quantity,
    )
    return {
        "company_available": company_wallet.available_credits,
        "recruiter_inherited": row.available_credits,
    }


async def return_credits(
    db: AsyncSession,
    *,
    company_id: str,
    recruiter_id: str,
    quantity: int,
    actor_user_id: str
) -> dict:
    """Devuelve a la empresa créditos heredados no usados"""
    if quantity <= 0:
        raise BadRequestException("La cantidad debe ser mayor a 0")

    row = await inherited_credit_crud.get_pair(db, recruiter_id=recruiter_id, company_id=company_id)
    available = row.available_credits if row else 0
    if row is None or quantity > available:
        raise BadRequestException(f"Solo hay {available} créditos heredados disponibles para devolver")

    company_wallet = await company_wallet_crud.get_or_create(db, company_id)
    before = company_wallet.available_credits
    company_wallet.available_credits = before + quantity
    company_wallet.inherited_credits_total = max(0, company_wallet.inherited_credits_total - quantity)
    company_wallet.updated_at = utc_now()

    row.available_credits -= quantity
    row.updated_at = utc_now()

    recruiter_wallet = await recruiter_wallet_crud.get_or_create(db, recruiter_id)
    recruiter_wallet.inherited_credits = max(0, recruiter_wallet.inherited_credits - quantity)
    recruiter_wallet.updated_at = utc_now()

    await record_movement(
        db,
        payment_origin=PaymentOrigin.COMPANY.value,
        company_wallet_id=company_wallet.id,
        company_id=company_id,
        recruiter_id=recruiter_id,
        actor_user_id=actor_user_id,
        action=CreditAction.RETURN.value,
        method=ExecutionMethod.MANUAL.value,
        amount=quantity,
        balance_before=before,
        balance_after=before + quantity,
        description=f"Devolución de {quantity} créditos heredados",
    )
    return {
        "company_available": company_wallet.available_credits,
        "recruiter_inherited": row.available_credits,
    }


# ==================== Compras ====================

async def add_purchased_credits(
    db: AsyncSession,
    *,
    wallet_type: str,
    owner_id: str,
    credits: int,
    actor_user_id: str,
    reference: Optional[str] = None,
    extra: Optional[dict] = None
) -> dict:
    """
    Abona créditos comprados

    Con `reference` (id de sesión de pago) la operación es idempotente:
    una segunda llamada con la misma referencia no vuelve a abonar.
    """
    if credits <= 0:
        raise BadRequestException("Cantidad de créditos inválida")

    if reference:
        previous = await movement_crud.get_by_reference(db, reference)
        if previous:
            logger.info("Pago ya procesado: reference={}", reference)
            return {
                "already_processed": True,
                "credits_added": 0,
                "new_balance": previous.balance_after,
            }

    if wallet_type == WalletType.RECRUITER.value:
        wallet = await recruiter_wallet_crud.get_or_create(db, owner_id)
        before = wallet.own_credits
        wallet.own_credits = before + credits
        wallet.total_purchased_credits += credits
        wallet.updated_at = utc_now()
        movement_fields = {
            "payment_origin": PaymentOrigin.RECRUITER.value,
            "recruiter_wallet_id": wallet.id,
            "recruiter_id": owner_id,
        }
    elif wallet_type == WalletType.COMPANY.value:
        wallet = await company_wallet_crud.get_or_create(db, owner_id)
        before = wallet.available_credits
        wallet.available_credits = before + credits
        wallet.total_purchased_credits += credits
        wallet.updated_at = utc_now()
        movement_fields = {
            "payment_origin": PaymentOrigin.COMPANY.value,
            "company_wallet_id": wallet.id,
            "company_id": owner_id,
        }
    else:
        raise BadRequestException(f"Tipo de monedero inválido: {wallet_type}")

    try:
        await record_movement(
            db,
            required=bool(reference),
            **movement_fields,
            actor_user_id=actor_user_id,
            action=CreditAction.PURCHASE.value,
            method=ExecutionMethod.SYSTEM.value,
            amount=credits,
            balance_before=before,
            balance_after=before + credits,
            description=f"Compra de {credits} créditos",
            reference=reference,
            extra=extra,
        )
    except IntegrityError:
        logger.warning("Pago procesado en paralelo: reference={}", reference)
        raise ConflictException("El pago ya fue procesado")
    except SQLAlchemyError as exc:
        logger.error("No se pudo registrar la compra reference={}: {}", reference, exc)
        raise AppException("No se pudo registrar la compra, intenta verificar el pago de nuevo")
    return {"already_processed": False, "credits_added": credits, "new_balance": before + credits}


# ==================== Consultas ====================

async def list_movements(
    db: AsyncSession,
    *,
    company_id: Optional[str] = None,
    recruiter_id: Optional[str] = None,
    action: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    skip: int = 0,
    limit: int = 50
) -> Tuple[List[CreditMovement], int]:
    """Movimientos de un monedero con filtros de acción y rango de fechas"""
    filters = {
        "company_id": company_id,
        "recruiter_id": recruiter_id,
        "action": action if action and action != "todos" else None,
        "date_from": as_utc(date_from),
        "date_to": as_utc(date_to),
    }
    items = await movement_crud.list_filtered(db, skip=skip, limit=limit, **filters)
    total = await movement_crud.count_filtered(db, **filters)
    return items, total

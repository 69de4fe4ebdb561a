"""
Modelo del monedero de créditos

- CompanyWallet: saldo de la empresa
- RecruiterWallet: saldo propio del reclutador y total heredado
- InheritedCredit: créditos heredados por reclutador y empresa
- CreditMovement: bitácora de cada cambio de saldo
- IdentityAccess: desbloqueos de identidad de candidatos
"""
from datetime import datetime
from typing import Optional
from enum import Enum
from sqlmodel import Field, Column, JSON, UniqueConstraint
from sqlalchemy import CheckConstraint

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse, utc_now


class PaymentOrigin(str, Enum):
    """Origen de los créditos usados"""
    COMPANY = "empresa"
    RECRUITER = "reclutador"
    INHERITED = "heredado_empresa"


class CreditAction(str, Enum):
    """Causa del movimiento"""
    PURCHASE = "compra_creditos"
    VACANCY_PUBLICATION = "publicacion_vacante"
    POOL_ACCESS = "acceso_pool_candidatos"
    CV_DOWNLOAD = "descarga_cv"
    CANDIDATE_CONTACT = "contacto_candidato"
    SOCIOECONOMIC_STUDY = "estudio_socioeconomico"
    PSYCHOMETRIC = "evaluacion_psicometrica"
    AI_SOURCING = "sourcing_ia"
    INHERITANCE = "herencia_creditos"
    RETURN = "devolucion_creditos"
    MANUAL_ADJUSTMENT = "ajuste_manual"
    EXPIRATION = "expiracion_creditos"


class ExecutionMethod(str, Enum):
    """Cómo se ejecutó la acción"""
    MANUAL = "manual"
    AI = "automatico_ia"
    SYSTEM = "sistema"


class WalletType(str, Enum):
    """Tipo de monedero"""
    COMPANY = "empresa"
    RECRUITER = "reclutador"


ACTION_LABELS = {
    "compra_creditos": "Compra de créditos",
    "publicacion_vacante": "Publicación de vacante",
    "acceso_pool_candidatos": "Acceso a pool",
    "descarga_cv": "Descarga de CV",
    "contacto_candidato": "Desbloqueo de identidad",
    "estudio_socioeconomico": "Estudio socioeconómico",
    "evaluacion_psicometrica": "Evaluación psicométrica",
    "sourcing_ia": "Sourcing con IA",
    "herencia_creditos": "Herencia de créditos",
    "devolucion_creditos": "Devolución de créditos",
    "ajuste_manual": "Ajuste manual",
    "expiracion_creditos": "Expiración",
}

ORIGIN_LABELS = {
    "empresa": "Empresa",
    "reclutador": "Propio",
    "heredado_empresa": "Heredado",
}


# ==================== Tablas ====================

class CompanyWallet(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """Monedero de empresa"""
    __tablename__ = "company_wallets"
    __table_args__ = (
        CheckConstraint("available_credits >= 0", name="ck_company_wallet_available"),
    )

    company_id: str = Field(..., foreign_key="companies.id", unique=True, index=True, description="Empresa")
    available_credits: int = Field(0, ge=0, description="Créditos disponibles")
    inherited_credits_total: int = Field(0, ge=0, description="Créditos heredados a reclutadores")
    total_purchased_credits: int = Field(0, ge=0, description="Créditos comprados")


class RecruiterWallet(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """Monedero de reclutador"""
    __tablename__ = "recruiter_wallets"
    __table_args__ = (
        CheckConstraint("own_credits >= 0", name="ck_recruiter_wallet_own"),
        CheckConstraint("inherited_credits >= 0", name="ck_recruiter_wallet_inherited"),
    )

    recruiter_id: str = Field(..., foreign_key="recruiter_profiles.id", unique=True, index=True, description="Reclutador")
    own_credits: int = Field(0, ge=0, description="Créditos propios")
    inherited_credits: int = Field(0, ge=0, description="Créditos heredados (todas las empresas)")
    total_purchased_credits: int = Field(0, ge=0, description="Créditos comprados")


class InheritedCredit(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """Créditos que una empresa heredó a un reclutador"""
    __tablename__ = "inherited_credits"
    __table_args__ = (
        UniqueConstraint("recruiter_id", "company_id", name="uq_inherited_recruiter_company"),
        CheckConstraint("available_credits >= 0", name="ck_inherited_available"),
    )

    recruiter_id: str = Field(..., foreign_key="recruiter_profiles.id", index=True, description="Reclutador")
    company_id: str = Field(..., foreign_key="companies.id", index=True, description="Empresa")
    available_credits: int = Field(0, ge=0, description="Disponibles")
    total_received_credits: int = Field(0, ge=0, description="Recibidos en total")


class CreditMovement(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """Movimiento de créditos (bitácora)"""
    __tablename__ = "credit_movements"

    # ========== Origen ==========
    payment_origin: str = Field(..., index=True, description="Origen del pago")
    company_wallet_id: Optional[str] = Field(None, foreign_key="company_wallets.id", index=True)
    recruiter_wallet_id: Optional[str] = Field(None, foreign_key="recruiter_wallets.id", index=True)
    company_id: Optional[str] = Field(None, index=True, description="Empresa")
    recruiter_id: Optional[str] = Field(None, index=True, description="Reclutador")
    actor_user_id: Optional[str] = Field(None, index=True, description="Usuario que ejecutó")

    # ========== Movimiento ==========
    action: str = Field(..., index=True, description="Tipo de acción")
    method: str = Field(ExecutionMethod.MANUAL.value, description="Método de ejecución")
    amount: int = Field(..., description="Créditos (+ abono, - cargo)")
    balance_before: int = Field(..., description="Saldo anterior")
    balance_after: int = Field(..., description="Saldo posterior")
    description: Optional[str] = Field(None, description="Descripción")

    # ========== Referencias ==========
    vacancy_id: Optional[str] = Field(None, index=True)
    application_id: Optional[str] = Field(None)
    candidate_user_id: Optional[str] = Field(None)
    reference: Optional[str] = Field(None, unique=True, index=True, description="Referencia externa (sesión de pago)")
    extra: Optional[dict] = Field(default=None, sa_column=Column(JSON), description="Metadatos")


class IdentityAccess(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """Identidad de candidato desbloqueada por un reclutador"""
    __tablename__ = "identity_access"
    __table_args__ = (
        UniqueConstraint("recruiter_id", "candidate_user_id", name="uq_identity_recruiter_candidate"),
    )

    recruiter_id: str = Field(..., foreign_key="recruiter_profiles.id", index=True)
    candidate_user_id: str = Field(..., index=True)
    company_id: Optional[str] = Field(None, description="Empresa de los créditos usados")
    payment_origin: str = Field(PaymentOrigin.RECRUITER.value)
    credits_spent: int = Field(0, ge=0)
    unlocked_at: datetime = Field(default_factory=utc_now)


# ==================== Esquemas de petición ====================

class CreditTransfer(SQLModelBase):
    """Heredar o devolver créditos"""
    recruiter_id: str = Field(..., description="Reclutador")
    quantity: int = Field(..., gt=0, description="Cantidad de créditos")


class CreditReturn(SQLModelBase):
    """Devolución iniciada por el reclutador"""
    company_id: str = Field(..., description="Empresa que heredó los créditos")
    quantity: int = Field(..., gt=0, description="Cantidad de créditos")


class CheckoutCreate(SQLModelBase):
    """Iniciar compra de créditos"""
    package_size: str = Field(..., description="Paquete: 20, 50 o 100")
    wallet_type: WalletType = Field(..., description="Monedero a abonar")
    origin: Optional[str] = Field(None, description="URL base del frontend")


class PaymentVerify(SQLModelBase):
    """Verificar pago"""
    session_id: str = Field(..., min_length=1, description="ID de la sesión de checkout")


class IdentityUnlock(SQLModelBase):
    """Desbloquear identidad"""
    candidate_user_id: str = Field(..., description="Candidato")
    company_id: Optional[str] = Field(None, description="Empresa cuyos créditos heredados se prefieren")


# ==================== Esquemas de respuesta ====================

class CompanyWalletResponse(TimestampResponse):
    """Monedero de empresa"""
    company_id: str
    available_credits: int
    inherited_credits_total: int
    total_purchased_credits: int


class RecruiterWalletResponse(TimestampResponse):
    """Monedero de reclutador"""
    recruiter_id: str
    own_credits: int
    inherited_credits: int
    total_purchased_credits: int


class InheritedCreditResponse(TimestampResponse):
    """Créditos heredados"""
    recruiter_id: str
    company_id: str
    available_credits: int
    total_received_credits: int


class CreditMovementResponse(TimestampResponse):
    """Movimiento de créditos"""
    payment_origin: str
    company_id: Optional[str]
    recruiter_id: Optional[str]
    actor_user_id: Optional[str]
    action: str
    method: str
    amount: int
    balance_before: int
    balance_after: int
    description: Optional[str]
    vacancy_id: Optional[str]
    candidate_user_id: Optional[str]
    reference: Optional[str]
    extra: Optional[dict]

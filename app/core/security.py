"""
Módulo de autenticación

Valida el JWT emitido por el servicio de autenticación hospedado y resuelve
los roles y perfiles del usuario como dependencias de FastAPI.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from .database import get_db
from .exceptions import UnauthorizedException, ForbiddenException, NotFoundException
from app.models.company import UserRole, AppRole
from app.models.profile import CandidateProfile, RecruiterProfile, VerifierProfile

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    """Usuario autenticado y su contexto"""
    user_id: str
    email: Optional[str] = None
    roles: List[str] = field(default_factory=list)
    company_id: Optional[str] = None
    recruiter: Optional[RecruiterProfile] = None
    candidate: Optional[CandidateProfile] = None
    verifier: Optional[VerifierProfile] = None

    def has_role(self, role: str) -> bool:
        return role in self.roles

    @property
    def recruiter_id(self) -> Optional[str]:
        return self.recruiter.id if self.recruiter else None


def decode_token(token: str) -> Optional[dict]:
    """Decodifica y verifica el JWT"""
    try:
        return jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
        )
    except JWTError as exc:
        logger.debug("Token inválido: {}", exc)
        return None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """
    Dependencia: usuario autenticado

    Uso:
        @router.get("/me")
        async def me(user: CurrentUser = Depends(get_current_user)):
            ...
    """
    if credentials is None:
        raise UnauthorizedException("Falta el token de acceso")

    payload = decode_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise UnauthorizedException("Token inválido o expirado")

    user_id = payload["sub"]
    result = await db.execute(select(UserRole).where(UserRole.user_id == user_id))
    role_rows = list(result.scalars().all())

    company_id = next(
        (r.company_id for r in role_rows if r.role == AppRole.COMPANY_ADMIN.value and r.company_id),
        None,
    )
    return CurrentUser(
        user_id=user_id,
        email=payload.get("email"),
        roles=[r.role for r in role_rows],
        company_id=company_id,
    )


async def require_company_admin(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Dependencia: administrador de empresa con empresa asignada"""
    if not user.has_role(AppRole.COMPANY_ADMIN.value) or not user.company_id:
        raise ForbiddenException("Solo administradores de empresa")
    return user


async def require_recruiter(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Dependencia: reclutador con perfil"""
    result = await db.execute(
        select(RecruiterProfile).where(RecruiterProfile.user_id == user.user_id)
    )
    profile = result.scalar_one_or_none()
    if profile is None:
        raise NotFoundException("Perfil de reclutador no encontrado. Crea tu perfil primero")
    user.recruiter = profile
    return user


async def require_candidate(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Dependencia: candidato con perfil"""
    result = await db.execute(
        select(CandidateProfile).where(CandidateProfile.user_id == user.user_id)
    )
    profile = result.scalar_one_or_none()
    if profile is None:
        raise NotFoundException("Perfil de candidato no encontrado. Completa tu perfil primero")
    user.candidate = profile
    return user


async def require_verifier(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Dependencia: verificador con perfil"""
    result = await db.execute(
        select(VerifierProfile).where(VerifierProfile.user_id == user.user_id)
    )
    profile = result.scalar_one_or_none()
    if profile is None:
        raise ForbiddenException("Solo verificadores")
    user.verifier = profile
    return user


async def get_optional_recruiter(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Dependencia: usuario autenticado con su perfil de reclutador, si lo tiene"""
    result = await db.execute(
        select(RecruiterProfile).where(RecruiterProfile.user_id == user.user_id)
    )
    user.recruiter = result.scalar_one_or_none()
    return user

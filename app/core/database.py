"""
Motor asíncrono y sesión por petición

SQLAlchemy 2.0 async con tablas SQLModel. La sesión de cada petición es la
transacción de negocio: un cargo de créditos y su movimiento se confirman o
se revierten juntos.
"""
from pathlib import Path
from typing import AsyncGenerator
from loguru import logger
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlmodel import SQLModel

from .config import settings


def engine_options(database_url: str) -> dict:
    """SQLite necesita espera por bloqueo; los demás motores, pool con ping"""
    if make_url(database_url).get_backend_name() == "sqlite":
        return {"connect_args": {"timeout": 30}}
    return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **engine_options(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependencia: commit al terminar la petición, rollback si algo falla"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            logger.debug("Transacción revertida")
            raise


def _ensure_sqlite_dir(database_url: str):
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


async def init_db():
    """Crea las tablas que falten"""
    import app.models  # noqa: F401  registra los modelos en el metadata

    _ensure_sqlite_dir(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Base de datos lista: {}", make_url(settings.database_url).render_as_string(hide_password=True))


async def close_db():
    await engine.dispose()

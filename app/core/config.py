"""
Módulo de configuración de la aplicación

Usa pydantic-settings para leer variables de entorno y el archivo .env
"""
from functools import lru_cache
from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
import json

# Directorio raíz del proyecto
BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Configuración de la aplicación"""

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Configuración base
    app_name: str = "Recluta-Insight-API"
    app_env: str = "development"
    debug: bool = True

    # Base de datos
    database_url: str = f"sqlite+aiosqlite:///{BASE_DIR / 'data' / 'recluta.db'}"

    # CORS
    cors_origins: List[str] = ["*"]

    # Autenticación (JWT emitido por el servicio de auth hospedado)
    auth_jwt_secret: str = "change-me"
    auth_jwt_algorithm: str = "HS256"
    auth_jwt_audience: str = "authenticated"

    # Stripe
    stripe_secret_key: str = ""
    stripe_price_20: str = "price_1SZY9ARJYvbSPO4J7p24yYXe"
    stripe_price_50: str = "price_1SZYBdRJYvbSPO4JFv6ir6iI"
    stripe_price_100: str = "price_1SZYCGRJYvbSPO4JfWi7DZUY"
    frontend_url: str = "http://localhost:5173"

    # LLM
    llm_model: str = "gpt-4o-mini"
    llm_api_key: str = ""
    llm_base_url: str = "https://api.openai.com/v1"
    llm_temperature: float = 0.3
    llm_timeout: int = 120
    llm_max_concurrency: int = 5
    llm_rate_limit: int = 60

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("database_url", mode="before")
    @classmethod
    def anchor_sqlite_path(cls, v):
        # rutas SQLite relativas se resuelven desde la raíz del proyecto
        prefix = "sqlite+aiosqlite:///"
        if isinstance(v, str) and v.startswith(prefix + "./"):
            return prefix + str(BASE_DIR / v[len(prefix) + 2:])
        return v

    @property
    def docs_enabled(self) -> bool:
        """Swagger solo en modo debug y nunca en producción"""
        return self.debug and self.app_env != "production"

    @property
    def stripe_prices(self) -> dict:
        """Price IDs de Stripe por tamaño de paquete"""
        return {
            "20": self.stripe_price_20,
            "50": self.stripe_price_50,
            "100": self.stripe_price_100,
        }


@lru_cache
def get_settings() -> Settings:
    """Singleton de configuración"""
    return Settings()


# Instancia global
settings = get_settings()

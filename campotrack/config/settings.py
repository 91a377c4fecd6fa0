# config/settings.py
"""
Configuración centralizada de la aplicación usando Pydantic Settings.
Las variables se cargan desde el archivo .env
"""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Configuración de la aplicación"""

    PROJECT_NAME: str = "CampoTrack API"

    # Base de datos
    DATABASE_URL: str
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # JWT (access y refresh usan secretos distintos)
    SECRET_KEY: str
    REFRESH_SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # Hash de contraseñas
    BCRYPT_ROUNDS: int = 12

    # CORS
    CORS_ALLOW_ORIGINS: List[str] = ["http://localhost:5173"]

    # Zona horaria de referencia para "hoy"
    TIMEZONE: str = "America/Bogota"

    # Reportes
    INVENTORY_INCLUDE_INACTIVE: bool = False
    MEDICAL_HORIZON_DEFAULT_DAYS: int = 30
    MEDICAL_HORIZON_MAX_DAYS: int = 1825

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    LOG_TO_FILE: bool = False
    LOG_DIR: str = "logs"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()

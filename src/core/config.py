"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP/retries) lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "soapcall"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "soapcall"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "soapcall"
    return Path.home() / ".config" / "soapcall"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="SOAPCALL_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    http_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout por intento (segundos).",
    )
    user_agent: str = Field(
        default="soapcall/0.1",
        min_length=1,
        description="User-Agent enviado al endpoint.",
    )

    retry_max_attempts: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Intentos totales ante fallos de transporte (no de status HTTP).",
    )
    retry_initial_delay: float = Field(
        default=0.5,
        ge=0,
        description="Espera antes del segundo intento (segundos); se duplica en cada fallo.",
    )
    retry_max_delay: float = Field(
        default=30.0,
        gt=0,
        description="Techo de la espera entre intentos (segundos).",
    )
    retry_jitter: float = Field(
        default=0.35,
        ge=0,
        description="Jitter aleatorio máximo sumado a cada espera (segundos).",
    )

    username: str | None = Field(
        default=None,
        description="Usuario por defecto para basic auth (la CLI lo puede sobreescribir).",
    )
    password: str | None = Field(
        default=None,
        description="Password por defecto para basic auth.",
    )

    log_level: str = Field(
        default="WARNING",
        description="Nivel del logger raíz (DEBUG, INFO, WARNING, ERROR).",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {value!r}")
        return level

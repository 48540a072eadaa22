"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP/credenciales) lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_DIR_NAME = "setapp-disconnect"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias).

    Ahí viven el `.env` global y el almacén de tokens (`credentials.json`).
    """

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / APP_DIR_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_DIR_NAME
    return Path.home() / ".config" / APP_DIR_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# setapp-disconnect user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Permite ejecutar en modo headless (CI) pasando tokens por entorno en vez
      de bloquear en un prompt interactivo.
    """

    model_config = SettingsConfigDict(
        env_prefix="SETAPP_",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_base_url: str = Field(
        default="https://user-api.setapp.com",
        min_length=8,
        description="Base URL de la API privada de usuario de Setapp.",
    )
    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="setapp-disconnect/0.1",
        min_length=1,
        description="User-Agent enviado a la API.",
    )
    max_refresh_attempts: int = Field(
        default=1,
        ge=0,
        le=5,
        description="Refrescos de token permitidos por request antes de abortar.",
    )

    credentials_path: Path | None = Field(
        default=None,
        description="Ruta del almacén JSON de tokens (por defecto en el directorio de usuario).",
    )
    access_token: str | None = Field(
        default=None,
        description="Access token inicial (solo se usa si el almacén no tiene uno).",
    )
    refresh_token: str | None = Field(
        default=None,
        description="Refresh token inicial (solo se usa si el almacén no tiene uno).",
    )

    password: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SETAPP_PASSWORD", "IR3_SETAPP_PSW"),
        description="Contraseña de la cuenta a copiar al portapapeles al terminar.",
    )

    def resolved_credentials_path(self) -> Path:
        return self.credentials_path or get_user_config_dir() / "credentials.json"

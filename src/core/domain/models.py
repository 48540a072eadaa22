"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Validación estricta de las respuestas de la API en el borde, sin acoplar
  el Core a httpx.
- Los sobres `{data: ...}` de la API quedan documentados como tipos.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class Device(BaseModel):
    """Instalación registrada en la cuenta (ocupa un slot de activación)."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int = Field(
        ...,
        description="Identificador del dispositivo en la API.",
    )
    name: str = Field(
        ...,
        description="Nombre visible del dispositivo (p.ej. 'MacBook').",
    )


class DeviceListEnvelope(BaseModel):
    """Cuerpo de `GET /v1/devices`."""

    model_config = ConfigDict(extra="ignore")

    data: list[Device] = Field(default_factory=list)


class TokenPair(BaseModel):
    """Par de credenciales devuelto por `POST /v1/token`.

    Invariante: ambos valores, una vez obtenidos, son strings no vacíos.
    """

    model_config = ConfigDict(extra="ignore")

    token: str = Field(
        ...,
        min_length=1,
        description="Access token (bearer de vida corta).",
    )
    refresh_token: str = Field(
        ...,
        min_length=1,
        description="Refresh token (vida larga) para obtener un nuevo access token.",
    )


class TokenEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: TokenPair


@dataclass(frozen=True)
class RequestDescriptor:
    """Petición saliente, opaca para el executor salvo por los headers.

    Es inmutable: cada intento (incluido el reintento tras refrescar) construye
    un `httpx.Request` nuevo a partir del mismo descriptor.
    """

    method: str
    url: str
    json: Any | None = None
    headers: dict[str, str] = field(default_factory=dict)

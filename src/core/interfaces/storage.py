"""Contrato del almacén clave-valor de credenciales.

Por qué Protocol:
- El almacén durable (JSON en disco) y el de memoria (tests, `--ephemeral`)
  son intercambiables sin herencia rígida.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Almacén opaco de strings.

    Reglas de diseño:
    - `get` devuelve `None` si la clave no existe (nunca lanza por ausencia).
    - `set` sobreescribe sin condiciones y debe ser durable al retornar.
    - `set_many` escribe varias claves de una vez: o quedan todas o ninguna.
    """

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def set_many(self, values: dict[str, str]) -> None:
        ...

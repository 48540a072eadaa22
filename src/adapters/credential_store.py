"""Almacén de credenciales (access + refresh token).

Por qué separar backend y store:
- El backend (`KeyValueStore`) solo guarda strings; puede ser un JSON en disco
  o un dict en memoria para tests.
- `CredentialStore` añade el contrato de las dos claves y el bootstrap
  interactivo, que es opcional: sin `prompt` el store es "leer o fallar" y
  sirve para ejecuciones headless.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Callable

from core.domain.errors import MissingCredentialError
from core.domain.models import TokenPair
from core.interfaces.storage import KeyValueStore

KEY_TOKEN = "Token"
KEY_REFRESH_TOKEN = "RefreshToken"

# Recibe la etiqueta a mostrar; devuelve None si el usuario cancela.
Prompt = Callable[[str], str | None]


class JsonFileStore(KeyValueStore):
    """Backend durable: un objeto JSON UTF-8 en disco, legible solo por el dueño (0600).

    Cada escritura va a un temporal en el mismo directorio y se renombra sobre
    el archivo final, así un corte a mitad nunca deja un JSON truncado.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as exc:
            raise ValueError(f"corrupt credential file: {self.path}") from exc
        if not isinstance(data, dict):
            raise ValueError(f"corrupt credential file: {self.path}")
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, values: dict[str, str]) -> None:
        data = self._load()
        data.update(values)
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                os.chmod(tmp, 0o600)
                fh.write(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True) + "\n")
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise


class MemoryStore(KeyValueStore):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def set_many(self, values: dict[str, str]) -> None:
        self.data.update(values)


class CredentialStore:
    """Par de tokens persistido en un `KeyValueStore`.

    No valida formato ni expiración: la expiración solo se descubre cuando
    una llamada autenticada devuelve 401.
    """

    def __init__(self, backend: KeyValueStore, *, prompt: Prompt | None = None) -> None:
        self.backend = backend
        self._prompt = prompt

    def _get_or_obtain(self, key: str, *, label: str, credential: str) -> str:
        value = self.backend.get(key)
        if value:
            return value
        if self._prompt is None:
            raise MissingCredentialError(credential)
        answer = self._prompt(label)
        if answer is None or not answer.strip():
            raise MissingCredentialError(credential)
        value = answer.strip()
        self.backend.set(key, value)
        return value

    def get_access_token(self) -> str:
        return self._get_or_obtain(KEY_TOKEN, label="Enter token", credential="token")

    def set_access_token(self, token: str) -> None:
        self.backend.set(KEY_TOKEN, token)

    def get_refresh_token(self) -> str:
        return self._get_or_obtain(
            KEY_REFRESH_TOKEN,
            label="Enter refresh token",
            credential="refresh token",
        )

    def set_refresh_token(self, token: str) -> None:
        self.backend.set(KEY_REFRESH_TOKEN, token)

    def peek_access_token(self) -> str | None:
        return self.backend.get(KEY_TOKEN) or None

    def peek_refresh_token(self) -> str | None:
        return self.backend.get(KEY_REFRESH_TOKEN) or None

    def store_pair(self, pair: TokenPair) -> None:
        self.backend.set_many({KEY_TOKEN: pair.token, KEY_REFRESH_TOKEN: pair.refresh_token})

    def seed(self, *, access_token: str | None, refresh_token: str | None) -> None:
        """Escribe los tokens configurados solo donde el almacén está vacío.

        Un token refrescado en una ejecución previa gana sobre el configurado.
        """

        if access_token and not self.peek_access_token():
            self.set_access_token(access_token)
        if refresh_token and not self.peek_refresh_token():
            self.set_refresh_token(refresh_token)

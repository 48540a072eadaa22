"""Cliente de la API privada de Setapp.

Contiene la única pieza con lógica de decisión del proyecto: el executor que
firma cada petición con el bearer actual y, ante un 401, refresca el par de
tokens y reintenta la petición original.

Endpoints usados (contrato de terceros):
- `GET /v1/devices` -> `{data: Device[]}`
- `DELETE /v1/devices/{id}` -> cuerpo ignorado
- `POST /v1/token` con `{refresh_token}` -> `{data: {token, refresh_token}}`
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import httpx
from pydantic import ValidationError

from adapters.credential_store import CredentialStore
from core.domain.errors import AuthenticationError, RequestError
from core.domain.models import Device, DeviceListEnvelope, RequestDescriptor, TokenEnvelope

TOKEN_PATH = "/v1/token"
DEVICES_PATH = "/v1/devices"


@dataclass
class ExecutorHooks:
    """Callbacks opcionales para la capa de UI (el adapter no imprime)."""

    token_refreshing: Callable[[], None] | None = None
    token_refreshed: Callable[[], None] | None = None


class AuthenticatedExecutor:
    """Ejecuta peticiones con bearer auth y se recupera de un token expirado.

    Ciclo por llamada: enviar -> 2xx (devolver) | 401 (refrescar y reenviar
    el descriptor original) | otro (RequestError). El número de refrescos por
    llamada está acotado por `max_refresh_attempts`; al agotarlo se lanza
    `AuthenticationError` en vez de reintentar indefinidamente.
    """

    def __init__(
        self,
        client: httpx.Client,
        store: CredentialStore,
        *,
        token_path: str = TOKEN_PATH,
        max_refresh_attempts: int = 1,
        hooks: ExecutorHooks | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._token_path = token_path
        self._max_refresh_attempts = max_refresh_attempts
        self._hooks = hooks or ExecutorHooks()

    def _auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._store.get_access_token()}",
            "Accept": "application/json",
        }

    def _build_request(self, descriptor: RequestDescriptor) -> httpx.Request:
        headers = httpx.Headers(descriptor.headers)
        for name, value in self._auth_headers().items():
            headers[name] = value
        return self._client.build_request(
            descriptor.method,
            descriptor.url,
            json=descriptor.json,
            headers=headers,
        )

    def execute(self, descriptor: RequestDescriptor) -> httpx.Response:
        return self._execute(descriptor, refreshes_left=self._max_refresh_attempts)

    def _execute(self, descriptor: RequestDescriptor, *, refreshes_left: int) -> httpx.Response:
        request = self._build_request(descriptor)
        response = self._client.send(request)
        url = str(request.url)

        if response.is_success:
            return response
        if response.status_code == 401:
            if refreshes_left <= 0:
                raise AuthenticationError(url, self._max_refresh_attempts)
            self.refresh_tokens(url=url, completed=self._max_refresh_attempts - refreshes_left)
            return self._execute(descriptor, refreshes_left=refreshes_left - 1)
        raise RequestError(url, response.status_code)

    def refresh_tokens(self, *, url: str | None = None, completed: int = 0) -> None:
        """Intercambia el refresh token por un par nuevo y lo persiste.

        La petición de refresco se autoriza con el access token *viejo*
        (posiblemente expirado); así se comporta la API observada.
        `completed` es cuántos refrescos ya tuvieron éxito en esta llamada; es
        lo que reporta `AuthenticationError` si este falla.
        """

        if self._hooks.token_refreshing:
            self._hooks.token_refreshing()

        refresh_token = self._store.get_refresh_token()
        response = self._client.post(
            self._token_path,
            json={"refresh_token": refresh_token},
            headers=self._auth_headers(),
        )
        failed_url = url or str(response.request.url)
        if not response.is_success:
            raise AuthenticationError(
                failed_url,
                completed,
                reason=f"token refresh returned HTTP {response.status_code}",
            )
        try:
            envelope = TokenEnvelope.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise AuthenticationError(
                failed_url,
                completed,
                reason="malformed token refresh response",
            ) from exc

        self._store.store_pair(envelope.data)

        if self._hooks.token_refreshed:
            self._hooks.token_refreshed()


class SetappClient:
    """Operaciones de dispositivos sobre un `AuthenticatedExecutor`."""

    def __init__(self, executor: AuthenticatedExecutor) -> None:
        self._executor = executor

    def list_devices(self) -> list[Device]:
        response = self._executor.execute(RequestDescriptor("GET", DEVICES_PATH))
        return DeviceListEnvelope.model_validate(response.json()).data

    def delete_device(self, device_id: int) -> None:
        self._executor.execute(RequestDescriptor("DELETE", f"{DEVICES_PATH}/{device_id}"))

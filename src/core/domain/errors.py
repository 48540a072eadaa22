"""Errores del dominio.

Todos son fatales para la ejecución: se propagan hasta la CLI, que los
muestra y termina con código distinto de cero.
"""

from __future__ import annotations


class SetappError(Exception):
    """Base de los errores de la herramienta."""


class MissingCredentialError(SetappError):
    """No hay credencial almacenada y no se pudo obtener de forma interactiva."""

    def __init__(self, credential: str) -> None:
        self.credential = credential
        super().__init__(f"cannot get {credential}.")


class UnexpectedDeviceCountError(SetappError):
    """La cuenta tiene más de un dispositivo activo."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"Unexpected device count, got {count} devices.")


class RequestError(SetappError):
    """Respuesta HTTP que no es 2xx ni 401."""

    def __init__(self, url: str, status_code: int | None = None) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"request error: {url}")


class AuthenticationError(SetappError):
    """Sigue sin autorización tras agotar los refrescos, o el refresco falló."""

    def __init__(self, url: str, attempts: int, reason: str | None = None) -> None:
        self.url = url
        self.attempts = attempts
        self.reason = reason
        message = f"authentication failed for {url} after {attempts} token refresh(es)"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Callable

import httpx
import pytest

from adapters.credential_store import KEY_REFRESH_TOKEN, KEY_TOKEN, CredentialStore, MemoryStore
from adapters.http_client import build_client
from core.config import AppSettings

BASE_URL = "https://api.test"

Handler = Callable[[httpx.Request], httpx.Response]


@dataclass
class ScriptedApi:
    """MockTransport handler that replays responses in order and records requests."""

    responses: list[httpx.Response]
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"unexpected request: {request.method} {request.url}")
        return self.responses.pop(0)

    def calls(self) -> list[tuple[str, str]]:
        return [(r.method, r.url.path) for r in self.requests]


@dataclass
class FakeSetappServer:
    """Stateful stand-in for the device/token endpoints."""

    devices: list[dict]
    valid_token: str = "access-1"
    issued: tuple[str, str] = ("access-2", "refresh-2")
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.method == "POST" and path == "/v1/token":
            token, refresh_token = self.issued
            self.valid_token = token
            return httpx.Response(200, json={"data": {"token": token, "refresh_token": refresh_token}})
        if request.headers.get("Authorization") != f"Bearer {self.valid_token}":
            return httpx.Response(401, json={"error": "unauthorized"})
        if request.method == "GET" and path == "/v1/devices":
            return httpx.Response(200, json={"data": self.devices})
        if request.method == "DELETE" and path.startswith("/v1/devices/"):
            device_id = int(path.rsplit("/", 1)[-1])
            self.devices = [d for d in self.devices if d["id"] != device_id]
            return httpx.Response(204)
        return httpx.Response(404)

    def calls(self) -> list[tuple[str, str]]:
        return [(r.method, r.url.path) for r in self.requests]


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(api_base_url=BASE_URL, _env_file=None)


@pytest.fixture
def memory_backend() -> MemoryStore:
    return MemoryStore({KEY_TOKEN: "access-1", KEY_REFRESH_TOKEN: "refresh-1"})


@pytest.fixture
def store(memory_backend: MemoryStore) -> CredentialStore:
    return CredentialStore(memory_backend)


@pytest.fixture
def make_client(settings: AppSettings):
    clients: list[httpx.Client] = []

    def factory(handler: Handler) -> httpx.Client:
        client = build_client(settings, transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()


def request_json(request: httpx.Request) -> dict:
    return json.loads(request.content.decode("utf-8"))

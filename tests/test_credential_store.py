from __future__ import annotations

import json
import os
import stat
import sys

import pytest

from adapters import credential_store
from adapters.credential_store import (
    KEY_REFRESH_TOKEN,
    KEY_TOKEN,
    CredentialStore,
    JsonFileStore,
    MemoryStore,
)
from core.domain.errors import MissingCredentialError
from core.domain.models import TokenPair
from core.interfaces.storage import KeyValueStore


@pytest.mark.parametrize("value", ["t", "eyJhbGciOiJIUzI1NiJ9.payload.sig", "ñ-token"])
def test_round_trip(tmp_path, value):
    for backend in (MemoryStore(), JsonFileStore(tmp_path / "creds.json")):
        store = CredentialStore(backend)
        store.set_access_token(value)
        store.set_refresh_token(value + "-r")
        assert store.get_access_token() == value
        assert store.get_refresh_token() == value + "-r"


def test_backends_satisfy_protocol(tmp_path):
    assert isinstance(MemoryStore(), KeyValueStore)
    assert isinstance(JsonFileStore(tmp_path / "x.json"), KeyValueStore)


def test_set_overwrites():
    store = CredentialStore(MemoryStore({KEY_TOKEN: "old"}))
    store.set_access_token("new")
    assert store.get_access_token() == "new"


def test_missing_without_prompt_fails():
    store = CredentialStore(MemoryStore())

    with pytest.raises(MissingCredentialError, match="cannot get token."):
        store.get_access_token()
    with pytest.raises(MissingCredentialError, match="cannot get refresh token."):
        store.get_refresh_token()


def test_prompt_answer_is_persisted():
    labels: list[str] = []
    backend = MemoryStore()

    def prompt(label: str) -> str:
        labels.append(label)
        return "  typed  "

    store = CredentialStore(backend, prompt=prompt)

    assert store.get_access_token() == "typed"
    assert store.get_access_token() == "typed"
    assert labels == ["Enter token"]
    assert backend.data == {KEY_TOKEN: "typed"}


@pytest.mark.parametrize("answer", [None, "", "   "])
def test_cancelled_or_empty_prompt_fails(answer):
    backend = MemoryStore()
    store = CredentialStore(backend, prompt=lambda label: answer)

    with pytest.raises(MissingCredentialError) as excinfo:
        store.get_refresh_token()

    assert excinfo.value.credential == "refresh token"
    assert backend.data == {}


def test_empty_stored_value_counts_as_missing():
    store = CredentialStore(MemoryStore({KEY_TOKEN: ""}), prompt=lambda label: "x")
    assert store.peek_access_token() is None
    assert store.get_access_token() == "x"


def test_store_pair():
    store = CredentialStore(MemoryStore())
    store.store_pair(TokenPair(token="A", refresh_token="B"))
    assert store.get_access_token() == "A"
    assert store.get_refresh_token() == "B"


def test_seed_only_fills_empty_slots():
    store = CredentialStore(MemoryStore({KEY_TOKEN: "refreshed-last-run"}))

    store.seed(access_token="configured", refresh_token="configured-refresh")

    assert store.get_access_token() == "refreshed-last-run"
    assert store.get_refresh_token() == "configured-refresh"


def test_seed_ignores_unset_values():
    backend = MemoryStore()
    CredentialStore(backend).seed(access_token=None, refresh_token="")
    assert backend.data == {}


def test_json_file_layout(tmp_path):
    path = tmp_path / "nested" / "dir" / "credentials.json"
    store = CredentialStore(JsonFileStore(path))

    store.set_refresh_token("r")
    store.set_access_token("a")

    assert json.loads(path.read_text(encoding="utf-8")) == {KEY_REFRESH_TOKEN: "r", KEY_TOKEN: "a"}
    assert path.read_text(encoding="utf-8").endswith("\n")


def test_json_file_persists_across_instances(tmp_path):
    path = tmp_path / "credentials.json"
    CredentialStore(JsonFileStore(path)).set_access_token("a")

    assert CredentialStore(JsonFileStore(path)).get_access_token() == "a"


def test_json_file_missing_reads_empty(tmp_path):
    backend = JsonFileStore(tmp_path / "absent.json")
    assert backend.get(KEY_TOKEN) is None


@pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
def test_json_file_corrupt(tmp_path, content):
    path = tmp_path / "credentials.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError, match="corrupt credential file"):
        JsonFileStore(path).get(KEY_TOKEN)


class CountingStore(MemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self.writes: list[dict[str, str]] = []

    def set(self, key: str, value: str) -> None:
        self.writes.append({key: value})
        super().set(key, value)

    def set_many(self, values: dict[str, str]) -> None:
        self.writes.append(dict(values))
        super().set_many(values)


def test_store_pair_is_a_single_write():
    backend = CountingStore()

    CredentialStore(backend).store_pair(TokenPair(token="A", refresh_token="B"))

    assert backend.writes == [{KEY_TOKEN: "A", KEY_REFRESH_TOKEN: "B"}]


def test_json_store_pair_lands_together(tmp_path):
    path = tmp_path / "credentials.json"
    store = CredentialStore(JsonFileStore(path))
    store.set_access_token("old")
    store.set_refresh_token("old-r")

    store.store_pair(TokenPair(token="A", refresh_token="B"))

    assert json.loads(path.read_text(encoding="utf-8")) == {KEY_TOKEN: "A", KEY_REFRESH_TOKEN: "B"}


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX file modes")
def test_json_file_is_owner_only(tmp_path):
    path = tmp_path / "credentials.json"
    previous = os.umask(0o022)
    try:
        CredentialStore(JsonFileStore(path)).set_refresh_token("secret")
    finally:
        os.umask(previous)

    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_failed_write_keeps_previous_file(tmp_path, monkeypatch):
    path = tmp_path / "credentials.json"
    store = CredentialStore(JsonFileStore(path))
    store.store_pair(TokenPair(token="A", refresh_token="B"))
    before = path.read_text(encoding="utf-8")

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(credential_store.os, "replace", broken_replace)

    with pytest.raises(OSError):
        store.store_pair(TokenPair(token="C", refresh_token="D"))

    assert path.read_text(encoding="utf-8") == before
    assert [p.name for p in tmp_path.iterdir()] == ["credentials.json"]

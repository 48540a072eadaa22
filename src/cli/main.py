"""CLI principal (Typer).

Por qué Typer + Rich:
- Typer da subcomandos/flags tipados con muy poco código.
- Rich centraliza la salida; el Core y los adapters no imprimen, reportan por
  hooks que se conectan aquí.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Sequence

import httpx
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from adapters.clipboard import copy_to_clipboard
from adapters.credential_store import CredentialStore, JsonFileStore, MemoryStore
from adapters.http_client import build_client
from adapters.setapp_api import AuthenticatedExecutor, ExecutorHooks, SetappClient
from cli.doctor import app as doctor_app
from cli.ui_components import build_devices_table, mask_secret, print_banner
from core.config import AppSettings
from core.domain.errors import SetappError
from core.domain.models import Device
from core.services import disconnect_pipeline
from core.services.disconnect_pipeline import DisconnectStatus, PipelineHooks

app = typer.Typer(
    no_args_is_help=True,
    help="Disconnect the active Setapp device so the account can be used elsewhere.",
)
tokens_app = typer.Typer(no_args_is_help=True, help="Manage the stored access/refresh token pair.")
app.add_typer(tokens_app, name="tokens")
app.add_typer(doctor_app, name="doctor")

_console = Console()


def _terminal_prompt(label: str) -> str | None:
    try:
        return typer.prompt(label, default="", show_default=False, hide_input=True)
    except typer.Abort:
        return None


def _build_store(settings: AppSettings, *, no_input: bool, ephemeral: bool) -> CredentialStore:
    backend = MemoryStore() if ephemeral else JsonFileStore(settings.resolved_credentials_path())
    store = CredentialStore(backend, prompt=None if no_input else _terminal_prompt)
    store.seed(access_token=settings.access_token, refresh_token=settings.refresh_token)
    return store


@contextmanager
def _open_api(settings: AppSettings, *, no_input: bool, ephemeral: bool) -> Iterator[SetappClient]:
    store = _build_store(settings, no_input=no_input, ephemeral=ephemeral)
    hooks = ExecutorHooks(
        token_refreshing=lambda: _console.print("[yellow]token expired, refreshing[/yellow]"),
        token_refreshed=lambda: _console.print("token refreshed, start resending request"),
    )
    with build_client(settings) as client:
        executor = AuthenticatedExecutor(
            client,
            store,
            max_refresh_attempts=settings.max_refresh_attempts,
            hooks=hooks,
        )
        yield SetappClient(executor)


def _fail(exc: Exception) -> None:
    _console.print(f"[red]error:[/red] {escape(str(exc))}")
    raise typer.Exit(code=1) from exc


def _on_fetched(devices: Sequence[Device]) -> None:
    names = ", ".join(device.name for device in devices)
    _console.print(f"fetched devices: {escape(names)}")


def _pipeline_hooks() -> PipelineHooks:
    return PipelineHooks(
        fetching=lambda: _console.print("start fetching devices."),
        fetched=_on_fetched,
        disconnecting=lambda d: _console.print(f"disconnecting device of id: {d.id}"),
        disconnected=lambda d: _console.print(f"[green]device disconnected:[/green] {escape(d.name)}"),
        warning=lambda msg: _console.print(f"[yellow]warning:[/yellow] {escape(msg)}"),
    )


_NO_INPUT = typer.Option(False, "--no-input", help="Never prompt for missing tokens (headless/CI).")
_EPHEMERAL = typer.Option(
    False,
    "--ephemeral",
    help="Keep tokens in memory only (seeded from SETAPP_ACCESS_TOKEN / SETAPP_REFRESH_TOKEN).",
)


@app.command()
def disconnect(
    dry_run: bool = typer.Option(False, "--dry-run", help="Fetch and check devices without deleting."),
    no_input: bool = _NO_INPUT,
    ephemeral: bool = _EPHEMERAL,
    no_banner: bool = typer.Option(False, "--no-banner", help="Do not print the banner."),
) -> None:
    """Disconnect the single active device, then copy the password (if configured)."""

    settings = AppSettings()
    if not no_banner:
        print_banner(_console)

    try:
        with _open_api(settings, no_input=no_input, ephemeral=ephemeral) as api:
            result = disconnect_pipeline.disconnect(
                api=api,
                hooks=_pipeline_hooks(),
                password=settings.password,
                copy_password=copy_to_clipboard,
                dry_run=dry_run,
            )
    except (SetappError, httpx.HTTPError, ValueError) as exc:
        _fail(exc)
        return

    if result.status is DisconnectStatus.NO_DEVICES:
        _console.print("there are no active devices, closing...")
        return
    if result.status is DisconnectStatus.DRY_RUN:
        _console.print("[dim]dry run: no device was deleted[/dim]")
    if result.password_copied:
        _console.print("password copied to clipboard")
    _console.print("done.")


@app.command()
def devices(
    no_input: bool = _NO_INPUT,
    ephemeral: bool = _EPHEMERAL,
) -> None:
    """List the devices registered to the account."""

    settings = AppSettings()
    try:
        with _open_api(settings, no_input=no_input, ephemeral=ephemeral) as api:
            found = api.list_devices()
    except (SetappError, httpx.HTTPError, ValueError) as exc:
        _fail(exc)
        return

    if not found:
        _console.print("there are no active devices.")
        return
    _console.print(build_devices_table(found))


@tokens_app.command("set")
def tokens_set(
    token: str | None = typer.Option(None, "--token", help="Access token."),
    refresh_token: str | None = typer.Option(None, "--refresh-token", help="Refresh token."),
) -> None:
    """Store a token pair (prompts with hidden input for missing values)."""

    settings = AppSettings()
    path = settings.resolved_credentials_path()
    store = CredentialStore(JsonFileStore(path))

    token = (token or typer.prompt("Access token", hide_input=True)).strip()
    refresh_token = (refresh_token or typer.prompt("Refresh token", hide_input=True)).strip()
    if not token or not refresh_token:
        raise typer.BadParameter("token and refresh token are required")

    try:
        store.set_access_token(token)
        store.set_refresh_token(refresh_token)
    except ValueError as exc:
        _fail(exc)
        return
    _console.print(f"[green]Saved tokens to:[/green] {path}")


@tokens_app.command("show")
def tokens_show() -> None:
    """Show which tokens are stored (masked)."""

    settings = AppSettings()
    path = settings.resolved_credentials_path()
    store = CredentialStore(JsonFileStore(path))

    try:
        access, refresh = store.peek_access_token(), store.peek_refresh_token()
    except ValueError as exc:
        _fail(exc)
        return

    table = Table(title=str(path))
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_row("Token", mask_secret(access))
    table.add_row("RefreshToken", mask_secret(refresh))
    _console.print(table)


def run() -> None:
    app()


if __name__ == "__main__":
    run()

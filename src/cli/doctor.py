"""Doctor command for environment diagnostics."""

from __future__ import annotations

import httpx
import typer
from rich.console import Console
from rich.table import Table

from adapters.clipboard import clipboard_available
from adapters.credential_store import CredentialStore, JsonFileStore
from adapters.http_client import build_client
from core.config import AppSettings, write_user_env_vars

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


def _check_api(settings: AppSettings) -> tuple[bool, str]:
    # Any HTTP answer (even 401/404) means the API host is reachable.
    try:
        with build_client(settings) as client:
            response = client.get("/v1/devices")
        return True, f"HTTP {response.status_code}"
    except httpx.HTTPError as exc:
        return False, str(exc) or exc.__class__.__name__


def _check_tokens(settings: AppSettings) -> list[tuple[str, str, str]]:
    path = settings.resolved_credentials_path()
    rows: list[tuple[str, str, str]] = []
    try:
        store = CredentialStore(JsonFileStore(path))
        access, refresh = store.peek_access_token(), store.peek_refresh_token()
    except ValueError as exc:
        return [("Credential file", "FAIL", str(exc))]

    rows.append(("Credential file", "OK" if path.exists() else "MISSING", str(path)))
    for label, value, env_value in (
        ("Token", access, settings.access_token),
        ("RefreshToken", refresh, settings.refresh_token),
    ):
        if value:
            rows.append((label, "OK", "stored"))
        elif env_value:
            rows.append((label, "OK", "from environment"))
        else:
            rows.append((label, "MISSING", "will be prompted on first run"))
    return rows


@app.command()
def run(
    offline: bool = typer.Option(False, "--offline", help="Skip the API connectivity check."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="setapp-disconnect doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    for row in _check_tokens(settings):
        table.add_row(*row)

    if settings.password:
        table.add_row("Password", "OK", "copied to clipboard after disconnecting")
    else:
        table.add_row("Password", "OPTIONAL", "SETAPP_PASSWORD / IR3_SETAPP_PSW not set")

    ok_clip = clipboard_available()
    table.add_row("Clipboard", "OK" if ok_clip else "FAIL", "pyperclip")

    if not offline:
        ok_http, detail_http = _check_api(settings)
        table.add_row("API connectivity", "OK" if ok_http else "FAIL", detail_http)

    _console.print(table)

    if not ok_clip and settings.password:
        _console.print(
            "\n[yellow]Note:[/yellow] No clipboard mechanism found (install xclip/xsel on Linux); "
            "the password will not be copied."
        )


@app.command(name="setup-password")
def setup_password() -> None:
    """Store the account password in the user config .env (hidden input)."""

    password = typer.prompt("Setapp password", hide_input=True, confirmation_prompt=True).strip()
    if not password:
        raise typer.BadParameter("password is required")

    env_path = write_user_env_vars({"SETAPP_PASSWORD": password})
    _console.print(f"[green]Saved password to:[/green] {env_path}")

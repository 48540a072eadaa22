"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from typing import Sequence

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import Device


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida.

    Por qué aquí:
    - Evita dependencias circulares (main <-> doctor).
    - Permite desactivar banner en modos no interactivos (`--no-banner`).
    """

    title = Text("setapp-disconnect", style="bold cyan")
    subtitle = Text("Free a Setapp activation slot", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_devices_table(devices: Sequence[Device]) -> Table:
    table = Table(title="Active devices")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    for device in devices:
        table.add_row(str(device.id), device.name)
    return table


def mask_secret(value: str | None) -> str:
    """Muestra solo los extremos de un token (para `tokens show`)."""

    if not value:
        return "-"
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}…{value[-4:]}"

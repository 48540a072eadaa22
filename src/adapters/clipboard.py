"""Portapapeles del sistema (best-effort)."""

from __future__ import annotations

import pyperclip


def copy_to_clipboard(text: str) -> bool:
    """Copia `text` al portapapeles.

    Devuelve False si no hay mecanismo de portapapeles disponible (p.ej. Linux
    sin xclip/xsel, o sesiones SSH); la copia nunca aborta la ejecución.
    """

    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException:
        return False
    return True


def clipboard_available() -> bool:
    try:
        pyperclip.paste()
    except pyperclip.PyperclipException:
        return False
    return True

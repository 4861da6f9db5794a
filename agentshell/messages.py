"""Severity-coloured output channel.

Every user-facing status line (success, warning, error, info) is
routed through :class:`Messenger` so that severities are visually
distinguishable.  Colours come from the active agent's colour roles.
Plain model output is echoed uncoloured except for the ``model``
role.
"""

from __future__ import annotations

from typing import Dict, Optional

import click

from .config import DEFAULT_COLORS


class Messenger:
    """Write categorised messages to the terminal via ``click``."""

    def __init__(self, colors: Optional[Dict[str, str]] = None) -> None:
        self.colors = dict(DEFAULT_COLORS)
        if colors:
            self.colors.update(colors)

    def _emit(self, role: str, message: str, bold: bool = False, err: bool = False) -> None:
        click.secho(message, fg=self.colors.get(role), bold=bold, err=err)

    def success(self, message: str) -> None:
        self._emit("success", f"✔ {message}")

    def warning(self, message: str) -> None:
        self._emit("warning", f"⚠ {message}")

    def error(self, message: str) -> None:
        self._emit("error", f"✖ {message}", bold=True)

    def info(self, message: str) -> None:
        self._emit("info", message)

    def banner(self, message: str) -> None:
        self._emit("banner", message, bold=True)

    def model(self, text: str) -> None:
        self._emit("model", text)

    def plain(self, text: str = "") -> None:
        click.echo(text)

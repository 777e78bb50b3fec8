"""Console styling for the Datafinder CLI."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from rich.theme import Theme

DATAFINDER_THEME = Theme(
    {
        "datafinder.success": "bold #14B8A6",
        "datafinder.warning": "bold #FBBF24",
        "datafinder.error": "bold #FB7185",
        "datafinder.info": "#38BDF8",
        "datafinder.dim": "dim #64748B",
        "datafinder.match.border": "#14B8A6",
    }
)


def themed_console(**kwargs: Any) -> Console:
    """Return a Console configured with the Datafinder theme."""
    return Console(theme=DATAFINDER_THEME, **kwargs)


def match_panel(title: str, results: object) -> Panel:
    """Render matched records as pretty-printed JSON inside a panel."""
    body = Text(json.dumps(results, indent=2, sort_keys=True, default=str))
    return Panel(body, title=title, border_style="datafinder.match.border", expand=False)


def mask_secret(value: str | None) -> str:
    if not value:
        return "(not set)"
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}…{value[-4:]}"


__all__ = ["DATAFINDER_THEME", "themed_console", "match_panel", "mask_secret"]

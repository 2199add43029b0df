"""Shared Rich/text formatting helpers for CLI output."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from rich.markup import escape

from src.display_sync.modes import DisplayMode


def color_text(text: str, style: Optional[str]) -> str:
    """Wrap *text* with Rich ``style`` tags when provided."""

    if style:
        return f"[{style}]{text}[/]"
    return text


def format_kv(
    label: str,
    value: object,
    *,
    label_style: Optional[str] = "dim",
    value_style: Optional[str] = "bright_white",
    sep: str = "=",
) -> str:
    """Format a label/value pair with optional Rich styling."""

    label_text = escape(str(label))
    value_text = escape(str(value))
    return f"{color_text(label_text, label_style)}{sep}{color_text(value_text, value_style)}"


def format_rate(centihertz: int) -> str:
    """Render a centihertz value as Hz, e.g. ``2397`` -> ``23.97``."""

    return f"{centihertz / 100:.2f}"


def format_family(family: Sequence[int]) -> str:
    if not family:
        return color_text("(no related rates)", "yellow")
    return " → ".join(format_rate(rate) for rate in family)


def mode_line(mode: DisplayMode, *, current: Optional[DisplayMode] = None) -> str:
    """One-line summary of *mode*, highlighted when it is the active mode."""

    text = (
        f"{mode.physical_width}×{mode.physical_height} "
        f"@ {mode.refresh_rate:.3f} Hz  {format_kv('id', mode.mode_id)}"
    )
    if current is not None and mode == current:
        return f"{color_text('*', 'green')} {text} {color_text('(active)', 'green')}"
    return f"  {text}"


def mode_lines(modes: Iterable[DisplayMode], *, current: Optional[DisplayMode] = None) -> list[str]:
    return [mode_line(mode, current=current) for mode in modes]


__all__ = [
    "color_text",
    "format_family",
    "format_kv",
    "format_rate",
    "mode_line",
    "mode_lines",
]

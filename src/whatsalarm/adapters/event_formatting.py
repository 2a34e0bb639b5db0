"""Shared detection formatting helpers.

Keeping formatting here keeps the log banner and the console output
consistent no matter which adapter reports a detection.
"""

from __future__ import annotations

from datetime import datetime

from rich.markup import escape

from whatsalarm.core.models import DetectionEvent

DIVIDER = "──────────────"
SNIPPET_CHARS = 200


def snippet(text: str, limit: int = SNIPPET_CHARS) -> str:
    """Collapse whitespace and clip text for one-screen display."""

    collapsed = " ".join(text.split())
    if len(collapsed) <= limit:
        return collapsed
    return collapsed[: max(limit - 1, 0)].rstrip() + "…"


def format_event_time(event: DetectionEvent) -> str:
    try:
        moment = datetime.fromisoformat(event.timestamp_iso)
    except ValueError:
        return event.timestamp_iso
    return moment.strftime("%H:%M:%S %d-%m-%Y")


def _format_plain(event: DetectionEvent, limit: int) -> str:
    lines = [
        DIVIDER,
        f"[{format_event_time(event)}] KEYWORD DETECTED",
        f"Keyword: {event.keyword}",
        f"Chat:    {event.chat_name}",
        f"Message: {snippet(event.text, limit)}",
        DIVIDER,
    ]
    return "\n".join(lines)


def _format_rich(event: DetectionEvent, limit: int) -> str:
    """Create the console body rendered through rich markup."""

    lines = [
        f"[dim]{DIVIDER}[/dim]",
        f"[bold red]\\[{escape(format_event_time(event))}] KEYWORD DETECTED[/bold red]",
        f"[bold]Keyword:[/bold] {escape(event.keyword)}",
        f"[bold]Chat:[/bold]    {escape(event.chat_name)}",
        f"[bold]Message:[/bold] {escape(snippet(event.text, limit))}",
        f"[dim]{DIVIDER}[/dim]",
    ]
    return "\n".join(lines)


def format_detection(event: DetectionEvent, mode: str = "plain", limit: int = SNIPPET_CHARS) -> str:
    """Return the detection formatted for the requested mode."""

    if mode == "plain":
        return _format_plain(event, limit)
    if mode == "rich":
        return _format_rich(event, limit)
    raise ValueError(f"Unsupported detection format: {mode}")

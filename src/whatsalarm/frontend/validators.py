"""Validation helpers for config editing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from whatsalarm.core.chat_filter import UNKNOWN_CHAT
from whatsalarm.core.config import CHAT_FILTER_MODES
from whatsalarm.core.normalizer import normalize


@dataclass
class FieldCheck:
    value: str | None
    error: str | None = None


def validate_keyword(raw_value: str, existing: Iterable[str] = ()) -> FieldCheck:
    """Keywords are stored as typed but compared in normalized form."""

    value = raw_value.strip()
    if not value:
        return FieldCheck(None, "keyword is required")
    normalized = normalize(value).lower()
    if not normalized.strip():
        return FieldCheck(None, "keyword has no visible characters")
    for other in existing:
        if normalize(other).lower() == normalized:
            return FieldCheck(None, f"duplicate of {other!r}")
    return FieldCheck(value)


def validate_chat_name(raw_value: str, existing: Iterable[str] = ()) -> FieldCheck:
    """Chat names must match the WhatsApp header exactly, so only trim."""

    value = raw_value.strip()
    if not value:
        return FieldCheck(None, "chat name is required")
    if value == UNKNOWN_CHAT:
        return FieldCheck(None, f"{UNKNOWN_CHAT!r} is reserved for unresolved chats")
    if value in {name.strip() for name in existing}:
        return FieldCheck(None, "chat is already whitelisted")
    return FieldCheck(value)


def parse_non_negative_int(raw_value: str) -> tuple[int | None, str | None]:
    stripped = raw_value.strip()
    if not stripped:
        return None, None
    if not stripped.isdigit():
        return None, "Enter a non-negative integer"
    return int(stripped), None


def parse_percent(raw_value: str) -> tuple[int | None, str | None]:
    value, error = parse_non_negative_int(raw_value)
    if error or value is None:
        return value, error
    if value > 100:
        return None, "Enter a value between 0 and 100"
    return value, None


def detection_problems(data: dict | None) -> list[str]:
    """Problems that would stop the watcher from starting with this config."""

    if data is None:
        return ["nothing loaded"]
    detection = data.get("detection", {})
    if not isinstance(detection, dict):
        return ["detection must be an object"]
    problems = []
    keywords = detection.get("keywords", [])
    if not isinstance(keywords, list) or not all(isinstance(item, str) for item in keywords):
        problems.append("keywords must be a list of strings")
    chat_filter = detection.get("chat_filter", {})
    if isinstance(chat_filter, dict):
        mode = chat_filter.get("mode", "whitelist")
        if mode not in CHAT_FILTER_MODES:
            problems.append(f"unknown chat filter mode {mode!r}")
    else:
        problems.append("chat_filter must be an object")
    return problems

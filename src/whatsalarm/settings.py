"""Static configuration for whatsalarm.

All user-editable settings (keywords, chat filter, alarm, browser) live in a
single JSON file for quick edits without touching Python. A few values can be
overridden from the environment or a .env file.
"""

import json
import os
from typing import Any, Optional

from dotenv import load_dotenv

from whatsalarm.core.config import CHAT_FILTER_MODES, ChatFilterConfig, DedupConfig, DetectionConfig

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

# WHATSALARM_CONFIG points at another config.json, e.g. when installed
# outside a checkout.
CONFIG_PATH = os.getenv("WHATSALARM_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def resolve_path(path: str) -> str:
    """Resolve config paths relative to the project root."""

    if os.path.isabs(path):
        return path
    return os.path.normpath(os.path.join(PROJECT_ROOT, path))


def build_detection_config(raw: Optional[dict[str, Any]] = None) -> DetectionConfig:
    """Turn the "detection" section into the frozen config the core reads."""

    section = DETECTION if raw is None else raw
    keywords = section.get("keywords", [])
    if not isinstance(keywords, list) or not all(isinstance(item, str) for item in keywords):
        raise ValueError("detection.keywords must be a list of strings")

    dedup = section.get("dedup", {})
    chat_filter = section.get("chat_filter", {})
    mode = str(chat_filter.get("mode", "whitelist"))
    if mode not in CHAT_FILTER_MODES:
        raise ValueError(f"detection.chat_filter.mode must be one of {', '.join(CHAT_FILTER_MODES)}")
    observer = section.get("observer", {})

    return DetectionConfig(
        keywords=tuple(keywords),
        case_sensitive=bool(section.get("case_sensitive", False)),
        whole_word_match=bool(section.get("whole_word_match", False)),
        dedup=DedupConfig(
            enabled=bool(dedup.get("enabled", True)),
            ttl_ms=int(dedup.get("ttl_ms", 60 * 60 * 1000)),
            soft_cap=int(dedup.get("soft_cap", 1000)),
        ),
        chat_filter=ChatFilterConfig(
            enabled=bool(chat_filter.get("enabled", False)),
            mode=mode,
            whitelisted_chats=tuple(str(name) for name in chat_filter.get("whitelisted_chats", [])),
        ),
        poll_interval_ms=int(observer.get("poll_interval_ms", 500)),
        grace_period_ms=int(observer.get("grace_period_ms", 2000)),
        min_message_length=int(observer.get("min_message_length", 2)),
        day_first=bool(observer.get("day_first", True)),
    )


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Browser session. HEADLESS / BROWSER_PROFILE_DIR in .env win over the file.
_browser = _CONFIG.get("browser", {})
BROWSER_HEADLESS = _env_flag("HEADLESS", bool(_browser.get("headless", False)))
BROWSER_PROFILE_DIR = resolve_path(os.getenv("BROWSER_PROFILE_DIR") or _browser.get("user_data_dir", "./user_data"))
BROWSER_TIMEOUT_MS = int(_browser.get("timeout_ms", 120000))
WHATSAPP_URL = _browser.get("whatsapp_url", "https://web.whatsapp.com")

# Detection settings are kept raw here and frozen by build_detection_config().
DETECTION = _CONFIG.get("detection", {})

# Alarm playback.
_alarm = _CONFIG.get("alarm", {})
ALARM_SOUND_FILE = resolve_path(_alarm.get("sound_file", "./assets/alarm.mp3"))
ALARM_LOOP = bool(_alarm.get("loop", True))
ALARM_FORCE_VOLUME = bool(_alarm.get("force_volume", True))
ALARM_TARGET_VOLUME = int(_alarm.get("target_volume", 100))
ALARM_FALLBACK_ON_VOLUME_FAILURE = bool(_alarm.get("fallback_on_volume_failure", True))
ALARM_AUTO_STOP_MS = int(_alarm.get("auto_stop_ms", 0))

# Logging configuration (optional). LOG_LEVEL in .env overrides the level.
LOGGING = dict(_CONFIG.get("logging", {}))
if os.getenv("LOG_LEVEL"):
    LOGGING["level"] = os.getenv("LOG_LEVEL")

"""Shared constants for the Textual UI."""

from __future__ import annotations

import os
from pathlib import Path

from whatsalarm.core.config import CHAT_FILTER_MODES as _CORE_MODES

WHATSAPP_GREEN = "#25D366"
PROJECT_ROOT = Path(__file__).resolve().parents[3]
CONFIG_PATH = Path(os.getenv("WHATSALARM_CONFIG") or PROJECT_ROOT / "config.json")

CHAT_FILTER_MODES = list(_CORE_MODES)
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

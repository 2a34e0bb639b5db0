"""Arabic-aware text normalization (core domain).

WhatsApp Web renders the same text with different invisible characters
depending on client and direction, so both message text and keywords go
through the same canonical form before fingerprinting and matching.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import Optional

LOGGER = logging.getLogger(__name__)

TATWEEL = "\u0640"

# Zero-width space/non-joiner/joiner, LRM, RLM and the soft hyphen.
_INVISIBLE_RE = re.compile("[\u200b-\u200f\u00ad]")


def normalize(text: Optional[str]) -> str:
    """Return the canonical form of text.

    - Unicode NFC composition
    - tatweel (U+0640) removed
    - zero-width / directional marks (U+200B-U+200F) and soft hyphen removed

    Diacritics are intentionally kept. Never raises: on failure the input is
    returned unchanged.
    """

    if not text:
        return ""
    try:
        normalized = unicodedata.normalize("NFC", text)
        normalized = normalized.replace(TATWEEL, "")
        return _INVISIBLE_RE.sub("", normalized)
    except Exception:
        LOGGER.warning("Arabic normalization failed, using raw text", exc_info=True)
        return text

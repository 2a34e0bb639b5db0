"""Keyword compilation and matching logic (core domain)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import regex

from whatsalarm.core.normalizer import normalize

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchOptions:
    case_sensitive: bool = False
    whole_word: bool = False


@dataclass(frozen=True)
class CompiledKeyword:
    """Keyword prepared for matching.

    original is what the user configured and what gets reported back; needle
    is the normalized (and possibly lower-cased) form used for comparison.
    """

    original: str
    needle: str
    pattern: Optional[regex.Pattern]


def _prepare(value: str, case_sensitive: bool) -> str:
    normalized = normalize(value)
    return normalized if case_sensitive else normalized.lower()


def _word_pattern(needle: str) -> regex.Pattern:
    # Arabic has no reliable \b semantics, so boundaries are whitespace,
    # Unicode punctuation, or the ends of the string.
    return regex.compile(rf"(?:^|\s|\p{{P}})({regex.escape(needle)})(?:$|\s|\p{{P}})")


def compile_keywords(keywords: Iterable[str], options: MatchOptions) -> List[CompiledKeyword]:
    """Normalize keywords once so per-message matching stays cheap.

    Empty keywords are dropped. A keyword whose pattern cannot be built is kept
    without a pattern and simply never matches in whole-word mode.
    """

    compiled: List[CompiledKeyword] = []
    for keyword in keywords:
        if not isinstance(keyword, str):
            LOGGER.debug("Ignoring non-string keyword %r", keyword)
            continue
        needle = _prepare(keyword, options.case_sensitive)
        if not needle.strip():
            continue
        pattern = None
        if options.whole_word:
            try:
                pattern = _word_pattern(needle)
            except regex.error:
                LOGGER.debug("Could not build word pattern for %r", keyword, exc_info=True)
        compiled.append(CompiledKeyword(original=keyword, needle=needle, pattern=pattern))
    return compiled


class KeywordMatcher:
    """First-match keyword matcher over an ordered keyword list."""

    def __init__(self, keywords: Sequence[str], options: MatchOptions) -> None:
        self._options = options
        self._keywords = compile_keywords(keywords, options)

    @property
    def keywords(self) -> List[str]:
        return [item.original for item in self._keywords]

    def find(self, text: Optional[str]) -> Optional[str]:
        """Return the first configured keyword found in text, else None."""

        if not text or not self._keywords:
            return None
        haystack = _prepare(text, self._options.case_sensitive)
        for item in self._keywords:
            try:
                if self._options.whole_word:
                    if item.pattern is not None and item.pattern.search(haystack):
                        return item.original
                elif item.needle in haystack:
                    return item.original
            except Exception:
                LOGGER.debug("Keyword %r failed to match, skipping", item.original, exc_info=True)
        return None


def find_keyword(
    text: Optional[str],
    keywords: Sequence[str],
    options: MatchOptions = MatchOptions(),
) -> Optional[str]:
    """One-shot form of KeywordMatcher.find."""

    return KeywordMatcher(keywords, options).find(text)

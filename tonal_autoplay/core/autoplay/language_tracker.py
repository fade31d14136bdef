#!/usr/bin/env python3
"""
Consecutive-play counters per language
"""

from typing import Dict, Optional

from loguru import logger


class LanguageDiversityTracker:
    """Tracks the current single-language streak to bias fallback choice."""

    def __init__(self, thresholds: Optional[Dict[str, int]] = None):
        self.thresholds = {k.lower(): v for k, v in (thresholds or {}).items()}
        self.counters: Dict[str, int] = {}

    def record(self, language: Optional[str]) -> None:
        """Extend the streak for language and reset every other counter."""
        lang = (language or "").lower()
        for key in self.counters:
            if key != lang:
                self.counters[key] = 0
        if lang:
            self.counters[lang] = self.counters.get(lang, 0) + 1

    def count(self, language: Optional[str]) -> int:
        return self.counters.get((language or "").lower(), 0)

    def should_diversify(self, language: Optional[str]) -> bool:
        """True once a tracked language's streak reaches its threshold."""
        lang = (language or "").lower()
        threshold = self.thresholds.get(lang)
        if threshold is None:
            return False
        overplayed = self.count(lang) >= threshold
        if overplayed:
            logger.info(
                f"🌏 {lang} played {self.count(lang)} times in a row, preferring diversity"
            )
        return overplayed

    def reset(self) -> None:
        self.counters.clear()

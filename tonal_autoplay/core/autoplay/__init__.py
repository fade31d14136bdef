"""
Autoplay continuation engine
"""

from .fallback_strategy import FallbackSearchStrategy
from .language_tracker import LanguageDiversityTracker
from .orchestrator import RecommendationOrchestrator
from .play_history import PlayHistory
from .session import AutoplaySession
from .suggestion_queue import SuggestionQueue

__all__ = [
    "AutoplaySession",
    "FallbackSearchStrategy",
    "LanguageDiversityTracker",
    "PlayHistory",
    "RecommendationOrchestrator",
    "SuggestionQueue",
]

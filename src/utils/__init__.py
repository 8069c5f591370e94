"""
Utilitaires et constantes pour CineMeta.

Ce module contient les constantes partagees.
"""

from src.utils.constants import (
    DEFAULT_AUTO_MATCH_THRESHOLD,
    DEFAULT_RATING_SOURCES,
    RATING_SOURCES,
)

__all__ = [
    "DEFAULT_AUTO_MATCH_THRESHOLD",
    "DEFAULT_RATING_SOURCES",
    "RATING_SOURCES",
]

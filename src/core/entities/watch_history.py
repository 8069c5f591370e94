"""
Watch history entities returned by sync providers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from src.core.value_objects.external_ids import ExternalIds


@dataclass
class WatchedMovie:
    ids: ExternalIds
    title: str
    year: Optional[int] = None
    plays: int = 1
    last_watched_at: Optional[datetime] = None


@dataclass
class WatchedEpisode:
    season: int
    episode: int
    plays: int = 1
    last_watched_at: Optional[datetime] = None


@dataclass
class WatchedShow:
    """Show with the episodes watched so far."""

    ids: ExternalIds
    title: str
    year: Optional[int] = None
    plays: int = 0
    last_watched_at: Optional[datetime] = None
    episodes: list[WatchedEpisode] = field(default_factory=list)


@dataclass
class WatchHistory:
    movies: list[WatchedMovie] = field(default_factory=list)
    shows: list[WatchedShow] = field(default_factory=list)

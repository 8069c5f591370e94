"""
Aggregate ratings entities.

Scores gathered from a ratings provider, one optional entry per source.
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Optional

from src.utils.constants import RATING_SOURCES


@dataclass(frozen=True)
class RatingScore:
    """
    Score from one rating source.

    Attributes:
        value: Score as published by the source (0-10 or 0-100 depending on it)
        votes: Number of votes, when known
        max_value: Upper bound of the scale
    """

    value: float
    votes: Optional[int] = None
    max_value: float = 10.0

    @property
    def normalized(self) -> float:
        """Score on a 0-1 scale."""
        if not self.max_value:
            return 0.0
        return self.value / self.max_value


@dataclass(frozen=True)
class AggregateRatings:
    """
    Ratings from the supported sources.

    Attributes:
        imdb: IMDb user rating (0-10)
        tmdb: TMDB user rating (0-10)
        rt_critics: Rotten Tomatoes Tomatometer (0-100)
        rt_audience: Rotten Tomatoes audience score (0-100)
        metacritic: Metascore (0-100)
        letterboxd: Letterboxd rating (0-5)
        trakt: Trakt rating (0-100)
    """

    source: str = ""
    imdb: Optional[RatingScore] = None
    tmdb: Optional[RatingScore] = None
    rt_critics: Optional[RatingScore] = None
    rt_audience: Optional[RatingScore] = None
    metacritic: Optional[RatingScore] = None
    letterboxd: Optional[RatingScore] = None
    trakt: Optional[RatingScore] = None

    def is_empty(self) -> bool:
        return not self.as_dict()

    def as_dict(self) -> dict[str, RatingScore]:
        """Present scores keyed by rating source."""
        return {
            name: getattr(self, name)
            for name in RATING_SOURCES
            if getattr(self, name) is not None
        }

    def filter(self, allowed_sources: Iterable[str]) -> "AggregateRatings":
        """Copy keeping only the allowed rating sources."""
        allowed = set(allowed_sources)
        return replace(
            self, **{name: None for name in RATING_SOURCES if name not in allowed}
        )

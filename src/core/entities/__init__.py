"""
Business entities representing core domain concepts.

Exports:
- SearchResult / ScoredSearchResult: provider search candidates
- MovieDetails / ShowDetails / SeasonDetails / EpisodeDetails: detail records
- Artwork / ArtworkImage: artwork collections
- AggregateRatings / RatingScore: ratings per source
- WatchHistory and its items: sync provider history
- ProviderSnapshot: cached provider record for a library item
"""

from src.core.entities.artwork import Artwork, ArtworkImage
from src.core.entities.media import (
    CastMember,
    ContentRating,
    CrewMember,
    EpisodeDetails,
    Genre,
    MovieDetails,
    Network,
    ProductionCompany,
    ScoredSearchResult,
    SearchResult,
    SeasonDetails,
    SeasonInfo,
    ShowDetails,
    Trailer,
)
from src.core.entities.provider_metadata import ProviderSnapshot
from src.core.entities.ratings import AggregateRatings, RatingScore
from src.core.entities.watch_history import (
    WatchedEpisode,
    WatchedMovie,
    WatchedShow,
    WatchHistory,
)

__all__ = [
    "Artwork",
    "ArtworkImage",
    "CastMember",
    "ContentRating",
    "CrewMember",
    "EpisodeDetails",
    "Genre",
    "MovieDetails",
    "Network",
    "ProductionCompany",
    "ScoredSearchResult",
    "SearchResult",
    "SeasonDetails",
    "SeasonInfo",
    "ShowDetails",
    "Trailer",
    "ProviderSnapshot",
    "AggregateRatings",
    "RatingScore",
    "WatchedEpisode",
    "WatchedMovie",
    "WatchedShow",
    "WatchHistory",
]

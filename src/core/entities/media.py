"""
Media metadata entities.

Provider-independent records for movies, TV shows, seasons and episodes,
plus the search results returned by metadata providers before scoring.
Every detail record carries the `source` integration id and the
`external_ids` the provider reported.
"""

from dataclasses import dataclass, field
from typing import Optional

from src.core.value_objects.external_ids import ExternalIds
from src.core.value_objects.media_type import MediaType


@dataclass(frozen=True)
class SearchResult:
    """
    Candidate returned by a provider search.

    Attributes:
        source: Integration id that produced the result ("tmdb", "tvdb", ...)
        id: Integration-local id
        title: Localized title
        media_type: Movie or TV show
        original_title: Original language title (used for bilingual matching)
        year: Release / first air year
        release_date: ISO release / first air date
        overview: Plot summary
        poster_path: Poster path or URL
        backdrop_path: Backdrop path or URL
        popularity: Provider popularity figure, used as a ranking tie-break
        vote_average: Average user rating (0-10)
    """

    source: str
    id: str
    title: str
    media_type: MediaType = MediaType.MOVIE
    original_title: Optional[str] = None
    year: Optional[int] = None
    release_date: Optional[str] = None
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    popularity: Optional[float] = None
    vote_average: Optional[float] = None


@dataclass(frozen=True)
class ScoredSearchResult:
    """
    Search result paired with its confidence score.

    Attributes:
        result: The underlying search result
        confidence: Score in [0, 1]
    """

    result: SearchResult
    confidence: float

    @property
    def source(self) -> str:
        return self.result.source

    @property
    def id(self) -> str:
        return self.result.id

    @property
    def title(self) -> str:
        return self.result.title


@dataclass
class Genre:
    name: str
    id: Optional[str] = None


@dataclass
class CastMember:
    """Actor credit, `order` being the billing position."""

    name: str
    character: Optional[str] = None
    order: Optional[int] = None
    profile_path: Optional[str] = None
    id: Optional[str] = None


@dataclass
class CrewMember:
    name: str
    job: str
    department: Optional[str] = None
    profile_path: Optional[str] = None
    id: Optional[str] = None


@dataclass
class ContentRating:
    """Age certification for a country (ISO 3166-1 code)."""

    country: str
    rating: str
    descriptors: tuple[str, ...] = ()


@dataclass
class Trailer:
    name: str
    key: str
    site: str = "YouTube"
    type: str = "Trailer"
    official: bool = False

    @property
    def url(self) -> Optional[str]:
        """Watch URL for YouTube trailers."""
        if self.site == "YouTube":
            return f"https://www.youtube.com/watch?v={self.key}"
        return None


@dataclass
class Network:
    name: str
    id: Optional[str] = None
    logo_path: Optional[str] = None
    country: Optional[str] = None


@dataclass
class ProductionCompany:
    name: str
    id: Optional[str] = None
    logo_path: Optional[str] = None
    country: Optional[str] = None


@dataclass
class MovieDetails:
    """
    Full movie record from a metadata provider.

    Attributes:
        source: Integration id
        id: Integration-local id
        title: Localized title
        original_title: Original language title
        release_date: ISO release date
        year: Release year
        runtime: Runtime in minutes
        genres: Genre list
        cast: Main cast, billing order
        crew: Key crew members (directors, writers, producers...)
        content_ratings: Age certifications per country
        trailers: Trailer videos
        external_ids: Ids on other providers
    """

    source: str
    id: str
    title: str
    original_title: Optional[str] = None
    overview: Optional[str] = None
    tagline: Optional[str] = None
    release_date: Optional[str] = None
    year: Optional[int] = None
    runtime: Optional[int] = None
    status: Optional[str] = None
    original_language: Optional[str] = None
    vote_average: Optional[float] = None
    vote_count: Optional[int] = None
    popularity: Optional[float] = None
    budget: Optional[int] = None
    revenue: Optional[int] = None
    homepage: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    logo_path: Optional[str] = None
    genres: list[Genre] = field(default_factory=list)
    cast: list[CastMember] = field(default_factory=list)
    crew: list[CrewMember] = field(default_factory=list)
    content_ratings: list[ContentRating] = field(default_factory=list)
    trailers: list[Trailer] = field(default_factory=list)
    production_companies: list[ProductionCompany] = field(default_factory=list)
    external_ids: ExternalIds = field(default_factory=ExternalIds)

    @property
    def media_type(self) -> MediaType:
        return MediaType.MOVIE


@dataclass
class SeasonInfo:
    """Season summary as listed in a show record."""

    season_number: int
    name: Optional[str] = None
    overview: Optional[str] = None
    air_date: Optional[str] = None
    episode_count: Optional[int] = None
    poster_path: Optional[str] = None
    id: Optional[str] = None


@dataclass
class ShowDetails:
    """
    Full TV show record from a metadata provider.

    Attributes:
        source: Integration id
        id: Integration-local id
        title: Localized title
        first_air_date: ISO date of the first episode
        year: First air year
        episode_run_time: Typical episode runtime in minutes
        seasons: Season summaries (season 0 holds specials)
        networks: Broadcasting networks
        external_ids: Ids on other providers
    """

    source: str
    id: str
    title: str
    original_title: Optional[str] = None
    overview: Optional[str] = None
    tagline: Optional[str] = None
    first_air_date: Optional[str] = None
    last_air_date: Optional[str] = None
    year: Optional[int] = None
    status: Optional[str] = None
    in_production: Optional[bool] = None
    original_language: Optional[str] = None
    number_of_seasons: Optional[int] = None
    number_of_episodes: Optional[int] = None
    episode_run_time: Optional[int] = None
    vote_average: Optional[float] = None
    vote_count: Optional[int] = None
    popularity: Optional[float] = None
    homepage: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    logo_path: Optional[str] = None
    genres: list[Genre] = field(default_factory=list)
    cast: list[CastMember] = field(default_factory=list)
    crew: list[CrewMember] = field(default_factory=list)
    content_ratings: list[ContentRating] = field(default_factory=list)
    trailers: list[Trailer] = field(default_factory=list)
    networks: list[Network] = field(default_factory=list)
    production_companies: list[ProductionCompany] = field(default_factory=list)
    seasons: list[SeasonInfo] = field(default_factory=list)
    external_ids: ExternalIds = field(default_factory=ExternalIds)

    @property
    def media_type(self) -> MediaType:
        return MediaType.TVSHOW


@dataclass
class EpisodeDetails:
    """
    Single episode of a TV show.

    Attributes:
        source: Integration id
        id: Integration-local episode id
        show_id: Integration-local show id
        season_number: Season number (0 for specials)
        episode_number: Episode number within the season
        title: Episode title
        runtime: Runtime in minutes
        still_path: Still image path or URL
    """

    source: str
    id: str
    show_id: str
    season_number: int
    episode_number: int
    title: str = ""
    overview: Optional[str] = None
    air_date: Optional[str] = None
    runtime: Optional[int] = None
    still_path: Optional[str] = None
    vote_average: Optional[float] = None
    vote_count: Optional[int] = None
    guest_stars: list[CastMember] = field(default_factory=list)
    crew: list[CrewMember] = field(default_factory=list)
    external_ids: ExternalIds = field(default_factory=ExternalIds)


@dataclass
class SeasonDetails:
    """Season with its episode list."""

    source: str
    show_id: str
    season_number: int
    id: Optional[str] = None
    name: Optional[str] = None
    overview: Optional[str] = None
    air_date: Optional[str] = None
    poster_path: Optional[str] = None
    episodes: list[EpisodeDetails] = field(default_factory=list)
    external_ids: ExternalIds = field(default_factory=ExternalIds)

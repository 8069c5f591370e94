"""
Client TMDB pour la recherche et recuperation de metadonnees films et series.

Implemente la capacite Metadata pour TMDB (The Movie Database).
Utilise le cache persistant et le mecanisme de retry commun.

Usage:
    cache = APICache()
    client = TMDBClient(cache=cache)
    await client.initialize(IntegrationConfig(id="tmdb", api_key="your_key"))
    results = await client.search_movies("Avatar", year=2009)
    details = await client.get_movie_details(results[0].id)
    await client.close()
"""

from typing import Any, Optional

from src.adapters.api.base import BaseIntegrationClient
from src.core.entities.media import (
    CastMember,
    ContentRating,
    CrewMember,
    EpisodeDetails,
    Genre,
    MovieDetails,
    Network,
    ProductionCompany,
    SearchResult,
    SeasonDetails,
    SeasonInfo,
    ShowDetails,
    Trailer,
)
from src.core.exceptions import MediaNotFoundError
from src.core.value_objects.external_ids import ExternalIds
from src.core.value_objects.media_type import MediaType
from src.services.matcher import extract_year

# Postes retenus dans l'equipe technique
KEY_CREW_JOBS = frozenset({
    "Director",
    "Writer",
    "Screenplay",
    "Story",
    "Creator",
    "Executive Producer",
    "Producer",
    "Director of Photography",
    "Original Music Composer",
})

TRAILER_TYPES = frozenset({"Trailer", "Teaser", "Featurette"})

MAX_CAST = 20
MAX_CREW = 15
MAX_TRAILERS = 10


def _str_id(value: Any) -> Optional[str]:
    return str(value) if value not in (None, "") else None


class TMDBClient(BaseIntegrationClient):
    """
    Client API TMDB pour les metadonnees de films et series.

    Fournit:
    - Recherche de films et series par titre (avec annee optionnelle)
    - Details complets (credits, certifications, videos, ids externes, images)
    - Details de saison et d'episode
    - Cache persistant (24h recherches, 7j details)
    - Retry automatique sur erreurs temporaires et rate limiting (429)

    Attributes:
        BASE_URL: URL de base de l'API TMDB v3
        IMAGE_BASE_URL: URL de base pour les images

    Example:
        client = TMDBClient(cache=APICache())
        await client.initialize(IntegrationConfig(id="tmdb", api_key="xxx"))

        results = await client.search_movies("Inception", year=2010)
        if results:
            details = await client.get_movie_details(results[0].id)
            print(f"{details.title} ({details.year})")

        await client.close()
    """

    BASE_URL = "https://api.themoviedb.org/3"
    IMAGE_BASE_URL = "https://image.tmdb.org/t/p"

    source = "tmdb"
    name = "The Movie Database"
    description = "Primary metadata source for movies and TV shows"
    api_key_url = "https://www.themoviedb.org/settings/api"
    requires_api_key = True
    uses_oauth = False
    provides_metadata = True
    supports_movies = True
    supports_shows = True
    supports_anime = True
    rating_sources = ("tmdb",)

    @classmethod
    def image_url(cls, path: Optional[str], size: str = "original") -> Optional[str]:
        """Construit l'URL complete d'une image TMDB a partir de son chemin."""
        if not path:
            return None
        return f"{cls.IMAGE_BASE_URL}/{size}{path}"

    def _is_v4_token(self) -> bool:
        # API Key v3 : 32 caracteres hex ; Read Access Token v4 : long JWT
        return bool(self._api_key) and len(self._api_key) > 40

    def _default_headers(self) -> dict[str, str]:
        headers = super()._default_headers()
        if self._is_v4_token():
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _default_params(self) -> dict[str, str]:
        if self._api_key and not self._is_v4_token():
            return {"api_key": self._api_key}
        return {}

    async def _check_connection(self) -> None:
        await self._get_json("/configuration")

    # ------------------------------------------------------------------
    # Recherche
    # ------------------------------------------------------------------

    async def search_movies(
        self, query: str, year: Optional[int] = None
    ) -> list[SearchResult]:
        """
        Recherche des films par titre.

        Args:
            query: Titre du film a rechercher
            year: Annee de sortie optionnelle

        Returns:
            Liste de SearchResult (vide si aucun resultat)
        """
        self._ensure_ready()

        async def fetch() -> list[SearchResult]:
            data = await self._get_json(
                "/search/movie",
                {
                    "query": query,
                    "year": year,
                    "language": self._language,
                    "include_adult": "false",
                },
            )
            return [
                self._to_search_result(item, MediaType.MOVIE)
                for item in (data or {}).get("results", [])
            ]

        cache_key = f"tmdb:search:movie:{self._language}:{query}:{year}"
        return await self._cached(cache_key, self._search_ttl, fetch)

    async def search_shows(
        self, query: str, year: Optional[int] = None
    ) -> list[SearchResult]:
        """
        Recherche des series par titre.

        Args:
            query: Titre de la serie a rechercher
            year: Annee de premiere diffusion optionnelle

        Returns:
            Liste de SearchResult (vide si aucun resultat)
        """
        self._ensure_ready()

        async def fetch() -> list[SearchResult]:
            data = await self._get_json(
                "/search/tv",
                {
                    "query": query,
                    "first_air_date_year": year,
                    "language": self._language,
                    "include_adult": "false",
                },
            )
            return [
                self._to_search_result(item, MediaType.TVSHOW)
                for item in (data or {}).get("results", [])
            ]

        cache_key = f"tmdb:search:tv:{self._language}:{query}:{year}"
        return await self._cached(cache_key, self._search_ttl, fetch)

    def _to_search_result(self, item: dict, media_type: MediaType) -> SearchResult:
        if media_type == MediaType.MOVIE:
            title = item.get("title") or item.get("original_title") or ""
            original_title = item.get("original_title")
            release_date = item.get("release_date") or None
        else:
            title = item.get("name") or item.get("original_name") or ""
            original_title = item.get("original_name")
            release_date = item.get("first_air_date") or None

        return SearchResult(
            source=self.source,
            id=str(item["id"]),
            title=title,
            media_type=media_type,
            original_title=original_title,
            year=extract_year(release_date),
            release_date=release_date,
            overview=item.get("overview") or None,
            poster_path=item.get("poster_path"),
            backdrop_path=item.get("backdrop_path"),
            popularity=item.get("popularity"),
            vote_average=item.get("vote_average"),
        )

    # ------------------------------------------------------------------
    # Details
    # ------------------------------------------------------------------

    async def get_movie_details(self, movie_id: str) -> MovieDetails:
        """
        Recupere les details complets d'un film.

        Args:
            movie_id: ID TMDB du film

        Returns:
            MovieDetails avec credits, certifications, videos et ids externes

        Raises:
            MediaNotFoundError: Si TMDB ne connait pas ce film
        """
        self._ensure_ready()

        async def fetch() -> MovieDetails:
            data = await self._get_json(
                f"/movie/{movie_id}",
                {
                    "language": self._language,
                    "append_to_response": "credits,release_dates,videos,external_ids,images",
                    "include_image_language": "en,null",
                },
            )
            if data is None:
                raise MediaNotFoundError(movie_id, self.source)
            return self._to_movie_details(data)

        cache_key = f"tmdb:movie:{self._language}:{movie_id}"
        return await self._cached(cache_key, self._details_ttl, fetch)

    async def get_show_details(self, show_id: str) -> ShowDetails:
        """
        Recupere les details complets d'une serie.

        Args:
            show_id: ID TMDB de la serie

        Raises:
            MediaNotFoundError: Si TMDB ne connait pas cette serie
        """
        self._ensure_ready()

        async def fetch() -> ShowDetails:
            data = await self._get_json(
                f"/tv/{show_id}",
                {
                    "language": self._language,
                    "append_to_response": "credits,content_ratings,videos,external_ids,images",
                    "include_image_language": "en,null",
                },
            )
            if data is None:
                raise MediaNotFoundError(show_id, self.source)
            return self._to_show_details(data)

        cache_key = f"tmdb:tv:{self._language}:{show_id}"
        return await self._cached(cache_key, self._details_ttl, fetch)

    async def get_season_details(
        self, show_id: str, season_number: int
    ) -> SeasonDetails:
        """Recupere une saison et ses episodes."""
        self._ensure_ready()
        data = await self._get_json(
            f"/tv/{show_id}/season/{season_number}",
            {"language": self._language, "append_to_response": "external_ids"},
        )
        if data is None:
            raise MediaNotFoundError(f"{show_id}/season/{season_number}", self.source)

        external = data.get("external_ids") or {}
        return SeasonDetails(
            source=self.source,
            show_id=str(show_id),
            season_number=data.get("season_number", season_number),
            id=_str_id(data.get("id")),
            name=data.get("name"),
            overview=data.get("overview") or None,
            air_date=data.get("air_date"),
            poster_path=data.get("poster_path"),
            episodes=[
                self._to_episode_details(episode, show_id)
                for episode in data.get("episodes", [])
            ],
            external_ids=ExternalIds(
                tmdb=_str_id(data.get("id")), tvdb=_str_id(external.get("tvdb_id"))
            ),
        )

    async def get_episode_details(
        self, show_id: str, season_number: int, episode_number: int
    ) -> EpisodeDetails:
        """Recupere un episode precis."""
        self._ensure_ready()
        data = await self._get_json(
            f"/tv/{show_id}/season/{season_number}/episode/{episode_number}",
            {"language": self._language},
        )
        if data is None:
            raise MediaNotFoundError(
                f"{show_id}/S{season_number:02d}E{episode_number:02d}", self.source
            )
        return self._to_episode_details(data, show_id)

    # ------------------------------------------------------------------
    # Transformations
    # ------------------------------------------------------------------

    def _to_movie_details(self, data: dict) -> MovieDetails:
        external = data.get("external_ids") or {}
        credits = data.get("credits") or {}
        release_date = data.get("release_date") or None

        return MovieDetails(
            source=self.source,
            id=str(data["id"]),
            title=data.get("title") or data.get("original_title") or "",
            original_title=data.get("original_title"),
            overview=data.get("overview") or None,
            tagline=data.get("tagline") or None,
            release_date=release_date,
            year=extract_year(release_date),
            runtime=data.get("runtime") or None,
            status=data.get("status"),
            original_language=data.get("original_language"),
            vote_average=data.get("vote_average"),
            vote_count=data.get("vote_count"),
            popularity=data.get("popularity"),
            budget=data.get("budget") or None,
            revenue=data.get("revenue") or None,
            homepage=data.get("homepage") or None,
            poster_path=data.get("poster_path"),
            backdrop_path=data.get("backdrop_path"),
            logo_path=self._first_logo(data),
            genres=self._to_genres(data.get("genres", [])),
            cast=self._to_cast(credits.get("cast", [])),
            crew=self._to_crew(credits.get("crew", [])),
            content_ratings=self._to_movie_certifications(data),
            trailers=self._to_trailers((data.get("videos") or {}).get("results", [])),
            production_companies=[
                ProductionCompany(
                    name=company.get("name") or "",
                    id=_str_id(company.get("id")),
                    logo_path=company.get("logo_path"),
                    country=company.get("origin_country") or None,
                )
                for company in data.get("production_companies", [])
            ],
            external_ids=ExternalIds(
                tmdb=str(data["id"]),
                imdb=data.get("imdb_id") or external.get("imdb_id") or None,
                tvdb=_str_id(external.get("tvdb_id")),
            ),
        )

    def _to_show_details(self, data: dict) -> ShowDetails:
        external = data.get("external_ids") or {}
        credits = data.get("credits") or {}
        first_air_date = data.get("first_air_date") or None
        run_times = data.get("episode_run_time") or []

        return ShowDetails(
            source=self.source,
            id=str(data["id"]),
            title=data.get("name") or data.get("original_name") or "",
            original_title=data.get("original_name"),
            overview=data.get("overview") or None,
            tagline=data.get("tagline") or None,
            first_air_date=first_air_date,
            last_air_date=data.get("last_air_date"),
            year=extract_year(first_air_date),
            status=data.get("status"),
            in_production=data.get("in_production"),
            original_language=data.get("original_language"),
            number_of_seasons=data.get("number_of_seasons"),
            number_of_episodes=data.get("number_of_episodes"),
            episode_run_time=run_times[0] if run_times else None,
            vote_average=data.get("vote_average"),
            vote_count=data.get("vote_count"),
            popularity=data.get("popularity"),
            homepage=data.get("homepage") or None,
            poster_path=data.get("poster_path"),
            backdrop_path=data.get("backdrop_path"),
            logo_path=self._first_logo(data),
            genres=self._to_genres(data.get("genres", [])),
            cast=self._to_cast(credits.get("cast", [])),
            crew=self._to_crew(credits.get("crew", [])),
            content_ratings=[
                ContentRating(country=rating["iso_3166_1"], rating=rating["rating"])
                for rating in (data.get("content_ratings") or {}).get("results", [])
                if rating.get("rating")
            ],
            trailers=self._to_trailers((data.get("videos") or {}).get("results", [])),
            networks=[
                Network(
                    name=network.get("name") or "",
                    id=_str_id(network.get("id")),
                    logo_path=network.get("logo_path"),
                    country=network.get("origin_country") or None,
                )
                for network in data.get("networks", [])
            ],
            production_companies=[
                ProductionCompany(
                    name=company.get("name") or "",
                    id=_str_id(company.get("id")),
                    logo_path=company.get("logo_path"),
                    country=company.get("origin_country") or None,
                )
                for company in data.get("production_companies", [])
            ],
            seasons=[
                SeasonInfo(
                    season_number=season["season_number"],
                    name=season.get("name"),
                    overview=season.get("overview") or None,
                    air_date=season.get("air_date"),
                    episode_count=season.get("episode_count"),
                    poster_path=season.get("poster_path"),
                    id=_str_id(season.get("id")),
                )
                for season in data.get("seasons", [])
            ],
            external_ids=ExternalIds(
                tmdb=str(data["id"]),
                imdb=external.get("imdb_id") or None,
                tvdb=_str_id(external.get("tvdb_id")),
            ),
        )

    def _to_episode_details(self, data: dict, show_id: str) -> EpisodeDetails:
        return EpisodeDetails(
            source=self.source,
            id=str(data["id"]),
            show_id=str(show_id),
            season_number=data.get("season_number", 0),
            episode_number=data.get("episode_number", 0),
            title=data.get("name") or "",
            overview=data.get("overview") or None,
            air_date=data.get("air_date"),
            runtime=data.get("runtime"),
            still_path=data.get("still_path"),
            vote_average=data.get("vote_average"),
            vote_count=data.get("vote_count"),
            guest_stars=[self._to_cast_member(g) for g in data.get("guest_stars") or []],
            crew=[self._to_crew_member(c) for c in data.get("crew") or []],
            external_ids=ExternalIds(tmdb=str(data["id"])),
        )

    @staticmethod
    def _first_logo(data: dict) -> Optional[str]:
        logos = (data.get("images") or {}).get("logos") or []
        return logos[0].get("file_path") if logos else None

    @staticmethod
    def _to_genres(genres: list[dict]) -> list[Genre]:
        return [Genre(name=g.get("name") or "", id=_str_id(g.get("id"))) for g in genres]

    def _to_cast(self, cast: list[dict]) -> list[CastMember]:
        return [self._to_cast_member(member) for member in cast[:MAX_CAST]]

    @staticmethod
    def _to_cast_member(member: dict) -> CastMember:
        return CastMember(
            name=member.get("name") or "",
            character=member.get("character"),
            order=member.get("order"),
            profile_path=member.get("profile_path"),
            id=_str_id(member.get("id")),
        )

    def _to_crew(self, crew: list[dict]) -> list[CrewMember]:
        key_crew = [member for member in crew if member.get("job") in KEY_CREW_JOBS]
        return [self._to_crew_member(member) for member in key_crew[:MAX_CREW]]

    @staticmethod
    def _to_crew_member(member: dict) -> CrewMember:
        return CrewMember(
            name=member.get("name") or "",
            job=member.get("job") or "",
            department=member.get("department"),
            profile_path=member.get("profile_path"),
            id=_str_id(member.get("id")),
        )

    @staticmethod
    def _to_movie_certifications(data: dict) -> list[ContentRating]:
        """Premiere certification non vide de chaque pays."""
        ratings = []
        for result in (data.get("release_dates") or {}).get("results", []):
            certification = next(
                (
                    release["certification"]
                    for release in result.get("release_dates", [])
                    if release.get("certification")
                ),
                None,
            )
            if certification:
                ratings.append(
                    ContentRating(country=result["iso_3166_1"], rating=certification)
                )
        return ratings

    @staticmethod
    def _to_trailers(videos: list[dict]) -> list[Trailer]:
        trailers = [
            Trailer(
                name=video.get("name") or "",
                key=video["key"],
                site=video["site"],
                type=video["type"],
                official=bool(video.get("official")),
            )
            for video in videos
            if video.get("site") == "YouTube" and video.get("type") in TRAILER_TYPES
        ]
        return trailers[:MAX_TRAILERS]

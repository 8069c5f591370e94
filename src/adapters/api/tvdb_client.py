"""
Client TVDB API v4 pour les series TV.

Implemente la capacite Metadata pour les series depuis TheTVDB. Gere
l'authentification par jeton (POST /login), le caching et le retry
automatiquement. TVDB ne fournit pas de films: la recherche de films
retourne une liste vide et le detail d'un film leve NotSupportedError.

Reference API: https://thetvdb.github.io/v4-api/
"""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Optional

from loguru import logger

from src.adapters.api.base import BaseIntegrationClient
from src.adapters.api.cache import APICache
from src.adapters.api.retry import RetryPolicy, raise_for_status, request_with_retry
from src.core.entities.media import (
    CastMember,
    EpisodeDetails,
    Genre,
    MovieDetails,
    Network,
    SearchResult,
    SeasonDetails,
    SeasonInfo,
    ShowDetails,
)
from src.core.exceptions import AuthenticationError, MediaNotFoundError, NotSupportedError
from src.core.value_objects.external_ids import ExternalIds
from src.core.value_objects.media_type import MediaType
from src.services.matcher import extract_year

# Types d'identifiants distants TVDB
REMOTE_ID_IMDB = 2
REMOTE_ID_TMDB = 12

# Types d'illustrations TVDB
ARTWORK_POSTER = 2
ARTWORK_BACKGROUND = 3

# Le jeton TVDB est valide 1 mois, on le renouvelle apres 29 jours
TOKEN_LIFETIME = timedelta(days=29)

ARTWORKS_BASE_URL = "https://artworks.thetvdb.com"
MAX_CAST = 20


def image_url(path: Optional[str]) -> Optional[str]:
    """Retourne l'URL complete d'une image TVDB."""
    if not path:
        return None
    if path.startswith("http"):
        return path
    return f"{ARTWORKS_BASE_URL}{'' if path.startswith('/') else '/'}{path}"


def _remote_id(remote_ids: Optional[list[dict]], id_type: int) -> Optional[str]:
    for remote in remote_ids or []:
        if remote.get("type") == id_type and remote.get("id"):
            return str(remote["id"])
    return None


class TVDBClient(BaseIntegrationClient):
    """
    Client TVDB pour la recherche de series TV.

    Utilise l'API TVDB v4 avec authentification par jeton. Le jeton est
    obtenu automatiquement a la premiere requete, renouvele avant son
    expiration et redemande une fois si l'API repond 401.

    Attributes:
        BASE_URL: URL de base de l'API TVDB v4

    Example:
        client = TVDBClient(cache=APICache(cache_dir=".cache/api"))
        await client.initialize(IntegrationConfig(id="tvdb", api_key="your-api-key"))
        results = await client.search_shows("Breaking Bad")
        details = await client.get_show_details("81189")
        await client.close()
    """

    BASE_URL = "https://api4.thetvdb.com/v4"

    source = "tvdb"
    name = "TheTVDB"
    description = "TV series and episode metadata"
    api_key_url = "https://thetvdb.com/api-information"
    requires_api_key = True
    uses_oauth = False
    provides_metadata = True
    supports_movies = False
    supports_shows = True
    supports_anime = True
    rating_sources = ("tvdb",)

    def __init__(
        self,
        cache: Optional[APICache] = None,
        policy: Optional[RetryPolicy] = None,
        language: str = "eng",
    ) -> None:
        """
        Initialise le client TVDB.

        Args:
            cache: Instance de APICache pour le caching des resultats
            policy: Politique de retry/deadline
            language: Code langue TVDB (ISO 639-2, ex: "eng", "fra")
        """
        super().__init__(cache=cache, policy=policy, language=language)
        self._pin: Optional[str] = None
        self._token: Optional[str] = None
        self._token_expiry: Optional[datetime] = None
        self._token_lock = asyncio.Lock()

    async def _on_initialize(self, config) -> None:
        self._pin = config.option("pin")
        self._token = None
        self._token_expiry = None

    # ------------------------------------------------------------------
    # Authentification
    # ------------------------------------------------------------------

    def _token_is_valid(self) -> bool:
        return (
            self._token is not None
            and self._token_expiry is not None
            and datetime.now() < self._token_expiry
        )

    async def _login(self) -> None:
        """Obtient un nouveau jeton via POST /login."""
        payload: dict[str, Any] = {"apikey": self._api_key}
        if self._pin:
            payload["pin"] = self._pin

        response = await request_with_retry(
            self._get_client(),
            "POST",
            "/login",
            policy=self._policy,
            source=self.source,
            json=payload,
        )
        response = raise_for_status(response, self.source)
        if response is None:
            raise AuthenticationError("Login endpoint not found", self.source)

        self._token = response.json()["data"]["token"]
        self._token_expiry = datetime.now() + TOKEN_LIFETIME
        logger.debug("TVDB: nouveau jeton obtenu")

    async def _ensure_token(self) -> str:
        """
        S'assure qu'un jeton valide est disponible.

        Un seul login a la fois: les appels concurrents attendent le
        jeton obtenu par le premier.

        Returns:
            Jeton valide
        """
        if self._token_is_valid():
            return self._token
        async with self._token_lock:
            if not self._token_is_valid():
                await self._login()
        return self._token

    def _current_credential(self) -> Optional[str]:
        return self._token

    async def _refresh_credentials(self, stale: Optional[str]) -> bool:
        """Sur 401: se reconnecte une fois, sauf si un appel concurrent l'a deja fait."""
        async with self._token_lock:
            if self._token is None or self._token == stale:
                self._token = None
                self._token_expiry = None
                await self._login()
        return True

    def _auth_headers(self) -> dict[str, str]:
        if not self._token:
            return {}
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept-Language": self._language,
        }

    async def _request(self, method: str, path: str, **kwargs):
        self._ensure_ready()
        await self._ensure_token()
        return await super()._request(method, path, **kwargs)

    async def _get_data(self, path: str, params: Optional[dict] = None) -> Optional[Any]:
        """GET et extraction de l'enveloppe {"status", "data"}; None si 404."""
        body = await self._get_json(path, params)
        if body is None:
            return None
        return body.get("data")

    async def _check_connection(self) -> None:
        # Force un login complet sans invalider le jeton d'une requete en cours
        async with self._token_lock:
            await self._login()

    # ------------------------------------------------------------------
    # Films (non supportes)
    # ------------------------------------------------------------------

    async def search_movies(
        self, query: str, year: Optional[int] = None
    ) -> list[SearchResult]:
        """TVDB ne fournit pas de films."""
        return []

    async def get_movie_details(self, movie_id: str) -> MovieDetails:
        raise NotSupportedError("TVDB does not support movie metadata", self.source)

    # ------------------------------------------------------------------
    # Series
    # ------------------------------------------------------------------

    async def search_shows(
        self, query: str, year: Optional[int] = None
    ) -> list[SearchResult]:
        """
        Recherche des series TV par titre.

        Les resultats a plus d'un an de l'annee demandee sont ecartes.

        Args:
            query: Titre de la serie a rechercher
            year: Annee optionnelle pour filtrer les resultats

        Returns:
            Liste de SearchResult avec source="tvdb"
        """
        self._ensure_ready()

        async def fetch() -> list[SearchResult]:
            items = await self._get_data("/search", {"query": query, "type": "series"})
            results = []
            for item in items or []:
                item_year = extract_year(item.get("year"))
                if year and item_year and abs(item_year - year) > 1:
                    continue
                results.append(
                    SearchResult(
                        source=self.source,
                        id=str(item.get("tvdb_id") or item.get("id")),
                        title=item.get("name") or "",
                        media_type=MediaType.TVSHOW,
                        year=item_year,
                        release_date=item.get("first_air_time") or None,
                        overview=item.get("overview"),
                        poster_path=item.get("image_url"),
                    )
                )
            return results

        cache_key = f"tvdb:search:{self._language}:{query}:{year}"
        return await self._cached(cache_key, self._search_ttl, fetch)

    async def get_show_details(self, show_id: str) -> ShowDetails:
        """
        Recupere les details complets d'une serie.

        Args:
            show_id: ID TVDB de la serie

        Returns:
            ShowDetails avec saisons, genres, acteurs et ids externes

        Raises:
            MediaNotFoundError: Si l'ID est invalide ou inconnu de TVDB
        """
        self._ensure_ready()
        series_id = self._parse_id(show_id)

        async def fetch() -> ShowDetails:
            series = await self._get_data(f"/series/{series_id}/extended")
            if series is None:
                raise MediaNotFoundError(show_id, self.source)
            return self._to_show_details(series)

        cache_key = f"tvdb:series:{self._language}:{series_id}"
        return await self._cached(cache_key, self._details_ttl, fetch)

    async def _get_episodes(self, series_id: int) -> list[dict]:
        data = await self._get_data(f"/series/{series_id}/episodes/default")
        return (data or {}).get("episodes", [])

    async def get_season_details(
        self, show_id: str, season_number: int
    ) -> SeasonDetails:
        """
        Recupere une saison (ordre de diffusion par defaut).

        Raises:
            MediaNotFoundError: Si la saison n'a aucun episode
        """
        self._ensure_ready()
        series_id = self._parse_id(show_id)
        episodes = [
            episode
            for episode in await self._get_episodes(series_id)
            if episode.get("seasonNumber") == season_number
        ]
        if not episodes:
            raise MediaNotFoundError(f"{show_id}/season/{season_number}", self.source)

        show = await self.get_show_details(show_id)
        season_info = next(
            (s for s in show.seasons if s.season_number == season_number), None
        )
        poster = season_info.poster_path if season_info and season_info.poster_path else show.poster_path

        return SeasonDetails(
            source=self.source,
            show_id=str(series_id),
            season_number=season_number,
            id=season_info.id if season_info else None,
            name=season_info.name if season_info else f"Season {season_number}",
            poster_path=poster,
            episodes=[self._to_episode(episode, series_id) for episode in episodes],
            external_ids=ExternalIds(tvdb=str(series_id)),
        )

    async def get_episode_details(
        self, show_id: str, season_number: int, episode_number: int
    ) -> EpisodeDetails:
        """
        Recupere un episode precis, avec ses details etendus si disponibles.

        Raises:
            MediaNotFoundError: Si l'episode n'existe pas
        """
        self._ensure_ready()
        series_id = self._parse_id(show_id)
        episode = next(
            (
                e
                for e in await self._get_episodes(series_id)
                if e.get("seasonNumber") == season_number
                and e.get("number") == episode_number
            ),
            None,
        )
        if episode is None:
            raise MediaNotFoundError(
                f"{show_id}/S{season_number:02d}E{episode_number:02d}", self.source
            )

        extended = await self._get_data(f"/episodes/{episode['id']}/extended")
        return self._to_episode(extended or episode, series_id)

    # ------------------------------------------------------------------
    # Transformations
    # ------------------------------------------------------------------

    def _parse_id(self, value: str) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise MediaNotFoundError(str(value), self.source) from None

    def _to_show_details(self, series: dict) -> ShowDetails:
        artworks = series.get("artworks") or []
        poster = next((a for a in artworks if a.get("type") == ARTWORK_POSTER), None)
        backdrop = next((a for a in artworks if a.get("type") == ARTWORK_BACKGROUND), None)

        seasons = self._to_seasons(series.get("seasons") or [])
        network = series.get("originalNetwork")
        score = series.get("score")
        first_aired = series.get("firstAired") or None
        status = series.get("status") or {}

        characters = sorted(
            (c for c in series.get("characters") or [] if c.get("peopleType") == "Actor"),
            key=lambda c: c.get("sort") or 0,
        )

        return ShowDetails(
            source=self.source,
            id=str(series["id"]),
            title=series.get("name") or "",
            overview=series.get("overview"),
            first_air_date=first_aired,
            last_air_date=series.get("lastAired") or None,
            year=extract_year(first_aired) or extract_year(series.get("year")),
            status=status.get("name"),
            original_language=series.get("originalLanguage"),
            number_of_seasons=len([s for s in seasons if s.season_number > 0]),
            number_of_episodes=len(series["episodes"]) if series.get("episodes") else None,
            episode_run_time=series.get("averageRuntime"),
            vote_average=score / 10 if score else None,
            poster_path=image_url(poster["image"] if poster else series.get("image")),
            backdrop_path=image_url(backdrop["image"]) if backdrop else None,
            genres=[
                Genre(name=g.get("name") or "", id=str(g["id"]) if g.get("id") else None)
                for g in series.get("genres") or []
            ],
            cast=[
                CastMember(
                    name=c.get("personName", ""),
                    character=c.get("name"),
                    order=c.get("sort"),
                    profile_path=image_url(c.get("personImgURL")),
                    id=str(c["peopleId"]) if c.get("peopleId") else None,
                )
                for c in characters[:MAX_CAST]
            ],
            networks=(
                [
                    Network(
                        name=network.get("name") or "",
                        id=str(network["id"]) if network.get("id") else None,
                        country=network.get("country"),
                    )
                ]
                if network
                else []
            ),
            seasons=seasons,
            external_ids=ExternalIds(
                tvdb=str(series["id"]),
                imdb=_remote_id(series.get("remoteIds"), REMOTE_ID_IMDB),
                tmdb=_remote_id(series.get("remoteIds"), REMOTE_ID_TMDB),
            ),
        )

    @staticmethod
    def _to_seasons(raw_seasons: list[dict]) -> list[SeasonInfo]:
        """Saisons de l'ordre officiel, une par numero."""
        seasons: dict[int, SeasonInfo] = {}
        for season in raw_seasons:
            season_type = (season.get("type") or {}).get("type")
            if season_type not in (None, "official", "default"):
                continue
            number = season.get("number")
            if number is None or number in seasons:
                continue
            seasons[number] = SeasonInfo(
                season_number=number,
                name=season.get("name") or f"Season {number}",
                poster_path=image_url(season.get("image")),
                id=str(season["id"]) if season.get("id") else None,
            )
        return [seasons[number] for number in sorted(seasons)]

    def _to_episode(self, episode: dict, series_id: int) -> EpisodeDetails:
        number = episode.get("number") or 1
        season_number = episode.get("seasonNumber")
        return EpisodeDetails(
            source=self.source,
            id=str(episode["id"]),
            show_id=str(series_id),
            season_number=1 if season_number is None else season_number,
            episode_number=number,
            title=episode.get("name") or f"Episode {number}",
            overview=episode.get("overview"),
            air_date=episode.get("aired"),
            runtime=episode.get("runtime"),
            still_path=image_url(episode.get("image")),
            external_ids=ExternalIds(tvdb=str(episode["id"])),
        )

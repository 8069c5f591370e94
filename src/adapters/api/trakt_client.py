"""
Client Trakt.tv pour la synchronisation de l'historique.

Trakt fournit:
- l'historique de visionnage (films et episodes)
- l'ajout a l'historique (marquer comme vu)
- le scrobbling (progression de lecture en direct)

L'authentification utilisateur passe par OAuth2 (code d'autorisation puis
jetons d'acces/rafraichissement). Le jeton d'acces est rafraichi avant son
expiration, et une fois apres un 401.

Reference API: https://trakt.docs.apiary.io/
"""

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import urlencode

from loguru import logger

from src.adapters.api.base import BaseIntegrationClient
from src.adapters.api.cache import APICache
from src.adapters.api.retry import RetryPolicy, raise_for_status, request_with_retry
from src.core.entities.watch_history import (
    WatchedEpisode,
    WatchedMovie,
    WatchedShow,
    WatchHistory,
)
from src.core.exceptions import AuthenticationError, IntegrationError
from src.core.value_objects.external_ids import ExternalIds
from src.core.value_objects.media_type import MediaType
from src.core.value_objects.settings import OAuthTokens

AUTHORIZE_URL = "https://trakt.tv/oauth/authorize"
DEFAULT_REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"
API_VERSION = "2"

# Marge de rafraichissement proactif du jeton d'acces
TOKEN_REFRESH_MARGIN = timedelta(minutes=5)

HISTORY_PAGE_SIZE = 1000

MOVIE_ID_KEYS = ("trakt", "imdb", "tmdb")
SHOW_ID_KEYS = ("trakt", "imdb", "tmdb", "tvdb")

TokensCallback = Callable[[OAuthTokens], None]


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _latest(current: Optional[datetime], candidate: Optional[datetime]) -> Optional[datetime]:
    if current is None:
        return candidate
    if candidate is None:
        return current
    return max(current, candidate)


def _trakt_ids(ids: ExternalIds, keys: tuple[str, ...]) -> dict[str, Any]:
    """Identifiants au format Trakt (numeriques quand c'est possible)."""
    result: dict[str, Any] = {}
    for key in keys:
        value = ids.for_provider(key)
        if value is None:
            continue
        result[key] = int(value) if key != "imdb" and value.isdigit() else value
    return result


def _history_key(ids: dict) -> str:
    return str(ids.get("imdb") or ids.get("trakt"))


def _watched_at(when: Optional[datetime]) -> str:
    return (when or datetime.now(timezone.utc)).isoformat()


class TraktClient(BaseIntegrationClient):
    """
    Client Trakt (capacite Sync).

    Le client_id est fourni comme cle API, le client_secret et l'URI de
    redirection via les options ("client_secret", "redirect_uri"). Les jetons
    utilisateur viennent de IntegrationConfig.tokens ou d'un echange de code.

    Attributes:
        on_tokens_refreshed: Rappel appele avec les nouveaux jetons apres
            chaque echange ou rafraichissement, pour les persister.

    Example:
        client = TraktClient(on_tokens_refreshed=save_tokens)
        await client.initialize(IntegrationConfig(id="trakt", api_key="client-id"))
        url = client.get_authorization_url()
        tokens = await client.exchange_code_for_tokens(code)
        history = await client.get_watch_history()
    """

    BASE_URL = "https://api.trakt.tv"

    source = "trakt"
    name = "Trakt"
    description = "Sync watch history and progress with Trakt.tv"
    api_key_url = "https://trakt.tv/oauth/applications"
    requires_api_key = True
    uses_oauth = True
    provides_metadata = False
    supports_movies = True
    supports_shows = True
    supports_anime = False
    rating_sources = ("trakt",)

    def __init__(
        self,
        cache: Optional[APICache] = None,
        policy: Optional[RetryPolicy] = None,
        on_tokens_refreshed: Optional[TokensCallback] = None,
    ) -> None:
        super().__init__(cache=cache, policy=policy)
        self.on_tokens_refreshed = on_tokens_refreshed
        self._client_secret = ""
        self._redirect_uri = DEFAULT_REDIRECT_URI
        self._tokens: Optional[OAuthTokens] = None
        self._token_lock = asyncio.Lock()

    async def _on_initialize(self, config) -> None:
        self._client_secret = config.option("client_secret", "")
        self._redirect_uri = config.option("redirect_uri") or DEFAULT_REDIRECT_URI
        self._tokens = config.tokens

    def is_user_authenticated(self) -> bool:
        """Vrai si des jetons utilisateur sont disponibles."""
        return self._tokens is not None

    @property
    def tokens(self) -> Optional[OAuthTokens]:
        return self._tokens

    def _default_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "trakt-api-version": API_VERSION,
            "trakt-api-key": self._api_key or "",
        }

    def _auth_headers(self) -> dict[str, str]:
        if self._tokens is None:
            return {}
        return {"Authorization": f"Bearer {self._tokens.access_token}"}

    async def _check_connection(self) -> None:
        # La recherche publique valide le client_id sans jeton utilisateur
        response = await self._send("GET", "/search/movie", params={"query": "test", "limit": 1})
        raise_for_status(response, self.source)

    # ------------------------------------------------------------------
    # OAuth
    # ------------------------------------------------------------------

    def get_authorization_url(self, redirect_uri: Optional[str] = None) -> str:
        """
        Construit l'URL d'autorisation OAuth.

        Args:
            redirect_uri: URI de redirection (defaut: celle de la configuration)

        Returns:
            URL a ouvrir par l'utilisateur
        """
        self._ensure_ready()
        params = urlencode(
            {
                "response_type": "code",
                "client_id": self._api_key,
                "redirect_uri": redirect_uri or self._redirect_uri,
            }
        )
        return f"{AUTHORIZE_URL}?{params}"

    async def exchange_code_for_tokens(
        self, code: str, redirect_uri: Optional[str] = None
    ) -> OAuthTokens:
        """
        Echange un code d'autorisation contre des jetons.

        Raises:
            AuthenticationError: Code refuse par Trakt
        """
        self._ensure_ready()
        tokens = await self._token_request(
            {
                "code": code,
                "redirect_uri": redirect_uri or self._redirect_uri,
                "grant_type": "authorization_code",
            }
        )
        self._store_tokens(tokens)
        return tokens

    async def refresh_tokens(self, refresh_token: str) -> OAuthTokens:
        """
        Rafraichit les jetons a partir d'un jeton de rafraichissement.

        Raises:
            AuthenticationError: Jeton de rafraichissement refuse
        """
        self._ensure_ready()
        async with self._token_lock:
            return await self._refresh(refresh_token)

    async def _refresh(self, refresh_token: str) -> OAuthTokens:
        tokens = await self._token_request(
            {
                "refresh_token": refresh_token,
                "redirect_uri": self._redirect_uri,
                "grant_type": "refresh_token",
            }
        )
        self._store_tokens(tokens)
        logger.info("Trakt: jetons OAuth rafraichis")
        return tokens

    async def _token_request(self, payload: dict[str, str]) -> OAuthTokens:
        response = await request_with_retry(
            self._get_client(),
            "POST",
            "/oauth/token",
            policy=self._policy,
            source=self.source,
            json={
                **payload,
                "client_id": self._api_key,
                "client_secret": self._client_secret,
            },
        )
        if response.status_code >= 400:
            raise AuthenticationError(
                f"Token request failed (HTTP {response.status_code})", self.source
            )
        data = response.json()
        created_at = data.get("created_at") or datetime.now(timezone.utc).timestamp()
        return OAuthTokens(
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            expires_at=datetime.fromtimestamp(
                created_at + data.get("expires_in", 0), tz=timezone.utc
            ),
        )

    def _store_tokens(self, tokens: OAuthTokens) -> None:
        self._tokens = tokens
        if self.on_tokens_refreshed is not None:
            self.on_tokens_refreshed(tokens)

    async def _ensure_fresh_tokens(self) -> None:
        """
        Rafraichit le jeton d'acces s'il expire dans moins de 5 minutes.

        Un seul rafraichissement a la fois: les appels concurrents attendent
        les jetons obtenus par le premier.

        Raises:
            AuthenticationError: Aucun utilisateur authentifie
        """
        if self._tokens is None:
            raise AuthenticationError("User not authenticated", self.source)
        if not self._tokens.expires_within(TOKEN_REFRESH_MARGIN):
            return
        async with self._token_lock:
            if self._tokens.expires_within(TOKEN_REFRESH_MARGIN):
                await self._refresh(self._tokens.refresh_token)

    def _current_credential(self) -> Optional[str]:
        return self._tokens.access_token if self._tokens else None

    async def _refresh_credentials(self, stale: Optional[str]) -> bool:
        """Sur 401: rafraichit les jetons une fois, sauf si un appel concurrent l'a deja fait."""
        if self._tokens is None:
            return False
        async with self._token_lock:
            if self._tokens.access_token != stale:
                return True
            try:
                await self._refresh(self._tokens.refresh_token)
            except AuthenticationError as e:
                logger.warning(f"Trakt: rafraichissement impossible: {e}")
                return False
        return True

    async def _request(self, method: str, path: str, **kwargs):
        self._ensure_ready()
        await self._ensure_fresh_tokens()
        return await super()._request(method, path, **kwargs)

    async def _post(self, path: str, body: dict) -> Optional[dict]:
        response = await self._request("POST", path, json=body)
        # 204 No Content
        if response is None or response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ------------------------------------------------------------------
    # Historique
    # ------------------------------------------------------------------

    async def get_history(
        self, kind: str, page: int = 1, limit: int = HISTORY_PAGE_SIZE
    ) -> list[dict]:
        """
        Recupere une page brute de l'historique.

        Args:
            kind: "movies" ou "episodes"
            page: Numero de page (a partir de 1)
            limit: Nombre d'elements par page
        """
        if kind not in ("movies", "episodes"):
            raise IntegrationError(f"Unknown history type: {kind}", self.source)
        data = await self._get_json(f"/sync/history/{kind}", {"page": page, "limit": limit})
        return data or []

    async def get_watch_history(self, user_id: Optional[str] = None) -> WatchHistory:
        """
        Recupere l'historique de l'utilisateur authentifie.

        Les visionnages multiples sont agreges: nombre de lectures et date
        du dernier visionnage par film et par episode.

        Args:
            user_id: Ignore (l'historique est celui du jeton utilisateur)
        """
        movie_items, episode_items = await asyncio.gather(
            self.get_history("movies"),
            self.get_history("episodes"),
        )
        return WatchHistory(
            movies=self._aggregate_movies(movie_items),
            shows=self._aggregate_episodes(episode_items),
        )

    def _aggregate_movies(self, items: list[dict]) -> list[WatchedMovie]:
        movies: dict[str, WatchedMovie] = {}
        for item in items:
            movie = item.get("movie")
            if item.get("type") != "movie" or not movie:
                continue
            ids = movie.get("ids") or {}
            watched_at = _parse_datetime(item.get("watched_at"))
            key = _history_key(ids)
            existing = movies.get(key)
            if existing is None:
                movies[key] = WatchedMovie(
                    ids=ExternalIds.from_dict({k: ids.get(k) for k in MOVIE_ID_KEYS}),
                    title=movie.get("title") or "",
                    year=movie.get("year"),
                    plays=1,
                    last_watched_at=watched_at,
                )
            else:
                existing.plays += 1
                existing.last_watched_at = _latest(existing.last_watched_at, watched_at)
        return list(movies.values())

    def _aggregate_episodes(self, items: list[dict]) -> list[WatchedShow]:
        shows: dict[str, WatchedShow] = {}
        episodes: dict[tuple[str, int, int], WatchedEpisode] = {}
        for item in items:
            show = item.get("show")
            episode = item.get("episode")
            if item.get("type") != "episode" or not show or not episode:
                continue
            ids = show.get("ids") or {}
            watched_at = _parse_datetime(item.get("watched_at"))
            show_key = _history_key(ids)

            watched_show = shows.get(show_key)
            if watched_show is None:
                watched_show = WatchedShow(
                    ids=ExternalIds.from_dict({k: ids.get(k) for k in SHOW_ID_KEYS}),
                    title=show.get("title") or "",
                    year=show.get("year"),
                )
                shows[show_key] = watched_show
            watched_show.plays += 1
            watched_show.last_watched_at = _latest(watched_show.last_watched_at, watched_at)

            episode_key = (show_key, episode.get("season", 0), episode.get("number", 0))
            watched_episode = episodes.get(episode_key)
            if watched_episode is None:
                watched_episode = WatchedEpisode(
                    season=episode_key[1],
                    episode=episode_key[2],
                    plays=1,
                    last_watched_at=watched_at,
                )
                episodes[episode_key] = watched_episode
                watched_show.episodes.append(watched_episode)
            else:
                watched_episode.plays += 1
                watched_episode.last_watched_at = _latest(
                    watched_episode.last_watched_at, watched_at
                )
        return list(shows.values())

    async def mark_movie_watched(
        self, ids: ExternalIds, watched_at: Optional[datetime] = None
    ) -> None:
        """Ajoute un film a l'historique."""
        await self._post(
            "/sync/history",
            {
                "movies": [
                    {
                        "watched_at": _watched_at(watched_at),
                        "ids": _trakt_ids(ids, MOVIE_ID_KEYS),
                    }
                ]
            },
        )

    async def mark_episode_watched(
        self,
        show_ids: ExternalIds,
        season: int,
        episode: int,
        watched_at: Optional[datetime] = None,
    ) -> None:
        """Ajoute un episode (identifie par la serie, la saison et le numero) a l'historique."""
        await self._post(
            "/sync/history",
            {
                "shows": [
                    {
                        "ids": _trakt_ids(show_ids, SHOW_ID_KEYS),
                        "seasons": [
                            {
                                "number": season,
                                "episodes": [
                                    {
                                        "number": episode,
                                        "watched_at": _watched_at(watched_at),
                                    }
                                ],
                            }
                        ],
                    }
                ]
            },
        )

    # ------------------------------------------------------------------
    # Scrobbling
    # ------------------------------------------------------------------

    def _scrobble_body(
        self,
        media_type: MediaType,
        ids: ExternalIds,
        progress: float,
        season: Optional[int],
        episode: Optional[int],
    ) -> dict[str, Any]:
        progress = min(max(float(progress), 0.0), 100.0)
        if media_type == MediaType.MOVIE:
            return {"movie": {"ids": _trakt_ids(ids, MOVIE_ID_KEYS)}, "progress": progress}
        if season is None or episode is None:
            raise IntegrationError("Episode scrobble requires season and episode", self.source)
        return {
            "show": {"ids": _trakt_ids(ids, SHOW_ID_KEYS)},
            "episode": {"season": season, "number": episode},
            "progress": progress,
        }

    async def _scrobble(self, action: str, media_type, ids, progress, season, episode) -> None:
        body = self._scrobble_body(media_type, ids, progress, season, episode)
        await self._post(f"/scrobble/{action}", body)

    async def start_scrobble(
        self,
        media_type: MediaType,
        ids: ExternalIds,
        progress: float,
        season: Optional[int] = None,
        episode: Optional[int] = None,
    ) -> None:
        """Signale le debut (ou la reprise) d'une lecture."""
        await self._scrobble("start", media_type, ids, progress, season, episode)

    async def pause_scrobble(
        self,
        media_type: MediaType,
        ids: ExternalIds,
        progress: float,
        season: Optional[int] = None,
        episode: Optional[int] = None,
    ) -> None:
        await self._scrobble("pause", media_type, ids, progress, season, episode)

    async def stop_scrobble(
        self,
        media_type: MediaType,
        ids: ExternalIds,
        progress: float,
        season: Optional[int] = None,
        episode: Optional[int] = None,
    ) -> None:
        """Signale la fin d'une lecture (Trakt marque vu au-dela de 80%)."""
        await self._scrobble("stop", media_type, ids, progress, season, episode)

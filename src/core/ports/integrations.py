"""
Interfaces ports pour les integrations externes.

Une integration declare ses capacites (metadonnees, notes, illustrations,
synchronisation) en implementant les methodes correspondantes. Le gestionnaire
de resolution interroge ces capacites a l'execution via isinstance() sur des
Protocol runtime_checkable, sans hierarchie de classes imposee.

Contrats communs a toutes les capacites:
- initialize() sans identifiant requis laisse l'integration non prete, sans lever
- une capacite appelee sur une integration non prete leve IntegrationNotReadyError
- un type de media non supporte: la recherche retourne [], le detail leve
  NotSupportedError
- un identifiant inconnu: le detail leve MediaNotFoundError
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from src.core.entities.artwork import Artwork
from src.core.entities.media import (
    EpisodeDetails,
    MovieDetails,
    SearchResult,
    SeasonDetails,
    ShowDetails,
)
from src.core.entities.ratings import AggregateRatings
from src.core.entities.watch_history import WatchHistory
from src.core.value_objects.external_ids import ExternalIds
from src.core.value_objects.media_type import MediaType
from src.core.value_objects.settings import IntegrationConfig, OAuthTokens


@dataclass(frozen=True)
class ConnectionStatus:
    """
    Resultat d'un test de connexion.

    Attributs :
        success : Connexion et identifiants valides
        message : Detail lisible (erreur ou confirmation)
    """

    success: bool
    message: str = ""


@dataclass(frozen=True)
class IntegrationInfo:
    """
    Description d'une integration pour l'affichage des reglages.

    Attributs :
        source : Identifiant de l'integration
        name : Nom affiche
        capabilities : Capacites detectees ("metadata", "ratings", "artwork", "sync")
        ready : Integration initialisee et utilisable
    """

    source: str
    name: str
    description: str
    api_key_url: Optional[str]
    requires_api_key: bool
    uses_oauth: bool
    provides_metadata: bool
    supports_movies: bool
    supports_shows: bool
    supports_anime: bool
    rating_sources: tuple[str, ...]
    capabilities: tuple[str, ...]
    ready: bool


@runtime_checkable
class BaseIntegration(Protocol):
    """
    Contrat de base de toute integration.

    Descripteur (identifiant, nom, prise en charge des types de media) et
    cycle de vie (initialize, test_connection, is_ready, close).
    """

    source: str
    name: str
    description: str
    api_key_url: Optional[str]
    requires_api_key: bool
    uses_oauth: bool
    provides_metadata: bool
    supports_movies: bool
    supports_shows: bool
    supports_anime: bool
    rating_sources: tuple[str, ...]

    async def initialize(self, config: IntegrationConfig) -> None:
        """Lit la configuration; ne leve pas si un identifiant manque."""
        ...

    async def test_connection(self) -> ConnectionStatus:
        """Verifie les identifiants aupres du fournisseur."""
        ...

    def is_ready(self) -> bool:
        """Vrai si l'integration est initialisee avec ses identifiants."""
        ...

    def supports_media_type(self, media_type: MediaType) -> bool:
        """Vrai si le type de media est pris en charge."""
        ...

    async def close(self) -> None:
        """Libere les ressources (client HTTP)."""
        ...


@runtime_checkable
class MetadataCapability(Protocol):
    """Recherche et details de films et series."""

    async def search_movies(
        self, query: str, year: Optional[int] = None
    ) -> list[SearchResult]:
        ...

    async def search_shows(
        self, query: str, year: Optional[int] = None
    ) -> list[SearchResult]:
        ...

    async def get_movie_details(self, movie_id: str) -> MovieDetails:
        ...

    async def get_show_details(self, show_id: str) -> ShowDetails:
        ...

    async def get_season_details(
        self, show_id: str, season_number: int
    ) -> SeasonDetails:
        ...

    async def get_episode_details(
        self, show_id: str, season_number: int, episode_number: int
    ) -> EpisodeDetails:
        ...


@runtime_checkable
class RatingsCapability(Protocol):
    """Notes agregees, indexees par identifiant IMDb."""

    async def get_movie_ratings(self, imdb_id: str) -> AggregateRatings:
        ...

    async def get_show_ratings(self, imdb_id: str) -> AggregateRatings:
        ...


@runtime_checkable
class ArtworkCapability(Protocol):
    """Illustrations: films par ID TMDB, series par ID TVDB."""

    async def get_movie_artwork(self, tmdb_id: str) -> Artwork:
        ...

    async def get_show_artwork(self, tvdb_id: str) -> Artwork:
        ...


@runtime_checkable
class SyncCapability(Protocol):
    """Synchronisation OAuth: historique de visionnage et scrobbling."""

    def get_authorization_url(self, redirect_uri: Optional[str] = None) -> str:
        ...

    async def exchange_code_for_tokens(
        self, code: str, redirect_uri: Optional[str] = None
    ) -> OAuthTokens:
        ...

    async def refresh_tokens(self, refresh_token: str) -> OAuthTokens:
        ...

    async def get_watch_history(self, user_id: Optional[str] = None) -> WatchHistory:
        ...

    async def mark_movie_watched(
        self, ids: ExternalIds, watched_at: Optional[datetime] = None
    ) -> None:
        ...

    async def mark_episode_watched(
        self,
        show_ids: ExternalIds,
        season: int,
        episode: int,
        watched_at: Optional[datetime] = None,
    ) -> None:
        ...

    async def start_scrobble(
        self,
        media_type: MediaType,
        ids: ExternalIds,
        progress: float,
        season: Optional[int] = None,
        episode: Optional[int] = None,
    ) -> None:
        ...

    async def stop_scrobble(
        self,
        media_type: MediaType,
        ids: ExternalIds,
        progress: float,
        season: Optional[int] = None,
        episode: Optional[int] = None,
    ) -> None:
        ...


def has_metadata_capability(integration: object) -> bool:
    """Vrai si l'integration fournit la recherche et les details."""
    return isinstance(integration, MetadataCapability)


def has_ratings_capability(integration: object) -> bool:
    """Vrai si l'integration fournit des notes."""
    return isinstance(integration, RatingsCapability)


def has_artwork_capability(integration: object) -> bool:
    """Vrai si l'integration fournit des illustrations."""
    return isinstance(integration, ArtworkCapability)


def has_sync_capability(integration: object) -> bool:
    """Vrai si l'integration fournit la synchronisation OAuth."""
    return isinstance(integration, SyncCapability)


def describe_capabilities(integration: object) -> tuple[str, ...]:
    """Liste les capacites detectees d'une integration."""
    checks = (
        ("metadata", has_metadata_capability),
        ("ratings", has_ratings_capability),
        ("artwork", has_artwork_capability),
        ("sync", has_sync_capability),
    )
    return tuple(name for name, check in checks if check(integration))


def integration_info(integration: BaseIntegration) -> IntegrationInfo:
    """Construit la description d'une integration."""
    return IntegrationInfo(
        source=integration.source,
        name=integration.name,
        description=integration.description,
        api_key_url=integration.api_key_url,
        requires_api_key=integration.requires_api_key,
        uses_oauth=integration.uses_oauth,
        provides_metadata=integration.provides_metadata,
        supports_movies=integration.supports_movies,
        supports_shows=integration.supports_shows,
        supports_anime=integration.supports_anime,
        rating_sources=tuple(integration.rating_sources),
        capabilities=describe_capabilities(integration),
        ready=integration.is_ready(),
    )

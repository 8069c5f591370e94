"""
Configuration de l'application via pydantic-settings.

La configuration est chargée depuis les variables d'environnement avec le préfixe CINEMETA_,
et peut optionnellement être fournie via un fichier .env.

Les clés API sont optionnelles - une intégration sans identifiant reste inactive.
Les listes (priorités, sources de notes) sont séparées par des virgules :
CINEMETA_TV_INTEGRATIONS=tvdb,tmdb
"""

from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.adapters.api.retry import RetryPolicy
from src.core.value_objects.settings import IntegrationConfig, MetadataSettings, OAuthTokens
from src.utils.constants import (
    DEFAULT_ANIME_INTEGRATIONS,
    DEFAULT_AUTO_MATCH_THRESHOLD,
    DEFAULT_BASE_DELAY,
    DEFAULT_LANGUAGE,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_DELAY,
    DEFAULT_MOVIE_INTEGRATIONS,
    DEFAULT_RATING_SOURCES,
    DEFAULT_REQUEST_DEADLINE,
    DEFAULT_TV_INTEGRATIONS,
)

# Trouver le fichier .env à la racine du projet (parent de src/)
_PROJECT_ROOT = Path(__file__).parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


def split_list(value: str) -> tuple[str, ...]:
    """Découpe une liste séparée par des virgules (éléments vides ignorés)."""
    return tuple(item.strip() for item in value.split(",") if item.strip())


class Settings(BaseSettings):
    """Paramètres de l'application avec support des variables d'environnement.

    Tous les paramètres peuvent être surchargés via des variables d'environnement
    avec le préfixe CINEMETA_.
    Exemple : CINEMETA_LOG_LEVEL=DEBUG

    Les chemins sont automatiquement étendus (~ -> répertoire home).
    """

    model_config = SettingsConfigDict(
        env_prefix="CINEMETA_",
        env_file=_ENV_FILE if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Base de données
    database_url: str = Field(default="sqlite:///cinemeta.db")

    # Clés API (OPTIONNELLES - intégration inactive si non définie)
    tmdb_api_key: Optional[str] = Field(default=None)
    tvdb_api_key: Optional[str] = Field(default=None)
    tvdb_pin: Optional[str] = Field(default=None)
    tvdb_language: str = Field(default="eng")
    mdblist_api_key: Optional[str] = Field(default=None)
    fanart_api_key: Optional[str] = Field(default=None)

    # Trakt (OAuth)
    trakt_client_id: Optional[str] = Field(default=None)
    trakt_client_secret: Optional[str] = Field(default=None)
    trakt_redirect_uri: Optional[str] = Field(default=None)
    trakt_access_token: Optional[str] = Field(default=None)
    trakt_refresh_token: Optional[str] = Field(default=None)
    trakt_expires_at: Optional[datetime] = Field(default=None)

    # Résolution
    disabled_integrations: str = Field(default="")
    movie_integrations: str = Field(default=",".join(DEFAULT_MOVIE_INTEGRATIONS))
    tv_integrations: str = Field(default=",".join(DEFAULT_TV_INTEGRATIONS))
    anime_integrations: str = Field(default=",".join(DEFAULT_ANIME_INTEGRATIONS))
    auto_match_threshold: float = Field(default=DEFAULT_AUTO_MATCH_THRESHOLD, ge=0.0, le=1.0)
    metadata_language: str = Field(default=DEFAULT_LANGUAGE)
    fetch_artwork: bool = Field(default=True)
    fetch_ratings: bool = Field(default=True)
    rating_sources: str = Field(default=",".join(DEFAULT_RATING_SOURCES))

    # Retry et timeouts des appels API
    retry_max_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=1)
    retry_base_delay: float = Field(default=DEFAULT_BASE_DELAY, ge=0.0)
    retry_max_delay: float = Field(default=DEFAULT_MAX_DELAY, ge=0.0)
    request_deadline: float = Field(default=DEFAULT_REQUEST_DEADLINE, gt=0.0)

    # Cache disque des réponses API (TTL en secondes)
    cache_dir: Path = Field(default=Path(".cache/api"))
    cache_search_ttl: int = Field(default=24 * 60 * 60, ge=0)
    cache_details_ttl: int = Field(default=7 * 24 * 60 * 60, ge=0)

    # Logging (fichier + stderr, rotation 10MB, 5 fichiers de rétention)
    log_level: str = Field(default="INFO")
    log_file: Path = Field(default=Path("logs/cinemeta.log"))
    log_rotation_size: str = Field(default="10 MB")
    log_retention_count: int = Field(default=5)

    @field_validator("cache_dir", "log_file", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        """Étend ~ vers le répertoire home dans les chemins."""
        return Path(v).expanduser()

    @property
    def tmdb_enabled(self) -> bool:
        """Vérifie si l'API TMDB est configurée."""
        return self.tmdb_api_key is not None

    @property
    def tvdb_enabled(self) -> bool:
        """Vérifie si l'API TVDB est configurée."""
        return self.tvdb_api_key is not None

    def retry_policy(self) -> RetryPolicy:
        """Politique de retry partagée par les clients API."""
        return RetryPolicy(
            max_attempts=self.retry_max_attempts,
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
            deadline=self.request_deadline,
        )

    def trakt_tokens(self) -> Optional[OAuthTokens]:
        """Jetons Trakt si les trois valeurs sont définies."""
        if not (self.trakt_access_token and self.trakt_refresh_token and self.trakt_expires_at):
            return None
        expires_at = self.trakt_expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return OAuthTokens(
            access_token=self.trakt_access_token,
            refresh_token=self.trakt_refresh_token,
            expires_at=expires_at,
        )

    def integration_configs(self) -> list[IntegrationConfig]:
        """Configurations des intégrations connues."""
        disabled = set(split_list(self.disabled_integrations))
        configs = [
            IntegrationConfig(
                id="tmdb",
                api_key=self.tmdb_api_key,
                options={"language": self.metadata_language},
            ),
            IntegrationConfig(
                id="tvdb",
                api_key=self.tvdb_api_key,
                options={"pin": self.tvdb_pin, "language": self.tvdb_language},
            ),
            IntegrationConfig(id="mdblist", api_key=self.mdblist_api_key),
            IntegrationConfig(id="fanart", api_key=self.fanart_api_key),
            IntegrationConfig(
                id="trakt",
                api_key=self.trakt_client_id,
                tokens=self.trakt_tokens(),
                options={
                    "client_secret": self.trakt_client_secret or "",
                    "redirect_uri": self.trakt_redirect_uri,
                },
            ),
        ]
        return [replace(config, enabled=config.id not in disabled) for config in configs]

    def to_metadata_settings(self) -> MetadataSettings:
        """Construit l'instantané de réglages du gestionnaire de résolution."""
        return MetadataSettings.from_configs(
            self.integration_configs(),
            movie_integrations=split_list(self.movie_integrations),
            tv_integrations=split_list(self.tv_integrations),
            anime_integrations=split_list(self.anime_integrations),
            auto_match_threshold=self.auto_match_threshold,
            fetch_artwork=self.fetch_artwork,
            fetch_ratings=self.fetch_ratings,
            language=self.metadata_language,
            enabled_rating_sources=split_list(self.rating_sources),
        )

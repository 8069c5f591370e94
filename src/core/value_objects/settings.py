"""
Objets valeur de configuration des integrations.

- OAuthTokens : jetons OAuth2 avec expiration absolue
- IntegrationConfig : configuration d'une integration (lue par initialize())
- MetadataSettings : instantane immutable des reglages du moteur de resolution

Les reglages ne sont jamais modifies sur place : une mise a jour produit un
nouvel instantane (voir MetadataSettings.replace), remplace en bloc dans le
gestionnaire de resolution.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Any, Optional

from src.core.value_objects.media_type import MediaCategory
from src.utils.constants import (
    DEFAULT_ANIME_INTEGRATIONS,
    DEFAULT_AUTO_MATCH_THRESHOLD,
    DEFAULT_LANGUAGE,
    DEFAULT_MOVIE_INTEGRATIONS,
    DEFAULT_RATING_SOURCES,
    DEFAULT_TV_INTEGRATIONS,
)


@dataclass(frozen=True)
class OAuthTokens:
    """
    Jetons OAuth2 d'une integration de synchronisation.

    Attributs :
        access_token : Jeton d'acces
        refresh_token : Jeton de rafraichissement
        expires_at : Date d'expiration absolue (UTC)
    """

    access_token: str
    refresh_token: str
    expires_at: datetime

    def expires_within(self, margin: timedelta, now: Optional[datetime] = None) -> bool:
        """Vrai si le jeton expire dans moins de `margin`."""
        current = now or datetime.now(timezone.utc)
        return self.expires_at - current <= margin


def _freeze_mapping(value: Optional[Mapping]) -> Mapping:
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True)
class IntegrationConfig:
    """
    Configuration d'une integration externe.

    Attributs :
        id : Identifiant de l'integration ("tmdb", "tvdb", ...)
        enabled : Integration activee par l'utilisateur
        api_key : Cle API (si requise)
        tokens : Jetons OAuth (integrations OAuth)
        options : Options specifiques (lecture seule), ex: {"pin": "..."}
    """

    id: str
    enabled: bool = True
    api_key: Optional[str] = None
    tokens: Optional[OAuthTokens] = None
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", _freeze_mapping(self.options))

    def option(self, name: str, default: Any = None) -> Any:
        """Retourne une option ou la valeur par defaut."""
        return self.options.get(name, default)


@dataclass(frozen=True)
class MetadataSettings:
    """
    Instantane des reglages du moteur de resolution.

    Attributs :
        integrations : Configurations par identifiant d'integration
        movie_integrations : Ordre de priorite pour les films
        tv_integrations : Ordre de priorite pour les series
        anime_integrations : Ordre de priorite pour les animes
        auto_match_threshold : Seuil de confiance pour l'association automatique
        fetch_artwork : Recuperer les illustrations lors du fetch complet
        fetch_ratings : Recuperer les notes lors du fetch complet
        language : Langue preferee des metadonnees (ex: "fr-FR")
        enabled_rating_sources : Sources de notes conservees
    """

    integrations: Mapping[str, IntegrationConfig] = field(default_factory=dict)
    movie_integrations: tuple[str, ...] = DEFAULT_MOVIE_INTEGRATIONS
    tv_integrations: tuple[str, ...] = DEFAULT_TV_INTEGRATIONS
    anime_integrations: tuple[str, ...] = DEFAULT_ANIME_INTEGRATIONS
    auto_match_threshold: float = DEFAULT_AUTO_MATCH_THRESHOLD
    fetch_artwork: bool = True
    fetch_ratings: bool = True
    language: str = DEFAULT_LANGUAGE
    enabled_rating_sources: tuple[str, ...] = DEFAULT_RATING_SOURCES

    def __post_init__(self) -> None:
        object.__setattr__(self, "integrations", _freeze_mapping(self.integrations))
        for name in (
            "movie_integrations",
            "tv_integrations",
            "anime_integrations",
            "enabled_rating_sources",
        ):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        if not 0.0 <= self.auto_match_threshold <= 1.0:
            raise ValueError(
                f"auto_match_threshold must be within [0, 1], got {self.auto_match_threshold}"
            )

    @classmethod
    def from_configs(
        cls, configs: Iterable[IntegrationConfig], **kwargs: Any
    ) -> "MetadataSettings":
        """Construit des reglages a partir d'une liste de configurations."""
        return cls(integrations={config.id: config for config in configs}, **kwargs)

    def integration_config(self, integration_id: str) -> IntegrationConfig:
        """
        Retourne la configuration d'une integration.

        Une integration absente des reglages est consideree comme desactivee.
        """
        config = self.integrations.get(integration_id)
        if config is None:
            return IntegrationConfig(id=integration_id, enabled=False)
        return config

    def is_enabled(self, integration_id: str) -> bool:
        """Vrai si l'integration est configuree et activee."""
        return self.integration_config(integration_id).enabled

    def priority_for(self, category: MediaCategory) -> tuple[str, ...]:
        """Retourne la liste de priorite de la categorie."""
        if category == MediaCategory.MOVIE:
            return self.movie_integrations
        if category == MediaCategory.TV:
            return self.tv_integrations
        return self.anime_integrations

    def with_integration(self, config: IntegrationConfig) -> "MetadataSettings":
        """Retourne un nouvel instantane avec la configuration remplacee."""
        integrations = dict(self.integrations)
        integrations[config.id] = config
        return replace(self, integrations=integrations)

    def replace(self, **changes: Any) -> "MetadataSettings":
        """Retourne un nouvel instantane avec les champs modifies."""
        return replace(self, **changes)

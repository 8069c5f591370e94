"""
Fixtures pytest partagees pour les tests CineMeta.

Ce module contient les fixtures communes utilisees dans les tests:
- Politique de retry sans attente (tests rapides)
- Settings de test avec chemins temporaires
- Reglages de resolution par defaut
"""

from pathlib import Path

import pytest

from src.adapters.api.retry import RetryPolicy
from src.config import Settings
from src.core.value_objects.settings import IntegrationConfig, MetadataSettings


@pytest.fixture
def fast_policy() -> RetryPolicy:
    """
    Politique de retry sans delai entre les tentatives.

    Conserve 3 tentatives pour verifier le comportement de retry sans
    ralentir la suite de tests.
    """
    return RetryPolicy(max_attempts=3, base_delay=0.0, max_delay=0.0, deadline=5.0)


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """
    Settings de test avec chemins temporaires.

    Utilise tmp_path de pytest pour isoler la base, le cache et les logs
    de chaque test.
    """
    return Settings(
        database_url=f"sqlite:///{tmp_path}/test.db",
        tmdb_api_key="tmdb-key",
        tvdb_api_key="tvdb-key",
        cache_dir=tmp_path / "cache",
        log_file=tmp_path / "test.log",
    )


@pytest.fixture
def metadata_settings() -> MetadataSettings:
    """Reglages avec TMDB, TVDB, MDBList et Fanart.tv actives."""
    return MetadataSettings.from_configs(
        [
            IntegrationConfig(id="tmdb", api_key="tmdb-key"),
            IntegrationConfig(id="tvdb", api_key="tvdb-key"),
            IntegrationConfig(id="mdblist", api_key="mdblist-key"),
            IntegrationConfig(id="fanart", api_key="fanart-key"),
        ],
        movie_integrations=("tmdb",),
        tv_integrations=("tvdb", "tmdb"),
        anime_integrations=("tvdb",),
    )

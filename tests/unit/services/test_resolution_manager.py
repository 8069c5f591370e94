"""
Tests pour ResolutionManager.

Les integrations sont remplacees par des doublures minimales qui
implementent les capacites par duck typing (detection via isinstance sur
les Protocol runtime_checkable).

Verifie:
- Selection des fournisseurs (priorite, activation, preparation, type de media)
- identify: MATCHED / SUGGESTIONS / UNRESOLVED et isolation des echecs
- fetch_and_cache_all: deux passes, fusion des identifiants, illustrations,
  notes filtrees, enregistrement independant des instantanes
- Reglages lus une fois par appel et remplaces en bloc
"""

from dataclasses import replace
from typing import Callable, Optional
from unittest.mock import MagicMock

import pytest
from sqlmodel import Session

from src.core.entities.artwork import Artwork, ArtworkImage
from src.core.entities.media import (
    MovieDetails,
    Network,
    ProductionCompany,
    SearchResult,
    ShowDetails,
)
from src.core.entities.ratings import AggregateRatings, RatingScore
from src.core.exceptions import AuthenticationError, MediaNotFoundError, TransientServiceError
from src.core.ports.repositories import IProviderMetadataRepository
from src.core.value_objects.external_ids import ExternalIds
from src.core.value_objects.media_type import MediaType
from src.core.value_objects.settings import IntegrationConfig, MetadataSettings
from src.infrastructure.persistence.database import create_db_engine, init_db
from src.infrastructure.persistence.repositories.provider_metadata_repository import (
    SQLModelProviderMetadataRepository,
)
from src.services.resolution import IdentifyStatus, ResolutionManager


# ============================================================================
# Doublures
# ============================================================================


class FakeIntegration:
    """Integration minimale: descripteur et cycle de vie."""

    name = "Fake"
    description = ""
    api_key_url = None
    requires_api_key = False
    uses_oauth = False
    provides_metadata = False
    rating_sources: tuple[str, ...] = ()

    def __init__(
        self,
        source: str,
        ready: bool = True,
        movies: bool = True,
        shows: bool = True,
        anime: bool = True,
    ) -> None:
        self.source = source
        self.ready = ready
        self.supports_movies = movies
        self.supports_shows = shows
        self.supports_anime = anime
        self.initialized_with: Optional[IntegrationConfig] = None
        self.closed = False

    async def initialize(self, config: IntegrationConfig) -> None:
        self.initialized_with = config
        self.ready = True

    async def test_connection(self):
        return None

    def is_ready(self) -> bool:
        return self.ready

    def supports_media_type(self, media_type: MediaType) -> bool:
        return self.supports_movies if media_type == MediaType.MOVIE else self.supports_shows

    async def close(self) -> None:
        self.closed = True


class FakeMetadata(FakeIntegration):
    """Fournisseur de metadonnees aux reponses programmees."""

    provides_metadata = True

    def __init__(
        self,
        source: str,
        results: tuple[SearchResult, ...] = (),
        details=None,
        search_error: Optional[Exception] = None,
        details_error: Optional[Exception] = None,
        on_search: Optional[Callable[[], None]] = None,
        **kwargs,
    ) -> None:
        super().__init__(source, **kwargs)
        self.results = list(results)
        self.details = details
        self.search_error = search_error
        self.details_error = details_error
        self.on_search = on_search
        self.search_calls: list[tuple[str, str, Optional[int]]] = []
        self.details_calls: list[str] = []

    async def _search(self, kind: str, query: str, year: Optional[int]):
        self.search_calls.append((kind, query, year))
        if self.on_search is not None:
            self.on_search()
        if self.search_error is not None:
            raise self.search_error
        return self.results

    async def search_movies(self, query: str, year: Optional[int] = None):
        return await self._search("movie", query, year)

    async def search_shows(self, query: str, year: Optional[int] = None):
        return await self._search("show", query, year)

    async def _details(self, media_id: str):
        self.details_calls.append(media_id)
        if self.details_error is not None:
            raise self.details_error
        return self.details

    async def get_movie_details(self, movie_id: str):
        return await self._details(movie_id)

    async def get_show_details(self, show_id: str):
        return await self._details(show_id)

    async def get_season_details(self, show_id: str, season_number: int):
        raise MediaNotFoundError(show_id, self.source)

    async def get_episode_details(self, show_id: str, season_number: int, episode_number: int):
        raise MediaNotFoundError(show_id, self.source)


class FakeRatings(FakeIntegration):
    def __init__(self, source: str = "mdblist", ratings=None, error=None, **kwargs) -> None:
        super().__init__(source, **kwargs)
        self.ratings = ratings
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def _get(self, kind: str, imdb_id: str):
        self.calls.append((kind, imdb_id))
        if self.error is not None:
            raise self.error
        return self.ratings

    async def get_movie_ratings(self, imdb_id: str) -> AggregateRatings:
        return await self._get("movie", imdb_id)

    async def get_show_ratings(self, imdb_id: str) -> AggregateRatings:
        return await self._get("show", imdb_id)


class FakeArtwork(FakeIntegration):
    def __init__(self, source: str = "fanart", artwork=None, error=None, **kwargs) -> None:
        super().__init__(source, **kwargs)
        self.artwork = artwork
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def _get(self, kind: str, media_id: str):
        self.calls.append((kind, media_id))
        if self.error is not None:
            raise self.error
        return self.artwork

    async def get_movie_artwork(self, tmdb_id: str) -> Artwork:
        return await self._get("movie", tmdb_id)

    async def get_show_artwork(self, tvdb_id: str) -> Artwork:
        return await self._get("show", tvdb_id)


# ============================================================================
# Donnees
# ============================================================================


def _movie_result(id: str, title: str, year: Optional[int], source: str = "tmdb", popularity=None):
    return SearchResult(
        source=source,
        id=id,
        title=title,
        media_type=MediaType.MOVIE,
        year=year,
        release_date=f"{year}-03-31" if year else None,
        popularity=popularity,
    )


def _show_result(id: str, title: str, year: Optional[int], source: str):
    return SearchResult(
        source=source, id=id, title=title, media_type=MediaType.TVSHOW, year=year
    )


MATRIX_RESULTS = (
    _movie_result("603", "The Matrix", 1999, popularity=87.4),
    _movie_result("604", "The Matrix Reloaded", 2003, popularity=50.0),
)

MATRIX_DETAILS = MovieDetails(
    source="tmdb",
    id="603",
    title="The Matrix",
    release_date="1999-03-31",
    year=1999,
    external_ids=ExternalIds(tmdb="603", imdb="tt0133093"),
)

FULL_RATINGS = AggregateRatings(
    source="mdblist",
    imdb=RatingScore(8.7),
    rt_critics=RatingScore(83, max_value=100),
    letterboxd=RatingScore(4.2, max_value=5),
)

MATRIX_ARTWORK = Artwork(
    source="fanart",
    logos=[ArtworkImage(url="https://assets.fanart.tv/logo.png", likes=12)],
)


def _settings(**kwargs) -> MetadataSettings:
    defaults = dict(
        movie_integrations=("tmdb",),
        tv_integrations=("tvdb", "tmdb"),
        anime_integrations=("tvdb",),
    )
    defaults.update(kwargs)
    return MetadataSettings.from_configs(
        [
            IntegrationConfig(id="tmdb", api_key="tmdb-key"),
            IntegrationConfig(id="tvdb", api_key="tvdb-key"),
            IntegrationConfig(id="mdblist", api_key="mdblist-key"),
            IntegrationConfig(id="fanart", api_key="fanart-key"),
        ],
        **defaults,
    )


def _breaking_bad(source: str, id: str, external_ids: ExternalIds) -> ShowDetails:
    return ShowDetails(
        source=source,
        id=id,
        title="Breaking Bad",
        first_air_date="2008-01-20",
        year=2008,
        external_ids=external_ids,
    )


# ============================================================================
# Selection des fournisseurs
# ============================================================================


class TestProviderSelection:
    """Tests pour metadata_providers() et les accesseurs de capacite."""

    def test_follows_priority_order(self):
        manager = ResolutionManager(
            _settings(), [FakeMetadata("tmdb"), FakeMetadata("tvdb")]
        )

        assert manager.metadata_providers(MediaType.TVSHOW) == ["tvdb", "tmdb"]

    def test_skips_unregistered_and_unsupported(self):
        """omdb n'est pas enregistre, tvdb ne supporte pas les films."""
        manager = ResolutionManager(
            _settings(movie_integrations=("omdb", "tvdb", "tmdb")),
            [FakeMetadata("tmdb"), FakeMetadata("tvdb", movies=False)],
        )

        assert manager.metadata_providers(MediaType.MOVIE) == ["tmdb"]

    def test_skips_not_ready(self):
        manager = ResolutionManager(
            _settings(), [FakeMetadata("tmdb"), FakeMetadata("tvdb", ready=False)]
        )

        assert manager.metadata_providers(MediaType.TVSHOW) == ["tmdb"]

    def test_skips_disabled(self):
        settings = _settings().with_integration(IntegrationConfig(id="tvdb", enabled=False))
        manager = ResolutionManager(settings, [FakeMetadata("tmdb"), FakeMetadata("tvdb")])

        assert manager.metadata_providers(MediaType.TVSHOW) == ["tmdb"]

    def test_skips_integrations_without_metadata(self):
        manager = ResolutionManager(
            _settings(movie_integrations=("mdblist", "tmdb")),
            [FakeRatings("mdblist"), FakeMetadata("tmdb")],
        )

        assert manager.metadata_providers(MediaType.MOVIE) == ["tmdb"]

    def test_anime_uses_anime_list_and_flag(self):
        manager = ResolutionManager(
            _settings(anime_integrations=("tvdb", "tmdb")),
            [FakeMetadata("tmdb", anime=False), FakeMetadata("tvdb")],
        )

        assert manager.metadata_providers(MediaType.TVSHOW, is_anime=True) == ["tvdb"]

    def test_capability_accessors(self):
        ratings = FakeRatings()
        artwork = FakeArtwork()
        manager = ResolutionManager(_settings(), [FakeMetadata("tmdb"), ratings, artwork])

        assert manager.get_ratings_integration() is ratings
        assert manager.get_artwork_integration() is artwork
        assert manager.get_sync_integration() is None
        assert manager.get_integration("tmdb").source == "tmdb"
        assert manager.get_integration("omdb") is None

    def test_ratings_accessor_requires_ready_and_enabled(self):
        manager = ResolutionManager(_settings(), [FakeRatings(ready=False)])
        assert manager.get_ratings_integration() is None

        manager = ResolutionManager(_settings(), [FakeRatings(source="other")])
        assert manager.get_ratings_integration() is None


# ============================================================================
# Cycle de vie et reglages
# ============================================================================


class TestLifecycleAndSettings:
    @pytest.mark.asyncio
    async def test_initialize_all_only_configured_integrations(self):
        tmdb = FakeMetadata("tmdb", ready=False)
        unknown = FakeMetadata("omdb", ready=False)
        manager = ResolutionManager(_settings(), [tmdb, unknown])

        await manager.initialize_all()

        assert tmdb.initialized_with.api_key == "tmdb-key"
        assert unknown.initialized_with is None

    @pytest.mark.asyncio
    async def test_initialize_all_isolates_errors(self):
        class Broken(FakeMetadata):
            async def initialize(self, config):
                raise RuntimeError("boom")

        tmdb = FakeMetadata("tmdb", ready=False)
        manager = ResolutionManager(_settings(), [Broken("tvdb", ready=False), tmdb])

        await manager.initialize_all()

        assert tmdb.is_ready()

    @pytest.mark.asyncio
    async def test_update_integration_config_reinitializes(self):
        tmdb = FakeMetadata("tmdb")
        manager = ResolutionManager(_settings(), [tmdb])

        await manager.update_integration_config(
            "tmdb", IntegrationConfig(id="wrong-id", api_key="new-key")
        )

        assert tmdb.initialized_with.id == "tmdb"
        assert tmdb.initialized_with.api_key == "new-key"
        assert manager.settings.integration_config("tmdb").api_key == "new-key"

    def test_update_settings_replaces_snapshot(self):
        manager = ResolutionManager(_settings(), [])
        new_settings = _settings(auto_match_threshold=0.5)

        manager.update_settings(new_settings)

        assert manager.settings is new_settings

    @pytest.mark.asyncio
    async def test_close_all(self):
        tmdb, fanart = FakeMetadata("tmdb"), FakeArtwork()
        manager = ResolutionManager(_settings(), [tmdb, fanart])

        await manager.close_all()

        assert tmdb.closed and fanart.closed

    def test_integration_infos(self):
        manager = ResolutionManager(_settings(), [FakeMetadata("tmdb"), FakeRatings()])

        infos = {info.source: info for info in manager.get_integration_infos()}

        assert infos["tmdb"].capabilities == ("metadata",)
        assert infos["mdblist"].capabilities == ("ratings",)


# ============================================================================
# Identification
# ============================================================================


class TestIdentify:
    """Tests pour identify()."""

    @pytest.mark.asyncio
    async def test_matched(self):
        tmdb = FakeMetadata("tmdb", results=MATRIX_RESULTS)
        manager = ResolutionManager(_settings(), [tmdb])

        result = await manager.identify("The Matrix", 1999, MediaType.MOVIE)

        assert result.status == IdentifyStatus.MATCHED
        assert result.is_matched
        assert result.match.id == "603"
        assert result.match.confidence == 1.0
        assert [c.id for c in result.candidates] == ["603", "604"]
        assert result.providers == ["tmdb"]
        assert tmdb.search_calls == [("movie", "The Matrix", 1999)]

    @pytest.mark.asyncio
    async def test_shows_use_show_search(self):
        tvdb = FakeMetadata("tvdb", results=(_show_result("81189", "Breaking Bad", 2008, "tvdb"),))
        manager = ResolutionManager(_settings(tv_integrations=("tvdb",)), [tvdb])

        result = await manager.identify("Breaking Bad", 2008, MediaType.TVSHOW)

        assert result.is_matched
        assert tvdb.search_calls == [("show", "Breaking Bad", 2008)]

    @pytest.mark.asyncio
    async def test_suggestions_below_threshold(self):
        tmdb = FakeMetadata("tmdb", results=(_movie_result("604", "The Matrix Reloaded", 2003),))
        manager = ResolutionManager(_settings(), [tmdb])

        result = await manager.identify("The Matrix", 1999, MediaType.MOVIE)

        assert result.status == IdentifyStatus.SUGGESTIONS
        assert result.match is None
        assert [c.id for c in result.candidates] == ["604"]

    @pytest.mark.asyncio
    async def test_no_results_is_suggestions(self):
        """Un fournisseur a repondu sans resultat: liste de suggestions vide."""
        manager = ResolutionManager(_settings(), [FakeMetadata("tmdb")])

        result = await manager.identify("Unknown Film", None, MediaType.MOVIE)

        assert result.status == IdentifyStatus.SUGGESTIONS
        assert result.candidates == []

    @pytest.mark.asyncio
    async def test_no_provider_is_unresolved(self):
        manager = ResolutionManager(_settings(), [FakeMetadata("tmdb", ready=False)])

        result = await manager.identify("The Matrix", 1999, MediaType.MOVIE)

        assert result.status == IdentifyStatus.UNRESOLVED
        assert result.outcomes == {}

    @pytest.mark.asyncio
    async def test_all_providers_failed_is_unresolved(self):
        manager = ResolutionManager(
            _settings(),
            [
                FakeMetadata("tvdb", search_error=TransientServiceError("timeout", "tvdb")),
                FakeMetadata("tmdb", search_error=AuthenticationError("bad key", "tmdb")),
            ],
        )

        result = await manager.identify("Breaking Bad", 2008, MediaType.TVSHOW)

        assert result.status == IdentifyStatus.UNRESOLVED
        assert result.failed_providers == ["tvdb", "tmdb"]
        assert isinstance(result.outcomes["tmdb"].error, AuthenticationError)

    @pytest.mark.asyncio
    async def test_partial_failure_is_isolated(self):
        tmdb = FakeMetadata(
            "tmdb", results=(_show_result("1396", "Breaking Bad", 2008, "tmdb"),)
        )
        manager = ResolutionManager(
            _settings(),
            [FakeMetadata("tvdb", search_error=RuntimeError("unexpected")), tmdb],
        )

        result = await manager.identify("Breaking Bad", 2008, MediaType.TVSHOW)

        assert result.status == IdentifyStatus.MATCHED
        assert result.match.source == "tmdb"
        assert result.providers == ["tvdb", "tmdb"]
        assert result.failed_providers == ["tvdb"]

    @pytest.mark.asyncio
    async def test_candidates_merged_across_providers(self):
        tvdb = FakeMetadata(
            "tvdb",
            results=(
                _show_result("81189", "Breaking Bad", 2008, "tvdb"),
                _show_result("273181", "Metastasis", 2014, "tvdb"),
            ),
        )
        tmdb = FakeMetadata("tmdb", results=(_show_result("1396", "Breaking Bad", 2008, "tmdb"),))
        manager = ResolutionManager(_settings(), [tvdb, tmdb])

        result = await manager.identify("Breaking Bad", 2008, MediaType.TVSHOW)

        assert len(result.candidates) == 3
        # Egalite de confiance et de popularite: ordre des fournisseurs conserve
        assert [(c.source, c.id) for c in result.candidates[:2]] == [
            ("tvdb", "81189"),
            ("tmdb", "1396"),
        ]
        assert result.match.source == "tvdb"

    @pytest.mark.asyncio
    async def test_anime_list_is_used(self):
        tvdb = FakeMetadata("tvdb", results=(_show_result("1", "Cowboy Bebop", 1998, "tvdb"),))
        tmdb = FakeMetadata("tmdb")
        manager = ResolutionManager(_settings(), [tvdb, tmdb])

        await manager.identify("Cowboy Bebop", 1998, MediaType.TVSHOW, is_anime=True)

        assert tvdb.search_calls and not tmdb.search_calls

    @pytest.mark.asyncio
    async def test_threshold_comes_from_settings(self):
        tmdb = FakeMetadata("tmdb", results=(_movie_result("603", "The Matrix", None),))
        manager = ResolutionManager(_settings(), [tmdb])

        # Titre exact, annee inconnue: 0.7 + 0.3 * 0.7 = 0.91
        assert (await manager.identify("The Matrix", 1999, MediaType.MOVIE)).is_matched

        manager.update_settings(_settings(auto_match_threshold=0.95))
        result = await manager.identify("The Matrix", 1999, MediaType.MOVIE)

        assert result.status == IdentifyStatus.SUGGESTIONS

    @pytest.mark.asyncio
    async def test_settings_read_once_per_call(self):
        """Un remplacement des reglages en cours d'appel ne l'affecte pas."""
        manager = ResolutionManager(_settings(), [])

        def tighten_threshold() -> None:
            manager.update_settings(_settings(auto_match_threshold=1.0))

        tmdb = FakeMetadata(
            "tmdb", results=(_movie_result("603", "The Matrix", None),), on_search=tighten_threshold
        )
        manager.register_integration(tmdb)

        result = await manager.identify("The Matrix", 1999, MediaType.MOVIE)

        assert result.is_matched
        assert manager.settings.auto_match_threshold == 1.0


# ============================================================================
# Recuperation multi-fournisseurs
# ============================================================================


class TestFetchAndCacheAll:
    """Tests pour fetch_and_cache_all()."""

    @pytest.mark.asyncio
    async def test_fetches_details_and_merges_ids(self):
        tmdb = FakeMetadata("tmdb", details=MATRIX_DETAILS)
        manager = ResolutionManager(_settings(fetch_artwork=False, fetch_ratings=False), [tmdb])

        snapshot_set = await manager.fetch_and_cache_all(
            "42", ExternalIds(tmdb="603"), MediaType.MOVIE
        )

        assert tmdb.details_calls == ["603"]
        assert snapshot_set.providers == ["tmdb"]
        assert snapshot_set.details["tmdb"] is MATRIX_DETAILS
        assert snapshot_set.external_ids == ExternalIds(tmdb="603", imdb="tt0133093")
        assert snapshot_set.artwork is None
        assert snapshot_set.ratings is None

    @pytest.mark.asyncio
    async def test_second_pass_uses_merged_ids(self):
        """TVDB devient joignable grace a l'ID TVDB rapporte par TMDB."""
        tmdb = FakeMetadata(
            "tmdb",
            details=_breaking_bad(
                "tmdb", "1396", ExternalIds(tmdb="1396", tvdb="81189", imdb="tt-from-tmdb")
            ),
        )
        tvdb = FakeMetadata(
            "tvdb",
            details=_breaking_bad(
                "tvdb", "81189", ExternalIds(tvdb="81189", tmdb="9999", imdb="tt0903747")
            ),
        )
        manager = ResolutionManager(
            _settings(fetch_artwork=False, fetch_ratings=False), [tmdb, tvdb]
        )

        snapshot_set = await manager.fetch_and_cache_all(
            "7", ExternalIds(tmdb="1396"), MediaType.TVSHOW
        )

        assert tmdb.details_calls == ["1396"]
        assert tvdb.details_calls == ["81189"]
        # Ordre de priorite des series: tvdb puis tmdb
        assert snapshot_set.providers == ["tvdb", "tmdb"]
        # Le fournisseur prioritaire l'emporte, l'identite de depart l'emporte sur tous
        assert snapshot_set.external_ids == ExternalIds(
            tmdb="1396", tvdb="81189", imdb="tt0903747"
        )

    @pytest.mark.asyncio
    async def test_provider_without_known_id_is_skipped(self):
        tvdb = FakeMetadata("tvdb")
        tmdb = FakeMetadata(
            "tmdb", details=_breaking_bad("tmdb", "1396", ExternalIds(tmdb="1396"))
        )
        manager = ResolutionManager(
            _settings(fetch_artwork=False, fetch_ratings=False), [tvdb, tmdb]
        )

        snapshot_set = await manager.fetch_and_cache_all(
            "7", ExternalIds(tmdb="1396"), MediaType.TVSHOW
        )

        assert tvdb.details_calls == []
        assert "tvdb" not in snapshot_set.outcomes

    @pytest.mark.asyncio
    async def test_failed_provider_is_isolated(self):
        tmdb = FakeMetadata(
            "tmdb", details=_breaking_bad("tmdb", "1396", ExternalIds(tmdb="1396"))
        )
        tvdb = FakeMetadata("tvdb", details_error=MediaNotFoundError("81189", "tvdb"))
        manager = ResolutionManager(
            _settings(fetch_artwork=False, fetch_ratings=False), [tmdb, tvdb]
        )

        snapshot_set = await manager.fetch_and_cache_all(
            "7", ExternalIds(tmdb="1396", tvdb="81189"), MediaType.TVSHOW
        )

        assert snapshot_set.providers == ["tmdb"]
        assert snapshot_set.failed_providers == ["tvdb"]
        assert isinstance(snapshot_set.outcomes["tvdb"].error, MediaNotFoundError)

    @pytest.mark.asyncio
    async def test_artwork_and_ratings(self):
        fanart = FakeArtwork(artwork=MATRIX_ARTWORK)
        mdblist = FakeRatings(ratings=FULL_RATINGS)
        manager = ResolutionManager(
            _settings(enabled_rating_sources=("imdb", "rt_critics")),
            [FakeMetadata("tmdb", details=MATRIX_DETAILS), fanart, mdblist],
        )

        snapshot_set = await manager.fetch_and_cache_all(
            "42", ExternalIds(tmdb="603"), MediaType.MOVIE
        )

        assert fanart.calls == [("movie", "603")]
        assert snapshot_set.artwork is MATRIX_ARTWORK
        # Notes recherchees par l'ID IMDb rapporte par TMDB
        assert mdblist.calls == [("movie", "tt0133093")]
        assert set(snapshot_set.ratings.as_dict()) == {"imdb", "rt_critics"}
        assert snapshot_set.outcomes["fanart"].succeeded
        assert snapshot_set.outcomes["mdblist"].succeeded

    @pytest.mark.asyncio
    async def test_show_artwork_uses_tvdb_id(self):
        fanart = FakeArtwork(artwork=MATRIX_ARTWORK)
        tmdb = FakeMetadata(
            "tmdb", details=_breaking_bad("tmdb", "1396", ExternalIds(tmdb="1396", tvdb="81189"))
        )
        manager = ResolutionManager(
            _settings(tv_integrations=("tmdb",), fetch_ratings=False), [tmdb, fanart]
        )

        await manager.fetch_and_cache_all("7", ExternalIds(tmdb="1396"), MediaType.TVSHOW)

        assert fanart.calls == [("show", "81189")]

    @pytest.mark.asyncio
    async def test_empty_results_give_none(self):
        manager = ResolutionManager(
            _settings(enabled_rating_sources=("metacritic",)),
            [
                FakeMetadata("tmdb", details=MATRIX_DETAILS),
                FakeArtwork(artwork=Artwork(source="fanart")),
                FakeRatings(ratings=FULL_RATINGS),
            ],
        )

        snapshot_set = await manager.fetch_and_cache_all(
            "42", ExternalIds(tmdb="603"), MediaType.MOVIE
        )

        assert snapshot_set.artwork is None
        assert snapshot_set.ratings is None

    @pytest.mark.asyncio
    async def test_artwork_and_ratings_failures_are_isolated(self):
        manager = ResolutionManager(
            _settings(),
            [
                FakeMetadata("tmdb", details=MATRIX_DETAILS),
                FakeArtwork(error=TransientServiceError("503", "fanart")),
                FakeRatings(error=AuthenticationError("bad key", "mdblist")),
            ],
        )

        snapshot_set = await manager.fetch_and_cache_all(
            "42", ExternalIds(tmdb="603"), MediaType.MOVIE
        )

        assert snapshot_set.providers == ["tmdb"]
        assert snapshot_set.artwork is None
        assert snapshot_set.ratings is None
        assert set(snapshot_set.failed_providers) == {"fanart", "mdblist"}

    @pytest.mark.asyncio
    async def test_disabled_fetches_are_skipped(self):
        fanart = FakeArtwork(artwork=MATRIX_ARTWORK)
        mdblist = FakeRatings(ratings=FULL_RATINGS)
        manager = ResolutionManager(
            _settings(fetch_artwork=False, fetch_ratings=False),
            [FakeMetadata("tmdb", details=MATRIX_DETAILS), fanart, mdblist],
        )

        await manager.fetch_and_cache_all("42", ExternalIds(tmdb="603"), MediaType.MOVIE)

        assert fanart.calls == []
        assert mdblist.calls == []

    @pytest.mark.asyncio
    async def test_ratings_skipped_without_imdb_id(self):
        mdblist = FakeRatings(ratings=FULL_RATINGS)
        details = MovieDetails(
            source="tmdb", id="603", title="The Matrix", external_ids=ExternalIds(tmdb="603")
        )
        manager = ResolutionManager(
            _settings(fetch_artwork=False), [FakeMetadata("tmdb", details=details), mdblist]
        )

        snapshot_set = await manager.fetch_and_cache_all(
            "42", ExternalIds(tmdb="603"), MediaType.MOVIE
        )

        assert mdblist.calls == []
        assert snapshot_set.ratings is None


# ============================================================================
# Logos complementaires
# ============================================================================


class TestLogoSupplement:
    """Les logos manquants du fournisseur principal viennent des suivants."""

    @pytest.mark.asyncio
    async def test_network_logo_filled_from_fallback(self):
        tvdb_details = replace(
            _breaking_bad("tvdb", "81189", ExternalIds(tvdb="81189")),
            networks=[Network(name="AMC"), Network(name="Netflix", logo_path="/tvdb/netflix.png")],
        )
        tmdb_details = replace(
            _breaking_bad("tmdb", "1396", ExternalIds(tmdb="1396")),
            networks=[
                Network(name=" amc ", logo_path="/tmdb/amc.png"),
                Network(name="Netflix", logo_path="/tmdb/netflix.png"),
            ],
        )
        manager = ResolutionManager(
            _settings(fetch_artwork=False, fetch_ratings=False),
            [FakeMetadata("tvdb", details=tvdb_details), FakeMetadata("tmdb", details=tmdb_details)],
        )

        snapshot_set = await manager.fetch_and_cache_all(
            "7", ExternalIds(tmdb="1396", tvdb="81189"), MediaType.TVSHOW
        )

        networks = snapshot_set.details["tvdb"].networks
        assert [n.logo_path for n in networks] == ["/tmdb/amc.png", "/tvdb/netflix.png"]
        assert snapshot_set.supplemented_from == ["tmdb"]
        assert snapshot_set.details["tmdb"] is tmdb_details
        # Le fournisseur d'origine n'est pas modifie
        assert tvdb_details.networks[0].logo_path is None

    @pytest.mark.asyncio
    async def test_company_logo_filled_for_movies(self):
        primary = replace(
            MATRIX_DETAILS,
            production_companies=[ProductionCompany(name="Village Roadshow Pictures")],
        )
        fallback = replace(
            MATRIX_DETAILS,
            source="tvdb",
            id="169",
            production_companies=[
                ProductionCompany(name="Village Roadshow Pictures", logo_path="/vr.png")
            ],
            external_ids=ExternalIds(tmdb="603", tvdb="169"),
        )
        manager = ResolutionManager(
            _settings(
                movie_integrations=("tmdb", "tvdb"), fetch_artwork=False, fetch_ratings=False
            ),
            [FakeMetadata("tmdb", details=primary), FakeMetadata("tvdb", details=fallback)],
        )

        snapshot_set = await manager.fetch_and_cache_all(
            "42", ExternalIds(tmdb="603", tvdb="169"), MediaType.MOVIE
        )

        companies = snapshot_set.details["tmdb"].production_companies
        assert companies[0].logo_path == "/vr.png"
        assert snapshot_set.snapshots()[0].payload["production_companies"][0]["logo_path"] == (
            "/vr.png"
        )

    @pytest.mark.asyncio
    async def test_complete_primary_is_left_untouched(self):
        tvdb_details = replace(
            _breaking_bad("tvdb", "81189", ExternalIds(tvdb="81189")),
            networks=[Network(name="AMC", logo_path="/tvdb/amc.png")],
        )
        tmdb_details = replace(
            _breaking_bad("tmdb", "1396", ExternalIds(tmdb="1396")),
            networks=[Network(name="AMC", logo_path="/tmdb/amc.png")],
        )
        manager = ResolutionManager(
            _settings(fetch_artwork=False, fetch_ratings=False),
            [FakeMetadata("tvdb", details=tvdb_details), FakeMetadata("tmdb", details=tmdb_details)],
        )

        snapshot_set = await manager.fetch_and_cache_all(
            "7", ExternalIds(tmdb="1396", tvdb="81189"), MediaType.TVSHOW
        )

        assert snapshot_set.details["tvdb"] is tvdb_details
        assert snapshot_set.supplemented_from == []


# ============================================================================
# Enregistrement des instantanes
# ============================================================================


class TestPersistence:
    @pytest.mark.asyncio
    async def test_snapshots_saved_per_provider(self):
        repository = MagicMock(spec=IProviderMetadataRepository)
        manager = ResolutionManager(
            _settings(fetch_artwork=False, fetch_ratings=False),
            [FakeMetadata("tmdb", details=MATRIX_DETAILS)],
            repository=repository,
        )

        snapshot_set = await manager.fetch_and_cache_all(
            "42", ExternalIds(tmdb="603"), MediaType.MOVIE
        )

        repository.save_snapshot.assert_called_once()
        snapshot = repository.save_snapshot.call_args.args[0]
        assert snapshot.media_id == "42"
        assert snapshot.provider == "tmdb"
        assert snapshot.provider_media_id == "603"
        assert snapshot_set.persisted == ["tmdb"]

    @pytest.mark.asyncio
    async def test_persist_error_affects_only_its_provider(self):
        def save(snapshot):
            if snapshot.provider == "tvdb":
                raise RuntimeError("disk full")
            return snapshot

        repository = MagicMock(spec=IProviderMetadataRepository)
        repository.save_snapshot.side_effect = save
        manager = ResolutionManager(
            _settings(fetch_artwork=False, fetch_ratings=False),
            [
                FakeMetadata(
                    "tvdb", details=_breaking_bad("tvdb", "81189", ExternalIds(tvdb="81189"))
                ),
                FakeMetadata(
                    "tmdb", details=_breaking_bad("tmdb", "1396", ExternalIds(tmdb="1396"))
                ),
            ],
            repository=repository,
        )

        snapshot_set = await manager.fetch_and_cache_all(
            "7", ExternalIds(tmdb="1396", tvdb="81189"), MediaType.TVSHOW
        )

        assert snapshot_set.persisted == ["tmdb"]
        assert list(snapshot_set.persist_errors) == ["tvdb"]
        assert snapshot_set.providers == ["tvdb", "tmdb"]

    @pytest.mark.asyncio
    async def test_failed_commit_does_not_block_other_snapshots(self):
        """Avec un vrai repository SQLite, un echec n'empeche pas les autres."""
        engine = init_db(create_db_engine("sqlite:///:memory:"))
        with Session(engine) as session:
            repository = SQLModelProviderMetadataRepository(session)
            untitled = ShowDetails(
                source="tvdb", id="81189", title=None, external_ids=ExternalIds(tvdb="81189")
            )
            manager = ResolutionManager(
                _settings(fetch_artwork=False, fetch_ratings=False),
                [
                    FakeMetadata("tvdb", details=untitled),
                    FakeMetadata(
                        "tmdb", details=_breaking_bad("tmdb", "1396", ExternalIds(tmdb="1396"))
                    ),
                ],
                repository=repository,
            )

            snapshot_set = await manager.fetch_and_cache_all(
                "7", ExternalIds(tmdb="1396", tvdb="81189"), MediaType.TVSHOW
            )

            assert snapshot_set.persisted == ["tmdb"]
            assert list(snapshot_set.persist_errors) == ["tvdb"]
            stored = repository.list_snapshots(MediaType.TVSHOW, "7")
            assert [s.provider for s in stored] == ["tmdb"]

    @pytest.mark.asyncio
    async def test_without_repository_nothing_is_persisted(self):
        manager = ResolutionManager(
            _settings(fetch_artwork=False, fetch_ratings=False),
            [FakeMetadata("tmdb", details=MATRIX_DETAILS)],
        )

        snapshot_set = await manager.fetch_and_cache_all(
            "42", ExternalIds(tmdb="603"), MediaType.MOVIE
        )

        assert snapshot_set.persisted == []
        assert len(snapshot_set.snapshots()) == 1


# ============================================================================
# Resolution complete
# ============================================================================


class TestResolve:
    @pytest.mark.asyncio
    async def test_matched_then_fetched(self):
        tmdb = FakeMetadata("tmdb", results=MATRIX_RESULTS, details=MATRIX_DETAILS)
        manager = ResolutionManager(_settings(fetch_artwork=False, fetch_ratings=False), [tmdb])

        result = await manager.resolve("The Matrix", 1999, MediaType.MOVIE, "42")

        assert result.status == IdentifyStatus.MATCHED
        assert result.snapshots is not None
        assert result.snapshots.external_ids.imdb == "tt0133093"
        assert tmdb.details_calls == ["603"]

    @pytest.mark.asyncio
    async def test_unmatched_is_not_fetched(self):
        tmdb = FakeMetadata("tmdb", results=(_movie_result("604", "The Matrix Reloaded", 2003),))
        manager = ResolutionManager(_settings(), [tmdb])

        result = await manager.resolve("The Matrix", 1999, MediaType.MOVIE, "42")

        assert result.status == IdentifyStatus.SUGGESTIONS
        assert result.snapshots is None
        assert tmdb.details_calls == []

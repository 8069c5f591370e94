"""
Tests pour les interfaces ports des integrations.

Les capacites sont detectees a l'execution par isinstance() sur des
Protocol runtime_checkable: une classe n'a pas besoin d'en heriter.
"""

from typing import Optional

from src.core.entities.artwork import Artwork
from src.core.entities.ratings import AggregateRatings
from src.core.ports.integrations import (
    ArtworkCapability,
    BaseIntegration,
    ConnectionStatus,
    MetadataCapability,
    RatingsCapability,
    SyncCapability,
    describe_capabilities,
    has_sync_capability,
    integration_info,
)
from src.core.value_objects.media_type import MediaType


class RatingsOnly:
    """Integration minimale fournissant uniquement des notes."""

    source = "ratings-only"
    name = "Ratings Only"
    description = ""
    api_key_url: Optional[str] = None
    requires_api_key = False
    uses_oauth = False
    provides_metadata = False
    supports_movies = True
    supports_shows = False
    supports_anime = False
    rating_sources = ("imdb",)

    async def initialize(self, config) -> None:
        pass

    async def test_connection(self) -> ConnectionStatus:
        return ConnectionStatus(True, "Connected")

    def is_ready(self) -> bool:
        return True

    def supports_media_type(self, media_type: MediaType) -> bool:
        return media_type == MediaType.MOVIE

    async def close(self) -> None:
        pass

    async def get_movie_ratings(self, imdb_id: str) -> AggregateRatings:
        return AggregateRatings(source=self.source)

    async def get_show_ratings(self, imdb_id: str) -> AggregateRatings:
        return AggregateRatings(source=self.source)


class ArtworkAndRatings(RatingsOnly):
    source = "both"

    async def get_movie_artwork(self, tmdb_id: str) -> Artwork:
        return Artwork(source=self.source)

    async def get_show_artwork(self, tvdb_id: str) -> Artwork:
        return Artwork(source=self.source)


class TestCapabilityDetection:
    """Detection structurelle des capacites."""

    def test_base_contract(self):
        assert isinstance(RatingsOnly(), BaseIntegration)

    def test_single_capability(self):
        integration = RatingsOnly()

        assert isinstance(integration, RatingsCapability)
        assert not isinstance(integration, MetadataCapability)
        assert not isinstance(integration, ArtworkCapability)
        assert not isinstance(integration, SyncCapability)
        assert not has_sync_capability(integration)

    def test_multiple_capabilities(self):
        assert describe_capabilities(ArtworkAndRatings()) == ("ratings", "artwork")

    def test_object_without_capability(self):
        assert describe_capabilities(object()) == ()


class TestIntegrationInfo:
    def test_integration_info(self):
        info = integration_info(RatingsOnly())

        assert info.source == "ratings-only"
        assert info.capabilities == ("ratings",)
        assert info.rating_sources == ("imdb",)
        assert info.ready is True
        assert info.supports_movies is True
        assert info.supports_shows is False


class TestConnectionStatus:
    def test_default_message(self):
        status = ConnectionStatus(False)
        assert status.success is False
        assert status.message == ""

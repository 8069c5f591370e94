"""
Tests unitaires pour FanartClient (capacite Artwork).
"""

import httpx
import pytest
import respx

from src.adapters.api.fanart_client import FanartClient
from src.adapters.api.retry import RetryPolicy
from src.core.exceptions import IntegrationNotReadyError
from src.core.ports.integrations import has_artwork_capability, has_ratings_capability
from src.core.value_objects.settings import IntegrationConfig
from tests.fixtures.fanart_responses import FANART_MOVIE_RESPONSE, FANART_SHOW_RESPONSE

BASE = "https://webservice.fanart.tv/v3"
CONFIG = IntegrationConfig(id="fanart", api_key="test-fanart-key")


@pytest.fixture
def fanart_client(fast_policy: RetryPolicy) -> FanartClient:
    return FanartClient(policy=fast_policy)


class TestFanartClient:
    """Tests pour FanartClient."""

    def test_capabilities(self, fanart_client: FanartClient) -> None:
        assert has_artwork_capability(fanart_client)
        assert not has_ratings_capability(fanart_client)

    @pytest.mark.asyncio
    async def test_not_ready_raises(self, fanart_client: FanartClient) -> None:
        with pytest.raises(IntegrationNotReadyError):
            await fanart_client.get_movie_artwork("603")

    @pytest.mark.asyncio
    @respx.mock
    async def test_movie_artwork(self, fanart_client: FanartClient) -> None:
        route = respx.get(f"{BASE}/movies/603").mock(
            return_value=httpx.Response(200, json=FANART_MOVIE_RESPONSE)
        )
        await fanart_client.initialize(CONFIG)

        artwork = await fanart_client.get_movie_artwork("603")

        assert route.calls.last.request.url.params["api_key"] == "test-fanart-key"
        assert artwork.source == "fanart"
        # Tri par likes decroissants
        assert [image.likes for image in artwork.logos] == [12, 3]
        assert artwork.logos[0].url.endswith("logo-b.png")
        assert artwork.best_poster().language == "en"
        assert artwork.best_poster("fr").url.endswith("poster-fr.jpg")
        # Langue vide ou "00": image sans texte
        assert artwork.backgrounds[0].language is None
        assert artwork.disc_art[0].language is None
        assert artwork.banners == []

    @pytest.mark.asyncio
    @respx.mock
    async def test_show_artwork(self, fanart_client: FanartClient) -> None:
        respx.get(f"{BASE}/tv/81189").mock(
            return_value=httpx.Response(200, json=FANART_SHOW_RESPONSE)
        )
        await fanart_client.initialize(CONFIG)

        artwork = await fanart_client.get_show_artwork("81189")

        assert artwork.logos[0].likes == 20
        assert [image.season for image in artwork.season_posters] == [2, 1]
        # "all" ne correspond a aucune saison precise
        assert artwork.season_thumbs[1].season is None
        assert [image.url.rsplit("/", 1)[-1] for image in artwork.for_season(1)] == [
            "s1.jpg",
            "s1.jpg",
        ]

    @pytest.mark.asyncio
    @respx.mock
    async def test_unknown_media_gives_empty_artwork(self, fanart_client: FanartClient) -> None:
        respx.get(f"{BASE}/movies/999999").mock(
            return_value=httpx.Response(404, json={"status": "error"})
        )
        await fanart_client.initialize(CONFIG)

        artwork = await fanart_client.get_movie_artwork("999999")

        assert artwork.is_empty()

    @pytest.mark.asyncio
    @respx.mock
    async def test_test_connection(self, fanart_client: FanartClient) -> None:
        respx.get(f"{BASE}/movies/603").mock(
            return_value=httpx.Response(200, json=FANART_MOVIE_RESPONSE)
        )
        await fanart_client.initialize(CONFIG)

        assert (await fanart_client.test_connection()).success is True

"""
Client Fanart.tv pour les illustrations.

Fanart.tv fournit des illustrations communautaires de haute qualite
(logos HD, clear art, disques, bannieres, fonds). Les films sont indexes
par ID TMDB, les series par ID TVDB.

Reference API: https://fanarttv.docs.apiary.io/
"""

from typing import Optional

from src.adapters.api.base import BaseIntegrationClient
from src.core.entities.artwork import Artwork, ArtworkImage

# Cles Fanart.tv -> attribut de Artwork, pour les films
MOVIE_KEYS = {
    "movieposter": "posters",
    "moviebackground": "backgrounds",
    "hdmovielogo": "logos",
    "hdmovieclearart": "clear_art",
    "moviedisc": "disc_art",
    "moviebanner": "banners",
    "moviethumb": "thumbs",
}

# Cles Fanart.tv -> attribut de Artwork, pour les series
SHOW_KEYS = {
    "tvposter": "posters",
    "showbackground": "backgrounds",
    "hdtvlogo": "logos",
    "hdclearart": "clear_art",
    "tvbanner": "banners",
    "tvthumb": "thumbs",
    "seasonposter": "season_posters",
    "seasonbanner": "season_banners",
    "seasonthumb": "season_thumbs",
}

# The Matrix (TMDB), utilise pour tester la connexion
CONNECTION_TEST_TMDB_ID = "603"


def _parse_season(value: Optional[str]) -> Optional[int]:
    # "all" designe une image valable pour toutes les saisons
    if value is None or not str(value).isdigit():
        return None
    return int(value)


def _parse_language(value: Optional[str]) -> Optional[str]:
    # "00" designe une image sans texte
    if not value or value == "00":
        return None
    return value


def _parse_likes(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class FanartClient(BaseIntegrationClient):
    """
    Client Fanart.tv (capacite Artwork).

    Un media inconnu (404) donne un Artwork vide. Chaque liste d'images est
    triee par nombre de likes decroissant.

    Example:
        client = FanartClient()
        await client.initialize(IntegrationConfig(id="fanart", api_key="xxx"))
        artwork = await client.get_movie_artwork("603")
        logo = artwork.logos[0].url if artwork.logos else None
    """

    BASE_URL = "https://webservice.fanart.tv/v3"

    source = "fanart"
    name = "Fanart.tv"
    description = "High quality logos, clear art and backgrounds"
    api_key_url = "https://fanart.tv/get-an-api-key/"
    requires_api_key = True
    uses_oauth = False
    provides_metadata = False
    supports_movies = True
    supports_shows = True
    supports_anime = True
    rating_sources = ()

    def _default_params(self) -> dict[str, str]:
        return {"api_key": self._api_key} if self._api_key else {}

    async def _check_connection(self) -> None:
        await self._get_json(f"/movies/{CONNECTION_TEST_TMDB_ID}")

    async def get_movie_artwork(self, tmdb_id: str) -> Artwork:
        """
        Recupere les illustrations d'un film.

        Args:
            tmdb_id: ID TMDB du film

        Returns:
            Artwork (vide si Fanart.tv ne connait pas le film)
        """
        return await self._get_artwork(f"/movies/{tmdb_id}", MOVIE_KEYS, f"fanart:movie:{tmdb_id}")

    async def get_show_artwork(self, tvdb_id: str) -> Artwork:
        """
        Recupere les illustrations d'une serie.

        Args:
            tvdb_id: ID TVDB de la serie

        Returns:
            Artwork (vide si Fanart.tv ne connait pas la serie)
        """
        return await self._get_artwork(f"/tv/{tvdb_id}", SHOW_KEYS, f"fanart:tv:{tvdb_id}")

    async def _get_artwork(self, path: str, keys: dict[str, str], cache_key: str) -> Artwork:
        self._ensure_ready()

        async def fetch() -> Artwork:
            data = await self._get_json(path)
            return self._to_artwork(data or {}, keys)

        return await self._cached(cache_key, self._details_ttl, fetch)

    def _to_artwork(self, data: dict, keys: dict[str, str]) -> Artwork:
        artwork = Artwork(source=self.source)
        for key, attribute in keys.items():
            images = [
                ArtworkImage(
                    url=item["url"],
                    language=_parse_language(item.get("lang")),
                    likes=_parse_likes(item.get("likes")),
                    season=_parse_season(item.get("season")),
                )
                for item in data.get(key) or []
                if item.get("url")
            ]
            images.sort(key=lambda image: image.likes, reverse=True)
            getattr(artwork, attribute).extend(images)
        return artwork

"""
Client MDBList pour les notes agregees.

MDBList regroupe les notes de nombreuses sources (IMDb, Rotten Tomatoes,
Metacritic, Letterboxd, Trakt, TMDB) pour un media identifie par son ID
IMDb. L'integration ne fournit que des notes, pas de metadonnees.

Reference API: https://mdblist.com/api/
"""

import math
from typing import Optional

from src.adapters.api.base import BaseIntegrationClient
from src.core.entities.ratings import AggregateRatings, RatingScore

# Noms des sources MDBList -> sources de notes (None: source ignoree)
SOURCE_MAP: dict[str, Optional[str]] = {
    "imdb": "imdb",
    "tomatoes": "rt_critics",
    "tomatoesaudience": "rt_audience",
    "metacritic": "metacritic",
    "letterboxd": "letterboxd",
    "trakt": "trakt",
    "tmdb": "tmdb",
    "rogerebert": None,
    "myanimelist": None,
}

# Echelle native de chaque source
SOURCE_SCALES: dict[str, float] = {
    "imdb": 10.0,
    "tmdb": 100.0,
    "rt_critics": 100.0,
    "rt_audience": 100.0,
    "metacritic": 100.0,
    "letterboxd": 5.0,
    "trakt": 100.0,
}

# The Shawshank Redemption, utilise pour tester la connexion
CONNECTION_TEST_IMDB_ID = "tt0111161"


class MDBListClient(BaseIntegrationClient):
    """
    Client MDBList (capacite Ratings).

    Un identifiant inconnu (404 ou objet "error" dans la reponse) donne un
    AggregateRatings vide.

    Example:
        client = MDBListClient()
        await client.initialize(IntegrationConfig(id="mdblist", api_key="xxx"))
        ratings = await client.get_movie_ratings("tt0133093")
        print(ratings.imdb.value if ratings.imdb else "n/a")
    """

    BASE_URL = "https://mdblist.com/api/"

    source = "mdblist"
    name = "MDBList"
    description = "Aggregated ratings from IMDb, Rotten Tomatoes, Metacritic and more"
    api_key_url = "https://mdblist.com/preferences/"
    requires_api_key = True
    uses_oauth = False
    provides_metadata = False
    supports_movies = True
    supports_shows = True
    supports_anime = False
    rating_sources = (
        "imdb",
        "rt_critics",
        "rt_audience",
        "metacritic",
        "letterboxd",
        "trakt",
        "tmdb",
    )

    def _default_params(self) -> dict[str, str]:
        return {"apikey": self._api_key} if self._api_key else {}

    async def _check_connection(self) -> None:
        await self._lookup(CONNECTION_TEST_IMDB_ID)

    async def _lookup(self, imdb_id: str) -> Optional[dict]:
        """Recherche par ID IMDb; None si inconnu."""
        data = await self._get_json("/", {"i": imdb_id})
        if not data or data.get("error"):
            return None
        return data

    async def get_movie_ratings(self, imdb_id: str) -> AggregateRatings:
        """
        Recupere les notes d'un film.

        Args:
            imdb_id: ID IMDb (ex: "tt0133093")

        Returns:
            AggregateRatings (vide si MDBList ne connait pas le film)
        """
        return await self._get_ratings(imdb_id, "movie")

    async def get_show_ratings(self, imdb_id: str) -> AggregateRatings:
        """Recupere les notes d'une serie (meme endpoint que les films)."""
        return await self._get_ratings(imdb_id, "show")

    async def _get_ratings(self, imdb_id: str, kind: str) -> AggregateRatings:
        self._ensure_ready()

        async def fetch() -> AggregateRatings:
            data = await self._lookup(imdb_id)
            return self._to_ratings((data or {}).get("ratings") or [])

        cache_key = f"mdblist:{kind}:{imdb_id}"
        return await self._cached(cache_key, self._search_ttl, fetch)

    def _to_ratings(self, raw_ratings: list[dict]) -> AggregateRatings:
        scores: dict[str, RatingScore] = {}
        for rating in raw_ratings:
            source = SOURCE_MAP.get(str(rating.get("source", "")).lower())
            value = rating.get("value")
            if source is None or value is None:
                continue
            try:
                numeric = float(value)
            except (TypeError, ValueError):
                continue
            if math.isnan(numeric):
                continue
            scores[source] = RatingScore(
                value=numeric,
                votes=rating.get("votes"),
                max_value=SOURCE_SCALES[source],
            )
        return AggregateRatings(source=self.source, **scores)

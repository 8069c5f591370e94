"""
Constantes globales pour CineMeta.

Ce module contient les constantes partagees par les integrations et le
gestionnaire de resolution:
- Listes de priorite par defaut des fournisseurs
- Sources de notes reconnues
- Parametres par defaut du retry et des timeouts
- Ponderation du score de confiance
"""

# Priorites par defaut des fournisseurs de metadonnees, par categorie
DEFAULT_MOVIE_INTEGRATIONS = ("tmdb", "omdb")
DEFAULT_TV_INTEGRATIONS = ("tmdb", "tvdb")
DEFAULT_ANIME_INTEGRATIONS = ("anilist", "anidb", "mal")

# Seuil de confiance pour l'association automatique
DEFAULT_AUTO_MATCH_THRESHOLD = 0.85

DEFAULT_LANGUAGE = "en-US"

# Sources de notes reconnues (ordre d'affichage)
RATING_SOURCES = (
    "imdb",
    "tmdb",
    "rt_critics",
    "rt_audience",
    "metacritic",
    "letterboxd",
    "trakt",
)

DEFAULT_RATING_SOURCES = ("imdb", "tmdb", "rt_critics", "rt_audience", "metacritic")

# Retry: 3 tentatives, backoff exponentiel de 1s a 10s avec jitter
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 10.0

# Delai maximum d'une tentative HTTP (secondes)
DEFAULT_REQUEST_DEADLINE = 10.0

# Ponderation du score de confiance
TITLE_WEIGHT = 0.7
YEAR_WEIGHT = 0.3

# Score d'annee quand l'une des deux annees est inconnue
NEUTRAL_YEAR_SCORE = 0.7

# Articles retires en tete de titre pour la normalisation
LEADING_ARTICLES = ("the", "a", "an")

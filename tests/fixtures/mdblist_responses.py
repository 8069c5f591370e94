"""
Mock MDBList API responses for testing.

GET https://mdblist.com/api/?apikey=...&i=<imdb id>
"""

# Ratings for The Matrix (tt0133093)
MDBLIST_MATRIX_RESPONSE = {
    "title": "The Matrix",
    "year": 1999,
    "type": "movie",
    "imdbid": "tt0133093",
    "tmdbid": 603,
    "ratings": [
        {"source": "imdb", "value": 8.7, "score": 87, "votes": 2000000},
        {"source": "metacritic", "value": 73, "score": 73, "votes": 35},
        {"source": "tomatoes", "value": 83, "score": 83, "votes": 160},
        {"source": "tomatoesaudience", "value": 85, "score": 85, "votes": 33000000},
        {"source": "tmdb", "value": 82, "score": 82, "votes": 25000},
        {"source": "letterboxd", "value": 4.2, "score": 84, "votes": None},
        {"source": "trakt", "value": 87, "score": 87, "votes": 70000},
        {"source": "rogerebert", "value": 3, "score": 75, "votes": None},
        {"source": "myanimelist", "value": None, "score": None, "votes": None},
    ],
}

# Unknown id: MDBList answers 200 with an error object
MDBLIST_ERROR_RESPONSE = {
    "response": False,
    "error": "Item not found!",
}

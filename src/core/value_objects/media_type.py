"""
Types de media et categories de priorite.
"""

from enum import Enum


class MediaType(str, Enum):
    """Type de media manipule par le moteur de resolution.

    Valeurs:
        MOVIE: Film (long-metrage)
        TVSHOW: Serie TV
    """

    MOVIE = "movie"
    TVSHOW = "tvshow"


class MediaCategory(str, Enum):
    """Categorie utilisee pour choisir la liste de priorite des fournisseurs.

    Valeurs:
        MOVIE: Films
        TV: Series TV
        ANIME: Animes (films ou series)
    """

    MOVIE = "movie"
    TV = "tv"
    ANIME = "anime"

    @classmethod
    def for_media(cls, media_type: MediaType, is_anime: bool = False) -> "MediaCategory":
        """Determine la categorie a partir du type de media et du drapeau anime."""
        if is_anime:
            return cls.ANIME
        if media_type == MediaType.MOVIE:
            return cls.MOVIE
        return cls.TV

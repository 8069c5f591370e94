"""
Artwork entities.

Images collected from artwork providers (posters, backgrounds, logos...).
Season-specific images carry their season number.
"""

from dataclasses import dataclass, field, fields
from typing import Optional


@dataclass
class ArtworkImage:
    """
    A single artwork image.

    Attributes:
        url: Full image URL
        language: ISO 639-1 language code, None for textless images
        likes: Community votes, used for ordering
        season: Season number for season artwork, None otherwise
    """

    url: str
    language: Optional[str] = None
    likes: int = 0
    season: Optional[int] = None


@dataclass
class Artwork:
    """
    Artwork collection for a movie or a show.

    Each list is sorted by likes, most liked first.
    """

    source: str
    posters: list[ArtworkImage] = field(default_factory=list)
    backgrounds: list[ArtworkImage] = field(default_factory=list)
    logos: list[ArtworkImage] = field(default_factory=list)
    clear_art: list[ArtworkImage] = field(default_factory=list)
    disc_art: list[ArtworkImage] = field(default_factory=list)
    banners: list[ArtworkImage] = field(default_factory=list)
    thumbs: list[ArtworkImage] = field(default_factory=list)
    season_posters: list[ArtworkImage] = field(default_factory=list)
    season_banners: list[ArtworkImage] = field(default_factory=list)
    season_thumbs: list[ArtworkImage] = field(default_factory=list)

    def is_empty(self) -> bool:
        """True when no image of any kind is present."""
        return not any(
            getattr(self, f.name) for f in fields(self) if f.name != "source"
        )

    def for_season(self, season: int) -> list[ArtworkImage]:
        """All season images (posters, banners, thumbs) for one season."""
        return [
            image
            for image in self.season_posters + self.season_banners + self.season_thumbs
            if image.season == season
        ]

    def best_poster(self, language: Optional[str] = None) -> Optional[ArtworkImage]:
        """Most liked poster, preferring the given language when available."""
        if language:
            for image in self.posters:
                if image.language == language:
                    return image
        return self.posters[0] if self.posters else None

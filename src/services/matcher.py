"""
Service de scoring pour le matching de resultats de recherche.

Calcule un score de confiance entre un titre local (issu du scan de la
videotheque) et les candidats retournes par les fournisseurs de metadonnees.

Formule de confiance:
- 70% similarite de titre (distance de Levenshtein sur titres normalises)
- 30% proximite d'annee (1.0 exacte, 0.8 a +/-1, 0.5 a +/-2, 0 au-dela,
  0.7 si l'une des annees est inconnue)

Le scoring est deterministe pour des resultats reproductibles.
"""

import re
from collections.abc import Iterable
from datetime import date
from typing import Optional, Union

from rapidfuzz.distance import Levenshtein

from src.core.entities.media import ScoredSearchResult, SearchResult
from src.utils.constants import (
    DEFAULT_AUTO_MATCH_THRESHOLD,
    LEADING_ARTICLES,
    NEUTRAL_YEAR_SCORE,
    TITLE_WEIGHT,
    YEAR_WEIGHT,
)

_PARENTHESIZED_YEAR = re.compile(r"\s*\(\d{4}\)\s*$")
_NON_ALPHANUMERIC = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")
_LEADING_ARTICLE = re.compile(rf"^(?:{'|'.join(LEADING_ARTICLES)})\s+")
_TRAILING_YEAR = re.compile(r"\s+\d{4}$")
_YEAR_VALUE = re.compile(r"^(\d{4})(?:-\d{2}(?:-\d{2})?)?(?:[T ].*)?$")

YearLike = Union[str, int, date, None]


def normalize_title(title: Optional[str]) -> str:
    """
    Normalize a title for comparison.

    Lowercases, drops a trailing "(YYYY)", removes every character that is
    not a letter, digit or space, collapses whitespace, then strips leading
    articles and trailing bare years until neither applies.

    Examples:
        "The Matrix (1999)" -> "matrix"
        "Ocean's Eleven" -> "oceans eleven"
        "Spider-Man: No Way Home" -> "spiderman no way home"
    """
    if not title:
        return ""

    normalized = _PARENTHESIZED_YEAR.sub("", title.lower())
    normalized = _NON_ALPHANUMERIC.sub("", normalized)
    normalized = _WHITESPACE.sub(" ", normalized).strip()

    while True:
        stripped = _LEADING_ARTICLE.sub("", normalized, count=1)
        stripped = _TRAILING_YEAR.sub("", stripped).strip()
        if stripped == normalized:
            return normalized
        normalized = stripped


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance (insertions, deletions, substitutions)."""
    return Levenshtein.distance(a, b)


def string_similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Similarity ratio between two titles (0-1), computed on normalized forms.

    An empty side gives 0.0, equal normalized forms give 1.0.
    """
    normalized_a = normalize_title(a)
    normalized_b = normalize_title(b)

    if not normalized_a or not normalized_b:
        return 0.0

    if normalized_a == normalized_b:
        return 1.0

    distance = levenshtein_distance(normalized_a, normalized_b)
    return 1.0 - distance / max(len(normalized_a), len(normalized_b))


def extract_year(value: YearLike) -> Optional[int]:
    """
    Extract a year from an ISO date string, a bare year or a date object.

    Returns None for anything unparseable, never raises.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, date):
        return value.year
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        return None

    match = _YEAR_VALUE.match(value.strip())
    if match is None:
        return None
    return int(match.group(1))


def year_match_score(query_year: Optional[int], candidate_year: Optional[int]) -> float:
    """
    Year proximity score.

    - Exact: 1.0
    - +/-1 year: 0.8
    - +/-2 years: 0.5
    - Further: 0.0
    - Either year missing: 0.7 (neutral)
    """
    if query_year is None or candidate_year is None:
        return NEUTRAL_YEAR_SCORE

    diff = abs(query_year - candidate_year)

    if diff == 0:
        return 1.0
    if diff == 1:
        return 0.8
    if diff == 2:
        return 0.5
    return 0.0


def calculate_confidence(
    query_title: str,
    query_year: Optional[int],
    candidate_title: str,
    candidate_date: YearLike = None,
) -> float:
    """
    Confidence that a candidate matches the query (0-1).

    Args:
        query_title: Title from the library scan
        query_year: Year from the library scan (or None)
        candidate_title: Title from the provider
        candidate_date: Release date, or year, from the provider

    Returns:
        0.7 * title similarity + 0.3 * year score, clamped to [0, 1]
    """
    title_score = string_similarity(query_title, candidate_title)
    year_score = year_match_score(query_year, extract_year(candidate_date))
    confidence = TITLE_WEIGHT * title_score + YEAR_WEIGHT * year_score
    return min(1.0, max(0.0, confidence))


def _score_result(
    query_title: str, query_year: Optional[int], result: SearchResult
) -> float:
    """Best confidence over the localized and original titles."""
    candidate_date = extract_year(result.release_date) or result.year
    confidence = calculate_confidence(
        query_title, query_year, result.title, candidate_date
    )
    if result.original_title and result.original_title != result.title:
        confidence = max(
            confidence,
            calculate_confidence(
                query_title, query_year, result.original_title, candidate_date
            ),
        )
    return confidence


def score_search_results(
    query_title: str,
    query_year: Optional[int],
    results: Iterable[SearchResult],
) -> list[ScoredSearchResult]:
    """
    Score results and sort them by relevance.

    Ordering: confidence descending, then popularity descending (missing
    popularity counts as 0), then input order.
    """
    scored = [
        ScoredSearchResult(
            result=result,
            confidence=_score_result(query_title, query_year, result),
        )
        for result in results
    ]
    scored.sort(key=lambda s: (-s.confidence, -(s.result.popularity or 0.0)))
    return scored


def find_best_match(
    query_title: str,
    query_year: Optional[int],
    results: Iterable[SearchResult],
    threshold: float = DEFAULT_AUTO_MATCH_THRESHOLD,
) -> Optional[ScoredSearchResult]:
    """
    Top-ranked result when its confidence reaches the threshold.

    Returns None for empty input or when the best confidence is below threshold.
    """
    scored = score_search_results(query_title, query_year, results)
    if not scored:
        return None

    best = scored[0]
    if best.confidence >= threshold:
        return best
    return None


class MatcherService:
    """
    Service for scoring and ranking provider search results.

    Stateless facade over the module functions, holding the default
    auto-match threshold.
    """

    MATCH_THRESHOLD: float = DEFAULT_AUTO_MATCH_THRESHOLD
    """Confidence threshold for automatic matching (0.85)."""

    def __init__(self, threshold: Optional[float] = None) -> None:
        self.threshold = self.MATCH_THRESHOLD if threshold is None else threshold

    def score_results(
        self,
        results: Iterable[SearchResult],
        query_title: str,
        query_year: Optional[int] = None,
    ) -> list[ScoredSearchResult]:
        """
        Calculate confidences for all results, sorted best first.

        Args:
            results: Search results from one or more providers
            query_title: Title from the library scan
            query_year: Year from the library scan (or None)

        Returns:
            Scored results, best first
        """
        return score_search_results(query_title, query_year, results)

    def best_match(
        self,
        results: Iterable[SearchResult],
        query_title: str,
        query_year: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> Optional[ScoredSearchResult]:
        """Best result above the threshold (instance default when None)."""
        return find_best_match(
            query_title,
            query_year,
            results,
            self.threshold if threshold is None else threshold,
        )

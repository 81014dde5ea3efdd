"""Relevance scoring for discovery search.

Exact, case-insensitive substring hits are weighted per field. Titles without
an exact hit fall back to typo-tolerant matching based on the optimal string
alignment distance (Levenshtein plus adjacent transpositions), so
``Tesitng`` still finds ``Testing Best Practices`` while always scoring below
a real exact match.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

from leyline.models import Document
from leyline.utils.text import split_words

TITLE_WEIGHT = 100.0
ID_WEIGHT = 50.0
PREVIEW_WEIGHT = 25.0
CATEGORY_WEIGHT = 10.0
FUZZY_MAX_SCORE = 80.0

MIN_FUZZY_LENGTH = 3
MAX_DISTANCE_RATIO = 0.4


def edit_distance(source: str, target: str) -> int:
    """Optimal string alignment distance between two strings."""
    if source == target:
        return 0
    if not source:
        return len(target)
    if not target:
        return len(source)

    previous_previous: List[int] = []
    previous = list(range(len(target) + 1))
    for i in range(1, len(source) + 1):
        current = [i] + [0] * len(target)
        for j in range(1, len(target) + 1):
            cost = 0 if source[i - 1] == target[j - 1] else 1
            current[j] = min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + cost,
            )
            if (
                i > 1
                and j > 1
                and source[i - 1] == target[j - 2]
                and source[i - 2] == target[j - 1]
            ):
                current[j] = min(current[j], previous_previous[j - 2] + 1)
        previous_previous, previous = previous, current
    return previous[-1]


def max_distance(length: int) -> int:
    """Largest distance still considered a plausible typo for a term."""
    if length < MIN_FUZZY_LENGTH:
        return 0
    return max(1, int(length * MAX_DISTANCE_RATIO))


def word_distance(query_word: str, word: str) -> int:
    """Distance to a word or, for longer words, to its same-length prefix."""
    distance = edit_distance(query_word, word)
    if len(word) > len(query_word):
        distance = min(distance, edit_distance(query_word, word[: len(query_word)]))
    return distance


def fuzzy_score(distance: int, query_length: int) -> float:
    return FUZZY_MAX_SCORE * (1.0 - distance / (query_length + 1))


def _best_word_score(query_word: str, words: Sequence[str]) -> float:
    limit = max_distance(len(query_word))
    best = 0.0
    for word in words:
        distance = word_distance(query_word, word)
        if distance <= limit:
            best = max(best, fuzzy_score(distance, len(query_word)))
    return best


def fuzzy_title_score(query: str, title: str) -> tuple[float, str | None]:
    """Score a lowercase query against a title it does not literally contain.

    Returns the score and the matched title term, or ``(0.0, None)``.
    """
    if len(query) < MIN_FUZZY_LENGTH:
        return 0.0, None
    title_lower = title.lower()

    whole = 0.0
    distance = edit_distance(query, title_lower)
    if distance <= max_distance(len(query)):
        whole = fuzzy_score(distance, len(query))

    words = [word.lower() for word in split_words(title)]
    query_words = split_words(query)
    per_word = 0.0
    matched_term = None
    if words and query_words and all(len(word) >= MIN_FUZZY_LENGTH for word in query_words):
        scores = [_best_word_score(word, words) for word in query_words]
        if all(scores):
            per_word = sum(scores) / len(scores)
            if len(query_words) == 1:
                matched_term = min(words, key=lambda word: word_distance(query_words[0], word))

    if whole >= per_word and whole > 0:
        return whole, title_lower
    if per_word > 0:
        return per_word, matched_term or title_lower
    return 0.0, None


def relevance(document: Document, query: str) -> tuple[float, List[str]]:
    """Score a document against a normalised (lowercase, stripped) query."""
    score = 0.0
    matches: List[str] = []

    if query in document.title.lower():
        score += TITLE_WEIGHT
        matches.append("title")
    else:
        fuzzy, term = fuzzy_title_score(query, document.title)
        if fuzzy > 0:
            score += fuzzy
            matches.append(f"fuzzy:{term}")

    if document.id and query in document.id.lower():
        score += ID_WEIGHT
        matches.append("id")
    if document.content_preview and query in document.content_preview.lower():
        score += PREVIEW_WEIGHT
        matches.append("content")
    if document.category and query in document.category.lower():
        score += CATEGORY_WEIGHT
        matches.append("category")

    return score, matches


def closest_terms(query: str, vocabulary: Iterable[str], *, limit: int = 5) -> List[str]:
    """Return up to ``limit`` vocabulary words within typo distance of ``query``."""
    query = query.strip().lower()
    if len(query) < MIN_FUZZY_LENGTH or limit <= 0:
        return []

    bound = max_distance(len(query))
    candidates: dict[str, tuple[int, str]] = {}
    for word in vocabulary:
        if len(word) < MIN_FUZZY_LENGTH:
            continue
        key = word.lower()
        if key == query or key in candidates:
            continue
        distance = edit_distance(query, key)
        if distance <= bound:
            candidates[key] = (distance, word)

    ranked = sorted(candidates.values(), key=lambda item: (item[0], item[1].lower()))
    return [word for _, word in ranked[:limit]]

from collections.abc import Iterable

from squadlink.core.enums import GamingGenre

__all__ = [
    "GAMING_GENRE_NAMES",
    "canonical_genres",
    "normalize_gaming_genres",
]

GAMING_GENRE_NAMES = tuple(genre.value for genre in GamingGenre)


def canonical_genres(genres: Iterable[str | GamingGenre] | None) -> set[str]:
    """
    Lowercased, stripped set of genre tags. Unknown tags are kept so that
    legacy documents still compare sensibly.
    """
    if not genres:
        return set()
    result: set[str] = set()
    for genre in genres:
        value = genre.value if isinstance(genre, GamingGenre) else str(genre)
        value = value.strip().lower()
        if value:
            result.add(value)
    return result


def normalize_gaming_genres(
    genres: Iterable[str | GamingGenre] | None,
    *,
    max_selections: int,
) -> list[str]:
    if genres is None:
        return []

    normalized: list[str] = []
    for genre in genres:
        value = genre.value if isinstance(genre, GamingGenre) else genre.strip().lower()
        if not value or value in normalized:
            continue
        if value not in GAMING_GENRE_NAMES:
            raise ValueError(
                f"Invalid gaming genre '{value}'. "
                f"Allowed values: {', '.join(GAMING_GENRE_NAMES)}."
            )
        normalized.append(value)

    if len(normalized) > max_selections:
        raise ValueError(
            f"At most {max_selections} gaming genres can be selected."
        )
    return normalized

from collections.abc import Iterable

from squadlink.core.enums import GamingGenre
from squadlink.core.genres import canonical_genres
from squadlink.schemas.friendship import GenreSimilarity


def compute_genre_similarity(
    genres_a: Iterable[str | GamingGenre] | None,
    genres_b: Iterable[str | GamingGenre] | None,
) -> GenreSimilarity:
    """
    Jaccard similarity of two interest sets, compared case-insensitively.

    Parameters:
        genres_a: First user's declared genres.
        genres_b: Second user's declared genres.
    Returns:
        GenreSimilarity: The shared genres (sorted) and |A ∩ B| / |A ∪ B|.
        Both are empty/zero when either side declared nothing.
    """
    a = canonical_genres(genres_a)
    b = canonical_genres(genres_b)
    if not a or not b:
        return GenreSimilarity(shared=[], score=0.0)

    shared = a & b
    return GenreSimilarity(
        shared=sorted(shared),
        score=len(shared) / len(a | b),
    )

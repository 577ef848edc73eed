import itertools

import pytest

from squadlink.core.enums import GamingGenre
from squadlink.services.similarity import compute_genre_similarity

GENRE_SETS = [
    [],
    ["fps"],
    ["fps", "action"],
    ["rpg", "adventure"],
    ["fps", "action", "battle_royale", "moba"],
    ["fps", "action", "battle_royale", "racing"],
    ["puzzle", "simulation", "casual"],
]


@pytest.mark.parametrize(
    "genres_a, genres_b, expected_shared, expected_score",
    [
        (
            ["fps", "action", "battle_royale", "moba"],
            ["fps", "action", "battle_royale", "racing"],
            ["action", "battle_royale", "fps"],
            0.6,
        ),
        (["rpg", "adventure"], ["rpg", "adventure"], ["adventure", "rpg"], 1.0),
        (["fps", "action"], ["puzzle", "simulation"], [], 0.0),
    ],
)
def test_compute_genre_similarity_examples(
    genres_a, genres_b, expected_shared, expected_score
):
    result = compute_genre_similarity(genres_a, genres_b)

    assert result.shared == expected_shared
    assert result.score == pytest.approx(expected_score)


@pytest.mark.parametrize("other", GENRE_SETS)
def test_empty_side_scores_zero(other):
    assert compute_genre_similarity([], other).score == 0.0
    assert compute_genre_similarity([], other).shared == []
    assert compute_genre_similarity(None, other).score == 0.0


@pytest.mark.parametrize("genres_a, genres_b", itertools.product(GENRE_SETS, repeat=2))
def test_similarity_is_symmetric_and_bounded(genres_a, genres_b):
    forward = compute_genre_similarity(genres_a, genres_b)
    backward = compute_genre_similarity(genres_b, genres_a)

    assert forward.score == backward.score
    assert forward.shared == backward.shared
    assert 0.0 <= forward.score <= 1.0


@pytest.mark.parametrize("genres", GENRE_SETS)
def test_similarity_with_itself(genres):
    expected = 1.0 if genres else 0.0
    assert compute_genre_similarity(genres, list(genres)).score == expected


def test_score_is_one_only_for_identical_sets():
    assert compute_genre_similarity(["fps"], ["fps", "action"]).score < 1.0


def test_comparison_ignores_case_and_duplicates():
    result = compute_genre_similarity(["FPS", "Action", "fps"], [" fps ", "ACTION"])

    assert result.shared == ["action", "fps"]
    assert result.score == 1.0


def test_accepts_enum_members():
    result = compute_genre_similarity(
        [GamingGenre.RPG, GamingGenre.STRATEGY], ["rpg", "mmorpg"]
    )

    assert result.shared == ["rpg"]
    assert result.score == pytest.approx(1 / 3)

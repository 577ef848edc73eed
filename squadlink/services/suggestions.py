"""
Friend suggestions.

A candidate pool is drawn from the viewer's address-book contacts, users
sharing an interest with the viewer (or recently joined users when the viewer
declared none) and friends of the viewer's friends. Candidates the viewer
already knows are dropped, the rest are scored by genre similarity and mutual
friends and returned best first.
"""

import asyncio
from collections.abc import Collection, Mapping, Sequence
from logging import getLogger

from squadlink.converters import user as user_converters
from squadlink.core.config import settings
from squadlink.core.enums import RequestDirection, SuggestionReason
from squadlink.crud import friendship as friendship_crud
from squadlink.crud import user as users_crud
from squadlink.exceptions.base import AppError
from squadlink.exceptions.user_exceptions import UserNotFound
from squadlink.models.user import User
from squadlink.schemas.friendship import SuggestionCandidate
from squadlink.services import friends as friends_service
from squadlink.services.similarity import compute_genre_similarity
from squadlink.store import DocumentStore

logger = getLogger(__name__)


def suggestion_reason(similarity_score: float, mutual_friends_count: int) -> SuggestionReason:
    if similarity_score > 0:
        return SuggestionReason.GAMING
    if mutual_friends_count > 0:
        return SuggestionReason.MUTUAL
    return SuggestionReason.CONTACT


def rank_candidates(
    viewer: User,
    candidates: Sequence[User],
    mutual_counts: Mapping[str, int],
    *,
    exclude_ids: Collection[str] = (),
    limit: int | None = None,
) -> list[SuggestionCandidate]:
    """
    Score, tag and order candidates. Pure: no store access.

    Candidates are de-duplicated by id and anyone in exclude_ids (or the
    viewer) is dropped. Ordering is similarity score, then mutual-friend
    count, both descending, with ties broken by user id.

    Parameters:
        viewer (User): The user the suggestions are for.
        candidates (Sequence[User]): Candidate pool, possibly with repeats.
        mutual_counts (Mapping[str, int]): Mutual-friend count per candidate id;
            missing ids count as 0.
        exclude_ids (Collection[str]): Ids never to suggest.
        limit (int | None): Page size; defaults to SUGGESTIONS_PAGE_SIZE.
    Returns:
        list[SuggestionCandidate]: Ranked suggestions.
    """
    if limit is None:
        limit = settings.SUGGESTIONS_PAGE_SIZE

    seen: set[str] = {viewer.id, *exclude_ids}
    scored: list[SuggestionCandidate] = []
    for candidate in candidates:
        if candidate.id in seen:
            continue
        seen.add(candidate.id)

        similarity = compute_genre_similarity(
            viewer.gaming_interests, candidate.gaming_interests
        )
        mutual = mutual_counts.get(candidate.id, 0)
        scored.append(
            SuggestionCandidate(
                user=user_converters.to_public(candidate),
                mutual_friends_count=mutual,
                similarity_score=similarity.score,
                shared_interests=similarity.shared,
                reason=suggestion_reason(similarity.score, mutual),
            )
        )

    scored.sort(
        key=lambda s: (-s.similarity_score, -s.mutual_friends_count, s.user.id)
    )
    return scored[: max(limit, 0)]


async def _get_friends_of_friends(
    *,
    store: DocumentStore,
    friend_ids: set[str],
) -> set[str]:
    # Only a bounded number of friends are expanded
    sample = sorted(friend_ids)[: settings.MUTUAL_FRIEND_FANOUT]
    results = await asyncio.gather(
        *(
            friendship_crud.get_friend_ids(store=store, user_id=friend_id)
            for friend_id in sample
        ),
        return_exceptions=True,
    )
    found: set[str] = set()
    for friend_id, result in zip(sample, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.warning("Could not read friends of %s: %s", friend_id, result)
            continue
        found |= result
    return found


async def _get_candidate_pool(
    *,
    store: DocumentStore,
    viewer: User,
    friend_ids: set[str],
    excluded: set[str],
    contact_phone_numbers: Collection[str] = (),
) -> list[User]:
    pool: list[User] = []
    if contact_phone_numbers:
        pool = await users_crud.get_users_by_phone_numbers(
            store=store,
            phone_numbers=list(contact_phone_numbers),
            exclude_ids=excluded,
        )

    in_pool = excluded | {user.id for user in pool}
    if viewer.gaming_interests:
        pool.extend(
            await users_crud.get_users_by_interests(
                store=store,
                interests=viewer.gaming_interests,
                limit=settings.SUGGESTION_POOL_SIZE,
                exclude_ids=in_pool,
            )
        )
    else:
        pool.extend(
            await users_crud.get_recent_users(
                store=store, limit=settings.SUGGESTION_POOL_SIZE, exclude_ids=in_pool
            )
        )

    in_pool = {user.id for user in pool}
    fof_ids = await _get_friends_of_friends(store=store, friend_ids=friend_ids)
    fof_ids = sorted(fof_ids - excluded - in_pool)[: settings.SUGGESTION_POOL_SIZE]
    if fof_ids:
        pool.extend(await users_crud.get_users_by_ids(store=store, user_ids=fof_ids))
    return pool


async def get_friend_suggestions(
    *,
    store: DocumentStore,
    user_id: str,
    exclude_ids: Collection[str] = (),
    limit: int | None = None,
    contact_phone_numbers: Collection[str] = (),
) -> list[SuggestionCandidate]:
    """
    Get ranked friend suggestions for a user.

    Never suggests the user themself, their friends, users they already sent
    a pending request to, or anyone in exclude_ids. Users who sent the viewer
    a pending request are dropped as well while SUGGESTIONS_EXCLUDE_INCOMING
    is set. A mutual-friend count that cannot be read shows as 0 rather than
    failing the list.

    Parameters:
        store (DocumentStore): The document store.
        user_id (str): The user to suggest friends for.
        exclude_ids (Collection[str]): Extra ids to leave out.
        limit (int | None): Page size; defaults to SUGGESTIONS_PAGE_SIZE.
        contact_phone_numbers (Collection[str]): Phone numbers from the
            viewer's address book; users registered with one join the pool.
    Returns:
        list[SuggestionCandidate]: Suggestions, best first.
    Raises:
        UserNotFound: If the user does not exist.
        AppError: For any other (unexpected) errors.
    """
    try:
        viewer = await users_crud.get_user_by_id(store=store, user_id=user_id)
        if viewer is None:
            raise UserNotFound(user_id)

        lookups = [
            friendship_crud.get_friend_ids(store=store, user_id=user_id),
            friendship_crud.get_pending_requests(
                store=store, user_id=user_id, direction=RequestDirection.OUTGOING
            ),
        ]
        if settings.SUGGESTIONS_EXCLUDE_INCOMING:
            lookups.append(
                friendship_crud.get_pending_requests(
                    store=store, user_id=user_id, direction=RequestDirection.INCOMING
                )
            )
        friend_ids, outgoing, *incoming = await asyncio.gather(*lookups)

        excluded = {user_id, *exclude_ids, *friend_ids}
        excluded.update(request.to_user_id for request in outgoing)
        for requests in incoming:
            excluded.update(request.from_user_id for request in requests)

        pool = await _get_candidate_pool(
            store=store,
            viewer=viewer,
            friend_ids=friend_ids,
            excluded=excluded,
            contact_phone_numbers=contact_phone_numbers,
        )
        candidate_ids = list(
            dict.fromkeys(user.id for user in pool if user.id not in excluded)
        )
        mutual_counts = await friends_service.get_batch_mutual_friends_count(
            store=store,
            user_id=user_id,
            other_user_ids=candidate_ids,
            degrade_on_error=True,
        )
    except AppError:
        raise
    except Exception as e:
        raise AppError from e

    suggestions = rank_candidates(
        viewer, pool, mutual_counts, exclude_ids=excluded, limit=limit
    )
    logger.debug(
        "%d suggestion(s) for %s from a pool of %d", len(suggestions), user_id, len(pool)
    )
    return suggestions

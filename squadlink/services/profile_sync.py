"""
Optimistic profile editing.

Edits are shown immediately through a ProfileState and written in the
background. Each edit is a PendingPatch that remembers the values it
replaced, so a failed write only rolls back the fields that edit touched and
leaves other local edits in place.
"""

from dataclasses import dataclass, field
from itertools import count
from typing import Any

from squadlink.models.user import UserUpdate
from squadlink.schemas.user import UserPublic
from squadlink.services import users as users_service
from squadlink.store import DocumentStore


@dataclass
class PendingPatch:
    id: int
    changes: dict[str, Any]
    previous: dict[str, Any] = field(default_factory=dict)


class ProfileState:
    def __init__(self, profile: UserPublic):
        self.profile = profile
        self.pending: dict[int, PendingPatch] = {}
        self._ids = count(1)

    def _protected_fields(self) -> set[str]:
        return {name for patch in self.pending.values() for name in patch.changes}

    def apply(self, changes: dict[str, Any]) -> PendingPatch:
        unknown = set(changes) - set(UserPublic.model_fields)
        if unknown:
            raise ValueError(f"Unknown profile fields: {', '.join(sorted(unknown))}")

        patch = PendingPatch(
            id=next(self._ids),
            changes=dict(changes),
            previous={name: getattr(self.profile, name) for name in changes},
        )
        self.profile = self.profile.model_copy(update=patch.changes)
        self.pending[patch.id] = patch
        return patch

    def confirm(self, patch: PendingPatch, server_profile: UserPublic) -> None:
        """
        Drop a patch once the server accepted it and take the server's values,
        except for fields another pending patch is still changing.
        """
        self.pending.pop(patch.id, None)
        protected = self._protected_fields()
        updates = {
            name: getattr(server_profile, name)
            for name in UserPublic.model_fields
            if name not in protected
        }
        self.profile = self.profile.model_copy(update=updates)

    def revert(self, patch: PendingPatch) -> None:
        """
        Undo a patch the server rejected. A field is only restored while it
        still shows this patch's value.
        """
        if self.pending.pop(patch.id, None) is None:
            return

        restore: dict[str, Any] = {}
        for name, patched in patch.changes.items():
            old = patch.previous[name]
            if getattr(self.profile, name) == patched:
                restore[name] = old
            # later patches on the same field must not bring this value back
            for other in self.pending.values():
                if other.id > patch.id and other.previous.get(name) == patched:
                    other.previous[name] = old
        if restore:
            self.profile = self.profile.model_copy(update=restore)


async def sync_profile_update(
    state: ProfileState,
    *,
    store: DocumentStore,
    user_id: str,
    user_in: UserUpdate,
) -> UserPublic:
    """
    Show user_in on state right away, write it, then reconcile.

    Raises:
        Whatever update_profile raises, after the patch has been reverted.
    """
    changes = {name: getattr(user_in, name) for name in user_in.model_fields_set}
    patch = state.apply(changes)
    try:
        server_profile = await users_service.update_profile(
            store=store, user_id=user_id, user_in=user_in
        )
    except Exception:
        state.revert(patch)
        raise
    state.confirm(patch, server_profile)
    return server_profile

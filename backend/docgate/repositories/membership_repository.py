"""Group membership store."""

from typing import Iterable, List, Tuple

from ..models import GroupMembership
from .base import BaseRepository


class MembershipRepository(BaseRepository[GroupMembership]):
    """Reads active memberships. Inactive (soft-deleted) rows are never returned."""

    model_class = GroupMembership

    def _active(self, user_id: str):
        return self._base_query().filter(
            GroupMembership.user_id == user_id,
            GroupMembership.is_active.is_(True),
        )

    def active_memberships(self, user_id: str, group_ids: Iterable[str]) -> List[Tuple[str, str]]:
        """Return ``(group_id, role)`` for the user's active memberships in *group_ids*."""
        ids = list(set(group_ids))
        if not ids:
            return []
        rows = self._read(
            lambda: self._active(user_id)
            .filter(GroupMembership.group_id.in_(ids))
            .with_entities(GroupMembership.group_id, GroupMembership.role)
            .all()
        )
        return [(row.group_id, row.role) for row in rows]

    def active_group_ids(self, user_id: str) -> List[str]:
        """All groups the user currently belongs to."""
        rows = self._read(
            lambda: self._active(user_id).with_entities(GroupMembership.group_id).all()
        )
        return [row.group_id for row in rows]

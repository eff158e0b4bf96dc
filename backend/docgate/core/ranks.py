"""Rank tables: qualitative labels mapped onto comparable integers.

Five vocabularies describe how much a grant allows: a member's role in a
group, a group-document link's access level, the action a caller wants, a
direct ACL role, and a shared link's access level. Each is mapped to an
ordered integer so grants can be compared against the required action on a
common scale.

Rules:
    - Every axis is monotonic: a rank that satisfies an action satisfies
      every action of lower or equal rank.
    - Unknown labels rank 0 (fail-closed); ``rank()`` never raises.
    - Tables are immutable. Build them once (``RankTables.default()``) and
      pass them to the engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Union


class MemberRole(str, Enum):
    VIEWER = "viewer"
    MEMBER = "member"
    ADMIN = "admin"
    OWNER = "owner"


class GroupAccessLevel(str, Enum):
    READ = "read"
    WRITE = "write"
    ADMIN = "admin"


class RequiredAction(str, Enum):
    VIEW = "view"
    DOWNLOAD = "download"
    EDIT = "edit"
    ADMIN = "admin"


class AclRole(str, Enum):
    VIEW = "view"
    EDIT = "edit"
    ADMIN = "admin"


class AclSubjectType(str, Enum):
    USER = "user"
    GROUP = "group"


class ShareAccessLevel(str, Enum):
    VIEW = "view"
    DOWNLOAD = "download"
    READ = "read"
    EDIT = "edit"
    WRITE = "write"
    ADMIN = "admin"


class RankAxis(str, Enum):
    """The independent vocabularies a label can belong to."""

    MEMBER_ROLE = "member_role"
    GROUP_LINK = "group_link"
    REQUIRED_ACTION = "required_action"
    ACL_ROLE = "acl_role"
    SHARE_ACCESS = "share_access"
    # Minimum member rank needed for an action; mirrors REQUIRED_ACTION.
    MIN_MEMBER_RANK = "min_member_rank"


Label = Union[str, Enum, None]


def _freeze(table: dict) -> Mapping[str, int]:
    return MappingProxyType({_label_key(k): v for k, v in table.items()})


def _label_key(label: Label) -> str:
    if isinstance(label, Enum):
        return str(label.value)
    return str(label)


@dataclass(frozen=True)
class RankTables:
    """Immutable set of label→rank tables, one per ``RankAxis``."""

    member_role: Mapping[str, int]
    group_link: Mapping[str, int]
    required_action: Mapping[str, int]
    acl_role: Mapping[str, int]
    share_access: Mapping[str, int]
    min_member_rank: Mapping[str, int]

    @classmethod
    def default(cls) -> "RankTables":
        """The standard tables used in production."""
        action_ranks = {
            RequiredAction.VIEW: 1,
            RequiredAction.DOWNLOAD: 1,
            RequiredAction.EDIT: 2,
            RequiredAction.ADMIN: 3,
        }
        return cls(
            member_role=_freeze({
                MemberRole.VIEWER: 1,
                MemberRole.MEMBER: 2,
                MemberRole.ADMIN: 3,
                MemberRole.OWNER: 4,
            }),
            group_link=_freeze({
                GroupAccessLevel.READ: 1,
                GroupAccessLevel.WRITE: 2,
                GroupAccessLevel.ADMIN: 3,
            }),
            required_action=_freeze(action_ranks),
            acl_role=_freeze({
                AclRole.VIEW: 1,
                AclRole.EDIT: 2,
                AclRole.ADMIN: 3,
            }),
            share_access=_freeze({
                ShareAccessLevel.VIEW: 1,
                ShareAccessLevel.DOWNLOAD: 1,
                ShareAccessLevel.READ: 1,
                ShareAccessLevel.EDIT: 2,
                ShareAccessLevel.WRITE: 2,
                ShareAccessLevel.ADMIN: 3,
            }),
            min_member_rank=_freeze(action_ranks),
        )

    def table(self, axis: RankAxis) -> Mapping[str, int]:
        return getattr(self, RankAxis(axis).value)

    def rank(self, axis: RankAxis, label: Label) -> int:
        """Rank of *label* on *axis*; 0 for ``None`` or any unknown label."""
        if label is None:
            return 0
        return self.table(axis).get(_label_key(label), 0)

    def satisfies(self, axis: RankAxis, label: Label, action: Label) -> bool:
        """Whether *label* on *axis* ranks at least as high as *action* requires.

        An action with no rank is never satisfied, so an unrecognized action
        fails closed instead of being allowed by every grant.
        """
        needed = self.rank(RankAxis.REQUIRED_ACTION, action)
        if needed == 0:
            return False
        return self.rank(axis, label) >= needed

    def member_role_allows(self, role: Label, action: Label) -> bool:
        needed = self.rank(RankAxis.MIN_MEMBER_RANK, action)
        if needed == 0:
            return False
        return self.rank(RankAxis.MEMBER_ROLE, role) >= needed


def parse_action(action: Label) -> Optional[RequiredAction]:
    """Coerce *action* into a ``RequiredAction``; ``None`` when unrecognized."""
    if isinstance(action, RequiredAction):
        return action
    try:
        return RequiredAction(_label_key(action))
    except ValueError:
        return None

"""Grant-source resolvers.

Each resolver answers one question ("does this source let the caller do
*action* on this document?") through the shared ``GrantResolver.resolve``
interface. The engine in ``permission_service`` runs them in a fixed order.

Sources:
    Ownership   : the creator of a document may do anything with it.
    Group grant : primary group (implicit ``write`` link) plus explicit
                   group-document links; needs both enough link access and
                   a high enough membership role.
    Direct ACL  : per-document entries for a user or a group. The group path
                   checks only the ACL role, not the member's role.
    Shared link : active, unexpired shares addressed to the caller's email
                   or user id.

A store that reports ResourceUnavailableError contributes no grants; the
warning names the source. Every other error propagates.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Tuple, TypeVar

from ..core.ranks import AclSubjectType, GroupAccessLevel, RankAxis, RankTables, RequiredAction
from ..exceptions import ResourceUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Store contracts
# ---------------------------------------------------------------------------

class DocumentLike(Protocol):
    id: str
    owner_id: str
    primary_group_id: Optional[str]


class MembershipStore(Protocol):
    def active_memberships(self, user_id: str, group_ids: Iterable[str]) -> Iterable[Tuple[str, str]]: ...


class LinkStore(Protocol):
    def list_links(self, document_id: str) -> Iterable: ...


class AclStore(Protocol):
    def list_acl_entries(self, document_id: str) -> Iterable: ...


class ShareStore(Protocol):
    def list_active_shares(self, document_id: str, email: Optional[str], user_id: Optional[str]) -> Iterable: ...


def tolerate_unprovisioned(source: str, fetch: Callable[[], T], default: T) -> T:
    """Run *fetch*; an unprovisioned store yields *default* instead of an error."""
    try:
        return fetch()
    except ResourceUnavailableError as exc:
        logger.warning(
            "%s not provisioned; skipping %s grants",
            exc.resource, source,
            extra={"grant_source": source, "resource": exc.resource},
        )
        return default


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------

class MembershipResolver:
    """Maps a user's active memberships onto the groups being evaluated."""

    def __init__(self, store: MembershipStore):
        self.store = store

    def active_memberships(self, user_id: str, group_ids: Iterable[str]) -> Dict[str, str]:
        """Return ``{group_id: role}`` for the user's active memberships.

        An empty *group_ids* returns ``{}`` without touching the store.
        """
        ids = set(group_ids)
        if not ids or not user_id:
            return {}
        rows = tolerate_unprovisioned(
            "membership",
            lambda: self.store.active_memberships(user_id, ids),
            [],
        )
        return {group_id: role for group_id, role in rows}


# ---------------------------------------------------------------------------
# Resolvers
# ---------------------------------------------------------------------------

class GrantResolver(ABC):
    """One source of document grants."""

    name: str = "grant"

    def __init__(self, ranks: RankTables):
        self.ranks = ranks

    @abstractmethod
    def resolve(
        self,
        user_id: str,
        user_email: Optional[str],
        document: DocumentLike,
        action: RequiredAction,
    ) -> bool:
        """Whether this source grants *action* on *document* to the caller."""


class OwnershipResolver(GrantResolver):
    name = "ownership"

    def resolve(self, user_id, user_email, document, action) -> bool:
        return bool(user_id) and document.owner_id == user_id


class GroupGrantResolver(GrantResolver):
    """Primary group and linked groups, gated on link access AND member role."""

    name = "group"

    def __init__(self, ranks: RankTables, links: LinkStore, memberships: MembershipResolver):
        super().__init__(ranks)
        self.links = links
        self.memberships = memberships

    def candidates(self, document: DocumentLike) -> List[Tuple[str, str]]:
        """``(group_id, access_level)`` pairs that could grant access."""
        pairs: List[Tuple[str, str]] = []
        if document.primary_group_id:
            pairs.append((document.primary_group_id, GroupAccessLevel.WRITE.value))

        links = tolerate_unprovisioned(self.name, lambda: self.links.list_links(document.id), [])
        pairs.extend((link.group_id, link.access_level) for link in links)
        return pairs

    def resolve(self, user_id, user_email, document, action) -> bool:
        pairs = self.candidates(document)
        if not pairs:
            return False

        roles = self.memberships.active_memberships(user_id, {group_id for group_id, _ in pairs})
        for group_id, access_level in pairs:
            role = roles.get(group_id)
            if role is None:
                continue
            if (
                self.ranks.satisfies(RankAxis.GROUP_LINK, access_level, action)
                and self.ranks.member_role_allows(role, action)
            ):
                return True
        return False


class DirectAclResolver(GrantResolver):
    """Allow-list entries for the user, or for any group the user is active in.

    The group path deliberately has no membership-role floor: a viewer in a
    group holding an ``edit`` entry may edit.
    """

    name = "acl"

    def __init__(self, ranks: RankTables, acl: AclStore, memberships: MembershipResolver):
        super().__init__(ranks)
        self.acl = acl
        self.memberships = memberships

    def _allows(self, entry, action: RequiredAction) -> bool:
        return self.ranks.satisfies(RankAxis.ACL_ROLE, entry.role, action)

    def resolve(self, user_id, user_email, document, action) -> bool:
        entries = list(tolerate_unprovisioned(self.name, lambda: self.acl.list_acl_entries(document.id), []))
        if not entries:
            return False

        for entry in entries:
            if (
                entry.subject_type == AclSubjectType.USER.value
                and entry.subject_id == user_id
                and self._allows(entry, action)
            ):
                return True

        group_entries = [e for e in entries if e.subject_type == AclSubjectType.GROUP.value]
        if not group_entries:
            return False

        roles = self.memberships.active_memberships(user_id, {e.subject_id for e in group_entries})
        return any(e.subject_id in roles and self._allows(e, action) for e in group_entries)


class SharedLinkResolver(GrantResolver):
    name = "share"

    def __init__(self, ranks: RankTables, shares: ShareStore, clock: Clock = utc_now):
        super().__init__(ranks)
        self.shares = shares
        self.clock = clock

    @staticmethod
    def _as_utc(value: datetime) -> datetime:
        # SQLite hands back naive timestamps; they are stored as UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def is_live(self, share, now: datetime) -> bool:
        if not share.is_active:
            return False
        return share.expires_at is None or self._as_utc(share.expires_at) > now

    def resolve(self, user_id, user_email, document, action) -> bool:
        if not user_email and not user_id:
            return False

        shares = tolerate_unprovisioned(
            self.name,
            lambda: self.shares.list_active_shares(document.id, user_email, user_id),
            [],
        )
        now = self._as_utc(self.clock())
        return any(
            self.is_live(share, now)
            and self.ranks.satisfies(RankAxis.SHARE_ACCESS, share.access_level, action)
            for share in shares
        )

"""Access decision engine: the one place document access is decided.

Every protected operation, whatever the route, ends up in
``AccessDecisionEngine.has_access``. The engine owns no rules of its own: it
runs an ordered list of grant-source resolvers and stops at the first one
that says yes.

Design:
    - Order is fixed: ownership → group grant → direct ACL → shared link.
      Ownership always wins; nothing may be placed ahead of it.
    - Default is deny. A denial is a ``False`` return, never an exception.
    - An unprovisioned grant source counts as "no grants" and the decision
      continues with the other sources.
    - Any other store failure (timeout, lost connection) aborts the decision
      and propagates as TransientStoreError. It is never turned into a deny.
    - Stateless. Nothing is cached between calls; each call reads current data.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.ranks import RankTables, RequiredAction, parse_action
from ..exceptions import ResourceUnavailableError
from ..models import Document
from ..repositories import (
    AclRepository,
    DocumentRepository,
    LinkRepository,
    MembershipRepository,
    ShareRepository,
)
from .resolvers import (
    AclStore,
    Clock,
    DirectAclResolver,
    DocumentLike,
    GrantResolver,
    GroupGrantResolver,
    LinkStore,
    MembershipResolver,
    MembershipStore,
    OwnershipResolver,
    SharedLinkResolver,
    ShareStore,
    tolerate_unprovisioned,
    utc_now,
)

logger = logging.getLogger(__name__)


class AccessDecisionEngine:
    """Combines grant-source resolvers into one boolean decision."""

    def __init__(self, resolvers: Sequence[GrantResolver]):
        self.resolvers: tuple[GrantResolver, ...] = tuple(resolvers)

    def has_access(
        self,
        user_id: str,
        user_email: Optional[str],
        document: DocumentLike,
        action: RequiredAction | str,
    ) -> bool:
        """Decide whether the caller may perform *action* on *document*.

        Args:
            user_id: Authenticated caller.
            user_email: Caller's email, used to match shared links. Optional.
            document: Anything with ``id``, ``owner_id`` and ``primary_group_id``.
            action: ``view``, ``download``, ``edit`` or ``admin``.

        Returns:
            True if any grant source allows the action. An unrecognized
            action is always denied.
        """
        required = parse_action(action)
        if required is None:
            logger.warning("Unknown action %r denied", action, extra={"doc_id": document.id})
            return False

        for resolver in self.resolvers:
            try:
                granted = resolver.resolve(user_id, user_email, document, required)
            except ResourceUnavailableError as exc:
                logger.warning(
                    "%s not provisioned; skipping %s grants",
                    exc.resource, resolver.name,
                    extra={"grant_source": resolver.name, "resource": exc.resource},
                )
                continue
            if granted:
                logger.debug(
                    "Access granted",
                    extra={
                        "doc_id": document.id,
                        "user_id": user_id,
                        "action": required.value,
                        "grant_source": resolver.name,
                    },
                )
                return True
        return False

    def effective_actions(
        self,
        user_id: str,
        user_email: Optional[str],
        document: DocumentLike,
    ) -> Dict[str, bool]:
        """Evaluate every action for the caller, e.g. ``{"view": True, "edit": False, ...}``."""
        return {
            action.value: self.has_access(user_id, user_email, document, action)
            for action in RequiredAction
        }


def resolver_chain(
    ranks: RankTables,
    memberships: MembershipStore,
    links: LinkStore,
    acl: AclStore,
    shares: ShareStore,
    clock: Clock = utc_now,
) -> List[GrantResolver]:
    """The standard resolvers in decision order, wired against the given stores."""
    membership_resolver = MembershipResolver(memberships)
    return [
        OwnershipResolver(ranks),
        GroupGrantResolver(ranks, links, membership_resolver),
        DirectAclResolver(ranks, acl, membership_resolver),
        SharedLinkResolver(ranks, shares, clock),
    ]


def build_engine(
    db: Session,
    ranks: Optional[RankTables] = None,
    provisioned: Optional[FrozenSet[str]] = None,
    clock: Clock = utc_now,
) -> AccessDecisionEngine:
    """Wire the standard resolver chain against the SQL stores.

    Args:
        db: Request-scoped session; all resolvers read through it.
        ranks: Rank tables built at startup. Defaults to ``RankTables.default()``.
        provisioned: Result of the startup capability probe, or ``None``.
        clock: Source of "now" for shared-link expiry.
    """
    return AccessDecisionEngine(resolver_chain(
        ranks or RankTables.default(),
        MembershipRepository(db, provisioned),
        LinkRepository(db, provisioned),
        AclRepository(db, provisioned),
        ShareRepository(db, provisioned),
        clock,
    ))


def list_accessible_documents(
    db: Session,
    engine: AccessDecisionEngine,
    user_id: str,
    user_email: Optional[str],
    provisioned: Optional[FrozenSet[str]] = None,
) -> List[Document]:
    """Documents the caller may view, newest first.

    Candidates are gathered cheaply from every grant source (owned documents,
    documents in the caller's groups, ACL entries, shares) and each non-owned
    candidate is then confirmed through the engine, so the listing never
    shows something ``has_access(..., "view")`` would refuse.
    """
    docs = DocumentRepository(db)
    owned = docs.list_owned(user_id)
    owned_ids = {d.id for d in owned}

    group_ids = tolerate_unprovisioned(
        "membership",
        lambda: MembershipRepository(db, provisioned).active_group_ids(user_id),
        [],
    )

    candidate_ids: set[str] = set()
    candidate_ids.update(d.id for d in docs.list_in_primary_groups(group_ids))
    candidate_ids.update(tolerate_unprovisioned(
        "group",
        lambda: LinkRepository(db, provisioned).document_ids_for_groups(group_ids),
        [],
    ))
    candidate_ids.update(tolerate_unprovisioned(
        "acl",
        lambda: AclRepository(db, provisioned).document_ids_for_subjects(user_id, group_ids),
        [],
    ))
    candidate_ids.update(tolerate_unprovisioned(
        "share",
        lambda: ShareRepository(db, provisioned).document_ids_shared_with(user_email, user_id),
        [],
    ))
    candidate_ids -= owned_ids

    shared = [
        doc for doc in docs.list_by_ids(candidate_ids)
        if engine.has_access(user_id, user_email, doc, RequiredAction.VIEW)
    ]

    result = owned + shared
    result.sort(key=lambda d: (d.created_at is not None, d.created_at), reverse=True)
    return result

"""Authorization gate: the boundary between request handling and the engine.

Framework-agnostic: ``AuthorizationGate.check`` returns a ``GateDecision``
carrying the HTTP status a handler should answer with (401, 404, 403) or the
loaded document when the request may proceed. ``enforce`` raises the matching
DocGate exception instead, for frameworks that map exceptions to responses.

The gate never grants anything itself; it only translates the engine's
boolean into a boundary decision.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..core.ranks import RequiredAction
from ..exceptions import AuthenticationError, DocumentNotFoundError, ForbiddenError
from .permission_service import AccessDecisionEngine
from .resolvers import DocumentLike

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, as supplied by the identity layer."""

    user_id: str
    email: Optional[str] = None


class GateOutcome(str, Enum):
    ALLOW = "allow"
    UNAUTHENTICATED = "unauthenticated"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


_STATUS = {
    GateOutcome.ALLOW: 200,
    GateOutcome.UNAUTHENTICATED: 401,
    GateOutcome.NOT_FOUND: 404,
    GateOutcome.FORBIDDEN: 403,
}


@dataclass(frozen=True)
class GateDecision:
    outcome: GateOutcome
    document_id: str
    document: Optional[DocumentLike] = None

    @property
    def allowed(self) -> bool:
        return self.outcome is GateOutcome.ALLOW

    @property
    def status_code(self) -> int:
        return _STATUS[self.outcome]


DocumentLoader = Callable[[str], Optional[DocumentLike]]


class AuthorizationGate:
    """Resolve principal and document, ask the engine, report the outcome."""

    def __init__(self, load_document: DocumentLoader, engine: AccessDecisionEngine):
        """
        Args:
            load_document: Returns the document or raises DocumentNotFoundError
                (returning ``None`` is treated the same way).
            engine: Decision engine for this request.
        """
        self.load_document = load_document
        self.engine = engine

    def check(
        self,
        principal: Optional[Principal],
        document_id: str,
        action: RequiredAction,
    ) -> GateDecision:
        if principal is None or not principal.user_id:
            return GateDecision(GateOutcome.UNAUTHENTICATED, document_id)

        try:
            document = self.load_document(document_id)
        except DocumentNotFoundError:
            document = None
        if document is None:
            return GateDecision(GateOutcome.NOT_FOUND, document_id)

        if not self.engine.has_access(principal.user_id, principal.email, document, action):
            logger.info(
                "Document access denied",
                extra={
                    "doc_id": document_id,
                    "user_id": principal.user_id,
                    "action": getattr(action, "value", action),
                },
            )
            return GateDecision(GateOutcome.FORBIDDEN, document_id, document)

        return GateDecision(GateOutcome.ALLOW, document_id, document)

    def enforce(
        self,
        principal: Optional[Principal],
        document_id: str,
        action: RequiredAction,
    ) -> DocumentLike:
        """Like ``check`` but raises on anything other than ALLOW."""
        decision = self.check(principal, document_id, action)
        if decision.outcome is GateOutcome.UNAUTHENTICATED:
            raise AuthenticationError("Authentication required")
        if decision.outcome is GateOutcome.NOT_FOUND:
            raise DocumentNotFoundError(document_id)
        if decision.outcome is GateOutcome.FORBIDDEN:
            raise ForbiddenError()
        return decision.document

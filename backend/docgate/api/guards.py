"""FastAPI adapter for the authorization gate.

Usage::

    @router.get("/{doc_id}")
    def read_doc(document: Document = Depends(require_document_permission("view"))):
        ...

The document id comes from a path parameter (``doc_id`` by default) or from
any callable taking the request, so the same guard fits routes with
different URL shapes.
"""

from typing import Callable, Optional, Union

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..core.auth import optional_principal
from ..core.ranks import RankTables, RequiredAction, parse_action
from ..database import get_db
from ..exceptions import ValidationError
from ..models import Document
from ..repositories import DocumentRepository
from ..services.gate import AuthorizationGate, Principal
from ..services.permission_service import AccessDecisionEngine, build_engine

DocIdExtractor = Union[str, Callable[[Request], str]]

# Matches Document.id column width.
MAX_DOC_ID_LENGTH = 50


def validate_document_id(doc_id: Optional[str]) -> str:
    """Reject ids that cannot name a stored document. Raises 400."""
    if not doc_id or len(doc_id) > MAX_DOC_ID_LENGTH:
        raise ValidationError("Invalid document id", field="doc_id")
    return doc_id


def get_access_engine(request: Request, db: Session = Depends(get_db)) -> AccessDecisionEngine:
    """Per-request engine built from the startup rank tables and capability probe."""
    state = request.app.state
    ranks: Optional[RankTables] = getattr(state, "ranks", None)
    provisioned = getattr(state, "provisioned_sources", None)
    return build_engine(db, ranks=ranks, provisioned=provisioned)


def _extractor(doc_id: DocIdExtractor) -> Callable[[Request], str]:
    if callable(doc_id):
        return doc_id
    return lambda request: request.path_params[doc_id]


def require_document_permission(
    action: Union[RequiredAction, str],
    doc_id: DocIdExtractor = "doc_id",
):
    """Build a dependency that lets the request through only if *action* is allowed.

    Raises ValueError immediately for an unknown action so a misconfigured
    route fails at import time instead of at request time.

    The dependency returns the loaded Document, so handlers need not load it again.
    """
    required = parse_action(action)
    if required is None:
        raise ValueError(f"Unknown document action: {action!r}")
    extract = _extractor(doc_id)

    def _guard(
        request: Request,
        db: Session = Depends(get_db),
        principal: Optional[Principal] = Depends(optional_principal),
        engine: AccessDecisionEngine = Depends(get_access_engine),
    ) -> Document:
        gate = AuthorizationGate(DocumentRepository(db).get_document, engine)
        return gate.enforce(principal, validate_document_id(extract(request)), required)

    return _guard

"""Document API endpoints.

Only the authorization surface lives here: every route either runs through
``require_document_permission`` or reports the caller's own access.
Document CRUD, uploads and downloads are served by other services.
"""

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..core.auth import require_principal
from ..database import get_db
from ..models import Document
from ..repositories import DocumentRepository
from ..schemas.document import AccessReport, DocumentResponse, DownloadResponse
from ..services.gate import Principal
from ..services.permission_service import AccessDecisionEngine, list_accessible_documents
from .guards import get_access_engine, require_document_permission, validate_document_id

router = APIRouter(prefix="/api/docs", tags=["documents"])


@router.get("", response_model=List[DocumentResponse])
def list_documents(
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_principal),
    engine: AccessDecisionEngine = Depends(get_access_engine),
):
    """List every document the caller may view: owned, group, ACL and shared."""
    return list_accessible_documents(
        db,
        engine,
        principal.user_id,
        principal.email,
        provisioned=getattr(request.app.state, "provisioned_sources", None),
    )


@router.get("/{doc_id}", response_model=DocumentResponse)
def get_document(document: Document = Depends(require_document_permission("view"))):
    """Get document metadata."""
    return document


@router.get("/{doc_id}/download", response_model=DownloadResponse)
def get_download(document: Document = Depends(require_document_permission("download"))):
    """Resolve the storage key for a download. Requires download access."""
    return DownloadResponse(
        document_id=document.id,
        title=document.title,
        storage_key=f"documents/{document.owner_id}/{document.id}",
    )


@router.get("/{doc_id}/access", response_model=AccessReport)
def get_my_access(
    doc_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_principal),
    engine: AccessDecisionEngine = Depends(get_access_engine),
):
    """Report which actions the caller may perform on a document.

    Only the caller's own access is revealed. 404 when the document does not exist.
    """
    document = DocumentRepository(db).get_document(validate_document_id(doc_id))
    return AccessReport(
        document_id=document.id,
        user_id=principal.user_id,
        is_owner=document.owner_id == principal.user_id,
        actions=engine.effective_actions(principal.user_id, principal.email, document),
    )

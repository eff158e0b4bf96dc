"""API routes."""

from .documents import router as documents_router
from .guards import require_document_permission

__all__ = ["documents_router", "require_document_permission"]

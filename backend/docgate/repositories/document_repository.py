"""Document repository: the document store consumed by the gate."""

from typing import Iterable, List

from ..models import Document
from ..exceptions import DocumentNotFoundError
from .base import BaseRepository


class DocumentRepository(BaseRepository[Document]):
    """Read access to documents.

    Document CRUD lives in a separate service; authorization only needs the
    owner and primary group of a document, plus candidate listings for the
    accessible-documents view.
    """

    model_class = Document
    not_found_error = DocumentNotFoundError

    def get_document(self, doc_id: str) -> Document:
        """Load a document or raise DocumentNotFoundError."""
        return self.get_by_id(doc_id)

    def list_owned(self, user_id: str) -> List[Document]:
        return self._read(
            lambda: self._base_query()
            .filter(Document.owner_id == user_id)
            .order_by(Document.created_at.desc())
            .all()
        )

    def list_in_primary_groups(self, group_ids: Iterable[str]) -> List[Document]:
        ids = list(set(group_ids))
        if not ids:
            return []
        return self._read(
            lambda: self._base_query().filter(Document.primary_group_id.in_(ids)).all()
        )

    def list_by_ids(self, doc_ids: Iterable[str]) -> List[Document]:
        ids = list(set(doc_ids))
        if not ids:
            return []
        return self._read(
            lambda: self._base_query()
            .filter(Document.id.in_(ids))
            .order_by(Document.created_at.desc())
            .all()
        )

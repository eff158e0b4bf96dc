"""Group-document link store."""

from typing import Iterable, List

from ..models import GroupDocumentLink
from .base import BaseRepository


class LinkRepository(BaseRepository[GroupDocumentLink]):
    model_class = GroupDocumentLink

    def list_links(self, document_id: str) -> List[GroupDocumentLink]:
        """Every group the document has been shared into, with its access level."""
        return self._read(
            lambda: self._base_query()
            .filter(GroupDocumentLink.document_id == document_id)
            .all()
        )

    def document_ids_for_groups(self, group_ids: Iterable[str]) -> List[str]:
        ids = list(set(group_ids))
        if not ids:
            return []
        rows = self._read(
            lambda: self._base_query()
            .filter(GroupDocumentLink.group_id.in_(ids))
            .with_entities(GroupDocumentLink.document_id)
            .all()
        )
        return [row.document_id for row in rows]

"""Document ACL store."""

from typing import Iterable, List

from sqlalchemy import and_, or_

from ..core.ranks import AclSubjectType
from ..models import DocumentAclEntry
from .base import BaseRepository


class AclRepository(BaseRepository[DocumentAclEntry]):
    model_class = DocumentAclEntry

    def list_acl_entries(self, document_id: str) -> List[DocumentAclEntry]:
        """All allow-list entries of a document, user and group subjects alike."""
        return self._read(
            lambda: self._base_query()
            .filter(DocumentAclEntry.document_id == document_id)
            .all()
        )

    def document_ids_for_subjects(self, user_id: str, group_ids: Iterable[str]) -> List[str]:
        """Documents with an entry naming the user directly or one of *group_ids*."""
        subject_filter = and_(
            DocumentAclEntry.subject_type == AclSubjectType.USER.value,
            DocumentAclEntry.subject_id == user_id,
        )
        ids = list(set(group_ids))
        if ids:
            subject_filter = or_(
                subject_filter,
                and_(
                    DocumentAclEntry.subject_type == AclSubjectType.GROUP.value,
                    DocumentAclEntry.subject_id.in_(ids),
                ),
            )
        rows = self._read(
            lambda: self._base_query()
            .filter(subject_filter)
            .with_entities(DocumentAclEntry.document_id)
            .all()
        )
        return [row.document_id for row in rows]

"""Shared-link store.

Targets are matched by email (case-insensitive) or user id. Expiry is left
to the caller so the decision uses a single, injectable notion of "now".
"""

from typing import List, Optional

from sqlalchemy import func, or_

from ..models import SharedLink
from .base import BaseRepository


class ShareRepository(BaseRepository[SharedLink]):
    model_class = SharedLink

    def _target_filter(self, email: Optional[str], user_id: Optional[str]):
        clauses = []
        if email:
            clauses.append(func.lower(SharedLink.shared_with_email) == email.lower())
        if user_id:
            clauses.append(SharedLink.shared_with_user == user_id)
        return or_(*clauses)

    def list_active_shares(
        self,
        document_id: str,
        email: Optional[str],
        user_id: Optional[str],
    ) -> List[SharedLink]:
        """Active shares of *document_id* addressed to *email* or *user_id*."""
        if not email and not user_id:
            return []
        return self._read(
            lambda: self._base_query()
            .filter(
                SharedLink.document_id == document_id,
                SharedLink.is_active.is_(True),
                self._target_filter(email, user_id),
            )
            .all()
        )

    def document_ids_shared_with(self, email: Optional[str], user_id: Optional[str]) -> List[str]:
        if not email and not user_id:
            return []
        rows = self._read(
            lambda: self._base_query()
            .filter(SharedLink.is_active.is_(True), self._target_filter(email, user_id))
            .with_entities(SharedLink.document_id)
            .all()
        )
        return [row.document_id for row in rows]

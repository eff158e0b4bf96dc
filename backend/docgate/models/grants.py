"""Grant models: the three document-scoped grant sources.

GroupDocumentLink : shares a document into a group at an access level.
DocumentAclEntry  : allow-list entry for a single user or a whole group.
SharedLink        : time-bounded share addressed to an email or a user id.

Any of these tables may be missing on a deployment that has not applied the
corresponding migration; the repositories report that as
ResourceUnavailableError and the engine counts it as no grants.
"""

from sqlalchemy import Column, String, DateTime, Boolean, Integer, ForeignKey, UniqueConstraint, Index
from sqlalchemy.sql import func
from ..database import Base


class GroupDocumentLink(Base):
    """Many-to-many link between a group and a document.

    Access levels: read < write < admin.
    """

    __tablename__ = "group_documents"

    group_id = Column(String(50), ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True)
    document_id = Column(String(50), ForeignKey("documents.id", ondelete="CASCADE"), primary_key=True)
    access_level = Column(String(20), nullable=False, default="read")
    added_by = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class DocumentAclEntry(Base):
    """Per-document allow-list entry.

    ``subject_type`` is ``user`` or ``group``; ``subject_id`` holds the user
    id or the group id accordingly. Roles: view < edit < admin.
    """

    __tablename__ = "document_acl"
    __table_args__ = (
        UniqueConstraint("document_id", "subject_type", "subject_id", name="uq_document_acl_subject"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(String(50), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    subject_type = Column(String(10), nullable=False)
    subject_id = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="view")
    granted_by = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class SharedLink(Base):
    """A share of one document with an email address or a user id.

    Counts only while ``is_active`` is true and ``expires_at`` is either
    NULL or strictly in the future.
    """

    __tablename__ = "shared_documents"
    __table_args__ = (
        Index("ix_shared_documents_document_id", "document_id"),
        Index("ix_shared_documents_email", "shared_with_email"),
        Index("ix_shared_documents_user", "shared_with_user"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(String(50), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    shared_with_email = Column(String(255), nullable=True)
    shared_with_user = Column(String(50), nullable=True)
    access_level = Column(String(20), nullable=False, default="view")
    expires_at = Column(DateTime(timezone=True), nullable=True, default=None)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

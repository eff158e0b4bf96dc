"""Document model."""

from sqlalchemy import Column, Index, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Document(Base):
    """A document owned by the user who created it.

    ``owner_id`` is immutable for authorization purposes: the owner always
    has full access. ``primary_group_id`` is the group the document was
    created in, treated as an implicit write link to that group.
    """

    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_owner_id", "owner_id"),
        Index("ix_documents_primary_group_id", "primary_group_id"),
    )

    id = Column(String(50), primary_key=True)
    title = Column(String(255), nullable=False)
    owner_id = Column(String(50), nullable=False)
    primary_group_id = Column(
        String(50),
        ForeignKey("groups.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    primary_group = relationship("Group", foreign_keys=[primary_group_id])

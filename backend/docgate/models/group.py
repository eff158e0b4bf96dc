"""Group and GroupMembership models.

Memberships are never physically deleted. Removing a member or leaving a
group flips ``is_active`` off and stamps ``left_at`` so the history of who
belonged where survives for auditing.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Boolean, Integer, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Group(Base):
    """A group of users that can own and share documents."""

    __tablename__ = "groups"

    id = Column(String(50), primary_key=True)
    name = Column(String(255), nullable=False)
    created_by = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    memberships = relationship("GroupMembership", back_populates="group", cascade="all, delete-orphan")


class GroupMembership(Base):
    """A user's role in a group.

    Roles: viewer < member < admin < owner.
    """

    __tablename__ = "group_members"
    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),
        Index("ix_group_members_user_active", "user_id", "is_active"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    group_id = Column(String(50), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(50), nullable=False)
    role = Column(String(20), nullable=False, default="member")
    is_active = Column(Boolean, nullable=False, default=True)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())
    left_at = Column(DateTime(timezone=True), nullable=True, default=None)

    group = relationship("Group", back_populates="memberships")

    def deactivate(self, when: datetime | None = None) -> None:
        """Soft-delete the membership (removal or leave)."""
        self.is_active = False
        self.left_at = when or datetime.now(timezone.utc)

    def reactivate(self, role: str | None = None) -> None:
        """Rejoin: the existing row is revived instead of inserting a duplicate."""
        self.is_active = True
        self.left_at = None
        if role is not None:
            self.role = role

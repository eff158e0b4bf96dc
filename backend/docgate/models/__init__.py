"""Database models."""

from .group import Group, GroupMembership
from .document import Document
from .grants import GroupDocumentLink, DocumentAclEntry, SharedLink

__all__ = [
    "Group", "GroupMembership",
    "Document",
    "GroupDocumentLink", "DocumentAclEntry", "SharedLink",
]

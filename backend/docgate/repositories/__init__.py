"""Data access repositories."""

from .base import BaseRepository, GRANT_SOURCE_TABLES, probe_grant_sources
from .document_repository import DocumentRepository
from .membership_repository import MembershipRepository
from .link_repository import LinkRepository
from .acl_repository import AclRepository
from .share_repository import ShareRepository

__all__ = [
    "BaseRepository",
    "GRANT_SOURCE_TABLES",
    "probe_grant_sources",
    "DocumentRepository",
    "MembershipRepository",
    "LinkRepository",
    "AclRepository",
    "ShareRepository",
]

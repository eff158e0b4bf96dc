"""Document schemas."""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict


class DocumentResponse(BaseModel):
    """Document metadata as returned to an authorized caller."""
    id: str
    title: str
    owner_id: str
    primary_group_id: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DownloadResponse(BaseModel):
    """Download handle; the object itself is served by the storage service."""
    document_id: str
    title: str
    storage_key: str


class AccessReport(BaseModel):
    """The caller's effective actions on one document."""
    document_id: str
    user_id: str
    is_owner: bool
    actions: Dict[str, bool]

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "document_id": "doc-123",
                    "user_id": "u-42",
                    "is_owner": False,
                    "actions": {"view": True, "download": True, "edit": False, "admin": False},
                }
            ]
        }
    }

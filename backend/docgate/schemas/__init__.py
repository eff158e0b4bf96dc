"""Pydantic schemas for request/response validation."""

from .document import DocumentResponse, DownloadResponse, AccessReport

__all__ = ["DocumentResponse", "DownloadResponse", "AccessReport"]

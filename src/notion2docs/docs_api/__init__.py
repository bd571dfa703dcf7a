"""Google Docs API wrappers and OAuth helpers."""

from .auth import SCOPES, access_token, authorize, get_credentials, load_credentials
from .documents import AsyncDocumentsAPI, DocumentsAPI, revision_of

__all__ = [
    "SCOPES",
    "AsyncDocumentsAPI",
    "DocumentsAPI",
    "access_token",
    "authorize",
    "get_credentials",
    "load_credentials",
    "revision_of",
]

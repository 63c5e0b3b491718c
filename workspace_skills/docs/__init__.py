"""Google Docs client."""

from workspace_skills.docs.client import (
    DocsClient,
    body_end_index,
    flatten_tabs,
    normalize_requests,
)
from workspace_skills.docs.models import Author, Comment, DocTab, Reply

__all__ = [
    "Author",
    "Comment",
    "DocTab",
    "DocsClient",
    "Reply",
    "body_end_index",
    "flatten_tabs",
    "normalize_requests",
]

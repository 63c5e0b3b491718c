"""HTTP transport shared by the Google API clients."""

from workspace_skills.transport.client import (
    ApiError,
    GoogleApiClient,
    api_key_headers,
    bearer_headers,
)

__all__ = [
    "ApiError",
    "GoogleApiClient",
    "api_key_headers",
    "bearer_headers",
]

import os
from typing import Literal

from pydantic import BaseModel, Field


class MissingCredentialError(ValueError):
    """Raised when the env var holding a token or API key is unset."""

    def __init__(self, env_name: str) -> None:
        self.env_name = env_name
        super().__init__(f"{env_name} environment variable is required.")


def resolve_secret(env_name: str) -> str:
    """Read a credential from the environment, failing before any network call."""
    value = os.environ.get(env_name, "")
    if not value:
        raise MissingCredentialError(env_name)
    return value


class HttpConfig(BaseModel):
    timeout: float = Field(default=60.0, gt=0)
    max_redirects: int = Field(default=10, ge=0)


class DriveConfig(BaseModel):
    api_base: str = "https://www.googleapis.com/drive/v3"
    upload_base: str = "https://www.googleapis.com/upload/drive/v3"
    token_env: str = "GCLOUD_ACCESS_TOKEN"
    page_size: int = Field(default=100, gt=0, le=1000)


class DocsConfig(BaseModel):
    api_base: str = "https://docs.googleapis.com/v1"
    token_env: str = "GCLOUD_ACCESS_TOKEN"


class ResearchConfig(BaseModel):
    api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    api_key_env: str = "GEMINI_API_KEY"
    agent: str = "deep-research-pro-preview-12-2025"
    poll_interval: int = Field(default=10, ge=0)


class ImageConfig(BaseModel):
    api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    api_key_env: str = "GEMINI_API_KEY"
    model: str = "gemini-2.5-flash-image"
    output_dir: str = "nanobanana-outputs"


class ReleaseConfig(BaseModel):
    manifest: str = "gemini-extension.json"
    tag_prefix: str = "v"


class SkillsConfig(BaseModel):
    http: HttpConfig = Field(default_factory=HttpConfig)
    drive: DriveConfig = Field(default_factory=DriveConfig)
    docs: DocsConfig = Field(default_factory=DocsConfig)
    research: ResearchConfig = Field(default_factory=ResearchConfig)
    image: ImageConfig = Field(default_factory=ImageConfig)
    release: ReleaseConfig = Field(default_factory=ReleaseConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"

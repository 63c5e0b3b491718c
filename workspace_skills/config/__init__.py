from .loader import load_config
from .models import (
    DocsConfig,
    DriveConfig,
    HttpConfig,
    ImageConfig,
    MissingCredentialError,
    ReleaseConfig,
    ResearchConfig,
    SkillsConfig,
    resolve_secret,
)

__all__ = [
    "DocsConfig",
    "DriveConfig",
    "HttpConfig",
    "ImageConfig",
    "MissingCredentialError",
    "ReleaseConfig",
    "ResearchConfig",
    "SkillsConfig",
    "load_config",
    "resolve_secret",
]

from workspace_skills.release.bump import (
    BUMP_TYPES,
    BumpType,
    bump_manifest,
    bump_version,
    tag_release,
)

__all__ = [
    "BUMP_TYPES",
    "BumpType",
    "bump_manifest",
    "bump_version",
    "tag_release",
]

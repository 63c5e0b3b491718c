"""Semantic version bump of a JSON manifest, followed by a git commit and tag."""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Literal, get_args

logger = logging.getLogger(__name__)

BumpType = Literal["major", "minor", "patch"]
BUMP_TYPES: tuple[str, ...] = get_args(BumpType)


def bump_version(version: str, bump: str) -> str:
    """Return ``version`` bumped by one ``major``/``minor``/``patch`` step."""
    if bump not in BUMP_TYPES:
        raise ValueError(
            f'Invalid bump type "{bump}". Must be one of: {", ".join(BUMP_TYPES)}'
        )
    parts = version.strip().split(".")
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid version '{version}': expected MAJOR.MINOR.PATCH")
    major, minor, patch = (int(p) for p in parts)

    if bump == "major":
        major, minor, patch = major + 1, 0, 0
    elif bump == "minor":
        minor, patch = minor + 1, 0
    else:
        patch += 1
    return f"{major}.{minor}.{patch}"


def bump_manifest(manifest: str | Path, bump: str) -> str:
    """Rewrite the manifest's ``version`` field and return the new version."""
    path = Path(manifest)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Could not parse {path}: {e}") from e
    if not isinstance(data, dict) or "version" not in data:
        raise ValueError(f"No version field in {path}")

    new_version = bump_version(str(data["version"]), bump)
    data["version"] = new_version
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    logger.info("Bumped %s to %s (%s)", path, new_version, bump)
    return new_version


def tag_release(manifest: str | Path, version: str, tag_prefix: str = "v") -> bool:
    """Commit the manifest and tag the release.

    Returns False when any git step fails. The manifest has already been
    rewritten by then, so failures are logged rather than raised.
    """
    tag = f"{tag_prefix}{version}"
    commands = [
        ["git", "add", str(manifest)],
        ["git", "commit", "-m", f"chore: release {tag}"],
        ["git", "tag", tag],
    ]
    for cmd in commands:
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=60)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.error("Error performing git operations: %s", e)
            return False
        if result.returncode != 0:
            logger.error(
                "Error performing git operations: '%s' exited %d: %s",
                " ".join(cmd),
                result.returncode,
                (result.stderr or result.stdout).strip()[:200],
            )
            return False
    return True

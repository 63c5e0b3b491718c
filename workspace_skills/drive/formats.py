"""Export format negotiation and the ``Name.ID.ext`` sidecar filename convention."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path, PurePath
from types import MappingProxyType

from workspace_skills.drive.models import DriveFile, ExportPlan

logger = logging.getLogger(__name__)

GOOGLE_DOC = "application/vnd.google-apps.document"
GOOGLE_SHEET = "application/vnd.google-apps.spreadsheet"
GOOGLE_SLIDES = "application/vnd.google-apps.presentation"

DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PPTX = "application/vnd.openxmlformats-officedocument.presentationml.presentation"


class SidecarNameError(ValueError):
    """Filename does not carry a remote id in the ``Name.ID.ext`` form."""


@dataclass(frozen=True)
class ExportRule:
    """Supported output formats for one Workspace-native MIME type.

    ``formats`` maps the format a user asks for to the MIME type sent to the
    export endpoint. They differ only for Markdown, which Docs export as
    plain text.
    """

    default: str
    formats: Mapping[str, str]


EXPORT_RULES: Mapping[str, ExportRule] = MappingProxyType({
    GOOGLE_DOC: ExportRule(
        default="text/markdown",
        formats=MappingProxyType({
            "text/markdown": "text/plain",
            "application/pdf": "application/pdf",
            "text/plain": "text/plain",
            DOCX: DOCX,
            "application/rtf": "application/rtf",
            "text/html": "text/html",
        }),
    ),
    GOOGLE_SHEET: ExportRule(
        default="text/csv",
        formats=MappingProxyType({
            "text/csv": "text/csv",
            "application/pdf": "application/pdf",
            XLSX: XLSX,
        }),
    ),
    GOOGLE_SLIDES: ExportRule(
        default="application/pdf",
        formats=MappingProxyType({
            "application/pdf": "application/pdf",
            PPTX: PPTX,
            "text/plain": "text/plain",
        }),
    ),
})

EXTENSIONS: Mapping[str, str] = MappingProxyType({
    "text/markdown": ".md",
    "text/plain": ".txt",
    "application/pdf": ".pdf",
    "text/csv": ".csv",
    DOCX: ".docx",
    XLSX: ".xlsx",
    PPTX: ".pptx",
    "text/html": ".html",
    "application/zip": ".zip",
    "application/rtf": ".rtf",
})


def negotiate_export(
    file: DriveFile,
    requested_format: str | None,
    api_base: str,
) -> ExportPlan:
    """Pick the download URL and local extension for a Drive file.

    Workspace-native files go through the export endpoint. An unsupported
    ``requested_format`` degrades to the rule's default with a warning.
    Everything else is fetched as raw media.
    """
    rule = EXPORT_RULES.get(file.mime_type)
    if rule is None:
        extension = EXTENSIONS.get(file.mime_type) or PurePath(file.name).suffix
        return ExportPlan(
            url=f"{api_base}/files/{file.id}",
            params={"alt": "media"},
            extension=extension,
        )

    target = requested_format or rule.default
    fell_back = False
    if target not in rule.formats:
        logger.warning(
            "Format '%s' not supported for %s. Falling back to %s.",
            target,
            file.mime_type,
            rule.default,
        )
        target = rule.default
        fell_back = True

    if target == "text/markdown":
        logger.info("Exporting Google Doc as text/plain to approximate Markdown.")

    export_mime_type = rule.formats[target]
    return ExportPlan(
        url=f"{api_base}/files/{file.id}/export",
        params={"mimeType": export_mime_type},
        extension=EXTENSIONS.get(target, ""),
        format=target,
        export_mime_type=export_mime_type,
        fell_back=fell_back,
    )


def format_for_extension(extension: str) -> str | None:
    """Reverse EXTENSIONS lookup: ``.pdf`` -> ``application/pdf``."""
    ext = extension.lower()
    for mime_type, suffix in EXTENSIONS.items():
        if suffix == ext:
            return mime_type
    return None


def sanitize_filename(name: str) -> str:
    """Replace anything outside ``[A-Za-z0-9._-]`` with an underscore."""
    return re.sub(r"[^a-zA-Z0-9.\-_]", "_", name)


def sidecar_name(name: str, file_id: str, extension: str) -> str:
    """Build ``<sanitized-name>.<fileId><extension>``."""
    return f"{sanitize_filename(name)}.{file_id}{extension}"


def parse_sidecar_name(path: str | Path) -> tuple[str, str]:
    """Recover ``(file_id, extension)`` from a sidecar filename.

    The last two dot-separated segments of the basename are popped as the
    extension and the id, so at least three segments are required.
    """
    parts = Path(path).name.split(".")
    if len(parts) < 3:
        raise SidecarNameError(
            f"Filename '{Path(path).name}' does not match the expected format "
            "'Name.ID.ext'."
        )
    extension = "." + parts.pop()
    file_id = parts.pop()
    return file_id, extension

"""Google Drive: format negotiation, sidecar filenames, multipart uploads."""

from workspace_skills.drive.client import DownloadResult, DriveClient, build_name_query
from workspace_skills.drive.formats import (
    EXPORT_RULES,
    EXTENSIONS,
    ExportRule,
    SidecarNameError,
    negotiate_export,
    parse_sidecar_name,
    sanitize_filename,
    sidecar_name,
)
from workspace_skills.drive.models import DriveFile, ExportPlan, UploadResult
from workspace_skills.drive.multipart import BOUNDARY, build_multipart_body

__all__ = [
    "BOUNDARY",
    "EXPORT_RULES",
    "EXTENSIONS",
    "DownloadResult",
    "DriveClient",
    "DriveFile",
    "ExportPlan",
    "ExportRule",
    "SidecarNameError",
    "UploadResult",
    "build_multipart_body",
    "build_name_query",
    "negotiate_export",
    "parse_sidecar_name",
    "sanitize_filename",
    "sidecar_name",
]

"""Drive v3 operations: download/export, refresh, upload, update, search."""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from workspace_skills.config.models import DriveConfig
from workspace_skills.drive.formats import (
    format_for_extension,
    negotiate_export,
    parse_sidecar_name,
    sidecar_name,
)
from workspace_skills.drive.models import DriveFile, ExportPlan, UploadResult
from workspace_skills.drive.multipart import build_multipart_body
from workspace_skills.transport import GoogleApiClient

logger = logging.getLogger(__name__)

_FILE_FIELDS = "id,name,mimeType,modifiedTime,size,webViewLink,parents"


class DownloadResult(BaseModel):
    file: DriveFile
    plan: ExportPlan
    path: str


def guess_mime_type(path: Path) -> str:
    """MIME type for an upload, from the extension tables first, then ``mimetypes``."""
    return (
        format_for_extension(path.suffix)
        or mimetypes.guess_type(path.name)[0]
        or "application/octet-stream"
    )


def build_name_query(text: str) -> str:
    """Drive ``q`` expression matching file names containing ``text``."""
    escaped = text.replace("\\", "\\\\").replace("'", "\\'")
    return f"name contains '{escaped}' and trashed = false"


class DriveClient:
    """Drive v3 client on top of a shared GoogleApiClient."""

    def __init__(self, api: GoogleApiClient, config: DriveConfig | None = None) -> None:
        self._api = api
        self.config = config or DriveConfig()

    # -- metadata / download ---------------------------------------------------

    async def get_metadata(self, file_id: str) -> DriveFile:
        data = await self._api.request_json(
            "GET",
            f"{self.config.api_base}/files/{file_id}",
            params={"fields": "id,name,mimeType", "supportsAllDrives": "true"},
        )
        return DriveFile.model_validate(data)

    async def download(
        self,
        file_id: str,
        requested_format: str | None = None,
        target: str | Path | None = None,
    ) -> DownloadResult:
        """Download or export a file.

        Without ``target`` the file lands in the working directory under its
        sidecar name, so it can be refreshed or updated later.
        """
        file = await self.get_metadata(file_id)
        plan = negotiate_export(file, requested_format, self.config.api_base)

        dest = Path(target) if target else Path(sidecar_name(file.name, file.id, plan.extension))
        logger.info("Downloading '%s' (%s) to '%s'", file.name, file.id, dest)
        await self._api.download(plan.url, dest, params=plan.params)
        return DownloadResult(file=file, plan=plan, path=str(dest))

    async def refresh(self, path: str | Path) -> DownloadResult:
        """Re-download a sidecar-named file in place, keeping its format."""
        file_id, extension = parse_sidecar_name(path)
        return await self.download(file_id, format_for_extension(extension), target=path)

    # -- upload / update -------------------------------------------------------

    async def upload(
        self,
        path: str | Path,
        *,
        parent_id: str | None = None,
        name: str | None = None,
        rename: bool = True,
    ) -> UploadResult:
        """Create a new Drive file from a local one.

        With ``rename`` the local file is moved to ``<stem>.<newId><suffix>``
        so later ``update``/``refresh`` calls can find the remote copy.
        """
        src = Path(path)
        if not src.is_file():
            raise FileNotFoundError(f"File not found: {src}")

        metadata: dict[str, Any] = {"name": name or src.name}
        if parent_id:
            metadata["parents"] = [parent_id]

        data = await self._send_multipart(
            "POST", f"{self.config.upload_base}/files", metadata, src
        )
        file = DriveFile.model_validate(data)

        if not rename:
            return UploadResult(file=file, local_path=str(src))
        if not src.suffix:
            logger.warning("%s has no extension; leaving it unrenamed", src)
            return UploadResult(file=file, local_path=str(src))

        renamed = src.with_name(sidecar_name(src.stem, file.id, src.suffix))
        src.rename(renamed)
        logger.info("Renamed %s -> %s", src, renamed)
        return UploadResult(file=file, local_path=str(renamed), renamed=True)

    async def update(self, path: str | Path) -> DriveFile:
        """Replace the content of the remote file named by a sidecar filename."""
        src = Path(path)
        file_id, _ = parse_sidecar_name(src)
        if not src.is_file():
            raise FileNotFoundError(f"File not found: {src}")
        data = await self._send_multipart(
            "PATCH", f"{self.config.upload_base}/files/{file_id}", {}, src
        )
        return DriveFile.model_validate(data)

    async def _send_multipart(
        self,
        method: str,
        url: str,
        metadata: dict[str, Any],
        src: Path,
    ) -> Any:
        body, content_type = build_multipart_body(
            metadata, src.read_bytes(), guess_mime_type(src)
        )
        return await self._api.request_json(
            method,
            url,
            params={
                "uploadType": "multipart",
                "fields": _FILE_FIELDS,
                "supportsAllDrives": "true",
            },
            content=body,
            headers={"Content-Type": content_type},
        )

    # -- search ----------------------------------------------------------------

    async def search(
        self,
        query: str,
        *,
        limit: int | None = None,
        raw: bool = False,
    ) -> list[DriveFile]:
        """Run a Drive query, following ``nextPageToken`` until done or ``limit`` hit."""
        q = query if raw else build_name_query(query)
        files: list[DriveFile] = []
        page_token: str | None = None

        while True:
            page_size = self.config.page_size
            if limit is not None:
                page_size = min(page_size, limit - len(files))
            params: dict[str, Any] = {
                "q": q,
                "pageSize": page_size,
                "fields": f"nextPageToken, files({_FILE_FIELDS})",
                "supportsAllDrives": "true",
                "includeItemsFromAllDrives": "true",
            }
            if page_token:
                params["pageToken"] = page_token

            data = await self._api.request_json(
                "GET", f"{self.config.api_base}/files", params=params
            )
            files.extend(DriveFile.model_validate(f) for f in data.get("files", []))
            page_token = data.get("nextPageToken")
            if not page_token or (limit is not None and len(files) >= limit):
                break

        return files[:limit] if limit is not None else files

    # -- sharing / cleanup -----------------------------------------------------

    async def share_public(self, file_id: str) -> dict:
        """Grant anyone-with-the-link read access."""
        return await self._api.request_json(
            "POST",
            f"{self.config.api_base}/files/{file_id}/permissions",
            params={"supportsAllDrives": "true"},
            json={"role": "reader", "type": "anyone"},
        )

    async def delete(self, file_id: str) -> None:
        await self._api.request(
            "DELETE",
            f"{self.config.api_base}/files/{file_id}",
            params={"supportsAllDrives": "true"},
        )

    # -- comments --------------------------------------------------------------

    async def list_comments(self, file_id: str) -> list[dict]:
        comments: list[dict] = []
        page_token: str | None = None
        while True:
            params: dict[str, Any] = {"fields": "*", "pageSize": 100}
            if page_token:
                params["pageToken"] = page_token
            data = await self._api.request_json(
                "GET", f"{self.config.api_base}/files/{file_id}/comments", params=params
            )
            comments.extend(data.get("comments", []))
            page_token = data.get("nextPageToken")
            if not page_token:
                return comments

    async def create_comment(self, file_id: str, body: dict[str, Any]) -> dict:
        return await self._api.request_json(
            "POST",
            f"{self.config.api_base}/files/{file_id}/comments",
            params={"fields": "*"},
            json=body,
        )

    async def create_reply(self, file_id: str, comment_id: str, body: dict[str, Any]) -> dict:
        return await self._api.request_json(
            "POST",
            f"{self.config.api_base}/files/{file_id}/comments/{comment_id}/replies",
            params={"fields": "*"},
            json=body,
        )

"""Docs v1 operations plus Drive-backed comments and image insertion."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx

from workspace_skills.config.models import DocsConfig
from workspace_skills.docs.models import Comment, DocTab
from workspace_skills.drive.client import DriveClient
from workspace_skills.transport import ApiError, GoogleApiClient

logger = logging.getLogger(__name__)

# Docs fetches inline images by URL, so the upload must be publicly readable.
IMAGE_URI_TEMPLATE = "https://drive.google.com/uc?export=view&id={file_id}"


def normalize_requests(raw: str | Any) -> list[dict]:
    """Coerce user input into the ``requests`` list of a batchUpdate.

    Accepts a bare list, an object carrying a ``requests`` list, or a single
    request object. Strings are parsed as JSON first.
    """
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Error parsing requests JSON: {e}") from e
    else:
        parsed = raw

    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        if isinstance(parsed.get("requests"), list):
            return parsed["requests"]
        return [parsed]
    raise ValueError(
        f"Requests JSON must be an object or a list, got {type(parsed).__name__}"
    )


def flatten_tabs(
    tabs: list[dict],
    depth: int = 0,
    parent_tab_id: str | None = None,
) -> list[DocTab]:
    """Depth-first walk of ``tabs``/``childTabs`` into a flat list."""
    flat: list[DocTab] = []
    for tab in tabs:
        props = tab.get("tabProperties", {})
        tab_id = props.get("tabId", "")
        flat.append(
            DocTab(
                tab_id=tab_id,
                title=props.get("title", ""),
                index=props.get("index", 0),
                depth=depth,
                parent_tab_id=parent_tab_id,
            )
        )
        flat.extend(flatten_tabs(tab.get("childTabs", []), depth + 1, tab_id))
    return flat


def body_end_index(document: dict) -> int:
    """Last insertable index in the document body (before the final newline)."""
    content = document.get("body", {}).get("content", [])
    if not content:
        return 1
    return max(content[-1].get("endIndex", 2) - 1, 1)


class DocsClient:
    """Google Docs client. Comments and image uploads go through Drive."""

    def __init__(
        self,
        api: GoogleApiClient,
        drive: DriveClient,
        config: DocsConfig | None = None,
    ) -> None:
        self._api = api
        self._drive = drive
        self.config = config or DocsConfig()

    def _document_url(self, doc_id: str) -> str:
        return f"{self.config.api_base}/documents/{doc_id}"

    async def read(self, doc_id: str, *, include_tabs_content: bool = False) -> dict:
        params = {"includeTabsContent": "true"} if include_tabs_content else None
        return await self._api.request_json(
            "GET", self._document_url(doc_id), params=params
        )

    async def tabs(self, doc_id: str) -> list[DocTab]:
        document = await self.read(doc_id, include_tabs_content=True)
        return flatten_tabs(document.get("tabs", []))

    async def create(self, title: str = "Untitled Document") -> dict:
        return await self._api.request_json(
            "POST", f"{self.config.api_base}/documents", json={"title": title}
        )

    async def edit(self, doc_id: str, requests: str | Any) -> dict:
        batch = normalize_requests(requests)
        return await self._api.request_json(
            "POST",
            f"{self._document_url(doc_id)}:batchUpdate",
            json={"requests": batch},
        )

    # -- comments --------------------------------------------------------------

    async def comments(self, doc_id: str) -> list[Comment]:
        raw = await self._drive.list_comments(doc_id)
        return [Comment.model_validate(c) for c in raw]

    async def create_comment(
        self,
        doc_id: str,
        content: str,
        quoted_text: str | None = None,
    ) -> dict:
        body: dict[str, Any] = {"content": content}
        if quoted_text:
            body["quotedFileContent"] = {"mimeType": "text/html", "value": quoted_text}
        return await self._drive.create_comment(doc_id, body)

    async def reply_comment(self, doc_id: str, comment_id: str, content: str) -> dict:
        return await self._drive.create_reply(doc_id, comment_id, {"content": content})

    async def resolve_comment(
        self,
        doc_id: str,
        comment_id: str,
        message: str | None = None,
    ) -> dict:
        body: dict[str, Any] = {"action": "resolve"}
        if message:
            body["content"] = message
        return await self._drive.create_reply(doc_id, comment_id, body)

    # -- images ----------------------------------------------------------------

    async def insert_image(
        self,
        doc_id: str,
        image_path: str | Path,
        *,
        index: int | None = None,
        width: float | None = None,
        height: float | None = None,
        keep_upload: bool = False,
    ) -> dict:
        """Insert a local image into a document.

        The image is uploaded to Drive and shared publicly so Docs can fetch
        it, then the temporary Drive copy is deleted unless ``keep_upload``.
        """
        src = Path(image_path)
        if not src.is_file():
            raise FileNotFoundError(f"Image not found: {src}")

        upload = await self._drive.upload(src, rename=False)
        file_id = upload.file.id
        logger.info("Uploaded %s to Drive as %s", src, file_id)
        try:
            await self._drive.share_public(file_id)
            if index is None:
                index = body_end_index(await self.read(doc_id))

            insert: dict[str, Any] = {
                "uri": IMAGE_URI_TEMPLATE.format(file_id=file_id),
                "location": {"index": index},
            }
            size: dict[str, Any] = {}
            if width:
                size["width"] = {"magnitude": float(width), "unit": "PT"}
            if height:
                size["height"] = {"magnitude": float(height), "unit": "PT"}
            if size:
                insert["objectSize"] = size

            return await self.edit(doc_id, [{"insertInlineImage": insert}])
        finally:
            if not keep_upload:
                await self._discard_upload(file_id)

    async def _discard_upload(self, file_id: str) -> None:
        try:
            await self._drive.delete(file_id)
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("Could not delete temporary Drive upload %s: %s", file_id, e)
            return
        logger.info("Deleted temporary Drive upload %s", file_id)

"""Image generation through ``models/{model}:generateContent``."""

from __future__ import annotations

import base64
import json
import logging
from collections.abc import Callable, Iterable
from pathlib import Path

from pydantic import BaseModel, Field

from workspace_skills.config.models import ImageConfig
from workspace_skills.imagegen.naming import OutputNamer
from workspace_skills.imagegen.parts import GenerationOptions, build_parts, build_request
from workspace_skills.transport import GoogleApiClient

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """The model answered, but with an error or without any content."""


class GenerationResult(BaseModel):
    texts: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)


class ImageGenClient:
    def __init__(self, api: GoogleApiClient, config: ImageConfig | None = None) -> None:
        self._api = api
        self.config = config or ImageConfig()

    async def generate_content(self, model: str, body: dict) -> dict:
        return await self._api.request(
            "POST",
            f"{self.config.api_base}/models/{model}:generateContent",
            json=body,
        )


async def generate_images(
    client: ImageGenClient,
    inputs: Iterable[str],
    options: GenerationOptions,
    output: str | Path | None = None,
    on_text: Callable[[str], None] | None = None,
    on_image: Callable[[Path], None] | None = None,
) -> GenerationResult:
    """Send the prompt, then split the reply into printed text and saved images.

    Parts are handled in response order across all candidates, so images are
    numbered in the order the model returned them.
    """
    body = build_request(build_parts(inputs), options)
    data = await client.generate_content(options.model, body)

    if not isinstance(data, dict):
        raise GenerationError(f"Unexpected response: {data!r}")
    if data.get("error"):
        raise GenerationError(f"API Error: {json.dumps(data['error'], indent=2)}")

    candidates = data.get("candidates") or []
    contents = [c["content"] for c in candidates if isinstance(c, dict) and c.get("content")]
    if not contents:
        raise GenerationError(f"No content in response: {json.dumps(data, indent=2)}")

    namer = OutputNamer(output, client.config.output_dir)
    result = GenerationResult()
    for content in contents:
        for part in content.get("parts", []):
            if part.get("text"):
                result.texts.append(part["text"])
                if on_text is not None:
                    on_text(part["text"])
            elif part.get("inlineData"):
                path = namer.path_for(len(result.images))
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(base64.b64decode(part["inlineData"]["data"]))
                logger.debug("saved %s", path)
                result.images.append(str(path))
                if on_image is not None:
                    on_image(path)
    return result

"""Turn CLI inputs into a multimodal ``generateContent`` request."""

from __future__ import annotations

import base64
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, Field

IMAGE_MIME_TYPES: Mapping[str, str] = MappingProxyType({
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".heic": "image/heic",
    ".heif": "image/heif",
})


class GenerationOptions(BaseModel):
    model: str
    aspect_ratio: str | None = None
    count: int | None = Field(default=None, ge=1)
    seed: int | None = None
    image_size: str | None = None
    google_search: bool = False


def image_mime_type(path: str | Path) -> str | None:
    return IMAGE_MIME_TYPES.get(Path(path).suffix.lower())


def build_part(value: str) -> dict[str, Any]:
    """An inline image part for an existing image file, else a text part."""
    path = Path(value)
    mime_type = image_mime_type(path)
    if mime_type and path.is_file():
        return {
            "inline_data": {
                "mime_type": mime_type,
                "data": base64.b64encode(path.read_bytes()).decode("ascii"),
            }
        }
    return {"text": value}


def build_parts(inputs: Iterable[str]) -> list[dict[str, Any]]:
    return [build_part(value) for value in inputs]


def build_request(parts: list[dict[str, Any]], options: GenerationOptions) -> dict[str, Any]:
    generation_config: dict[str, Any] = {"responseModalities": ["TEXT", "IMAGE"]}

    image_config: dict[str, str] = {}
    if options.aspect_ratio:
        image_config["aspectRatio"] = options.aspect_ratio
    if options.image_size:
        image_config["imageSize"] = options.image_size
    if image_config:
        generation_config["imageConfig"] = image_config

    if options.count:
        generation_config["candidateCount"] = options.count
    if options.seed is not None:
        generation_config["seed"] = options.seed

    body: dict[str, Any] = {
        "contents": [{"parts": parts}],
        "generationConfig": generation_config,
    }
    if options.google_search:
        body["tools"] = [{"google_search": {}}]
    return body

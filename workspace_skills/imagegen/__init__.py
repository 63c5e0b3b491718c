"""Text + image prompts to generated images."""

from workspace_skills.imagegen.client import (
    GenerationError,
    GenerationResult,
    ImageGenClient,
    generate_images,
)
from workspace_skills.imagegen.naming import OutputNamer
from workspace_skills.imagegen.parts import (
    IMAGE_MIME_TYPES,
    GenerationOptions,
    build_part,
    build_parts,
    build_request,
)

__all__ = [
    "IMAGE_MIME_TYPES",
    "GenerationError",
    "GenerationOptions",
    "GenerationResult",
    "ImageGenClient",
    "OutputNamer",
    "build_part",
    "build_parts",
    "build_request",
    "generate_images",
]

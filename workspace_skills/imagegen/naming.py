"""Output paths for generated images."""

from __future__ import annotations

import uuid
from pathlib import Path


class OutputNamer:
    """Decides where the n-th generated image is written.

    - no output: ``<default_dir>/image-<uuid>.png``
    - output with an extension: a file path; the first image uses it as is,
      image n (1-based, n >= 2) becomes ``<stem>-<n><ext>`` beside it
    - output without an extension: a directory of ``image-<uuid>.png`` files
    """

    def __init__(self, output: str | Path | None, default_dir: str | Path) -> None:
        self.output = Path(output) if output else None
        self.default_dir = Path(default_dir)

    @property
    def is_file_target(self) -> bool:
        return self.output is not None and bool(self.output.suffix)

    def path_for(self, index: int) -> Path:
        if self.output is None:
            return self.default_dir / _random_name()
        if not self.is_file_target:
            return self.output / _random_name()
        if index == 0:
            return self.output
        return self.output.with_name(f"{self.output.stem}-{index + 1}{self.output.suffix}")


def _random_name() -> str:
    return f"image-{uuid.uuid4()}.png"

"""Tests for image generation: request building, output naming, response handling."""

from __future__ import annotations

import base64
import json
from pathlib import Path

import httpx
import pytest

from workspace_skills.config.models import ImageConfig
from workspace_skills.imagegen import (
    GenerationError,
    GenerationOptions,
    ImageGenClient,
    OutputNamer,
    build_part,
    build_parts,
    build_request,
    generate_images,
)

GENERATE = "/v1beta/models/gemini-2.5-flash-image:generateContent"


def _image_part(data: bytes) -> dict:
    return {"inlineData": {"mimeType": "image/png", "data": base64.b64encode(data).decode()}}


@pytest.fixture
def options():
    return GenerationOptions(model="gemini-2.5-flash-image")


# ── Parts / request body ────────────────────────────────────────────


class TestParts:
    def test_text(self):
        assert build_part("a cat in a hat") == {"text": "a cat in a hat"}

    def test_existing_image(self, tmp_path):
        image = tmp_path / "ref.JPG"
        image.write_bytes(b"jpegbytes")
        assert build_part(str(image)) == {
            "inline_data": {
                "mime_type": "image/jpeg",
                "data": base64.b64encode(b"jpegbytes").decode(),
            }
        }

    def test_missing_image_is_text(self, tmp_path):
        missing = str(tmp_path / "missing.png")
        assert build_part(missing) == {"text": missing}

    def test_non_image_file_is_text(self, tmp_path):
        notes = tmp_path / "notes.txt"
        notes.write_text("x")
        assert build_part(str(notes)) == {"text": str(notes)}

    def test_order_kept(self, tmp_path):
        image = tmp_path / "a.png"
        image.write_bytes(b"p")
        parts = build_parts(["make it blue", str(image), "and bigger"])
        assert [next(iter(p)) for p in parts] == ["text", "inline_data", "text"]


class TestBuildRequest:
    def test_minimal(self, options):
        body = build_request([{"text": "x"}], options)
        assert body == {
            "contents": [{"parts": [{"text": "x"}]}],
            "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
        }

    def test_all_options(self):
        opts = GenerationOptions(
            model="m",
            aspect_ratio="16:9",
            count=2,
            seed=7,
            image_size="2K",
            google_search=True,
        )
        body = build_request([], opts)
        config = body["generationConfig"]
        assert config["imageConfig"] == {"aspectRatio": "16:9", "imageSize": "2K"}
        assert config["candidateCount"] == 2
        assert config["seed"] == 7
        assert body["tools"] == [{"google_search": {}}]

    def test_seed_zero_kept(self):
        body = build_request([], GenerationOptions(model="m", seed=0))
        assert body["generationConfig"]["seed"] == 0


# ── Output naming ───────────────────────────────────────────────────


class TestOutputNamer:
    def test_file_target(self, tmp_path):
        namer = OutputNamer(tmp_path / "out.png", "unused")
        assert namer.is_file_target
        assert namer.path_for(0) == tmp_path / "out.png"
        assert namer.path_for(1) == tmp_path / "out-2.png"
        assert namer.path_for(2) == tmp_path / "out-3.png"

    def test_directory_target(self, tmp_path):
        namer = OutputNamer(tmp_path / "renders", "unused")
        path = namer.path_for(0)
        assert path.parent == tmp_path / "renders"
        assert path.name.startswith("image-") and path.suffix == ".png"

    def test_default_dir(self):
        path = OutputNamer(None, "nanobanana-outputs").path_for(0)
        assert path.parent == Path("nanobanana-outputs")

    def test_random_names_differ(self):
        namer = OutputNamer(None, "d")
        assert namer.path_for(0) != namer.path_for(1)


# ── generate_images ─────────────────────────────────────────────────


class TestGenerateImages:
    @pytest.mark.asyncio
    async def test_saves_images_from_all_candidates(self, api, fake_google, options, tmp_path):
        fake_google.add(
            "POST",
            GENERATE,
            httpx.Response(
                200,
                json={
                    "candidates": [
                        {"content": {"parts": [{"text": "Here you go"}, _image_part(b"one")]}},
                        {"content": {"parts": [_image_part(b"two")]}},
                    ]
                },
            ),
        )
        texts, saved = [], []

        result = await generate_images(
            ImageGenClient(api),
            ["a red fox"],
            options,
            output=tmp_path / "out.png",
            on_text=texts.append,
            on_image=saved.append,
        )

        assert result.texts == ["Here you go"] == texts
        assert (tmp_path / "out.png").read_bytes() == b"one"
        assert (tmp_path / "out-2.png").read_bytes() == b"two"
        assert saved == [tmp_path / "out.png", tmp_path / "out-2.png"]
        body = json.loads(fake_google.sent("POST", GENERATE)[0].content)
        assert body["contents"][0]["parts"] == [{"text": "a red fox"}]

    @pytest.mark.asyncio
    async def test_default_dir_created(self, api, fake_google, options, tmp_path):
        fake_google.add(
            "POST",
            GENERATE,
            httpx.Response(200, json={"candidates": [{"content": {"parts": [_image_part(b"x")]}}]}),
        )
        out_dir = tmp_path / "gen"
        client = ImageGenClient(api, ImageConfig(output_dir=str(out_dir)))
        result = await generate_images(client, ["x"], options)
        assert len(result.images) == 1
        assert Path(result.images[0]).parent == out_dir

    @pytest.mark.asyncio
    async def test_error_member(self, api, fake_google, options):
        fake_google.add(
            "POST", GENERATE, httpx.Response(200, json={"error": {"message": "blocked"}})
        )
        with pytest.raises(GenerationError, match="blocked"):
            await generate_images(ImageGenClient(api), ["x"], options)

    @pytest.mark.asyncio
    async def test_no_content(self, api, fake_google, options):
        fake_google.add(
            "POST", GENERATE, httpx.Response(200, json={"candidates": [{"finishReason": "SAFETY"}]})
        )
        with pytest.raises(GenerationError, match="No content in response"):
            await generate_images(ImageGenClient(api), ["x"], options)

    @pytest.mark.asyncio
    async def test_model_in_path(self, api, fake_google):
        path = "/v1beta/models/other-model:generateContent"
        fake_google.add(
            "POST", path, httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "t"}]}}]})
        )
        result = await generate_images(
            ImageGenClient(api), ["x"], GenerationOptions(model="other-model")
        )
        assert result.images == []
        assert len(fake_google.sent("POST", path)) == 1

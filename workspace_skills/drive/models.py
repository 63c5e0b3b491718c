"""Pydantic models for Drive data."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DriveFile(BaseModel):
    """Subset of the Drive v3 ``File`` resource the tools care about."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str = ""
    mime_type: str = Field(default="application/octet-stream", alias="mimeType")
    modified_time: str | None = Field(default=None, alias="modifiedTime")
    size: int | None = None
    web_view_link: str | None = Field(default=None, alias="webViewLink")
    parents: list[str] = Field(default_factory=list)


class ExportPlan(BaseModel):
    """Where and how to fetch a file's bytes."""

    url: str
    params: dict[str, str] = Field(default_factory=dict)
    extension: str = ""
    format: str | None = Field(default=None, description="Requested output format, None for binary")
    export_mime_type: str | None = Field(default=None, description="None for binary downloads")
    fell_back: bool = False

    @property
    def is_export(self) -> bool:
        return self.export_mime_type is not None


class UploadResult(BaseModel):
    """A finished upload plus where the local copy ended up."""

    file: DriveFile
    local_path: str
    renamed: bool = False

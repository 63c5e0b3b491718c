"""Pydantic models for Docs tabs and Drive comments."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DocTab(BaseModel):
    """One tab of a multi-tab document, flattened with its nesting depth."""

    tab_id: str
    title: str = ""
    index: int = 0
    depth: int = 0
    parent_tab_id: str | None = None


class Author(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    display_name: str = Field(default="", alias="displayName")
    email_address: str | None = Field(default=None, alias="emailAddress")


class Reply(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    content: str = ""
    author: Author = Field(default_factory=Author)
    created_time: str | None = Field(default=None, alias="createdTime")
    action: str | None = None
    deleted: bool = False


class Comment(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    content: str = ""
    author: Author = Field(default_factory=Author)
    created_time: str | None = Field(default=None, alias="createdTime")
    resolved: bool = False
    deleted: bool = False
    quoted_file_content: dict[str, Any] | None = Field(default=None, alias="quotedFileContent")
    replies: list[Reply] = Field(default_factory=list)

    @property
    def quoted_text(self) -> str:
        if not self.quoted_file_content:
            return ""
        return self.quoted_file_content.get("value", "")

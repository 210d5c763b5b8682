"""
Projections of Confluence REST payloads.

Spaces and search envelopes keep only the fields the tools expose. Pages keep
whatever the caller expanded, minus underscore bookkeeping keys.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class BodyValue(_Model):
    value: str = ""
    representation: str = ""


class PageBody(_Model):
    storage: Optional[BodyValue] = None
    view: Optional[BodyValue] = None


class VersionAuthor(_Model):
    display_name: Optional[str] = Field(default=None, alias="displayName")
    email: Optional[str] = None


class PageVersion(_Model):
    number: int
    when: Optional[str] = None
    by: Optional[VersionAuthor] = None


class SpaceRef(_Model):
    key: str
    name: Optional[str] = None


class ContentPage(_Model):
    """A Confluence page. Fields the caller expanded (``ancestors``, ``history``...) are kept as extras."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    type: str = "page"
    title: str = ""
    body: Optional[PageBody] = None
    version: Optional[PageVersion] = None
    space: Optional[SpaceRef] = None
    links: Optional[Dict[str, Any]] = Field(default=None, alias="_links")

    @model_validator(mode="before")
    @classmethod
    def _drop_private_keys(cls, data: Any) -> Any:
        # _expandable and similar bookkeeping keys are not page content
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if k == "_links" or not str(k).startswith("_")}
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class SpaceRecord(_Model):
    key: str
    name: str = ""
    type: str = ""
    description: Optional[Dict[str, Any]] = None
    links: Optional[Dict[str, Any]] = Field(default=None, alias="_links")


class SearchResult(_Model):
    results: List[ContentPage] = Field(default_factory=list)
    size: int = 0
    total_size: Optional[int] = Field(default=None, alias="totalSize")
    links: Optional[Dict[str, Any]] = Field(default=None, alias="_links")

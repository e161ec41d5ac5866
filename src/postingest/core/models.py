"""Data models for article submissions, rich-text nodes and stored records"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class RichChild(BaseModel):
    """A span inside a rich-text block. Unknown fields are kept verbatim."""
    model_config = ConfigDict(extra="allow")

    type: str = Field(default="span", alias="_type")
    key: str = Field(alias="_key")
    text: Any = ""
    marks: list[Any] = Field(default_factory=list)


class RichBlock(BaseModel):
    """A paragraph/heading/list-item node of the stored body."""
    model_config = ConfigDict(extra="allow")

    type: str = Field(default="block", alias="_type")
    key: str = Field(alias="_key")
    style: Any = "normal"
    children: list[RichChild] = Field(default_factory=list)
    mark_defs: list[Any] = Field(default_factory=list, alias="markDefs")


class CategoryRef(BaseModel):
    """A resolved category relation as stored on a post."""
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["reference"] = Field(default="reference", alias="_type")
    ref: str = Field(alias="_ref")
    key: str = Field(alias="_key")


class SiteRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    title: str | None = None
    domain: str


class ArticleSubmission(BaseModel):
    """Canonical, validated form of one inbound article payload."""
    title: str
    site_domain: str
    excerpt: str = ""
    slug_hint: str | None = None     # None means derive from title
    body: list[Any] = Field(default_factory=list)
    categories: list[Any] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    type: str | None = None


class IngestResult(BaseModel):
    id: str
    slug: str
    site_id: str
    site_created: bool = False

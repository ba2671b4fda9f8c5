from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.cms import PageStatus


# ---------------------------------------------------------------------------
# PageComponent
# ---------------------------------------------------------------------------


class PageComponentInput(BaseModel):
    component_type: str = Field(min_length=1, max_length=120)
    position: int | None = Field(default=None, ge=0)
    props: dict[str, Any] | None = None
    styles: dict[str, Any] | None = None
    responsive_config: dict[str, Any] | None = None


class PageComponentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    page_id: UUID
    component_type: str
    position: int
    props: dict[str, Any] | None = None
    styles: dict[str, Any] | None = None
    responsive_config: dict[str, Any] | None = None


class ComponentsReplace(BaseModel):
    expected_revision: int = Field(ge=1)
    components: list[PageComponentInput]
    actor_id: UUID
    change_description: str | None = None


# ---------------------------------------------------------------------------
# Page
# ---------------------------------------------------------------------------


class PageBase(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    slug: str = Field(min_length=1, max_length=255)
    description: str | None = None
    parent_id: UUID | None = None
    template_id: UUID | None = None
    metadata_: dict[str, Any] | None = Field(default=None, alias="metadata_")
    seo_config: dict[str, Any] | None = None


class PageCreate(PageBase):
    components: list[PageComponentInput] = Field(default_factory=list)
    created_by: UUID


class PageUpdate(BaseModel):
    expected_revision: int = Field(ge=1)
    updated_by: UUID
    title: str | None = Field(default=None, max_length=500)
    slug: str | None = Field(default=None, max_length=255)
    description: str | None = None
    parent_id: UUID | None = None
    template_id: UUID | None = None
    metadata_: dict[str, Any] | None = Field(default=None, alias="metadata_")
    seo_config: dict[str, Any] | None = None
    expires_at: datetime | None = None
    components: list[PageComponentInput] | None = None
    change_description: str | None = None


class PageRead(PageBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    status: PageStatus
    revision: int
    scheduled_for: datetime | None = None
    expires_at: datetime | None = None
    published_at: datetime | None = None
    created_by: UUID
    updated_by: UUID | None = None
    created_at: datetime
    updated_at: datetime


class PageDetailRead(PageRead):
    components: list[PageComponentRead] = Field(default_factory=list)


class PageDuplicateRequest(BaseModel):
    new_slug: str = Field(min_length=1, max_length=255)
    actor_id: UUID


# ---------------------------------------------------------------------------
# PageVersion (immutable, create and read only)
# ---------------------------------------------------------------------------


class PageVersionCreate(BaseModel):
    actor_id: UUID
    change_description: str | None = None


class PageVersionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    page_id: UUID
    version_number: int
    components: list[dict[str, Any]]
    metadata_: dict[str, Any] | None = None
    change_description: str | None = None
    created_by: UUID
    created_at: datetime


class PageVersionRestore(BaseModel):
    actor_id: UUID
    change_description: str | None = None


class PageVersionPreview(BaseModel):
    page_id: UUID
    title: str
    slug: str
    description: str | None = None
    metadata_: dict[str, Any] | None = None
    seo_config: dict[str, Any] | None = None
    components: list[dict[str, Any]]
    version_id: UUID
    version_number: int
    version_created_at: datetime
    version_created_by: UUID


# ---------------------------------------------------------------------------
# Version comparison
# ---------------------------------------------------------------------------


class VersionRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    version_number: int
    created_at: datetime
    created_by: UUID


class DiffSummary(BaseModel):
    added_count: int
    removed_count: int
    modified_count: int


class VersionDiff(BaseModel):
    added: list[dict[str, Any]]
    removed: list[dict[str, Any]]
    modified: list[dict[str, Any]]
    summary: DiffSummary


class VersionComparison(BaseModel):
    strategy: str
    version_a: VersionRef
    version_b: VersionRef
    comparison: VersionDiff

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class PageStatus(enum.Enum):
    draft = "draft"
    scheduled = "scheduled"
    published = "published"
    archived = "archived"


class ApprovalStatus(enum.Enum):
    none = "none"
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class TransitionTrigger(enum.Enum):
    manual = "manual"
    scheduled = "scheduled"
    approval = "approval"


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------


class Page(Base):
    __tablename__ = "pages"
    __table_args__ = (
        Index("ix_pages_parent_id", "parent_id"),
        Index("ix_pages_status", "status"),
        Index("ix_pages_slug", "slug"),
        Index("ix_pages_scheduled_for", "scheduled_for"),
        # Slugs are only unique among published pages.
        Index(
            "uq_pages_published_slug",
            "slug",
            unique=True,
            postgresql_where=text("status = 'published'"),
            sqlite_where=text("status = 'published'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("pages.id")
    )
    template_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    status: Mapped[PageStatus] = mapped_column(
        Enum(PageStatus), nullable=False, default=PageStatus.draft
    )
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON)
    seo_config: Mapped[dict | None] = mapped_column(JSON)

    scheduled_for: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Bumped by the ORM on every UPDATE; stale writers fail with StaleDataError.
    revision: Mapped[int] = mapped_column(Integer, nullable=False)

    created_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    updated_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __mapper_args__ = {"version_id_col": revision}

    parent = relationship("Page", remote_side="Page.id", back_populates="children")
    children = relationship("Page", back_populates="parent")
    components = relationship(
        "PageComponent",
        back_populates="page",
        order_by="PageComponent.position",
        cascade="all, delete-orphan",
    )
    versions = relationship(
        "PageVersion",
        back_populates="page",
        order_by="PageVersion.version_number.desc()",
        cascade="all, delete-orphan",
    )
    workflow = relationship(
        "PublishingWorkflow",
        back_populates="page",
        uselist=False,
        cascade="all, delete-orphan",
    )


# ---------------------------------------------------------------------------
# Page Components
# ---------------------------------------------------------------------------


class PageComponent(Base):
    __tablename__ = "page_components"
    __table_args__ = (
        UniqueConstraint("page_id", "position", name="uq_page_components_page_position"),
        Index("ix_page_components_page_id", "page_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    page_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("pages.id", ondelete="CASCADE"), nullable=False
    )
    component_type: Mapped[str] = mapped_column(String(120), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    props: Mapped[dict | None] = mapped_column(JSON)
    styles: Mapped[dict | None] = mapped_column(JSON)
    responsive_config: Mapped[dict | None] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    page = relationship("Page", back_populates="components")


# ---------------------------------------------------------------------------
# Page Versions (immutable, no updated_at)
# ---------------------------------------------------------------------------


class PageVersion(Base):
    __tablename__ = "page_versions"
    __table_args__ = (
        UniqueConstraint(
            "page_id",
            "version_number",
            name="uq_page_versions_page_version",
        ),
        Index("ix_page_versions_page_id", "page_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    page_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("pages.id", ondelete="CASCADE"), nullable=False
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    components: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON)
    change_description: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    # No updated_at: immutable record

    page = relationship("Page", back_populates="versions")


# ---------------------------------------------------------------------------
# Publishing Workflows (zero or one per page)
# ---------------------------------------------------------------------------


class PublishingWorkflow(Base):
    __tablename__ = "publishing_workflows"
    __table_args__ = (
        UniqueConstraint("page_id", name="uq_publishing_workflows_page_id"),
        Index("ix_publishing_workflows_approval_status", "approval_status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    page_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("pages.id", ondelete="CASCADE"), nullable=False
    )
    requires_approval: Mapped[bool] = mapped_column(Boolean, default=False)
    approval_status: Mapped[ApprovalStatus] = mapped_column(
        Enum(ApprovalStatus), nullable=False, default=ApprovalStatus.none
    )
    requested_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    approved_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    rejection_reason: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    page = relationship("Page", back_populates="workflow")

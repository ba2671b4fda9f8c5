from __future__ import annotations

import logging
import re

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import ConflictError, InvalidOperationError, NotFoundError
from app.models.cms import Page, PageComponent, PageStatus
from app.schemas.cms import ComponentsReplace, PageCreate, PageUpdate
from app.services.cms_common import get_page, touch
from app.services.cms_component import page_components, serialize_components
from app.services.cms_lifecycle import ensure_slug_available, validate_expiry
from app.services.cms_version import page_versions
from app.services.common import apply_ordering, apply_pagination, as_utc, coerce_uuid
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)

_VALID_STATUSES = {e.value for e in PageStatus}
# Edits to these fields are recorded as a new version.
_VERSIONED_FIELDS = {"title", "slug", "description", "template_id", "metadata_", "seo_config"}


def normalize_slug(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    if not slug:
        raise InvalidOperationError("Slug must contain at least one letter or digit")
    return slug


def check_revision(page: Page, expected_revision: int) -> None:
    if page.revision != expected_revision:
        raise ConflictError(
            "Page has been modified since it was loaded",
            details={
                "expected_revision": expected_revision,
                "current_revision": page.revision,
            },
        )


def _validate_parent(db: Session, page: Page | None, parent_id) -> None:
    if parent_id is None:
        return
    parent = db.get(Page, coerce_uuid(parent_id))
    if not parent:
        raise NotFoundError("Parent page not found", details={"parent_id": str(parent_id)})
    if page is None:
        return
    ancestor = parent
    while ancestor is not None:
        if ancestor.id == page.id:
            raise InvalidOperationError("A page cannot be nested under itself")
        ancestor = ancestor.parent


class Pages(ListResponseMixin):
    @staticmethod
    def create(db: Session, payload: PageCreate) -> Page:
        _validate_parent(db, None, payload.parent_id)
        data = payload.model_dump(exclude={"components"})
        data["slug"] = normalize_slug(data["slug"])
        data["metadata_"] = data.get("metadata_") or {}
        data["seo_config"] = data.get("seo_config") or {}

        page = Page(**data, status=PageStatus.draft, updated_by=payload.created_by)
        db.add(page)
        db.flush()
        if payload.components:
            page_components.replace(db, page, payload.components)
        page_versions.snapshot(db, page, payload.created_by, "Initial version")
        db.refresh(page)
        logger.info("Created page %s (%s)", page.id, page.slug)
        return page

    @staticmethod
    def get(db: Session, page_id: str) -> Page:
        return get_page(db, page_id)

    @staticmethod
    def get_published_by_slug(db: Session, slug: str) -> Page:
        stmt = select(Page).where(
            Page.slug == normalize_slug(slug),
            Page.status == PageStatus.published,
        )
        page = db.scalars(stmt).first()
        if not page:
            raise NotFoundError("Page not found", details={"slug": slug})
        return page

    @staticmethod
    def list(
        db: Session,
        status: str | None,
        parent_id: str | None,
        search: str | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[Page]:
        stmt = select(Page)
        if status is not None:
            if status not in _VALID_STATUSES:
                raise InvalidOperationError(
                    f"Invalid status. Allowed: {sorted(_VALID_STATUSES)}"
                )
            stmt = stmt.where(Page.status == PageStatus(status))
        if parent_id is not None:
            stmt = stmt.where(Page.parent_id == coerce_uuid(parent_id))
        if search:
            stmt = stmt.where(func.lower(Page.title).contains(search.lower()))
        stmt = apply_ordering(
            stmt,
            order_by,
            order_dir,
            {
                "created_at": Page.created_at,
                "updated_at": Page.updated_at,
                "title": Page.title,
                "slug": Page.slug,
                "published_at": Page.published_at,
            },
        )
        return db.scalars(apply_pagination(stmt, limit, offset)).all()

    @staticmethod
    def update(db: Session, page_id: str, payload: PageUpdate) -> Page:
        page = get_page(db, page_id, lock=True)
        check_revision(page, payload.expected_revision)

        data = payload.model_dump(
            exclude_unset=True,
            exclude={"expected_revision", "updated_by", "components", "change_description"},
        )
        if "title" in data and not data["title"]:
            raise InvalidOperationError("Title cannot be empty")
        if "slug" in data:
            data["slug"] = normalize_slug(data["slug"] or "")
            if page.status == PageStatus.published and data["slug"] != page.slug:
                ensure_slug_available(db, data["slug"], page.id)
        if "parent_id" in data:
            _validate_parent(db, page, data["parent_id"])
        if data.get("expires_at") is not None:
            scheduled_for = (
                page.scheduled_for if page.status == PageStatus.scheduled else None
            )
            validate_expiry(as_utc(data["expires_at"]), as_utc(scheduled_for))

        for key, value in data.items():
            setattr(page, key, value)
        touch(page, payload.updated_by)

        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            raise ConflictError("A published page with this slug already exists")
        if payload.components is not None:
            page_components.replace(db, page, payload.components)

        if payload.components is not None or _VERSIONED_FIELDS & data.keys():
            page_versions.snapshot(
                db, page, payload.updated_by, payload.change_description
            )
        db.refresh(page)
        logger.info("Updated page %s (fields=%s)", page.id, sorted(data))
        return page

    @staticmethod
    def delete(db: Session, page_id: str) -> None:
        page = get_page(db, page_id, lock=True)
        child_count = db.scalar(
            select(func.count()).select_from(Page).where(Page.parent_id == page.id)
        )
        if child_count:
            raise InvalidOperationError(
                "Cannot delete page with child pages",
                details={"child_count": child_count},
            )
        db.delete(page)
        db.flush()
        logger.info("Deleted page %s", page_id)

    @staticmethod
    def duplicate(db: Session, page_id: str, new_slug: str, actor_id) -> Page:
        source = get_page(db, page_id)
        copy = Page(
            title=f"{source.title} (Copy)",
            slug=normalize_slug(new_slug),
            description=source.description,
            parent_id=source.parent_id,
            template_id=source.template_id,
            status=PageStatus.draft,
            metadata_=dict(source.metadata_ or {}),
            seo_config=dict(source.seo_config or {}),
            created_by=coerce_uuid(actor_id),
            updated_by=coerce_uuid(actor_id),
        )
        db.add(copy)
        db.flush()
        page_components.replace(
            db, copy, serialize_components(page_components.list(db, source.id))
        )
        page_versions.snapshot(
            db, copy, actor_id, f"Duplicated from page {source.id}"
        )
        db.refresh(copy)
        logger.info("Duplicated page %s as %s", source.id, copy.id)
        return copy

    # ------------------------------------------------------------------
    # Component tree
    # ------------------------------------------------------------------

    @staticmethod
    def get_components(db: Session, page_id: str) -> list[PageComponent]:
        get_page(db, page_id)
        return page_components.list(db, page_id)

    @staticmethod
    def replace_components(
        db: Session, page_id: str, payload: ComponentsReplace
    ) -> list[PageComponent]:
        page = get_page(db, page_id, lock=True)
        check_revision(page, payload.expected_revision)
        page_components.replace(db, page, payload.components)
        touch(page, payload.actor_id)
        page_versions.snapshot(db, page, payload.actor_id, payload.change_description)
        return page_components.list(db, page.id)


pages = Pages()

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import InvalidOperationError, NotFoundError
from app.models.cms import Page, PageVersion
from app.services.cms_common import get_page, touch
from app.services.cms_component import page_components, serialize_components
from app.services.cms_diff import compare_components, get_strategy
from app.services.common import coerce_uuid
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)


def current_version_number(db: Session, page_id) -> int:
    stmt = select(func.max(PageVersion.version_number)).where(
        PageVersion.page_id == coerce_uuid(page_id)
    )
    return db.scalar(stmt) or 0


class PageVersions(ListResponseMixin):
    @staticmethod
    def snapshot(
        db: Session,
        page: Page,
        actor_id,
        change_description: str | None = None,
    ) -> PageVersion:
        """Append the live component tree and metadata of ``page`` as a new version.

        Must run in the same transaction as the mutation it records.
        """
        db.flush()
        next_version = current_version_number(db, page.id) + 1
        version = PageVersion(
            page_id=page.id,
            version_number=next_version,
            components=serialize_components(page_components.list(db, page.id)),
            metadata_=dict(page.metadata_ or {}),
            change_description=change_description,
            created_by=coerce_uuid(actor_id),
        )
        db.add(version)
        db.flush()
        db.refresh(version)
        logger.info(
            "Created version %s (v%d) for page %s", version.id, next_version, page.id
        )
        return version

    @staticmethod
    def create(
        db: Session, page_id: str, actor_id, change_description: str | None = None
    ) -> PageVersion:
        page = get_page(db, page_id, lock=True)
        return PageVersions.snapshot(db, page, actor_id, change_description)

    @staticmethod
    def get(db: Session, page_id: str, version_id: str) -> PageVersion:
        version = db.get(PageVersion, coerce_uuid(version_id))
        if not version or version.page_id != coerce_uuid(page_id):
            raise NotFoundError(
                "Page version not found",
                details={"page_id": str(page_id), "version_id": str(version_id)},
            )
        return version

    @staticmethod
    def get_by_number(db: Session, page_id: str, version_number: int) -> PageVersion:
        stmt = select(PageVersion).where(
            PageVersion.page_id == coerce_uuid(page_id),
            PageVersion.version_number == version_number,
        )
        version = db.scalars(stmt).first()
        if not version:
            raise NotFoundError(
                "Page version not found",
                details={"page_id": str(page_id), "version_number": version_number},
            )
        return version

    @staticmethod
    def list(db: Session, page_id: str, limit: int, offset: int) -> list[PageVersion]:
        get_page(db, page_id)
        stmt = (
            select(PageVersion)
            .where(PageVersion.page_id == coerce_uuid(page_id))
            .order_by(PageVersion.version_number.desc())
            .limit(min(limit, settings.version_list_max))
            .offset(offset)
        )
        return db.scalars(stmt).all()

    @staticmethod
    def delete(db: Session, page_id: str, version_id: str) -> None:
        version = PageVersions.get(db, page_id, version_id)
        if version.version_number >= current_version_number(db, page_id):
            raise InvalidOperationError(
                "Cannot delete the current version of a page",
                details={"version_number": version.version_number},
            )
        db.delete(version)
        db.flush()
        logger.info("Deleted version %s for page %s", version_id, page_id)

    @staticmethod
    def preview(db: Session, page_id: str, version_id: str) -> dict:
        page = get_page(db, page_id)
        version = PageVersions.get(db, page_id, version_id)
        return {
            "page_id": page.id,
            "title": page.title,
            "slug": page.slug,
            "description": page.description,
            "metadata_": version.metadata_,
            "seo_config": page.seo_config,
            "components": version.components,
            "version_id": version.id,
            "version_number": version.version_number,
            "version_created_at": version.created_at,
            "version_created_by": version.created_by,
        }

    @staticmethod
    def restore(
        db: Session,
        page_id: str,
        version_id: str,
        actor_id,
        change_description: str | None = None,
    ) -> tuple[Page, PageVersion]:
        """Bring a past version back as the live tree and record it as a new version."""
        page = get_page(db, page_id, lock=True)
        source = PageVersions.get(db, page_id, version_id)
        description = (
            change_description or f"Restored from version {source.version_number}"
        )

        page_components.replace(db, page, source.components)
        page.metadata_ = {
            **(source.metadata_ or {}),
            "restored_from_version": source.version_number,
            "restore_description": description,
        }
        touch(page, actor_id)
        version = PageVersions.snapshot(db, page, actor_id, description)
        logger.info(
            "Restored page %s from v%d as v%d",
            page.id,
            source.version_number,
            version.version_number,
        )
        return page, version

    @staticmethod
    def compare(
        db: Session,
        page_id: str,
        version_a_id: str,
        version_b_id: str,
        strategy: str | None = None,
    ) -> dict:
        diff_strategy = get_strategy(strategy)
        version_a = PageVersions.get(db, page_id, version_a_id)
        version_b = PageVersions.get(db, page_id, version_b_id)
        return {
            "strategy": diff_strategy.name,
            "version_a": version_a,
            "version_b": version_b,
            "comparison": compare_components(
                version_a.components, version_b.components, diff_strategy.name
            ),
        }


page_versions = PageVersions()

from __future__ import annotations

import logging

from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import StorageFailureError
from app.models.cms import Page, PageComponent
from app.services.common import coerce_uuid

logger = logging.getLogger(__name__)


def serialize_component(component: PageComponent) -> dict:
    return {
        "component_type": component.component_type,
        "position": component.position,
        "props": component.props or {},
        "styles": component.styles or {},
        "responsive_config": component.responsive_config or {},
    }


def serialize_components(components: list[PageComponent]) -> list[dict]:
    return [serialize_component(c) for c in sorted(components, key=lambda c: c.position)]


def _normalize(items) -> list[dict]:
    """Order by explicit position (list index when absent), then renumber 0..n-1."""
    raw = [item.model_dump() if isinstance(item, BaseModel) else dict(item) for item in items]
    keyed = [
        (item["position"] if item.get("position") is not None else index, index, item)
        for index, item in enumerate(raw)
    ]
    keyed.sort(key=lambda entry: (entry[0], entry[1]))
    return [{**item, "position": position} for position, (_, _, item) in enumerate(keyed)]


class PageComponents:
    @staticmethod
    def list(db: Session, page_id: str) -> list[PageComponent]:
        stmt = (
            select(PageComponent)
            .where(PageComponent.page_id == coerce_uuid(page_id))
            .order_by(PageComponent.position.asc())
        )
        return db.scalars(stmt).all()

    @staticmethod
    def replace(db: Session, page: Page, items) -> list[PageComponent]:
        """Swap the whole component set of ``page`` inside the caller's transaction.

        Existing rows are deleted and the new set is inserted with dense
        positions. Any storage error rolls back the entire transaction.
        """
        entries = _normalize(items)
        try:
            db.execute(delete(PageComponent).where(PageComponent.page_id == page.id))
            created = []
            for entry in entries:
                component = PageComponent(
                    page_id=page.id,
                    component_type=entry["component_type"],
                    position=entry["position"],
                    props=entry.get("props") or {},
                    styles=entry.get("styles") or {},
                    responsive_config=entry.get("responsive_config") or {},
                )
                db.add(component)
                created.append(component)
            db.flush()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Failed to replace components for page %s", page.id)
            raise StorageFailureError(
                "Failed to replace page components", details={"page_id": str(page.id)}
            ) from e
        db.expire(page, ["components"])
        logger.info("Replaced %d components on page %s", len(created), page.id)
        return created


page_components = PageComponents()

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.errors import NotFoundError
from app.models.cms import Page
from app.services.common import coerce_uuid, utcnow


def get_page(db: Session, page_id, lock: bool = False) -> Page:
    """Load a page, optionally re-reading it under a row lock."""
    page_uuid = coerce_uuid(page_id)
    if lock:
        stmt = (
            select(Page)
            .where(Page.id == page_uuid)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        page = db.scalars(stmt).first()
    else:
        page = db.get(Page, page_uuid)
    if not page:
        raise NotFoundError("Page not found", details={"page_id": str(page_id)})
    return page


def touch(page: Page, actor_id=None) -> None:
    """Mark ``page`` as edited so the revision counter advances on flush."""
    if actor_id is not None:
        page.updated_by = coerce_uuid(actor_id)
    page.updated_at = utcnow()

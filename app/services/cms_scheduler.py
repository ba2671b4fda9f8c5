"""Scheduler tick: time-driven page transitions.

Candidates are selected up front, then each page is transitioned and
committed on its own. A page that fails its guards, or that another writer
changed in the meantime, is rolled back and skipped so the rest of the sweep
still runs. Re-running the tick is harmless because pages that already moved
no longer match the candidate queries.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.errors import CMSError, ConflictError, InvalidTransitionError
from app.metrics import SCHEDULER_SKIPPED
from app.models.cms import Page, PageStatus, TransitionTrigger
from app.services.cms_lifecycle import attempt_transition
from app.services.common import as_utc, utcnow

logger = logging.getLogger(__name__)


def _skip_reason(exc: Exception) -> str:
    if isinstance(exc, InvalidTransitionError):
        details = exc.detail.get("details") or {}
        if details.get("guard") == "approval":
            return "approval_pending"
        # The page moved since it was selected, e.g. by an overlapping tick.
        return "conflict"
    if isinstance(exc, (ConflictError, StaleDataError)):
        return "conflict"
    return "error"


def _due_ids(db: Session, status: PageStatus, column, now: datetime) -> list:
    stmt = (
        select(Page.id)
        .where(Page.status == status, column.is_not(None), column <= now)
        .order_by(column.asc())
    )
    return list(db.scalars(stmt).all())


def _sweep(
    db: Session, page_ids: list, target: PageStatus, now: datetime
) -> int:
    count = 0
    for page_id in page_ids:
        try:
            attempt_transition(
                db,
                page_id,
                target,
                trigger=TransitionTrigger.scheduled,
                now=now,
            )
            db.commit()
            count += 1
        except (CMSError, StaleDataError, SQLAlchemyError) as e:
            db.rollback()
            reason = _skip_reason(e)
            SCHEDULER_SKIPPED.labels(reason).inc()
            logger.warning(
                "Scheduler skipped page %s -> %s (%s): %s",
                page_id,
                target.value,
                reason,
                e,
            )
    return count


def run_tick(db: Session, now: datetime | None = None) -> dict[str, int]:
    now = as_utc(now) or utcnow()
    published = _sweep(
        db,
        _due_ids(db, PageStatus.scheduled, Page.scheduled_for, now),
        PageStatus.published,
        now,
    )
    archived = _sweep(
        db,
        _due_ids(db, PageStatus.published, Page.expires_at, now),
        PageStatus.archived,
        now,
    )
    logger.info("Scheduler tick published %d, archived %d", published, archived)
    return {"published": published, "archived": archived}

"""Page lifecycle state machine.

Every status change, whether requested by an editor, by an approver or by the
scheduler tick, goes through :func:`attempt_transition`. The trigger is
recorded for logging and metrics. The one guard it affects is the scheduled
time: granting approval publishes a scheduled page immediately. The approval,
slug and expiry guards run for every trigger.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import ConflictError, InvalidOperationError, InvalidTransitionError
from app.metrics import PAGE_TRANSITIONS
from app.models.cms import (
    ApprovalStatus,
    Page,
    PageStatus,
    PublishingWorkflow,
    TransitionTrigger,
)
from app.services.cms_common import get_page, touch
from app.services.common import apply_pagination, as_utc, utcnow

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[PageStatus, set[PageStatus]] = {
    PageStatus.draft: {PageStatus.published, PageStatus.scheduled},
    PageStatus.scheduled: {PageStatus.published, PageStatus.draft},
    PageStatus.published: {PageStatus.draft, PageStatus.archived},
    PageStatus.archived: set(),
}


def ensure_slug_available(db: Session, slug: str, page_id) -> None:
    stmt = select(Page.id).where(
        Page.slug == slug,
        Page.status == PageStatus.published,
        Page.id != page_id,
    )
    if db.scalars(stmt).first() is not None:
        raise ConflictError(
            "A published page with this slug already exists", details={"slug": slug}
        )


def validate_expiry(expires_at: datetime | None, scheduled_for: datetime | None) -> None:
    if expires_at is None or scheduled_for is None:
        return
    if expires_at <= scheduled_for:
        raise InvalidOperationError(
            "expires_at must be after scheduled_for",
            details={
                "scheduled_for": scheduled_for.isoformat(),
                "expires_at": expires_at.isoformat(),
            },
        )


def approval_required(db: Session, page: Page) -> tuple[bool, PublishingWorkflow | None]:
    workflow = db.scalars(
        select(PublishingWorkflow).where(PublishingWorkflow.page_id == page.id)
    ).first()
    if workflow is None:
        return settings.require_approval_default, None
    return bool(workflow.requires_approval), workflow


def ensure_approved(db: Session, page: Page) -> None:
    required, workflow = approval_required(db, page)
    if not required:
        return
    status = workflow.approval_status if workflow else ApprovalStatus.none
    if status != ApprovalStatus.approved:
        raise InvalidTransitionError(
            "Approval required and not yet approved",
            details={
                "guard": "approval",
                "page_id": str(page.id),
                "approval_status": status.value,
            },
        )


def _check_guards(
    db: Session,
    page: Page,
    target: PageStatus,
    trigger: TransitionTrigger,
    now: datetime,
    scheduled_for: datetime | None,
    expires_at: datetime | None,
) -> None:
    if target == PageStatus.published:
        # Approval publishes a scheduled page ahead of its time.
        if page.status == PageStatus.scheduled and trigger != TransitionTrigger.approval:
            due = as_utc(page.scheduled_for)
            if due is None or due > now:
                raise InvalidTransitionError(
                    "Scheduled time has not been reached",
                    details={
                        "guard": "scheduled_time",
                        "scheduled_for": due.isoformat() if due else None,
                    },
                )
        ensure_approved(db, page)
        ensure_slug_available(db, page.slug, page.id)
        if expires_at is not None and expires_at <= now:
            raise InvalidOperationError("expires_at must be in the future")
    elif target == PageStatus.scheduled:
        if scheduled_for is None:
            raise InvalidOperationError("scheduled_for is required to schedule a page")
        if scheduled_for <= now:
            raise InvalidOperationError(
                "scheduled_for must be in the future",
                details={"scheduled_for": scheduled_for.isoformat()},
            )
        validate_expiry(expires_at, scheduled_for)


def _apply(
    page: Page,
    target: PageStatus,
    now: datetime,
    scheduled_for: datetime | None,
    expires_at: datetime | None,
) -> None:
    source = page.status
    page.status = target
    if target == PageStatus.published:
        page.published_at = now
        if expires_at is not None:
            page.expires_at = expires_at
    elif target == PageStatus.scheduled:
        page.scheduled_for = scheduled_for
        page.expires_at = expires_at
    elif target == PageStatus.draft and source == PageStatus.scheduled:
        page.scheduled_for = None
    elif target == PageStatus.draft and source == PageStatus.published:
        page.expires_at = None


def attempt_transition(
    db: Session,
    page_id,
    target: PageStatus,
    trigger: TransitionTrigger = TransitionTrigger.manual,
    actor_id=None,
    now: datetime | None = None,
    scheduled_for: datetime | None = None,
    expires_at: datetime | None = None,
) -> Page:
    """Move a page to ``target`` if the transition table and its guards allow it.

    The page row is re-read under a lock before the guards run, so concurrent
    callers see the committed status. A concurrent writer that slips past the
    lock is caught by the revision compare-and-set on flush.
    """
    now = as_utc(now) or utcnow()
    scheduled_for = as_utc(scheduled_for)
    expires_at = as_utc(expires_at)
    page = get_page(db, page_id, lock=True)
    source = page.status

    if target not in ALLOWED_TRANSITIONS[source]:
        raise InvalidTransitionError(
            f"Cannot move page from {source.value} to {target.value}",
            details={"from": source.value, "to": target.value},
        )
    _check_guards(db, page, target, trigger, now, scheduled_for, expires_at)
    _apply(page, target, now, scheduled_for, expires_at)
    touch(page, actor_id)

    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ConflictError(
            "A published page with this slug already exists",
            details={"slug": page.slug},
        )
    PAGE_TRANSITIONS.labels(source.value, target.value, trigger.value).inc()
    logger.info(
        "Page %s moved %s -> %s (trigger=%s, actor=%s)",
        page.id,
        source.value,
        target.value,
        trigger.value,
        actor_id,
    )
    return page


class PageLifecycle:
    @staticmethod
    def publish(db: Session, page_id: str, actor_id, expires_at=None) -> Page:
        return attempt_transition(
            db, page_id, PageStatus.published, actor_id=actor_id, expires_at=expires_at
        )

    @staticmethod
    def unpublish(db: Session, page_id: str, actor_id) -> Page:
        page = get_page(db, page_id)
        if page.status != PageStatus.published:
            raise InvalidTransitionError(
                "Only published pages can be unpublished",
                details={"from": page.status.value, "to": PageStatus.draft.value},
            )
        return attempt_transition(db, page_id, PageStatus.draft, actor_id=actor_id)

    @staticmethod
    def schedule(
        db: Session, page_id: str, scheduled_for, actor_id, expires_at=None
    ) -> Page:
        return attempt_transition(
            db,
            page_id,
            PageStatus.scheduled,
            actor_id=actor_id,
            scheduled_for=scheduled_for,
            expires_at=expires_at,
        )

    @staticmethod
    def cancel_schedule(db: Session, page_id: str, actor_id) -> Page:
        page = get_page(db, page_id)
        if page.status != PageStatus.scheduled:
            raise InvalidTransitionError(
                "Only scheduled pages can have their schedule cancelled",
                details={"from": page.status.value, "to": PageStatus.draft.value},
            )
        return attempt_transition(db, page_id, PageStatus.draft, actor_id=actor_id)

    @staticmethod
    def archive(db: Session, page_id: str, actor_id) -> Page:
        return attempt_transition(db, page_id, PageStatus.archived, actor_id=actor_id)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    @staticmethod
    def list_scheduled(
        db: Session,
        overdue_only: bool,
        limit: int,
        offset: int,
        now: datetime | None = None,
    ) -> list[Page]:
        stmt = select(Page).where(Page.status == PageStatus.scheduled)
        if overdue_only:
            stmt = stmt.where(Page.scheduled_for <= (as_utc(now) or utcnow()))
        stmt = stmt.order_by(Page.scheduled_for.asc())
        return db.scalars(apply_pagination(stmt, limit, offset)).all()

    @staticmethod
    def stats(db: Session) -> dict:
        rows = db.execute(select(Page.status, func.count()).group_by(Page.status)).all()
        counts = {status.value: count for status, count in rows}
        pending = db.scalar(
            select(func.count())
            .select_from(PublishingWorkflow)
            .where(PublishingWorkflow.approval_status == ApprovalStatus.pending)
        )
        return {
            "total": sum(counts.values()),
            "draft": counts.get("draft", 0),
            "scheduled": counts.get("scheduled", 0),
            "published": counts.get("published", 0),
            "archived": counts.get("archived", 0),
            "pending_approvals": pending or 0,
        }


page_lifecycle = PageLifecycle()

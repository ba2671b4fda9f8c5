from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.errors import InvalidOperationError, NotFoundError
from app.models.cms import (
    ApprovalStatus,
    Page,
    PageStatus,
    PublishingWorkflow,
    TransitionTrigger,
)
from app.services.cms_common import get_page
from app.services.cms_lifecycle import attempt_transition
from app.services.common import apply_pagination, as_utc, coerce_uuid, utcnow
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)


def _find(db: Session, page_id, lock: bool = False) -> PublishingWorkflow | None:
    stmt = select(PublishingWorkflow).where(
        PublishingWorkflow.page_id == coerce_uuid(page_id)
    )
    if lock:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    return db.scalars(stmt).first()


def _require(db: Session, page_id) -> PublishingWorkflow:
    workflow = _find(db, page_id, lock=True)
    if not workflow:
        raise NotFoundError(
            "Publishing workflow not found", details={"page_id": str(page_id)}
        )
    return workflow


def _require_pending(workflow: PublishingWorkflow) -> None:
    if workflow.approval_status != ApprovalStatus.pending:
        raise InvalidOperationError(
            "Page is not awaiting approval",
            details={"approval_status": workflow.approval_status.value},
        )


class Workflows:
    @staticmethod
    def get(db: Session, page_id: str) -> PublishingWorkflow | None:
        get_page(db, page_id)
        return _find(db, page_id)

    @staticmethod
    def upsert(
        db: Session, page_id: str, requires_approval: bool, actor_id=None
    ) -> PublishingWorkflow:
        """Create or update the single workflow row of a page.

        Turning approval on moves the row to ``pending`` unless an approval is
        already pending or granted. Turning it off resets the row to ``none``.
        """
        page = get_page(db, page_id)
        workflow = _find(db, page.id, lock=True)
        if workflow is None:
            workflow = PublishingWorkflow(page_id=page.id)
            db.add(workflow)

        workflow.requires_approval = requires_approval
        if requires_approval:
            if workflow.approval_status not in (
                ApprovalStatus.pending,
                ApprovalStatus.approved,
            ):
                workflow.approval_status = ApprovalStatus.pending
                workflow.requested_by = coerce_uuid(actor_id)
                workflow.rejection_reason = None
        else:
            workflow.approval_status = ApprovalStatus.none
            workflow.rejection_reason = None
        db.flush()
        db.refresh(workflow)
        logger.info(
            "Set workflow for page %s (requires_approval=%s, status=%s)",
            page.id,
            requires_approval,
            workflow.approval_status.value,
        )
        return workflow

    @staticmethod
    def request_approval(db: Session, page_id: str, actor_id) -> PublishingWorkflow:
        page = get_page(db, page_id)
        workflow = _find(db, page.id, lock=True)
        if workflow is None:
            workflow = PublishingWorkflow(page_id=page.id)
            db.add(workflow)

        workflow.requires_approval = True
        workflow.approval_status = ApprovalStatus.pending
        workflow.requested_by = coerce_uuid(actor_id)
        workflow.approved_by = None
        workflow.approved_at = None
        workflow.rejection_reason = None
        db.flush()
        db.refresh(workflow)
        logger.info("Approval requested for page %s by %s", page.id, actor_id)
        return workflow

    @staticmethod
    def approve(
        db: Session, page_id: str, approver_id, now=None
    ) -> tuple[PublishingWorkflow, Page]:
        """Grant approval and publish the page as one unit of work.

        Draft and scheduled pages are published immediately. If the publish
        is refused, the approval is rolled back with it.
        """
        now = as_utc(now) or utcnow()
        page = get_page(db, page_id, lock=True)
        workflow = _require(db, page.id)
        _require_pending(workflow)

        workflow.approval_status = ApprovalStatus.approved
        workflow.approved_by = coerce_uuid(approver_id)
        workflow.approved_at = now
        workflow.rejection_reason = None
        db.flush()

        if page.status in (PageStatus.draft, PageStatus.scheduled):
            page = attempt_transition(
                db,
                page.id,
                PageStatus.published,
                trigger=TransitionTrigger.approval,
                actor_id=approver_id,
                now=now,
            )
        db.refresh(workflow)
        logger.info(
            "Approved page %s by %s (status=%s)",
            page.id,
            approver_id,
            page.status.value,
        )
        return workflow, page

    @staticmethod
    def reject(
        db: Session, page_id: str, approver_id, reason: str | None
    ) -> tuple[PublishingWorkflow, Page]:
        if not reason or not reason.strip():
            raise InvalidOperationError("Rejection reason is required")
        page = get_page(db, page_id)
        workflow = _require(db, page.id)
        _require_pending(workflow)

        workflow.approval_status = ApprovalStatus.rejected
        workflow.approved_by = coerce_uuid(approver_id)
        workflow.approved_at = None
        workflow.rejection_reason = reason.strip()
        db.flush()
        db.refresh(workflow)
        logger.info("Rejected page %s by %s", page.id, approver_id)
        return workflow, page


class PendingApprovals(ListResponseMixin):
    @staticmethod
    def list(db: Session, limit: int, offset: int) -> list[PublishingWorkflow]:
        stmt = (
            select(PublishingWorkflow)
            .where(PublishingWorkflow.approval_status == ApprovalStatus.pending)
            .options(selectinload(PublishingWorkflow.page))
            .order_by(PublishingWorkflow.updated_at.desc())
        )
        return db.scalars(apply_pagination(stmt, limit, offset)).all()


workflows = Workflows()
pending_approvals = PendingApprovals()

import uuid
from datetime import timedelta

import pytest
from fastapi import HTTPException

from app.models.cms import ApprovalStatus, PageStatus, PublishingWorkflow
from app.services.cms_lifecycle import page_lifecycle
from app.services.cms_workflow import pending_approvals, workflows
from app.services.common import as_utc, utcnow


class TestUpsert:
    def test_get_without_row(self, db_session, page):
        assert workflows.get(db_session, str(page.id)) is None

    def test_enable_sets_pending(self, db_session, page, actor_id):
        workflow = workflows.upsert(db_session, str(page.id), True, actor_id)
        assert workflow.requires_approval is True
        assert workflow.approval_status == ApprovalStatus.pending
        assert workflow.requested_by == actor_id

    def test_enable_keeps_existing_approval(self, db_session, page, actor_id):
        workflows.request_approval(db_session, str(page.id), actor_id)
        page_lifecycle.schedule(
            db_session, page.id, utcnow() + timedelta(days=1), actor_id
        )
        workflows.approve(db_session, str(page.id), uuid.uuid4())
        workflow = workflows.upsert(db_session, str(page.id), True, actor_id)
        assert workflow.approval_status == ApprovalStatus.approved

    def test_disable_resets_status(self, db_session, page, actor_id):
        workflows.upsert(db_session, str(page.id), True, actor_id)
        workflow = workflows.upsert(db_session, str(page.id), False, actor_id)
        assert workflow.approval_status == ApprovalStatus.none
        assert db_session.query(PublishingWorkflow).count() == 1

    def test_upsert_missing_page(self, db_session, actor_id):
        with pytest.raises(HTTPException) as exc_info:
            workflows.upsert(db_session, str(uuid.uuid4()), True, actor_id)
        assert exc_info.value.status_code == 404


class TestApprove:
    def test_approve_publishes_draft(self, db_session, page, actor_id):
        approver = uuid.uuid4()
        workflows.request_approval(db_session, str(page.id), actor_id)
        workflow, approved_page = workflows.approve(db_session, str(page.id), approver)
        db_session.commit()
        assert workflow.approval_status == ApprovalStatus.approved
        assert workflow.approved_by == approver
        assert workflow.approved_at is not None
        assert approved_page.status == PageStatus.published
        assert approved_page.published_at is not None

    def test_approve_publishes_future_schedule(self, db_session, page, actor_id):
        now = utcnow()
        workflows.request_approval(db_session, str(page.id), actor_id)
        page_lifecycle.schedule(db_session, page.id, now + timedelta(hours=2), actor_id)
        workflow, approved_page = workflows.approve(
            db_session, str(page.id), uuid.uuid4(), now=now
        )
        db_session.commit()
        assert workflow.approval_status == ApprovalStatus.approved
        assert approved_page.status == PageStatus.published
        assert as_utc(approved_page.published_at) == now

    def test_approve_of_schedule_still_checks_slug(self, db_session, page, actor_id):
        from app.schemas.cms import PageCreate
        from app.services.cms_page import pages

        rival = pages.create(
            db_session, PageCreate(title="Rival", slug="home", created_by=actor_id)
        )
        page_lifecycle.publish(db_session, rival.id, actor_id)
        workflows.request_approval(db_session, str(page.id), actor_id)
        page_lifecycle.schedule(
            db_session, page.id, utcnow() + timedelta(hours=2), actor_id
        )
        db_session.commit()
        with pytest.raises(HTTPException) as exc_info:
            workflows.approve(db_session, str(page.id), uuid.uuid4())
        assert exc_info.value.status_code == 409
        db_session.rollback()
        db_session.refresh(page)
        assert page.status == PageStatus.scheduled

    def test_approve_publishes_overdue_schedule(self, db_session, page, actor_id):
        when = utcnow() + timedelta(hours=2)
        workflows.request_approval(db_session, str(page.id), actor_id)
        page_lifecycle.schedule(db_session, page.id, when, actor_id)
        _, approved_page = workflows.approve(
            db_session, str(page.id), uuid.uuid4(), now=when + timedelta(minutes=1)
        )
        assert approved_page.status == PageStatus.published

    def test_approve_without_workflow(self, db_session, page):
        with pytest.raises(HTTPException) as exc_info:
            workflows.approve(db_session, str(page.id), uuid.uuid4())
        assert exc_info.value.status_code == 404

    def test_approve_when_not_pending(self, db_session, page, actor_id):
        workflows.upsert(db_session, str(page.id), False, actor_id)
        with pytest.raises(HTTPException) as exc_info:
            workflows.approve(db_session, str(page.id), uuid.uuid4())
        assert exc_info.value.status_code == 400

    def test_failed_publish_rolls_back_approval(self, db_session, page, actor_id):
        from app.schemas.cms import PageCreate
        from app.services.cms_page import pages

        rival = pages.create(
            db_session, PageCreate(title="Rival", slug="home", created_by=actor_id)
        )
        page_lifecycle.publish(db_session, rival.id, actor_id)
        workflows.request_approval(db_session, str(page.id), actor_id)
        db_session.commit()
        with pytest.raises(HTTPException) as exc_info:
            workflows.approve(db_session, str(page.id), uuid.uuid4())
        assert exc_info.value.status_code == 409
        db_session.rollback()
        workflow = workflows.get(db_session, str(page.id))
        assert workflow.approval_status == ApprovalStatus.pending
        db_session.refresh(page)
        assert page.status == PageStatus.draft


class TestReject:
    def test_reject_requires_reason(self, db_session, page, actor_id):
        workflows.request_approval(db_session, str(page.id), actor_id)
        with pytest.raises(HTTPException) as exc_info:
            workflows.reject(db_session, str(page.id), uuid.uuid4(), "  ")
        assert exc_info.value.status_code == 400

    def test_reject_keeps_page_status(self, db_session, page, actor_id):
        workflows.request_approval(db_session, str(page.id), actor_id)
        workflow, rejected_page = workflows.reject(
            db_session, str(page.id), uuid.uuid4(), "Needs copy edits"
        )
        assert workflow.approval_status == ApprovalStatus.rejected
        assert workflow.rejection_reason == "Needs copy edits"
        assert rejected_page.status == PageStatus.draft

    def test_resubmit_after_rejection(self, db_session, page, actor_id):
        workflows.request_approval(db_session, str(page.id), actor_id)
        workflows.reject(db_session, str(page.id), uuid.uuid4(), "No")
        workflow = workflows.request_approval(db_session, str(page.id), actor_id)
        assert workflow.approval_status == ApprovalStatus.pending
        assert workflow.rejection_reason is None
        assert workflow.approved_by is None


class TestPendingApprovals:
    def test_lists_pending_with_page(self, db_session, page, actor_id):
        workflows.request_approval(db_session, str(page.id), actor_id)
        db_session.commit()
        result = pending_approvals.list_response(db_session, limit=10, offset=0)
        assert result["count"] == 1
        assert result["items"][0].page.id == page.id

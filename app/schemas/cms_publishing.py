from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.cms import ApprovalStatus
from app.schemas.cms import PageRead


# ---------------------------------------------------------------------------
# PublishingWorkflow
# ---------------------------------------------------------------------------


class WorkflowUpsert(BaseModel):
    requires_approval: bool
    actor_id: UUID


class WorkflowRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    page_id: UUID
    requires_approval: bool
    approval_status: ApprovalStatus
    requested_by: UUID | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class WorkflowEnvelope(BaseModel):
    workflow: WorkflowRead | None = None


class PendingApprovalRead(WorkflowRead):
    page: PageRead


class ApprovalRequest(BaseModel):
    actor_id: UUID


class ApproveRequest(BaseModel):
    approver_id: UUID


class RejectRequest(BaseModel):
    approver_id: UUID
    reason: str = Field(min_length=1)


class ApprovalResult(BaseModel):
    workflow: WorkflowRead
    page: PageRead


# ---------------------------------------------------------------------------
# Lifecycle requests
# ---------------------------------------------------------------------------


class PublishRequest(BaseModel):
    actor_id: UUID
    expires_at: datetime | None = None


class ScheduleRequest(BaseModel):
    actor_id: UUID
    scheduled_for: datetime
    expires_at: datetime | None = None


class TransitionRequest(BaseModel):
    actor_id: UUID


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


class PublishingStats(BaseModel):
    total: int
    draft: int
    scheduled: int
    published: int
    archived: int
    pending_approvals: int


class TickResult(BaseModel):
    published: int
    archived: int

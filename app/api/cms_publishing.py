from collections.abc import Generator

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db import SessionLocal
from app.schemas.cms import PageRead
from app.schemas.cms_publishing import (
    ApprovalRequest,
    ApprovalResult,
    ApproveRequest,
    PendingApprovalRead,
    PublishingStats,
    PublishRequest,
    RejectRequest,
    ScheduleRequest,
    TickResult,
    TransitionRequest,
    WorkflowEnvelope,
    WorkflowRead,
    WorkflowUpsert,
)
from app.schemas.common import ListResponse
from app.services import cms_lifecycle as lifecycle_service
from app.services import cms_scheduler as scheduler_service
from app.services import cms_workflow as workflow_service

router = APIRouter(prefix="/cms", tags=["cms-publishing"])


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# ------------------------------------------------------------------
# Lifecycle
# ------------------------------------------------------------------


@router.post("/pages/{page_id}/publish", response_model=PageRead)
def publish_page(
    page_id: str, payload: PublishRequest, db: Session = Depends(get_db)
) -> PageRead:
    return lifecycle_service.page_lifecycle.publish(
        db, page_id, payload.actor_id, payload.expires_at
    )


@router.post("/pages/{page_id}/unpublish", response_model=PageRead)
def unpublish_page(
    page_id: str, payload: TransitionRequest, db: Session = Depends(get_db)
) -> PageRead:
    return lifecycle_service.page_lifecycle.unpublish(db, page_id, payload.actor_id)


@router.post("/pages/{page_id}/schedule", response_model=PageRead)
def schedule_page(
    page_id: str, payload: ScheduleRequest, db: Session = Depends(get_db)
) -> PageRead:
    return lifecycle_service.page_lifecycle.schedule(
        db, page_id, payload.scheduled_for, payload.actor_id, payload.expires_at
    )


@router.post("/pages/{page_id}/cancel-schedule", response_model=PageRead)
def cancel_schedule(
    page_id: str, payload: TransitionRequest, db: Session = Depends(get_db)
) -> PageRead:
    return lifecycle_service.page_lifecycle.cancel_schedule(
        db, page_id, payload.actor_id
    )


@router.post("/pages/{page_id}/archive", response_model=PageRead)
def archive_page(
    page_id: str, payload: TransitionRequest, db: Session = Depends(get_db)
) -> PageRead:
    return lifecycle_service.page_lifecycle.archive(db, page_id, payload.actor_id)


# ------------------------------------------------------------------
# Approval workflow
# ------------------------------------------------------------------


@router.get("/pages/{page_id}/workflow", response_model=WorkflowEnvelope)
def get_workflow(page_id: str, db: Session = Depends(get_db)) -> dict:
    return {"workflow": workflow_service.workflows.get(db, page_id)}


@router.put("/pages/{page_id}/workflow", response_model=WorkflowRead)
def upsert_workflow(
    page_id: str, payload: WorkflowUpsert, db: Session = Depends(get_db)
) -> WorkflowRead:
    return workflow_service.workflows.upsert(
        db, page_id, payload.requires_approval, payload.actor_id
    )


@router.post("/pages/{page_id}/workflow/request-approval", response_model=WorkflowRead)
def request_approval(
    page_id: str, payload: ApprovalRequest, db: Session = Depends(get_db)
) -> WorkflowRead:
    return workflow_service.workflows.request_approval(db, page_id, payload.actor_id)


@router.post("/pages/{page_id}/workflow/approve", response_model=ApprovalResult)
def approve_page(
    page_id: str, payload: ApproveRequest, db: Session = Depends(get_db)
) -> dict:
    workflow, page = workflow_service.workflows.approve(
        db, page_id, payload.approver_id
    )
    return {"workflow": workflow, "page": page}


@router.post("/pages/{page_id}/workflow/reject", response_model=ApprovalResult)
def reject_page(
    page_id: str, payload: RejectRequest, db: Session = Depends(get_db)
) -> dict:
    workflow, page = workflow_service.workflows.reject(
        db, page_id, payload.approver_id, payload.reason
    )
    return {"workflow": workflow, "page": page}


# ------------------------------------------------------------------
# Publishing overview
# ------------------------------------------------------------------


@router.get(
    "/publishing/pending-approvals",
    response_model=ListResponse[PendingApprovalRead],
)
def list_pending_approvals(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
) -> dict:
    return workflow_service.pending_approvals.list_response(
        db, limit=limit, offset=offset
    )


@router.get("/publishing/scheduled", response_model=ListResponse[PageRead])
def list_scheduled_pages(
    overdue_only: bool = False,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
) -> dict:
    items = lifecycle_service.page_lifecycle.list_scheduled(
        db, overdue_only, limit, offset
    )
    return {"items": items, "count": len(items), "limit": limit, "offset": offset}


@router.get("/publishing/stats", response_model=PublishingStats)
def publishing_stats(db: Session = Depends(get_db)) -> dict:
    return lifecycle_service.page_lifecycle.stats(db)


@router.post("/publishing/tick", response_model=TickResult)
def run_scheduler_tick(db: Session = Depends(get_db)) -> dict:
    return scheduler_service.run_tick(db)

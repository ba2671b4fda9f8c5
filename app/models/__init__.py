from app.models.cms import (  # noqa: F401
    ApprovalStatus,
    Page,
    PageComponent,
    PageStatus,
    PageVersion,
    PublishingWorkflow,
    TransitionTrigger,
)

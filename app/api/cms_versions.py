from collections.abc import Generator

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.db import SessionLocal
from app.schemas.cms import (
    PageDetailRead,
    PageVersionCreate,
    PageVersionPreview,
    PageVersionRead,
    PageVersionRestore,
    VersionComparison,
)
from app.schemas.common import ListResponse
from app.services import cms_version as version_service

router = APIRouter(prefix="/cms", tags=["cms-versions"])


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


@router.get("/pages/{page_id}/versions", response_model=ListResponse[PageVersionRead])
def list_versions(
    page_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
) -> dict:
    return version_service.page_versions.list_response(
        db, page_id, limit=limit, offset=offset
    )


@router.post(
    "/pages/{page_id}/versions",
    response_model=PageVersionRead,
    status_code=status.HTTP_201_CREATED,
)
def create_version(
    page_id: str, payload: PageVersionCreate, db: Session = Depends(get_db)
) -> PageVersionRead:
    return version_service.page_versions.create(
        db, page_id, payload.actor_id, payload.change_description
    )


@router.get("/pages/{page_id}/versions/compare", response_model=VersionComparison)
def compare_versions(
    page_id: str,
    version_a: str,
    version_b: str,
    strategy: str | None = None,
    db: Session = Depends(get_db),
) -> dict:
    return version_service.page_versions.compare(
        db, page_id, version_a, version_b, strategy
    )


@router.get(
    "/pages/{page_id}/versions/number/{version_number}",
    response_model=PageVersionRead,
)
def get_version_by_number(
    page_id: str, version_number: int, db: Session = Depends(get_db)
) -> PageVersionRead:
    return version_service.page_versions.get_by_number(db, page_id, version_number)


@router.get("/pages/{page_id}/versions/{version_id}", response_model=PageVersionRead)
def get_version(
    page_id: str, version_id: str, db: Session = Depends(get_db)
) -> PageVersionRead:
    return version_service.page_versions.get(db, page_id, version_id)


@router.delete(
    "/pages/{page_id}/versions/{version_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_version(
    page_id: str, version_id: str, db: Session = Depends(get_db)
) -> Response:
    version_service.page_versions.delete(db, page_id, version_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/pages/{page_id}/versions/{version_id}/preview",
    response_model=PageVersionPreview,
)
def preview_version(
    page_id: str, version_id: str, db: Session = Depends(get_db)
) -> dict:
    return version_service.page_versions.preview(db, page_id, version_id)


@router.post(
    "/pages/{page_id}/versions/{version_id}/restore",
    response_model=PageDetailRead,
)
def restore_version(
    page_id: str,
    version_id: str,
    payload: PageVersionRestore,
    db: Session = Depends(get_db),
) -> PageDetailRead:
    page, _ = version_service.page_versions.restore(
        db, page_id, version_id, payload.actor_id, payload.change_description
    )
    return page

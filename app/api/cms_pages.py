from collections.abc import Generator

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.db import SessionLocal
from app.schemas.cms import (
    ComponentsReplace,
    PageComponentRead,
    PageCreate,
    PageDetailRead,
    PageDuplicateRequest,
    PageRead,
    PageUpdate,
)
from app.schemas.common import ListResponse
from app.services import cms_page as page_service

router = APIRouter(prefix="/cms", tags=["cms-pages"])


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
# Page CRUD
# ------------------------------------------------------------------


@router.post("/pages", response_model=PageDetailRead, status_code=status.HTTP_201_CREATED)
def create_page(payload: PageCreate, db: Session = Depends(get_db)) -> PageDetailRead:
    return page_service.pages.create(db, payload)


@router.get("/pages", response_model=ListResponse[PageRead])
def list_pages(
    status: str | None = None,
    parent_id: str | None = None,
    search: str | None = None,
    order_by: str = Query(default="updated_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
) -> dict:
    return page_service.pages.list_response(
        db, status, parent_id, search, order_by, order_dir, limit, offset
    )


@router.get("/pages/slug/{slug}", response_model=PageDetailRead)
def get_published_page(slug: str, db: Session = Depends(get_db)) -> PageDetailRead:
    return page_service.pages.get_published_by_slug(db, slug)


@router.get("/pages/{page_id}", response_model=PageRead)
def get_page(page_id: str, db: Session = Depends(get_db)) -> PageRead:
    return page_service.pages.get(db, page_id)


@router.get("/pages/{page_id}/preview", response_model=PageDetailRead)
def preview_page(page_id: str, db: Session = Depends(get_db)) -> PageDetailRead:
    return page_service.pages.get(db, page_id)


@router.patch("/pages/{page_id}", response_model=PageDetailRead)
def update_page(
    page_id: str, payload: PageUpdate, db: Session = Depends(get_db)
) -> PageDetailRead:
    return page_service.pages.update(db, page_id, payload)


@router.delete("/pages/{page_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_page(page_id: str, db: Session = Depends(get_db)) -> Response:
    page_service.pages.delete(db, page_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/pages/{page_id}/duplicate",
    response_model=PageDetailRead,
    status_code=status.HTTP_201_CREATED,
)
def duplicate_page(
    page_id: str, payload: PageDuplicateRequest, db: Session = Depends(get_db)
) -> PageDetailRead:
    return page_service.pages.duplicate(db, page_id, payload.new_slug, payload.actor_id)


# ------------------------------------------------------------------
# Components
# ------------------------------------------------------------------


@router.get("/pages/{page_id}/components", response_model=list[PageComponentRead])
def get_components(
    page_id: str, db: Session = Depends(get_db)
) -> list[PageComponentRead]:
    return page_service.pages.get_components(db, page_id)


@router.put("/pages/{page_id}/components", response_model=list[PageComponentRead])
def replace_components(
    page_id: str, payload: ComponentsReplace, db: Session = Depends(get_db)
) -> list[PageComponentRead]:
    return page_service.pages.replace_components(db, page_id, payload)

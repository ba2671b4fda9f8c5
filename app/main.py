from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from app.api.cms_pages import router as cms_pages_router
from app.api.cms_publishing import router as cms_publishing_router
from app.api.cms_versions import router as cms_versions_router
from app.errors import register_error_handlers
from app.logging import configure_logging

app = FastAPI(title="PageCraft CMS API")

configure_logging()
register_error_handlers(app)


def _include_api_router(router, dependencies=None):
    app.include_router(router, dependencies=dependencies)
    app.include_router(router, prefix="/api/v1", dependencies=dependencies)


_include_api_router(cms_pages_router)
_include_api_router(cms_versions_router)
_include_api_router(cms_publishing_router)


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)

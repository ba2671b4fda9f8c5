import os
import uuid

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.db import Base  # noqa: E402
import app.models  # noqa: E402,F401
from app.schemas.cms import PageComponentInput, PageCreate  # noqa: E402
from app.services.cms_page import pages  # noqa: E402


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    Session = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def actor_id():
    return uuid.uuid4()


@pytest.fixture()
def page(db_session, actor_id):
    created = pages.create(
        db_session,
        PageCreate(
            title="Home",
            slug="home",
            created_by=actor_id,
            metadata_={"locale": "en"},
            components=[
                PageComponentInput(component_type="hero", props={"title": "Welcome"}),
                PageComponentInput(component_type="text", props={"body": "Hello"}),
                PageComponentInput(component_type="cta", props={"label": "Go"}),
            ],
        ),
    )
    db_session.commit()
    db_session.refresh(created)
    return created


@pytest.fixture()
def client(db_session):
    from app.api import cms_pages, cms_publishing, cms_versions
    from app.main import app

    def _override_get_db():
        try:
            yield db_session
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

    for module in (cms_pages, cms_versions, cms_publishing):
        app.dependency_overrides[module.get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

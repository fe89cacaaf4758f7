from pathlib import Path

import pytest

from admin import AdminWorkflow
from app import create_app
from articles import ArticleStore
from sessions import SessionRegistry

ADMIN_USER = "admin"
ADMIN_PASSWORD = "changeme"


@pytest.fixture
def store(tmp_path: Path) -> ArticleStore:
    return ArticleStore(tmp_path / "data")


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def workflow(store: ArticleStore, registry: SessionRegistry) -> AdminWorkflow:
    return AdminWorkflow(store, registry, ADMIN_USER, ADMIN_PASSWORD)


@pytest.fixture
def token(workflow: AdminWorkflow) -> str:
    return workflow.login(ADMIN_USER, ADMIN_PASSWORD)


@pytest.fixture
def app(tmp_path: Path):
    return create_app(
        {
            "TESTING": True,
            "DATA_DIR": tmp_path / "data",
            "ADMIN_USER": ADMIN_USER,
            "ADMIN_PASSWORD": ADMIN_PASSWORD,
            "SECRET_KEY": "test",
        }
    )


@pytest.fixture
def client(app):
    return app.test_client()

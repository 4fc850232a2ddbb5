"""Functional test bootstrap for the embeds service.

Functional tests drive the FastAPI app in-process with TestClient against a
file-backed SQLite database shared across the process. The environment is
pointed at that database before any `vizembed` import so the engine singleton
binds to it; migrations are applied once by the application factory.
"""

from __future__ import annotations

import os
import pathlib
import uuid
from typing import Callable, Iterator, Optional

import pytest

_ROOT = pathlib.Path(__file__).resolve().parents[2]
_DB_FILE = _ROOT / "tmp" / "functional_tests.db"
_DB_FILE.parent.mkdir(parents=True, exist_ok=True)
if _DB_FILE.exists():
    _DB_FILE.unlink()

os.environ["TEST_DATABASE_URL"] = f"sqlite:///{_DB_FILE}"
os.environ["DATABASE_URL"] = os.environ["TEST_DATABASE_URL"]
os.environ["AUTO_APPLY_MIGRATIONS"] = "1"
os.environ["SESSION_SECRET_KEY"] = "functional-tests-secret"
os.environ["EMBEDS_SITE_NAME"] = "CARTO"

from fastapi.testclient import TestClient  # noqa: E402

from vizembed.logic import events  # noqa: E402
from vizembed.logic.repository_users import create_organization, create_user, get_viewer  # noqa: E402
from vizembed.logic.repository_visualizations import create_visualization, get_visualization  # noqa: E402
from vizembed.main import create_app  # noqa: E402
from vizembed.models.privacy import Privacy  # noqa: E402
from vizembed.models.visualization import Viewer, Visualization  # noqa: E402

DEFAULT_PASSWORD = "s3cret-Pass"


def unique(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


@pytest.fixture(scope="session")
def app():
    """One application (and one migrated database) for the whole session."""
    return create_app(enable_test_support=True)


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    """A fresh client per test so session cookies never leak between tests."""
    events.EVENT_BUFFER.clear()
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(app) -> Callable[..., Viewer]:
    def _make(organization_id: Optional[str] = None, password: str = DEFAULT_PASSWORD) -> Viewer:
        user_id = create_user(unique("user"), password, organization_id=organization_id)
        viewer = get_viewer(user_id)
        assert viewer is not None
        return viewer

    return _make


@pytest.fixture
def make_organization(app) -> Callable[[], str]:
    return lambda: create_organization(unique("org"))


@pytest.fixture
def owner(make_user) -> Viewer:
    return make_user()


@pytest.fixture
def make_visualization(owner) -> Callable[..., Visualization]:
    def _make(
        privacy: Privacy = Privacy.PUBLIC,
        password: Optional[str] = None,
        user: Optional[Viewer] = None,
        **kwargs,
    ) -> Visualization:
        creator = user or owner
        viz_id = create_visualization(
            creator.user_id,
            kwargs.pop("name", unique("map")),
            privacy=privacy,
            password=password,
            **kwargs,
        )
        viz = get_visualization(viz_id)
        assert viz is not None
        return viz

    return _make


@pytest.fixture
def login(client) -> Callable[[Viewer], None]:
    def _login(viewer: Viewer, password: str = DEFAULT_PASSWORD) -> None:
        resp = client.post("/session", json={"username": viewer.username, "password": password})
        assert resp.status_code == 204, resp.text

    return _login

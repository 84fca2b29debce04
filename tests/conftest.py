"""
Shared pytest fixtures for the Change of Land Use portal test suite.

Provides:
    - app: Flask application (session-scoped)
    - client: Flask test client (function-scoped)
    - session_ctx: an authenticated SessionContext for engine calls
    - http_session / gateway: a BackendGateway wired to a MagicMock
      requests.Session, installed as the module-level singleton
    - make_response: factory for fake requests.Response objects
    - auth_headers: headers the UI sends on every API call
"""

import json
from unittest.mock import MagicMock

import pytest

from landuse import create_app
from landuse.integrations import backend_gateway as gw_module
from landuse.integrations.backend_gateway import BackendGateway
from landuse.models.session import SessionContext

TEST_BASE_URL = "https://backend.test/api"
TEST_TOKEN = "test-access-token"


# ── App fixtures ─────────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def auth_headers():
    return {
        "Authorization": f"Bearer {TEST_TOKEN}",
        "X-User-Role": "DLC",
        "X-User-Access": json.dumps(["dashboard", "conversion", "dlc_recommendations"]),
    }


# ── Engine fixtures ──────────────────────────────────────────────────────


@pytest.fixture()
def session_ctx():
    return SessionContext(
        access_token=TEST_TOKEN,
        role="DLC",
        access=("dashboard", "conversion", "dlc_recommendations"),
        user_id="17",
    )


@pytest.fixture()
def make_response():
    """Build a fake requests.Response.

    ``body`` is returned by .json(); pass ``raw=b"..."`` for a non-JSON body.
    """

    def _make(status_code=200, body=None, raw=None):
        resp = MagicMock()
        resp.status_code = status_code
        resp.ok = status_code < 400
        if raw is not None:
            resp.content = raw
            resp.json.side_effect = ValueError("No JSON object could be decoded")
        elif body is not None:
            resp.content = json.dumps(body).encode()
            resp.json.return_value = body
        else:
            resp.content = b""
            resp.json.side_effect = ValueError("empty body")
        return resp

    return _make


@pytest.fixture()
def http_session():
    return MagicMock()


@pytest.fixture()
def gateway(http_session, monkeypatch):
    """A gateway with a mocked HTTP session, installed as the singleton."""
    gw = BackendGateway(
        session=http_session,
        base_url=TEST_BASE_URL,
        timeout=5.0,
        upload_timeout=7.0,
        sleep=lambda seconds: None,
    )
    monkeypatch.setattr(gw_module, "backend_gateway", gw)
    return gw

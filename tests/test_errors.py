import logging

import pytest
from fastapi.testclient import TestClient

from gradevault.core.errors import GradeVaultError, NotFoundOrForbidden, error_body
from gradevault.core.settings import Settings
from gradevault.main import create_app


@pytest.fixture
def app(tmp_path):
    application = create_app(Settings(database_url=f"sqlite:///{tmp_path / 'errors.db'}", secret_key="test-secret"))

    @application.get("/boom")
    def boom():
        raise RuntimeError("database password is hunter2")

    @application.get("/hidden")
    def hidden():
        raise NotFoundOrForbidden()

    yield application
    application.state.engine.dispose()


def test_unexpected_error_returns_generic_500(app, caplog):
    client = TestClient(app, raise_server_exceptions=False)
    with caplog.at_level(logging.ERROR, logger="gradevault"):
        # setup_logging stops propagation; let caplog see the record
        logging.getLogger("gradevault").propagate = True
        try:
            resp = client.get("/boom")
        finally:
            logging.getLogger("gradevault").propagate = False
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "internal_error"
    assert body["detail"] == "An error occurred while processing your request."
    assert "hunter2" not in resp.text
    assert any(record.exc_info for record in caplog.records)


def test_domain_error_envelope(app):
    resp = TestClient(app).get("/hidden")
    assert resp.status_code == 404
    assert resp.json() == {
        "error": "not_found_or_forbidden",
        "detail": "Resource not found or you don't have permission to access it.",
        "errors": [],
    }


def test_unknown_route_uses_envelope(app):
    resp = TestClient(app).get("/no-such-route")
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


def test_request_validation_errors_map_to_400(app):
    resp = TestClient(app).post("/api/auth/login", json={"email": "not-an-email"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "validation_error"
    assert body["errors"]


def test_error_defaults():
    err = GradeVaultError()
    assert err.status_code == 500
    assert err.detail == "Request failed"
    assert error_body("x", "y", None) == {"error": "x", "detail": "y", "errors": []}

import pytest
from fastapi.testclient import TestClient

from gradevault.core.settings import Settings
from gradevault.main import create_app


@pytest.fixture
def app(tmp_path):
    application = create_app(Settings(database_url=f"sqlite:///{tmp_path / 'main.db'}", app_name="GradeVault"))
    yield application
    application.state.engine.dispose()


def test_read_root(app):
    client = TestClient(app)
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"app": "GradeVault", "status": "ok"}


def test_health_check(app):
    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_settings_are_kept_on_app_state(app):
    assert app.state.settings.app_name == "GradeVault"
    assert str(app.state.engine.url).endswith("main.db")


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("GRADEVAULT_SECRET_KEY", "from-env")
    monkeypatch.setenv("GRADEVAULT_ACCESS_TOKEN_EXPIRE_MINUTES", "5")
    settings = Settings()
    assert settings.secret_key == "from-env"
    assert settings.access_token_expire_minutes == 5


def test_openapi_documents_error_envelope(app):
    schema = TestClient(app).get("/openapi.json").json()
    assert "ErrorResponse" in schema["components"]["schemas"]
    assert "/api/grades/bulk-upload" in schema["paths"]

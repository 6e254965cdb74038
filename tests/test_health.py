from fastapi.testclient import TestClient

from creditsync.main import app


def test_health():
    with TestClient(app) as c:
        r = c.get("/health")
        assert r.status_code == 200
        assert r.json() == {"status": "ok"}
        assert r.headers["X-Request-ID"]


def test_startup_builds_memory_stores_without_gateways():
    with TestClient(app):
        assert app.state.gateways.available() == []
        assert app.state.directory is not None
        assert app.state.ledger is not None

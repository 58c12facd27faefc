import time
from fastapi import FastAPI, Depends, Request
from fastapi.testclient import TestClient
from vendgb.utils.rate_limit import optional_rate_limit, rate_limit_health_info


def _make_app(times=2, seconds=60):
    app = FastAPI()

    @app.post("/limitedA", dependencies=[Depends(optional_rate_limit(times, seconds))])
    def limited_a():
        return {"ok": True}

    @app.post("/limitedB", dependencies=[Depends(optional_rate_limit(times, seconds))])
    def limited_b():
        return {"ok": True}

    @app.get("/rl_info")
    def rl_info(request: Request):
        return rate_limit_health_info(request)

    return app


def test_rate_limit_fallback_blocks_after_limit(monkeypatch):
    client = TestClient(_make_app(times=2, seconds=60))
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")

    assert client.post("/limitedA").status_code == 200
    assert client.post("/limitedA").status_code == 200
    r3 = client.post("/limitedA")
    assert r3.status_code == 429
    assert r3.json()["detail"] == "Too Many Requests"


def test_rate_limit_is_per_path(monkeypatch):
    client = TestClient(_make_app(times=1, seconds=60))
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")

    assert client.post("/limitedA").status_code == 200
    assert client.post("/limitedA").status_code == 429
    assert client.post("/limitedB").status_code == 200


def test_rate_limit_resets_after_window_sleep(monkeypatch):
    client = TestClient(_make_app(times=1, seconds=1))
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")

    assert client.post("/limitedA").status_code == 200
    assert client.post("/limitedA").status_code == 429
    time.sleep(1.1)
    assert client.post("/limitedA").status_code == 200


def test_rate_limit_disabled_flag_lets_requests_through(monkeypatch):
    app = _make_app(times=1, seconds=60)
    app.state.rate_limit_enabled = False
    client = TestClient(app)
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)

    for _ in range(3):
        assert client.post("/limitedA").status_code == 200


def test_rate_limit_health_info_memory_backend(monkeypatch):
    app = _make_app()
    app.state.rate_limit_enabled = True
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    info = TestClient(app).get("/rl_info").json()
    assert info["enabled"] is True
    assert info["backend"] == "memory"


def test_rate_limit_fallback_evicts_expired_keys(monkeypatch):
    app = _make_app(times=5, seconds=1)
    client = TestClient(app)
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")

    assert client.post("/limitedA").status_code == 200
    assert client.post("/limitedB").status_code == 200
    assert len(app.state._rl_store) == 2
    time.sleep(1.1)
    assert client.post("/limitedA").status_code == 200
    keys = list(app.state._rl_store)
    assert len(keys) == 1
    assert keys[0].endswith("/limitedA")
    assert len(app.state._rl_store[keys[0]]) == 1

from __future__ import annotations

from fastapi import APIRouter, FastAPI, HTTPException
from fastapi.testclient import TestClient

from app.errors import ConflictError, NotFoundError, register_error_handlers
from app.observability import REQUEST_ID_HEADER, ObservabilityMiddleware


def _build_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(ObservabilityMiddleware)
    register_error_handlers(app)

    api_router = APIRouter(prefix="/api")

    @api_router.get("/http-403")
    def api_http_403():
        raise HTTPException(status_code=403, detail="Forbidden api")

    @api_router.get("/conflict")
    def api_conflict():
        raise ConflictError("Duplicate User", "Registration failed")

    @api_router.get("/missing")
    def api_missing():
        raise NotFoundError("File not found or access denied")

    @api_router.get("/needs-int")
    def api_needs_int(value: int):
        return {"value": value}

    @api_router.get("/crash")
    def api_crash():
        raise RuntimeError("boom")

    app.include_router(api_router)
    return app


def _assert_error_envelope(body: dict, code: int) -> None:
    assert body["status"] is False
    assert body["code"] == code
    assert body["timestamp"].endswith("Z")
    assert "errors" in body
    assert "message" in body


def test_http_exception_uses_error_envelope() -> None:
    client = TestClient(_build_app(), raise_server_exceptions=False)
    resp = client.get("/api/http-403")
    assert resp.status_code == 403
    body = resp.json()
    _assert_error_envelope(body, 403)
    assert body["errors"] == "Forbidden api"
    assert body["message"] == "Forbidden"


def test_api_error_carries_message() -> None:
    client = TestClient(_build_app(), raise_server_exceptions=False)
    body = client.get("/api/conflict").json()
    _assert_error_envelope(body, 409)
    assert body["errors"] == "Duplicate User"
    assert body["message"] == "Registration failed"

    body = client.get("/api/missing").json()
    assert body["code"] == 404
    assert body["message"] == "Not Found"


def test_request_validation_is_400() -> None:
    client = TestClient(_build_app(), raise_server_exceptions=False)
    resp = client.get("/api/needs-int", params={"value": "abc"})
    assert resp.status_code == 400
    body = resp.json()
    _assert_error_envelope(body, 400)
    assert body["message"] == "Invalid request data"
    assert body["errors"][0]["loc"] == ["query", "value"]
    assert "ctx" not in body["errors"][0]


def test_unknown_route_is_404_envelope() -> None:
    client = TestClient(_build_app(), raise_server_exceptions=False)
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    _assert_error_envelope(resp.json(), 404)


def test_unhandled_exception_is_500_envelope() -> None:
    client = TestClient(_build_app(), raise_server_exceptions=False)
    resp = client.get("/api/crash")
    assert resp.status_code == 500
    body = resp.json()
    _assert_error_envelope(body, 500)
    assert body["errors"] == "Internal server error"


def test_request_id_is_echoed() -> None:
    client = TestClient(_build_app(), raise_server_exceptions=False)
    resp = client.get("/api/needs-int", params={"value": 1}, headers={REQUEST_ID_HEADER: "rid-1"})
    assert resp.status_code == 200
    assert resp.headers[REQUEST_ID_HEADER] == "rid-1"

from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel

from relay.common.error_envelope import register_error_handlers


def _build_test_app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)
    return app


def test_http_exception_returns_canonical_envelope():
    app = _build_test_app()

    @app.get("/test-error")
    def _raise_error() -> None:
        raise HTTPException(status_code=403, detail="Forbidden here")

    client = TestClient(app)
    response = client.get("/test-error")

    assert response.status_code == 403
    error = response.json()["error"]
    assert error["code"] == "http.exception"
    assert error["message"] == "Forbidden here"
    assert error["http_status"] == 403
    assert error["details"] == {}


def test_unknown_route_uses_envelope():
    response = TestClient(_build_test_app()).get("/nowhere")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "http.exception"


def test_validation_error_returns_details_and_status():
    app = _build_test_app()

    class InputModel(BaseModel):
        value: int

    @app.post("/validate")
    def _validate(payload: InputModel) -> dict:
        return {"ok": True}

    client = TestClient(app)
    response = client.post("/validate", json={"value": "nope"})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "validation.error"
    assert error["http_status"] == 400
    assert isinstance(error["details"]["errors"], list)
    assert error["details"]["errors"][0]["loc"] == ["body", "value"]


def test_invalid_json_body_is_a_validation_error():
    app = _build_test_app()

    class InputModel(BaseModel):
        value: int

    @app.post("/validate")
    def _validate(payload: InputModel) -> dict:
        return {"ok": True}

    client = TestClient(app)
    response = client.post("/validate", content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "validation.error"


def test_unhandled_exception_is_wrapped():
    app = _build_test_app()

    @app.get("/boom")
    def _boom() -> None:
        raise RuntimeError("kaput")

    client = TestClient(app, raise_server_exceptions=False)
    response = client.get("/boom")
    assert response.status_code == 500
    assert response.json()["error"]["code"] == "internal.error"

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from settings import get_settings


@pytest.fixture
def api_client(monkeypatch) -> Iterator[TestClient]:
    for name in (
        "UTILISATION_TRIGGER_LEVEL",
        "UTILISATION_MAX_READINGS",
        "UTILISATION_ERROR_POLICY",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()

    app = create_app()
    with TestClient(app) as client:
        yield client

    get_settings.cache_clear()


def _upload(client: TestClient, content: str | bytes, **params) -> dict:
    response = client.post(
        "/utilisation",
        params=params,
        files={"file": ("data.txt", content, "text/plain")},
    )
    assert response.status_code == 200, response.text
    return response.json()


def test_utilisation_for_reversed_readings(api_client: TestClient) -> None:
    payload = _upload(api_client, "01\n 02\n51\n", threshold=15.0, capacity=3)

    assert payload["source"] == "data.txt"
    assert payload["status"] == "processed"
    assert payload["reading_count"] == 3
    assert payload["triggered_count"] == 2
    assert payload["utilisation"] == pytest.approx(200 / 3)
    assert payload["capacity"] == 3
    assert payload["errors"] == []


def test_defaults_come_from_settings(api_client: TestClient) -> None:
    payload = _upload(api_client, "01 02 51 5")

    assert payload["threshold"] == 10.0
    assert payload["capacity"] == 255
    assert payload["utilisation"] == 75.0


def test_skip_policy_reports_rejected_tokens(api_client: TestClient) -> None:
    payload = _upload(api_client, "01\nx1\n02\n", threshold=15.0, on_error="skip")

    assert payload["status"] == "partial"
    assert payload["reading_count"] == 2
    assert payload["utilisation"] == 50.0
    assert payload["errors"] == [
        {"token_index": 1, "token": "x1", "reason": "malformed token"}
    ]


def test_capacity_overflow_is_reported(api_client: TestClient) -> None:
    payload = _upload(api_client, "01 02 51", capacity=2)

    assert payload["status"] == "partial"
    assert payload["terminated_early"] is True
    assert payload["errors"][0]["reason"] == "capacity exceeded"
    assert payload["errors"][0]["token_index"] == 2


def test_whitespace_only_upload_fails_without_result(api_client: TestClient) -> None:
    payload = _upload(api_client, "\n  \n")

    assert payload["status"] == "failed"
    assert payload["utilisation"] is None
    assert payload["reading_count"] == 0
    assert "without readings" in payload["detail"]


def test_upload_empty_file_returns_bad_request(api_client: TestClient) -> None:
    response = api_client.post(
        "/utilisation",
        files={"file": ("empty.txt", b"", "text/plain")},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Uploaded file is empty."


def test_upload_binary_file_returns_bad_request(api_client: TestClient) -> None:
    response = api_client.post(
        "/utilisation",
        files={"file": ("blob.bin", b"\xff\xfe\x00", "application/octet-stream")},
    )

    assert response.status_code == 400
    assert "UTF-8" in response.json()["detail"]


def test_invalid_capacity_is_rejected(api_client: TestClient) -> None:
    response = api_client.post(
        "/utilisation",
        params={"capacity": 0},
        files={"file": ("data.txt", "01", "text/plain")},
    )

    assert response.status_code == 422


def test_decode_endpoint(api_client: TestClient) -> None:
    response = api_client.post("/decode", json={"tokens": ["5.21", "3-", "01"]})

    assert response.status_code == 200
    assert response.json() == {"values": [12.5, -3.0, 10.0]}


def test_decode_endpoint_reports_malformed_token(api_client: TestClient) -> None:
    response = api_client.post("/decode", json={"tokens": ["5.21", "2.1a"]})

    assert response.status_code == 422
    assert response.json()["detail"] == {
        "token_index": 1,
        "token": "2.1a",
        "reason": "malformed token",
    }


def test_decode_endpoint_requires_tokens(api_client: TestClient) -> None:
    response = api_client.post("/decode", json={"tokens": []})

    assert response.status_code == 422


def test_health(api_client: TestClient) -> None:
    assert api_client.get("/health").json() == {"status": "ok"}
    assert api_client.get("/").json()["status"] == "ok"


@pytest.mark.parametrize("threshold", ["nan", "inf"])
def test_non_finite_threshold_is_rejected(api_client: TestClient, threshold: str) -> None:
    response = api_client.post(
        "/utilisation",
        params={"threshold": threshold},
        files={"file": ("data.txt", "01 02 51", "text/plain")},
    )

    assert response.status_code == 422
    assert "finite" in response.json()["detail"]


def test_error_list_is_capped(api_client: TestClient, monkeypatch) -> None:
    monkeypatch.setenv("UTILISATION_MAX_ISSUES", "3")
    get_settings.cache_clear()

    payload = _upload(api_client, "01 " + "x " * 10, on_error="skip")

    assert payload["status"] == "partial"
    assert payload["error_count"] == 10
    assert [error["token_index"] for error in payload["errors"]] == [1, 2, 3]

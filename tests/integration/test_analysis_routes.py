import base64
import io
import random
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from app.analysis_service.api.analysis_routes import upload_read_limit
from app.analysis_service.config import settings
from app.analysis_service.services import generation_client
from app.analysis_service.services.orchestrator.session_state import Loading
from app.analysis_service.services.orchestrator.session_store import get_session
from app.core.rate_limit import limiter
from app.main import app

client = TestClient(app)


class FakeGemini:
    def __init__(self, text="## Score\n90"):
        self.calls = []
        self.text = text
        self.models = self

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(text=self.text, candidates=[])


@pytest.fixture
def fake_gemini(monkeypatch):
    fake = FakeGemini()
    monkeypatch.setattr(generation_client, "_load_gemini", lambda: fake)
    return fake


def test_health():
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_text_analysis_succeeds(fake_gemini):
    response = client.post(
        "/analysis/text",
        data={"query": "Home Depot", "session_id": "s1"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["session_id"] == "s1"
    assert body["status"] == "success"
    assert body["mode"] == "text"
    assert body["report_text"] == "## Score\n90"
    assert body["message"] is None
    assert len(fake_gemini.calls) == 1


def test_text_analysis_generates_session_id(fake_gemini):
    response = client.post("/analysis/text", data={"query": "IKEA"})

    assert response.status_code == 200
    assert response.json()["session_id"]


def test_empty_query_rejected(fake_gemini):
    response = client.post("/analysis/text", data={"query": "   ", "session_id": "s2"})

    assert response.status_code == 400
    assert fake_gemini.calls == []
    assert client.get("/analysis/s2").json()["status"] == "idle"


def test_missing_api_key_reports_error(monkeypatch):
    monkeypatch.setattr(generation_client, "_load_gemini", lambda: None)

    response = client.post("/analysis/text", data={"query": "IKEA", "session_id": "s3"})

    assert response.status_code == 200
    assert response.json()["status"] == "error"
    assert response.json()["message"] == "Gemini API key is not configured."


def test_image_analysis_succeeds(fake_gemini, png_bytes):
    response = client.post(
        "/analysis/image",
        data={"session_id": "card"},
        files={"image": ("card.png", png_bytes, "image/png")},
    )

    assert response.status_code == 200
    assert response.json()["status"] == "success"
    assert response.json()["mode"] == "image"

    parts = fake_gemini.calls[0]["contents"][0].parts
    assert parts[0].inline_data.data == png_bytes


def test_data_uri_within_limit_is_analyzed(fake_gemini, monkeypatch):
    monkeypatch.setattr(settings, "MAX_IMAGE_BYTES", 4000)

    noise = random.Random(7).randbytes(32 * 32 * 3)
    buffer = io.BytesIO()
    Image.frombytes("RGB", (32, 32), noise).save(buffer, format="PNG")
    raw = buffer.getvalue()
    data_uri = b"data:image/png;base64," + base64.b64encode(raw)

    # Decoded image fits the limit while the encoded upload does not
    assert len(raw) <= 4000 < len(data_uri)

    response = client.post(
        "/analysis/image",
        data={"session_id": "uri"},
        files={"image": ("card.png", data_uri, "image/png")},
    )

    assert response.status_code == 200
    assert response.json()["status"] == "success"
    parts = fake_gemini.calls[0]["contents"][0].parts
    assert parts[0].inline_data.data == raw


def test_data_uri_over_limit_rejected(fake_gemini, monkeypatch):
    monkeypatch.setattr(settings, "MAX_IMAGE_BYTES", 1000)

    noise = random.Random(7).randbytes(32 * 32 * 3)
    buffer = io.BytesIO()
    Image.frombytes("RGB", (32, 32), noise).save(buffer, format="PNG")
    data_uri = b"data:image/png;base64," + base64.b64encode(buffer.getvalue())

    response = client.post(
        "/analysis/image",
        files={"image": ("card.png", data_uri, "image/png")},
    )

    assert response.status_code == 400
    assert "too large" in response.json()["detail"]
    assert fake_gemini.calls == []


def test_upload_read_limit_covers_encoded_images():
    limit = upload_read_limit(3000)

    assert limit > len(b"data:image/png;base64,") + 4000
    assert limit > 3000


def test_oversized_image_rejected(fake_gemini):
    payload = b"\xff\xd8\xff\xe0" + b"\x00" * (6 * 1024 * 1024)

    response = client.post(
        "/analysis/image",
        files={"image": ("card.jpg", payload, "image/jpeg")},
    )

    assert response.status_code == 400
    assert "too large" in response.json()["detail"]
    assert fake_gemini.calls == []


def test_non_image_upload_rejected(fake_gemini):
    response = client.post(
        "/analysis/image",
        files={"image": ("card.pdf", b"%PDF-1.7", "application/pdf")},
    )

    assert response.status_code == 400
    assert fake_gemini.calls == []


def test_submit_while_loading_conflicts(fake_gemini):
    session = get_session("busy")
    session._state = Loading(mode="text")

    response = client.post("/analysis/text", data={"query": "IKEA", "session_id": "busy"})

    assert response.status_code == 409
    assert fake_gemini.calls == []


def test_reset_returns_idle(fake_gemini):
    client.post("/analysis/text", data={"query": "IKEA", "session_id": "s4"})

    response = client.post("/analysis/s4/reset")

    assert response.status_code == 200
    assert response.json()["status"] == "idle"
    assert response.json()["report_text"] is None


def test_unknown_session_not_found():
    assert client.get("/analysis/nope").status_code == 404
    assert client.post("/analysis/nope/reset").status_code == 404


def test_switch_mode():
    response = client.post("/analysis/s5/mode", data={"mode": "image"})

    assert response.status_code == 200
    assert response.json()["mode"] == "image"
    assert response.json()["status"] == "idle"


def test_switch_mode_rejects_unknown_mode():
    response = client.post("/analysis/s6/mode", data={"mode": "audio"})

    assert response.status_code == 400


@pytest.fixture
def enabled_limiter(monkeypatch):
    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    yield limiter
    limiter.reset()


def test_rate_limit_ignores_client_session_header(fake_gemini, enabled_limiter):
    allowed = int(settings.ANALYSIS_RATE_LIMIT.split("/")[0])

    statuses = [
        client.post(
            "/analysis/text",
            data={"query": "IKEA", "session_id": f"rl-{i}"},
            headers={"X-Session-Id": f"rl-{i}"},
        ).status_code
        for i in range(allowed + 2)
    ]

    assert statuses[:allowed] == [200] * allowed
    assert statuses[allowed:] == [429, 429]
    assert len(fake_gemini.calls) == allowed

"""
Pytest configuration and fixtures.
"""

import io
import os

# Must be set before app modules are imported (limiter, MLflow, Gemini loader)
os.environ["TRADESCOUT_ENV"] = "test"

import pytest
from PIL import Image


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Setup test environment variables."""

    test_env = {
        "TRADESCOUT_ENV": "test",
        "TRADESCOUT_SENTRY_DSN": "",
    }

    for key, value in test_env.items():
        os.environ[key] = value

    yield

    for key in test_env:
        os.environ.pop(key, None)


@pytest.fixture(autouse=True)
def clear_session_store():
    """Start every test with an empty session registry."""
    from app.analysis_service.services.orchestrator.session_store import (
        clear_sessions,
    )

    clear_sessions()
    yield
    clear_sessions()


def _image_bytes(fmt: str) -> bytes:
    img = Image.new("RGB", (320, 200), color="white")
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return _image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return _image_bytes("JPEG")

import base64
from types import SimpleNamespace

import pytest
from google.genai import errors as genai_errors

from app.analysis_service.errors import EmptyResultWarning
from app.analysis_service.services import generation_client
from app.analysis_service.services.generation_client import (
    GenerationClient,
    build_config,
    build_contents,
)
from app.analysis_service.services.prompt_compositor import compose
from app.analysis_service.services.prompts import SYSTEM_INSTRUCTION
from app.analysis_service.services.schemas.analysis_input import (
    InlineDataPart,
    TextPart,
)
from app.analysis_service.services.schemas.generation import (
    Failure,
    GroundingSource,
    Success,
)


class FakeGemini:
    """Stands in for ``genai.Client``; records every call."""

    def __init__(self, *, response=None, error=None):
        self.calls = []
        self._response = response
        self._error = error
        self.models = self

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self._error is not None:
            raise self._error
        return self._response


def _text_request(query="Home Depot"):
    return compose(TextPart(text=query), "text", text_model="text-model", image_model="vision-model")


def _image_request(raw=b"\x89PNG fake"):
    part = InlineDataPart(mime_type="image/png", data=base64.b64encode(raw).decode("ascii"))
    return compose(part, "image", text_model="text-model", image_model="vision-model")


@pytest.mark.asyncio
async def test_success_returns_report_text():
    fake = FakeGemini(response=SimpleNamespace(text="## Score\n90", candidates=[]))

    result = await GenerationClient(client=fake).dispatch(_text_request())

    assert result == Success(report_text="## Score\n90")
    assert len(fake.calls) == 1
    assert fake.calls[0]["model"] == "text-model"


@pytest.mark.asyncio
async def test_report_text_is_returned_verbatim():
    report = "\n## 1. Overview\n\n| Item | Value |\n|---|---|\n| Score | 90 |\n\n"
    fake = FakeGemini(response=SimpleNamespace(text=report, candidates=[]))

    result = await GenerationClient(client=fake).dispatch(_text_request())

    assert result.report_text == report


@pytest.mark.asyncio
async def test_text_falls_back_to_candidate_parts():
    response = SimpleNamespace(
        text=None,
        candidates=[
            SimpleNamespace(
                content=SimpleNamespace(
                    parts=[SimpleNamespace(text="## Score"), SimpleNamespace(text="90")]
                ),
                grounding_metadata=None,
            )
        ],
    )

    result = await GenerationClient(client=FakeGemini(response=response)).dispatch(_text_request())

    assert result.report_text == "## Score\n90"


@pytest.mark.asyncio
async def test_empty_text_becomes_placeholder():
    fake = FakeGemini(response=SimpleNamespace(text="", candidates=[]))

    with pytest.warns(EmptyResultWarning):
        result = await GenerationClient(client=fake).dispatch(_text_request())

    assert result == Success(report_text="No analysis could be generated.")


@pytest.mark.asyncio
async def test_empty_image_result_has_image_placeholder():
    fake = FakeGemini(response=None)

    with pytest.warns(EmptyResultWarning):
        result = await GenerationClient(client=fake).dispatch(_image_request())

    assert result == Success(report_text="No analysis could be generated from the image.")


@pytest.mark.asyncio
async def test_transport_error_becomes_failure_with_message():
    fake = FakeGemini(error=ConnectionError("Service unavailable"))

    result = await GenerationClient(client=fake).dispatch(_text_request())

    assert result == Failure(message="Service unavailable")
    assert len(fake.calls) == 1


@pytest.mark.asyncio
async def test_error_without_message_uses_generic_text():
    result = await GenerationClient(client=FakeGemini(error=TimeoutError())).dispatch(
        _image_request()
    )

    assert result == Failure(message="Failed to analyze business card.")


@pytest.mark.asyncio
async def test_api_error_message_is_surfaced():
    error = genai_errors.ClientError(
        403,
        {
            "error": {
                "code": 403,
                "message": "API key not valid. Please pass a valid API key.",
                "status": "PERMISSION_DENIED",
            }
        },
    )

    result = await GenerationClient(client=FakeGemini(error=error)).dispatch(_text_request())

    assert isinstance(result, Failure)
    assert "API key not valid" in result.message


@pytest.mark.asyncio
async def test_missing_client_fails_without_network(monkeypatch):
    monkeypatch.setattr(generation_client, "_load_gemini", lambda: None)

    result = await GenerationClient().dispatch(_text_request())

    assert result == Failure(message="Gemini API key is not configured.")


@pytest.mark.asyncio
async def test_grounding_sources_are_collected():
    web = SimpleNamespace(title="Home Depot", uri="https://www.homedepot.com")
    response = SimpleNamespace(
        text="report",
        candidates=[
            SimpleNamespace(
                content=None,
                grounding_metadata=SimpleNamespace(
                    grounding_chunks=[
                        SimpleNamespace(web=web),
                        SimpleNamespace(web=web),
                        SimpleNamespace(web=None),
                    ]
                ),
            )
        ],
    )

    result = await GenerationClient(client=FakeGemini(response=response)).dispatch(_text_request())

    assert result.sources == (GroundingSource(title="Home Depot", uri="https://www.homedepot.com"),)


def test_contents_carry_decoded_image_and_instruction():
    raw = b"\x89PNG fake bytes"

    contents = build_contents(_image_request(raw))

    assert len(contents) == 1
    assert contents[0].role == "user"
    image_part, text_part = contents[0].parts
    assert image_part.inline_data.data == raw
    assert image_part.inline_data.mime_type == "image/png"
    assert "business card" in text_part.text


def test_config_enables_google_search():
    config = build_config(_text_request())

    assert config.system_instruction == SYSTEM_INSTRUCTION
    assert len(config.tools) == 1
    assert config.tools[0].google_search is not None

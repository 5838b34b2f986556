"""
Gemini generation client.

Sends one search-grounded ``generate_content`` call per analysis and turns
the outcome into an ``AnalysisResult``. No retries: a failed call is
reported as a ``Failure`` straight away.
"""

import asyncio
import os
import time
import warnings
from typing import Any, List, Tuple

import mlflow
from google.genai import errors as genai_errors
from google.genai import types

from app.analysis_service.config import settings
from app.analysis_service.errors import EmptyResultWarning, ServiceError
from app.analysis_service.services.input_adapter import decode_part
from app.analysis_service.services.schemas.analysis_input import (
    InlineDataPart,
    TextPart,
)
from app.analysis_service.services.schemas.generation import (
    AnalysisResult,
    Failure,
    GenerationRequest,
    GroundingSource,
    Success,
)
from app.analysis_service.utils.logger import get_logger
from app.common.mlflow_control import mlflow_context, mlflow_safe

logger = get_logger(__name__)

EMPTY_RESULT_TEXT = {
    "text": "No analysis could be generated.",
    "image": "No analysis could be generated from the image.",
}

GENERIC_FAILURE_TEXT = {
    "text": "Failed to analyze company.",
    "image": "Failed to analyze business card.",
}


# ==================================================
#  Gemini loader
# ==================================================
_GEMINI_CLIENT = None


def _load_gemini():
    """
    Load and cache a Gemini client.

    Returns:
        genai.Client | None: ``None`` in the test environment or when no
        API key is configured.
    """
    global _GEMINI_CLIENT

    if _GEMINI_CLIENT is not None:
        return _GEMINI_CLIENT

    if os.getenv("TRADESCOUT_ENV") == "test":
        return None

    if not settings.GEMINI_API_KEY:
        logger.warning("Gemini API key missing")
        return None

    from google import genai

    _GEMINI_CLIENT = genai.Client(
        api_key=settings.GEMINI_API_KEY,
        http_options=types.HttpOptions(
            timeout=int(settings.REQUEST_TIMEOUT_SEC * 1000),
        ),
    )
    return _GEMINI_CLIENT


# ==================================================
# Public API
# ==================================================
class GenerationClient:
    """
    One-shot Gemini caller.

    Args:
        client: Optional object exposing ``models.generate_content``.
            Defaults to the lazily created ``genai.Client``.
    """

    def __init__(self, client: Any = None):
        self._client = client

    async def dispatch(self, request: GenerationRequest) -> AnalysisResult:
        """
        Run one generation round trip without blocking the event loop.

        Returns:
            AnalysisResult: ``Success`` with the report (or a placeholder
            when Gemini returned no text), ``Failure`` otherwise.
        """
        try:
            report_text, sources = await asyncio.to_thread(self._generate, request)

        except ServiceError as exc:
            logger.error(
                "Gemini analysis failed",
                extra={
                    "mode": request.mode,
                    "model": request.model,
                    "status_code": exc.status_code,
                    "error_type": (exc.__cause__ or exc).__class__.__name__,
                },
            )
            return Failure(message=exc.message or GENERIC_FAILURE_TEXT[request.mode])

        if not report_text:
            warnings.warn(
                f"Gemini returned no text for {request.mode} analysis",
                EmptyResultWarning,
                stacklevel=2,
            )
            logger.warning("Gemini returned empty output", extra={"mode": request.mode})
            return Success(report_text=EMPTY_RESULT_TEXT[request.mode], sources=sources)

        logger.info(
            "Gemini analysis completed",
            extra={
                "mode": request.mode,
                "report_length": len(report_text),
                "source_count": len(sources),
            },
        )
        return Success(report_text=report_text, sources=sources)

    def _generate(
        self, request: GenerationRequest
    ) -> Tuple[str, Tuple[GroundingSource, ...]]:
        """Blocking Gemini call. Raises ``ServiceError`` on any failure."""
        client = self._client if self._client is not None else _load_gemini()
        if client is None:
            raise ServiceError("Gemini API key is not configured.")

        start = time.time()

        with mlflow_context(run_name=f"company_analysis_{request.mode}"):
            mlflow_safe(mlflow.set_tag, "service", "company_analysis_llm")
            mlflow_safe(mlflow.set_tag, "llm_provider", "gemini")
            mlflow_safe(mlflow.set_tag, "model", request.model)
            mlflow_safe(mlflow.set_tag, "input_mode", request.mode)
            mlflow_safe(mlflow.set_tag, "search_grounding", str(request.use_search))

            try:
                response = client.models.generate_content(
                    model=request.model,
                    contents=build_contents(request),
                    config=build_config(request),
                )

            except genai_errors.APIError as exc:
                raise ServiceError(
                    exc.message or _describe(exc) or GENERIC_FAILURE_TEXT[request.mode],
                    status_code=exc.code,
                ) from exc

            except Exception as exc:
                raise ServiceError(
                    _describe(exc) or GENERIC_FAILURE_TEXT[request.mode]
                ) from exc

            latency = time.time() - start
            mlflow_safe(mlflow.log_metric, "latency_sec", latency)

        return _extract_text(response), _extract_sources(response)


# ==================================================
# Payload builders
# ==================================================
def build_contents(request: GenerationRequest) -> List[types.Content]:
    """Convert request parts into a single Gemini user turn."""
    parts: List[types.Part] = []

    for part in request.parts:
        if isinstance(part, TextPart):
            parts.append(types.Part(text=part.text))
        elif isinstance(part, InlineDataPart):
            parts.append(
                types.Part.from_bytes(
                    data=decode_part(part),
                    mime_type=part.mime_type,
                )
            )
        else:
            raise TypeError(f"Unsupported content part: {type(part).__name__}")

    return [types.Content(role="user", parts=parts)]


def build_config(request: GenerationRequest) -> types.GenerateContentConfig:
    tools = (
        [types.Tool(google_search=types.GoogleSearch())] if request.use_search else None
    )
    return types.GenerateContentConfig(
        system_instruction=request.system_instruction,
        tools=tools,
    )


# ==================================================
# Helpers
# ==================================================
def _describe(exc: Exception) -> str:
    return str(exc).strip()


def _extract_text(response) -> str:
    """
    Extract text content from a Gemini response.

    Uses ``response.text`` when present, otherwise joins the text parts of
    the first candidate.
    """
    try:
        text = getattr(response, "text", None)
    except ValueError:
        # Older SDKs raise when the candidate has no text parts
        text = None

    if isinstance(text, str) and text.strip():
        return text

    candidates = getattr(response, "candidates", None)
    if not candidates:
        return ""

    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None)
    if not isinstance(parts, list):
        return ""

    collected = [
        p.text
        for p in parts
        if isinstance(getattr(p, "text", None), str) and p.text.strip()
    ]
    return "\n".join(collected)


def _extract_sources(response) -> Tuple[GroundingSource, ...]:
    """Collect de-duplicated Google Search sources from grounding metadata."""
    candidates = getattr(response, "candidates", None)
    if not candidates:
        return ()

    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    sources: List[GroundingSource] = []
    seen = set()
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None)
        if not uri or uri in seen:
            continue
        seen.add(uri)
        sources.append(GroundingSource(title=getattr(web, "title", None) or uri, uri=uri))

    return tuple(sources)

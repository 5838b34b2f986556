"""
Company analysis API client.

Handles sending company queries and business card images to the
TradeScout backend and reading session state.
"""

from typing import Any, Dict, Optional

import requests
from requests import RequestException

from frontend.config import settings
from app.analysis_service.utils.logger import get_logger

logger = get_logger(__name__)

API_BASE_URL = settings.API_BASE_URL

# Backend errors whose detail is meant for the user
USER_FACING_STATUS = {400, 404, 409, 429}


class AnalysisRequestError(RuntimeError):
    """Raised when an analysis request to the backend fails."""


def analyze_text(*, query: str, session_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Analyze a company by name or website.

    Args:
        query: Company name or URL.
        session_id: Optional analysis session ID.

    Returns:
        Backend session snapshot.

    Raises:
        AnalysisRequestError: On request or backend failure.
    """
    data: Dict[str, Any] = {"query": query}
    if session_id:
        data["session_id"] = session_id

    logger.info(
        "Sending text analysis",
        extra={"query_length": len(query), "session_id": session_id},
    )
    return _request("POST", "/analysis/text", session_id=session_id, data=data)


def analyze_business_card(
    *,
    image_bytes: bytes,
    mime_type: str,
    filename: str = "card.jpg",
    session_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Analyze the company on a business card photo.

    Raises:
        AnalysisRequestError: On request or backend failure.
    """
    data: Dict[str, Any] = {}
    if session_id:
        data["session_id"] = session_id

    files = {"image": (filename, image_bytes, mime_type)}

    logger.info(
        "Sending business card analysis",
        extra={"size_bytes": len(image_bytes), "mime_type": mime_type},
    )
    return _request(
        "POST",
        "/analysis/image",
        session_id=session_id,
        data=data or None,
        files=files,
    )


def reset_session(*, session_id: str) -> Dict[str, Any]:
    return _request("POST", f"/analysis/{session_id}/reset", session_id=session_id)


def switch_mode(*, session_id: str, mode: str) -> Dict[str, Any]:
    return _request(
        "POST",
        f"/analysis/{session_id}/mode",
        session_id=session_id,
        data={"mode": mode},
    )


def fetch_state(*, session_id: str) -> Dict[str, Any]:
    return _request("GET", f"/analysis/{session_id}", session_id=session_id)


# ===================== HELPERS =====================


def _request(
    method: str,
    endpoint: str,
    *,
    session_id: Optional[str] = None,
    data: Optional[Dict[str, Any]] = None,
    files: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Perform a backend request with error handling.

    Raises:
        AnalysisRequestError: On transport failure, user-facing backend
            errors (with the backend's detail) or invalid JSON.
    """
    url = f"{API_BASE_URL}{endpoint}"

    headers = {"Accept": "application/json"}
    if session_id:
        headers["X-Session-Id"] = session_id

    try:
        response = requests.request(
            method,
            url,
            headers=headers,
            data=data,
            files=files,
            timeout=settings.REQUEST_TIMEOUT_SEC,
        )

        if response.status_code in USER_FACING_STATUS:
            raise AnalysisRequestError(_error_detail(response))

        response.raise_for_status()
        return response.json()

    except RequestException as exc:
        logger.exception(
            "Analysis request failed",
            extra={"url": url},
        )
        raise AnalysisRequestError(
            "Failed to communicate with analysis service"
        ) from exc

    except ValueError as exc:
        logger.exception(
            "Invalid JSON response from backend",
            extra={"url": url},
        )
        raise AnalysisRequestError(
            "Invalid response received from analysis service"
        ) from exc


def _error_detail(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"Request failed ({response.status_code})"

    if not isinstance(payload, dict):
        return f"Request failed ({response.status_code})"

    detail = payload.get("detail") or payload.get("message")
    if isinstance(detail, str) and detail:
        return detail
    return f"Request failed ({response.status_code})"

"""
Company analysis API routes.

Exposes the per-session analysis state machine over HTTP:
- submit a company name / URL or a business card image
- read the current state
- reset the session or switch the active input mode
"""

import math
import uuid
from typing import Optional

from fastapi import (
    APIRouter,
    File,
    Form,
    HTTPException,
    Request,
    UploadFile,
)

from app.analysis_service.config import settings
from app.analysis_service.errors import SessionBusyError
from app.analysis_service.services.input_adapter import image_too_large
from app.analysis_service.services.orchestrator.session_controller import (
    AnalysisSession,
)
from app.analysis_service.services.orchestrator.session_store import (
    find_session,
    get_session,
)
from app.analysis_service.services.schemas.analysis_input import is_valid_mode
from app.analysis_service.services.schemas.analysis_response import (
    AnalysisStateResponse,
)
from app.analysis_service.utils.logger import get_logger
from app.core.rate_limit import limiter

logger = get_logger(__name__)

router = APIRouter(prefix="/analysis", tags=["Analysis"])

# Room for a "data:<mime>;base64," header in front of an encoded upload
DATA_URI_HEADER_SLACK = 256


@router.post("/text", response_model=AnalysisStateResponse)
@limiter.limit(settings.ANALYSIS_RATE_LIMIT)
async def analyze_company_text(
    request: Request,
    query: str = Form(""),
    session_id: Optional[str] = Form(None),
) -> AnalysisStateResponse:
    """
    Analyze a company by name or website URL.

    Blocks until Gemini answers; the returned snapshot is the final state
    of this analysis.
    """
    session = _open_session(session_id)
    _ensure_not_loading(session)

    logger.info(
        "Text analysis requested",
        extra={"session_id": session.session_id, "query_length": len(query)},
    )

    state = await session.submit_text(query)
    return AnalysisStateResponse.from_state(session.session_id, state)


@router.post("/image", response_model=AnalysisStateResponse)
@limiter.limit(settings.ANALYSIS_RATE_LIMIT)
async def analyze_business_card(
    request: Request,
    image: UploadFile = File(...),
    session_id: Optional[str] = Form(None),
) -> AnalysisStateResponse:
    """
    Analyze the company behind a business card photo.
    """
    session = _open_session(session_id)
    _ensure_not_loading(session)

    read_limit = upload_read_limit(settings.MAX_IMAGE_BYTES)
    image_bytes = await image.read(read_limit)
    if len(image_bytes) >= read_limit:
        raise image_too_large(image.size or len(image_bytes), settings.MAX_IMAGE_BYTES)

    mime_type = image.content_type or ""

    logger.info(
        "Image analysis requested",
        extra={
            "session_id": session.session_id,
            "mime_type": mime_type,
            "size_bytes": len(image_bytes),
        },
    )

    state = await session.submit_image(image_bytes, mime_type)
    return AnalysisStateResponse.from_state(session.session_id, state)


@router.get("/{session_id}", response_model=AnalysisStateResponse)
def read_session_state(session_id: str) -> AnalysisStateResponse:
    """Return the current state of a session."""
    session = _require_session(session_id)
    return AnalysisStateResponse.from_state(session.session_id, session.state)


@router.post("/{session_id}/reset", response_model=AnalysisStateResponse)
def reset_session(session_id: str) -> AnalysisStateResponse:
    """Return a session to idle, discarding any in-flight result."""
    session = _require_session(session_id)
    state = session.reset()
    return AnalysisStateResponse.from_state(session.session_id, state)


@router.post("/{session_id}/mode", response_model=AnalysisStateResponse)
def switch_session_mode(
    session_id: str,
    mode: str = Form(...),
) -> AnalysisStateResponse:
    """Switch the active input mode (text or image)."""
    if not is_valid_mode(mode):
        raise HTTPException(status_code=400, detail="Invalid mode")

    session = get_session(session_id)
    state = session.switch_mode(mode)
    return AnalysisStateResponse.from_state(session.session_id, state)


# ===================== HELPERS =====================


def upload_read_limit(max_image_bytes: int) -> int:
    """
    Number of upload bytes to read for an image limit.

    Large enough to hold a base64 data URI whose decoded image is within
    the limit. An upload that fills the whole read is over the limit in
    either encoding; anything shorter is checked by the adapter on its
    decoded bytes.
    """
    return math.ceil(max_image_bytes * 4 / 3) + DATA_URI_HEADER_SLACK + 1


def _open_session(session_id: Optional[str]) -> AnalysisSession:
    return get_session(session_id or str(uuid.uuid4()))


def _require_session(session_id: str) -> AnalysisSession:
    session = find_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _ensure_not_loading(session: AnalysisSession) -> None:
    if session.is_loading:
        raise SessionBusyError("An analysis is already in progress for this session.")

"""
Session state controller.

Owns the analysis state machine of one session:

    Idle ──submit──▶ Loading ──result──▶ Succeeded | Failed
      ▲                 │                      │
      └─────reset───────┴──────────reset───────┘

- Input is validated and adapted before the state changes, so invalid
  input never enters ``Loading``.
- At most one analysis is in flight; submitting while loading is a no-op.
- Every dispatch and every reset bumps a generation counter. A result is
  applied only if its counter is still current, so results arriving after
  a reset are dropped.

All mutation happens on the event loop; the Gemini call is the only await.
"""

import asyncio
import time
from typing import Callable, List, Optional

from app.analysis_service.config import settings
from app.analysis_service.errors import InvalidInputError
from app.analysis_service.services.generation_client import GenerationClient
from app.analysis_service.services.input_adapter import adapt
from app.analysis_service.services.orchestrator.session_state import (
    Failed,
    Idle,
    Loading,
    SessionState,
    Succeeded,
    with_mode,
)
from app.analysis_service.services.prompt_compositor import compose
from app.analysis_service.services.schemas.analysis_input import (
    AnalysisInput,
    ImageInput,
    InputMode,
    TextInput,
    is_valid_mode,
)
from app.analysis_service.services.schemas.generation import (
    AnalysisResult,
    Failure,
    Success,
)
from app.analysis_service.utils.logger import get_logger

logger = get_logger(__name__)

Subscriber = Callable[[SessionState], None]

UNEXPECTED_FAILURE_TEXT = "Something went wrong while analyzing. Please try again."


class AnalysisSession:
    """
    Analysis state machine for one user session.

    Args:
        session_id (str): Session identifier (used for logging).
        generation_client (GenerationClient | None): Gemini caller.
        default_mode (InputMode | None): Initial input tab.
        max_image_bytes (int | None): Image size limit.
        text_model (str | None): Model for company name / URL queries.
        image_model (str | None): Model for business card images.
    """

    def __init__(
        self,
        session_id: str,
        *,
        generation_client: Optional[GenerationClient] = None,
        default_mode: Optional[InputMode] = None,
        max_image_bytes: Optional[int] = None,
        text_model: Optional[str] = None,
        image_model: Optional[str] = None,
    ):
        self.session_id = session_id
        self._client = generation_client or GenerationClient()
        self._max_image_bytes = max_image_bytes or settings.MAX_IMAGE_BYTES
        self._text_model = text_model or settings.TEXT_MODEL
        self._image_model = image_model or settings.IMAGE_MODEL

        self._state: SessionState = Idle(mode=default_mode or settings.DEFAULT_MODE)
        self._generation = 0
        self._subscribers: List[Subscriber] = []

        self.last_activity: float = time.time()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return isinstance(self._state, Loading)

    @property
    def generation(self) -> int:
        return self._generation

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback invoked with every new state.

        Returns:
            Callable[[], None]: Function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def touch(self) -> None:
        """Update last activity timestamp."""
        self.last_activity = time.time()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    async def submit_text(self, query: str) -> SessionState:
        return await self.submit(TextInput(text=query))

    async def submit_image(self, data: bytes, mime_type: str) -> SessionState:
        return await self.submit(ImageInput(data=data, mime_type=mime_type))

    async def submit(self, analysis_input: AnalysisInput | None) -> SessionState:
        """
        Run one analysis and return the resulting state.

        Raises:
            InvalidInputError: If the input is missing or cannot be
                analyzed. The state is left unchanged.
        """
        self.touch()

        if self.is_loading:
            logger.info(
                "Submit ignored: analysis already in flight",
                extra={"session_id": self.session_id},
            )
            return self._state

        if analysis_input is None:
            raise InvalidInputError("Nothing to analyze.")

        part = adapt(analysis_input, max_image_bytes=self._max_image_bytes)
        request = compose(
            part,
            analysis_input.mode,
            text_model=self._text_model,
            image_model=self._image_model,
        )

        self._generation += 1
        generation = self._generation

        logger.info(
            "Analysis started",
            extra={
                "session_id": self.session_id,
                "mode": analysis_input.mode,
                "generation": generation,
            },
        )
        self._set_state(Loading(mode=analysis_input.mode))

        try:
            result = await self._client.dispatch(request)

        except asyncio.CancelledError:
            if generation == self._generation:
                self._set_state(Failed(mode=self._state.mode, message="Analysis was cancelled."))
            raise

        except Exception as exc:
            logger.exception(
                "Unexpected generation failure",
                extra={"session_id": self.session_id},
            )
            result = Failure(message=str(exc) or UNEXPECTED_FAILURE_TEXT)

        if generation != self._generation:
            logger.info(
                "Discarding stale analysis result",
                extra={
                    "session_id": self.session_id,
                    "result_generation": generation,
                    "current_generation": self._generation,
                },
            )
            return self._state

        self._apply_result(result)
        return self._state

    def reset(self) -> SessionState:
        """Return to ``Idle``, dropping any report, error or in-flight result."""
        self.touch()
        self._generation += 1

        logger.info(
            "Session reset",
            extra={"session_id": self.session_id, "from_status": self._state.status},
        )
        self._set_state(Idle(mode=self._state.mode))
        return self._state

    def switch_mode(self, mode: InputMode) -> SessionState:
        """
        Change the active input tab without touching anything else.

        An analysis already in flight completes under the mode it was
        dispatched with.
        """
        if not is_valid_mode(mode):
            raise ValueError(f"Unsupported mode: {mode}")

        self.touch()
        if mode != self._state.mode:
            self._set_state(with_mode(self._state, mode))
        return self._state

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _apply_result(self, result: AnalysisResult) -> None:
        mode = self._state.mode

        if isinstance(result, Success):
            logger.info(
                "Analysis succeeded",
                extra={"session_id": self.session_id, "report_length": len(result.report_text)},
            )
            self._set_state(
                Succeeded(mode=mode, report_text=result.report_text, sources=result.sources)
            )
        elif isinstance(result, Failure):
            logger.info(
                "Analysis failed",
                extra={"session_id": self.session_id},
            )
            self._set_state(Failed(mode=mode, message=result.message))
        else:
            raise TypeError(f"Unsupported analysis result: {type(result).__name__}")

    def _set_state(self, new_state: SessionState) -> None:
        self._state = new_state

        for callback in list(self._subscribers):
            try:
                callback(new_state)
            except Exception:
                logger.exception(
                    "State subscriber failed",
                    extra={"session_id": self.session_id},
                )

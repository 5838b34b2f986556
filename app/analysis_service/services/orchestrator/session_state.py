"""
Session state values.

A session is always in exactly one of four states. Each state is an
immutable value carrying the active input mode, so a report and an error
can never be set at the same time.
"""

from dataclasses import dataclass, replace
from typing import Union

from app.analysis_service.services.schemas.analysis_input import InputMode


@dataclass(frozen=True)
class Idle:
    mode: InputMode = "text"

    status = "idle"


@dataclass(frozen=True)
class Loading:
    mode: InputMode

    status = "loading"


@dataclass(frozen=True)
class Succeeded:
    mode: InputMode
    report_text: str
    sources: tuple = ()

    status = "success"


@dataclass(frozen=True)
class Failed:
    mode: InputMode
    message: str

    status = "error"


SessionState = Union[Idle, Loading, Succeeded, Failed]


def with_mode(state: SessionState, mode: InputMode) -> SessionState:
    """Return the same state with a different active mode."""
    return replace(state, mode=mode)

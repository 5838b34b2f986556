"""
Request and result types exchanged with the generation client.
"""

from dataclasses import dataclass, field
from typing import Tuple, Union

from app.analysis_service.services.schemas.analysis_input import (
    ContentPart,
    InputMode,
)


@dataclass(frozen=True)
class GroundingSource:
    """A web page Gemini consulted through Google Search."""

    title: str
    uri: str


@dataclass(frozen=True)
class GenerationRequest:
    """
    One tool-augmented generation call.

    Attributes:
        model: Gemini model identifier.
        system_instruction: Fixed persona and report format.
        parts: Ordered parts of the single user turn.
        mode: Input modality the request was composed for.
        use_search: Whether Google Search grounding is enabled.
    """

    model: str
    system_instruction: str
    parts: Tuple[ContentPart, ...]
    mode: InputMode
    use_search: bool = True


@dataclass(frozen=True)
class Success:
    report_text: str
    sources: Tuple[GroundingSource, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Failure:
    message: str


AnalysisResult = Union[Success, Failure]

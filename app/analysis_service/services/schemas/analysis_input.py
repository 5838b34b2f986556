"""
Input and content-part types for the analysis pipeline.

Both are closed tagged unions: an ``AnalysisInput`` is either a
``TextInput`` or an ``ImageInput`` and a ``ContentPart`` is either a
``TextPart`` or an ``InlineDataPart``.
"""

from dataclasses import dataclass
from typing import Literal, Union

InputMode = Literal["text", "image"]

INPUT_MODES = ("text", "image")


@dataclass(frozen=True)
class TextInput:
    """Company name or URL typed by the user."""

    text: str

    @property
    def mode(self) -> InputMode:
        return "text"


@dataclass(frozen=True)
class ImageInput:
    """Business card photo as raw bytes plus its declared MIME type."""

    data: bytes
    mime_type: str

    @property
    def mode(self) -> InputMode:
        return "image"

    def __repr__(self) -> str:
        # Keep raw image bytes out of logs and tracebacks
        return f"ImageInput(mime_type={self.mime_type!r}, size={len(self.data)})"


AnalysisInput = Union[TextInput, ImageInput]


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class InlineDataPart:
    """Binary payload encoded as standard padded base64."""

    mime_type: str
    data: str

    def __repr__(self) -> str:
        return f"InlineDataPart(mime_type={self.mime_type!r}, length={len(self.data)})"


ContentPart = Union[TextPart, InlineDataPart]


def is_valid_mode(mode: str) -> bool:
    return mode in INPUT_MODES

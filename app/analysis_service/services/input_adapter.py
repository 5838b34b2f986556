"""
Input adapter.

Normalizes the two accepted input modalities into a single content part:
- text  → trimmed pass-through
- image → validated, base64-encoded inline data
"""

import base64
import binascii
import io

from PIL import Image

from app.analysis_service.errors import InvalidInputError
from app.analysis_service.services.schemas.analysis_input import (
    AnalysisInput,
    ContentPart,
    ImageInput,
    InlineDataPart,
    TextInput,
    TextPart,
)
from app.analysis_service.utils.logger import get_logger

logger = get_logger(__name__)

DATA_URI_PREFIX = b"data:"
DATA_URI_MARKER = b";base64,"


def adapt(analysis_input: AnalysisInput, *, max_image_bytes: int) -> ContentPart:
    """
    Convert user input into a request content part.

    Args:
        analysis_input (AnalysisInput): Text or image input.
        max_image_bytes (int): Upper bound for raw image size.

    Returns:
        ContentPart: ``TextPart`` for text, ``InlineDataPart`` for images.

    Raises:
        InvalidInputError: If the input is empty, too large, unreadable
            or not an image.
    """
    if isinstance(analysis_input, TextInput):
        return _adapt_text(analysis_input)

    if isinstance(analysis_input, ImageInput):
        return _adapt_image(analysis_input, max_image_bytes=max_image_bytes)

    raise TypeError(f"Unsupported analysis input: {type(analysis_input).__name__}")


def decode_part(part: InlineDataPart) -> bytes:
    """Return the raw bytes carried by an inline-data part."""
    return base64.b64decode(part.data, validate=True)


def image_too_large(size_bytes: int, max_image_bytes: int) -> InvalidInputError:
    """Build the user-facing error for an oversized image."""
    return InvalidInputError(
        f"Image is too large ({size_bytes / (1024 * 1024):.1f} MB). "
        f"Maximum size is {max_image_bytes / (1024 * 1024):.0f} MB."
    )


# ==================================================
# Helpers
# ==================================================
def _adapt_text(analysis_input: TextInput) -> ContentPart:
    text = (analysis_input.text or "").strip()
    if not text:
        raise InvalidInputError("Please enter a company name or website.")

    logger.debug("Text input normalized", extra={"text_length": len(text)})
    return TextPart(text=text)


def _adapt_image(analysis_input: ImageInput, *, max_image_bytes: int) -> ContentPart:
    raw, mime_type = _unwrap_data_uri(analysis_input.data, analysis_input.mime_type)

    if not mime_type.startswith("image/"):
        raise InvalidInputError(f"Unsupported file type: {mime_type or 'unknown'}")

    if not raw:
        raise InvalidInputError("Uploaded image is empty.")

    if len(raw) > max_image_bytes:
        logger.warning(
            "Image rejected: too large",
            extra={"size_bytes": len(raw), "max_bytes": max_image_bytes},
        )
        raise image_too_large(len(raw), max_image_bytes)

    _verify_image(raw)

    logger.info(
        "Image input encoded",
        extra={"mime_type": mime_type, "size_bytes": len(raw)},
    )
    return InlineDataPart(
        mime_type=mime_type,
        data=base64.b64encode(raw).decode("ascii"),
    )


def _unwrap_data_uri(data: bytes, mime_type: str | None) -> tuple[bytes, str]:
    """
    Strip a ``data:<mime>;base64,`` prefix and decode its payload.

    The declared MIME type wins; the one embedded in the URI is only used
    when nothing was declared.
    """
    declared = (mime_type or "").split(";", 1)[0].strip().lower()

    if not isinstance(data, (bytes, bytearray)):
        raise InvalidInputError("Image payload must be bytes.")

    if not data.startswith(DATA_URI_PREFIX):
        return bytes(data), declared

    header, marker, payload = bytes(data).partition(DATA_URI_MARKER)
    if not marker:
        raise InvalidInputError("Image data URI is not base64-encoded.")

    try:
        raw = base64.b64decode(payload.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidInputError("Image data URI payload is corrupted.") from exc

    embedded = header[len(DATA_URI_PREFIX):].decode("ascii", "ignore").lower()
    return raw, declared or embedded


def _verify_image(raw: bytes) -> None:
    """Make sure the bytes decode as an image."""
    try:
        with Image.open(io.BytesIO(raw)) as img:
            img.verify()
    except Exception as exc:
        logger.warning(
            "Image rejected: unreadable",
            extra={"error_type": exc.__class__.__name__},
        )
        raise InvalidInputError("The uploaded image could not be read.") from exc

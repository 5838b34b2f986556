"""
Prompt compositor.

Builds the Gemini request for an adapted content part. Pure: no I/O.
"""

from app.analysis_service.services.prompts import (
    BUSINESS_CARD_INSTRUCTION,
    SYSTEM_INSTRUCTION,
    TEXT_QUERY_TEMPLATE,
)
from app.analysis_service.services.schemas.analysis_input import (
    ContentPart,
    InlineDataPart,
    InputMode,
    TextPart,
)
from app.analysis_service.services.schemas.generation import GenerationRequest


def compose(
    part: ContentPart,
    mode: InputMode,
    *,
    text_model: str,
    image_model: str,
) -> GenerationRequest:
    """
    Compose a search-grounded generation request.

    Text queries go to the text model as a single prompt. Business card
    images go to the multimodal model together with an instruction telling
    Gemini to read the card before researching the company.

    Args:
        part (ContentPart): Output of the input adapter.
        mode (InputMode): ``"text"`` or ``"image"``.
        text_model (str): Model used for text queries.
        image_model (str): Model used for images; must support inline
            images and Google Search together.

    Returns:
        GenerationRequest: Request ready for dispatch.

    Raises:
        TypeError: If the part does not belong to the given mode.
        ValueError: If the mode is unknown.
    """
    if mode == "text":
        if not isinstance(part, TextPart):
            raise TypeError("Text mode requires a TextPart")

        return GenerationRequest(
            model=text_model,
            system_instruction=SYSTEM_INSTRUCTION,
            parts=(TextPart(text=TEXT_QUERY_TEMPLATE.format(query=part.text)),),
            mode="text",
            use_search=True,
        )

    if mode == "image":
        if not isinstance(part, InlineDataPart):
            raise TypeError("Image mode requires an InlineDataPart")

        return GenerationRequest(
            model=image_model,
            system_instruction=SYSTEM_INSTRUCTION,
            parts=(part, TextPart(text=BUSINESS_CARD_INSTRUCTION)),
            mode="image",
            use_search=True,
        )

    raise ValueError(f"Unsupported mode: {mode}")

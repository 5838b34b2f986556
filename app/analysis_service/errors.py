"""
Error taxonomy for the analysis pipeline.
"""


class InvalidInputError(ValueError):
    """Raised when submitted text or image cannot be analyzed."""


class ServiceError(RuntimeError):
    """
    Raised when the Gemini call fails.

    Carries the service-provided message when there is one; the generation
    client converts it into a failed analysis result.
    """

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SessionBusyError(RuntimeError):
    """Raised by the HTTP layer when a session already has an analysis in flight."""


class EmptyResultWarning(UserWarning):
    """Emitted when Gemini answers successfully but without any text."""

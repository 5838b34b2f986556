"""
Schemas for analysis API responses.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from app.analysis_service.services.orchestrator.session_state import (
    Failed,
    SessionState,
    Succeeded,
)


class SourceLink(BaseModel):
    """
    Web page consulted by Google Search grounding.
    """

    title: str
    uri: str


class AnalysisStateResponse(BaseModel):
    """
    Snapshot of an analysis session.
    """

    session_id: str = Field(
        ...,
        description="Session identifier",
    )
    status: str = Field(
        ...,
        description="One of: idle, loading, success, error",
    )
    mode: str = Field(
        ...,
        description="Active input mode: text or image",
    )
    report_text: Optional[str] = Field(
        None,
        description="Markdown report (status == success)",
    )
    message: Optional[str] = Field(
        None,
        description="User-facing error message (status == error)",
    )
    sources: List[SourceLink] = Field(
        default_factory=list,
        description="Search sources behind the report",
    )

    @classmethod
    def from_state(cls, session_id: str, state: SessionState) -> "AnalysisStateResponse":
        report_text = None
        message = None
        sources: List[SourceLink] = []

        if isinstance(state, Succeeded):
            report_text = state.report_text
            sources = [SourceLink(title=s.title, uri=s.uri) for s in state.sources]
        elif isinstance(state, Failed):
            message = state.message

        return cls(
            session_id=session_id,
            status=state.status,
            mode=state.mode,
            report_text=report_text,
            message=message,
            sources=sources,
        )

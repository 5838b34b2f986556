import uuid
from typing import Any, Dict, List, MutableMapping, Optional


class AppState:
    """
    Per-browser mirror of the backend session snapshot.

    The backend owns the analysis state machine; this object only keeps the
    last snapshot it returned plus what the user is typing.
    """

    def __init__(self, session_id: Optional[str] = None) -> None:
        self.session_id: str = session_id or str(uuid.uuid4())
        self.status: str = "idle"
        self.mode: str = "text"
        self.report_text: Optional[str] = None
        self.error: Optional[str] = None
        self.sources: List[dict] = []

        #  UI / FLOW STATE
        self.input_text: str = ""

    @property
    def is_loading(self) -> bool:
        return self.status == "loading"

    def apply_snapshot(self, snapshot: Dict[str, Any]) -> None:
        """Replace local state with a backend ``AnalysisStateResponse``."""
        self.session_id = snapshot.get("session_id") or self.session_id
        self.status = snapshot.get("status", "idle")
        self.mode = snapshot.get("mode", self.mode)
        self.report_text = snapshot.get("report_text")
        self.error = snapshot.get("message")
        self.sources = snapshot.get("sources") or []

    def mark_loading(self, mode: str) -> None:
        self.status = "loading"
        self.mode = mode
        self.report_text = None
        self.error = None
        self.sources = []

    def mark_error(self, message: str) -> None:
        self.status = "error"
        self.report_text = None
        self.error = message
        self.sources = []

    def clear(self) -> None:
        self.status = "idle"
        self.report_text = None
        self.error = None
        self.sources = []
        self.input_text = ""



SESSION_STORAGE_KEY = "analysis_session_id"


def load_state(storage: MutableMapping[str, Any]) -> AppState:
    """
    Build the UI state for one browser.

    The backend session id is kept in the browser's storage so a page
    reload continues the same session. Each browser gets its own id.
    """
    state = AppState(session_id=storage.get(SESSION_STORAGE_KEY))
    storage[SESSION_STORAGE_KEY] = state.session_id
    return state

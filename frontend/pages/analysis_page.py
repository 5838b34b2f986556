"""
Company analysis page for the TradeScout frontend.

Handles the input tabs (company name / URL and business card scan),
loading and error states, and rendering of the returned report.

Every page visit builds its own ``AnalysisView`` around the state of the
visiting browser.
"""

import asyncio
import mimetypes

from nicegui import app, ui

from frontend.api.analysis_client import (
    AnalysisRequestError,
    analyze_business_card,
    analyze_text,
    fetch_state,
    reset_session,
    switch_mode,
)
from frontend.components.report_view import render_report
from frontend.config import settings
from frontend.state.app_state import SESSION_STORAGE_KEY, AppState, load_state
from app.analysis_service.utils.logger import get_logger

logger = get_logger(__name__)

TAB_ACTIVE = "bg-white text-blue-600 shadow-sm"
TAB_INACTIVE = "text-slate-500 hover:text-slate-700"


# =================================================
# MAIN PAGE
# =================================================
def show_analysis_page() -> None:
    """Render the analysis page for the current browser."""
    state = load_state(app.storage.user)
    logger.debug("Rendering analysis page", extra={"session_id": state.session_id})

    view = AnalysisView(state)
    view.render()

    # Pick up a finished analysis from before a reload
    ui.timer(0.1, view.restore, once=True)


def restore_state(state: AppState) -> bool:
    """
    Load the backend snapshot of an existing session into ``state``.

    Returns:
        bool: True if a snapshot was applied.
    """
    try:
        snapshot = fetch_state(session_id=state.session_id)
    except AnalysisRequestError:
        logger.debug("No backend session to restore", extra={"session_id": state.session_id})
        return False

    # Only the tab that submitted can observe the end of an analysis
    if snapshot.get("status") == "loading":
        return False

    state.apply_snapshot(snapshot)
    return True


class AnalysisView:
    """Page content and handlers bound to one browser's ``AppState``."""

    def __init__(self, state: AppState) -> None:
        self.state = state
        self.body = ui.refreshable(self._render_body)

    def render(self) -> None:
        with ui.column().classes("min-h-screen w-full bg-slate-50 text-slate-900 pb-20 gap-0"):
            _render_header()

            with ui.column().classes("w-full max-w-3xl mx-auto px-4 sm:px-6 mt-12 gap-0"):
                self.body()

    async def restore(self) -> None:
        if await asyncio.to_thread(restore_state, self.state):
            self._remember_session()
            self.body.refresh()

    # =================================================
    # SECTIONS
    # =================================================
    def _render_body(self) -> None:
        state = self.state

        if state.status in ("idle", "error"):
            _render_hero()

        self._render_input_card()

        if state.is_loading:
            _render_loading()

        if state.status == "error" and state.error:
            _render_error(state.error)

        if state.status == "success" and state.report_text:
            render_report(state.report_text, state.sources)
            self._render_report_actions()

    def _render_input_card(self) -> None:
        margin = "mb-8" if self.state.report_text else "mb-20"

        with ui.card().classes(
            f"w-full p-0 bg-white rounded-2xl shadow-xl border border-slate-200 {margin}"
        ):
            # ---------- TABS ----------
            with ui.row().classes("w-full p-2 bg-slate-100 gap-1 border-b border-slate-200"):
                for mode, label in (("text", "Company URL / Name"), ("image", "Business Card Scan")):
                    classes = TAB_ACTIVE if self.state.mode == mode else TAB_INACTIVE
                    ui.button(
                        label,
                        on_click=lambda _, m=mode: self._on_mode_selected(m),
                    ).props("flat no-caps").classes(f"flex-1 py-3 rounded-xl {classes}")

            with ui.column().classes("w-full p-6 md:p-8"):
                if self.state.mode == "text":
                    self._render_text_form()
                else:
                    self._render_upload()

    def _render_text_form(self) -> None:
        state = self.state

        input_box = (
            ui.input(
                placeholder="e.g., Home Depot, www.ikea.com",
                value=state.input_text,
                on_change=lambda e: setattr(state, "input_text", e.value or ""),
            )
            .props("outlined clearable")
            .classes("w-full text-lg")
        )
        input_box.props("prepend-inner-icon=search")
        if state.is_loading:
            input_box.disable()

        input_box.on("keydown.enter", self._submit_text)

        label = "Analyzing Global Database..." if state.is_loading else "Analyze Company"
        ui.button(label, on_click=self._submit_text).classes(
            "mt-4 w-full bg-blue-600 text-white font-semibold py-4 rounded-xl"
        ).bind_enabled_from(
            input_box,
            "value",
            backward=lambda value: bool(value and value.strip()) and not state.is_loading,
        )

    def _render_upload(self) -> None:
        with ui.column().classes("w-full items-center text-center"):
            upload = (
                ui.upload(
                    label="Upload Business Card",
                    auto_upload=True,
                    max_file_size=settings.MAX_UPLOAD_MB * 1024 * 1024,
                    on_upload=self._on_card_uploaded,
                    on_rejected=lambda: ui.notify(
                        f"Images must be smaller than {settings.MAX_UPLOAD_MB} MB",
                        type="warning",
                    ),
                )
                .props("accept=image/* flat bordered")
                .classes("w-full")
            )
            if self.state.is_loading:
                upload.disable()

            ui.label(f"Supports JPG, PNG (Max {settings.MAX_UPLOAD_MB}MB)").classes(
                "text-sm text-slate-500 mt-1"
            )

    def _render_report_actions(self) -> None:
        with ui.row().classes("w-full mt-8 justify-center gap-4"):
            ui.button("Analyze Another", on_click=self._analyze_another).props("outline").classes(
                "px-6 py-2.5 text-slate-600"
            )
            ui.button("Copy Report", on_click=self._copy_report).classes(
                "px-6 py-2.5 bg-blue-600 text-white"
            )

    # =================================================
    # HANDLERS
    # =================================================
    async def _submit_text(self) -> None:
        state = self.state
        query = state.input_text.strip()
        if not query or state.is_loading:
            return

        logger.info("User submitted company query", extra={"session_id": state.session_id})

        state.mark_loading("text")
        self.body.refresh()

        try:
            snapshot = await asyncio.to_thread(
                analyze_text,
                query=query,
                session_id=state.session_id,
            )
            state.apply_snapshot(snapshot)
            self._remember_session()

        except AnalysisRequestError as exc:
            state.mark_error(str(exc))
            ui.notify(str(exc), type="negative")

        self.body.refresh()

    async def _on_card_uploaded(self, event) -> None:
        """
        Send an uploaded business card to the backend.
        """
        state = self.state
        if state.is_loading:
            ui.notify("An analysis is already running", type="warning")
            return

        try:
            image_bytes = await event.file.read()
        except Exception:
            logger.exception("Failed to read uploaded file")
            ui.notify("Failed to load selected file", type="negative")
            return

        filename = event.file.name or "card.jpg"
        mime_type = getattr(event.file, "content_type", None) or mimetypes.guess_type(filename)[0]

        logger.info(
            "User uploaded business card",
            extra={"uploaded_filename": filename, "size_bytes": len(image_bytes)},
        )

        state.mark_loading("image")
        self.body.refresh()

        try:
            snapshot = await asyncio.to_thread(
                analyze_business_card,
                image_bytes=image_bytes,
                mime_type=mime_type or "application/octet-stream",
                filename=filename,
                session_id=state.session_id,
            )
            state.apply_snapshot(snapshot)
            self._remember_session()

        except AnalysisRequestError as exc:
            state.mark_error(str(exc))
            ui.notify(str(exc), type="negative")

        self.body.refresh()

    async def _on_mode_selected(self, mode: str) -> None:
        state = self.state
        if mode == state.mode:
            return

        state.mode = mode
        self.body.refresh()

        try:
            await asyncio.to_thread(switch_mode, session_id=state.session_id, mode=mode)
        except AnalysisRequestError:
            # Tab selection is cosmetic; the next submit carries its own mode
            logger.warning("Mode switch not synced to backend", extra={"mode": mode})

    async def _analyze_another(self) -> None:
        state = self.state
        try:
            snapshot = await asyncio.to_thread(reset_session, session_id=state.session_id)
            state.clear()
            state.apply_snapshot(snapshot)
        except AnalysisRequestError as exc:
            logger.warning("Reset failed", extra={"error": str(exc)})
            state.clear()

        self.body.refresh()

    def _copy_report(self) -> None:
        if self.state.report_text:
            ui.clipboard.write(self.state.report_text)
            ui.notify("Report copied", type="positive")

    def _remember_session(self) -> None:
        app.storage.user[SESSION_STORAGE_KEY] = self.state.session_id


# =================================================
# STATIC SECTIONS
# =================================================
def _render_header() -> None:
    with ui.row().classes(
        "w-full bg-white border-b border-slate-200 px-8 h-16 items-center justify-between"
    ):
        with ui.row().classes("items-center gap-2"):
            ui.label("T").classes(
                "w-8 h-8 bg-blue-600 rounded-lg text-white font-bold text-center leading-8"
            )
            ui.label("TradeScout AI").classes("text-xl font-bold text-blue-700")
        ui.label("Global Trade Intelligence").classes("text-sm text-slate-500")


def _render_hero() -> None:
    with ui.column().classes("w-full items-center text-center mb-12"):
        ui.label("Analyze Any Company").classes(
            "text-4xl font-extrabold tracking-tight text-slate-900"
        )
        ui.label("In Seconds").classes("text-4xl font-extrabold text-blue-600 mb-4")
        ui.label(
            "Evaluate B2B clients, extract business card data, and generate "
            "export strategies using Gemini models and Google Search grounding."
        ).classes("text-lg text-slate-600 max-w-2xl")


def _render_loading() -> None:
    with ui.column().classes("w-full items-center py-12"):
        ui.spinner(size="3em", color="primary")
        ui.label("Consulting Global Knowledge Base...").classes(
            "text-lg font-medium text-slate-700"
        )
        ui.label("Searching Web • Analyzing Competitors • Drafting Strategy").classes(
            "text-sm text-slate-500"
        )


def _render_error(message: str) -> None:
    with ui.row().classes(
        "w-full bg-red-50 border border-red-200 text-red-700 px-4 py-3 rounded-xl mb-8 items-center gap-3"
    ):
        ui.icon("error_outline")
        ui.label(message)

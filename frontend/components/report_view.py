"""
Report rendering.

Shows the markdown report returned by the backend, followed by the web
sources Gemini consulted.
"""

from typing import List

from nicegui import ui


def render_report(report_text: str, sources: List[dict]) -> None:
    """Render a report card inside the current NiceGUI container."""
    with ui.card().classes(
        "w-full bg-white rounded-2xl shadow-xl border border-slate-200 p-6 md:p-8"
    ):
        ui.markdown(report_text, extras=["tables", "fenced-code-blocks"]).classes(
            "w-full prose prose-slate max-w-none"
        )

        if sources:
            ui.separator().classes("my-4")
            ui.label("Sources").classes("text-sm font-semibold text-slate-600")
            with ui.column().classes("gap-1"):
                for source in sources:
                    ui.link(
                        source.get("title") or source.get("uri"),
                        source.get("uri"),
                        new_tab=True,
                    ).classes("text-sm text-blue-600 hover:underline")

"""
Application entrypoint and route definitions.

Registers the frontend page and starts the NiceGUI app.
"""

from nicegui import ui

from frontend.config import settings
from frontend.pages.analysis_page import show_analysis_page
from app.analysis_service.utils.logger import get_logger

logger = get_logger(__name__)


@ui.page("/")
def root() -> None:
    """Analysis page route."""
    logger.debug("Analysis page accessed")
    show_analysis_page()


def start_app() -> None:
    """
    Start the NiceGUI application.
    """
    logger.info(
        "Starting TradeScout frontend application",
        extra={"api_base_url": settings.API_BASE_URL},
    )

    ui.run(
        title="TradeScout AI",
        reload=False,
        storage_secret=settings.STORAGE_SECRET,
    )


if __name__ in {"__main__", "__mp_main__"}:
    start_app()

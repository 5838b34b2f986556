import os
import mlflow
from typing import Any, Callable, Optional
from contextlib import contextmanager

from app.analysis_service.utils.logger import get_logger

logger = get_logger(__name__)


def _mlflow_disabled() -> bool:
    return os.getenv("TRADESCOUT_ENV") == "test"


@contextmanager
def mlflow_context(run_name: str | None = None):
    """
    MLflow run lifecycle handler.

    - Starts a run if none is active, otherwise reuses the active one
    - Ends runs started here, even when the body raises
    - Never lets MLflow failures reach the caller

    Exceptions raised by the body propagate untouched; callers own their
    error logging.

    Args:
        run_name (str | None):
            Optional MLflow run name for easier identification in the UI.
    """
    if _mlflow_disabled():
        logger.debug("MLflow disabled (test environment)")
        yield None
        return

    run = None
    started_here = False

    try:
        run = mlflow.active_run()
        if run is None:
            run = mlflow.start_run(run_name=run_name)
            started_here = True
            logger.debug(
                "MLflow run started",
                extra={"run_id": run.info.run_id, "run_name": run_name},
            )
    except Exception:
        logger.warning("MLflow run could not be started", exc_info=True)
        run = None

    try:
        yield run
    finally:
        if started_here:
            try:
                if mlflow.active_run():
                    mlflow.end_run()
            except Exception:
                logger.warning("Failed to end MLflow run", exc_info=True)


def mlflow_safe(
    func: Callable[..., Any],
    *args: Any,
    **kwargs: Any,
) -> Optional[Any]:
    """
    Execute an MLflow call without letting it break the request.

    No-op in the test environment. Failures are logged and suppressed.

    Returns:
        Optional[Any]: The MLflow function's return value, or None when
        skipped or failed.
    """
    if _mlflow_disabled():
        return None

    try:
        return func(*args, **kwargs)

    except Exception:
        logger.warning(
            "MLflow call failed: %s",
            getattr(func, "__name__", repr(func)),
            exc_info=True,
        )
        return None

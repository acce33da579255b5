"""Fire-and-forget helpers for side effects that must never block or fail a request."""

import logging
import threading

logger = logging.getLogger(__name__)


def fire_and_forget(func, *args, **kwargs) -> threading.Thread:
    """Run ``func`` on a daemon thread. Exceptions are logged, never raised."""

    def _run():
        try:
            func(*args, **kwargs)
        except Exception as e:
            logger.warning("Background task %s failed: %s", getattr(func, "__name__", func), e)

    thread = threading.Thread(target=_run, daemon=True)
    thread.start()
    return thread

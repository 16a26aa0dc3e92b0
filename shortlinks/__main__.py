"""Run the service with uvicorn: ``python -m shortlinks``."""

import uvicorn

from shortlinks.config import get_settings


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "shortlinks.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        # In-flight requests get this long before connections are dropped.
        timeout_graceful_shutdown=settings.SHUTDOWN_GRACE_SECONDS,
    )


if __name__ == "__main__":
    run()

"""Run the messaging service: ``python -m messaging_service``."""
from __future__ import annotations

import uvicorn

from messaging_service.config import settings
from messaging_service.log_config import configure_logging


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    # log_config=None keeps uvicorn from replacing the handlers set up above.
    uvicorn.run(
        "messaging_service.app:create_app",
        factory=True,
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        log_level=settings.LOG_LEVEL.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()

"""Run the Postboard server: ``python -m postboard``."""

import uvicorn

from postboard.config import get_settings
from postboard.middleware import configure_logging


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "postboard.main:app",
        host=settings.bind_host,
        port=settings.bind_port,
        reload=settings.debug,
        log_config=None,
    )


if __name__ == "__main__":
    main()

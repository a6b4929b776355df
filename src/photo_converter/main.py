"""Command-line entrypoint that serves the webhook with uvicorn."""

import logging
import os
import sys

import uvicorn

from photo_converter.api.app import create_app
from photo_converter.app_logging import configure_logging
from photo_converter.config import load_settings
from photo_converter.containers import build_container
from photo_converter.domain.errors import ConfigMissing

logger = logging.getLogger("photo_converter.main")


def main() -> None:
    """Load configuration, build the app and serve it until interrupted."""
    configure_logging()
    try:
        settings = load_settings()
    except ConfigMissing as exc:
        logger.critical("%s", exc)
        sys.exit(1)
    app = create_app(build_container(settings))
    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )


if __name__ == "__main__":
    main()

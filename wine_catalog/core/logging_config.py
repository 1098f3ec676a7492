"""Root logger configuration shared by the web app and the CLI."""

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger with a console handler.

    Does nothing if the root logger already has handlers, so repeated
    ``create_app`` calls (tests, reloads) don't stack handlers.

    Args:
        level: Logging level name, case insensitive. Unknown names fall
               back to INFO.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)

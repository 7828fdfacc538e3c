"""Logging configuration helpers."""

import logging

LOGGER_NAME = "photo_booth"


def configure_logging(level: str = "INFO") -> None:
    """Attach one stream handler to the kiosk logger and set its level.

    Calling this again only changes the level, so tests and the app factory can
    both call it.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s: %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.propagate = False

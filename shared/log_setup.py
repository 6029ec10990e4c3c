import logging

LOG_FORMAT = "%(levelname)s: %(message)s"


def ensure_logging(level: int = logging.INFO) -> None:
    """Make sure app loggers reach the console, even under uvicorn's own handlers."""

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
        return

    root.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)
    for handler in root.handlers:
        handler.setFormatter(formatter)

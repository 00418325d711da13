import logging
import sys

from file_converter.common.settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once, at application start-up"""
    if level is None:
        level = "DEBUG" if settings.IS_DEBUG else settings.LOG_LEVEL

    root = logging.getLogger()
    if getattr(root, "_file_converter_configured", False):
        root.setLevel(level.upper())
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level.upper())
    root._file_converter_configured = True  # type: ignore[attr-defined]

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

"""Central logging configuration for hearthboard.

Quiets chatty third-party loggers and stamps every record with the current
request's correlation id.
"""

import logging
import os
from typing import Optional


class CorrelationIdFilter(logging.Filter):
    """Add the request correlation id to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        # Imported lazily: the middleware module pulls in aiohttp.
        from ..api.middleware import get_request_id

        record.request_id = get_request_id()
        return True


NOISY_LOGGERS: dict[str, int] = {
    "aiohttp.access": logging.WARNING,
    "aiohttp.server": logging.WARNING,
    "aiohttp.web": logging.INFO,
    "aiohttp.web_log": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "asyncio": logging.WARNING,
    "charset_normalizer": logging.WARNING,
    "icalendar": logging.INFO,
}


def configure_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> bool:
    """Configure hearthboard and third-party logger levels.

    Args:
        debug_mode: Enable DEBUG for hearthboard modules
        force_debug: Override debug detection (None to honor HEARTHBOARD_DEBUG)

    Environment Variables:
        HEARTHBOARD_DEBUG: '1', 'true' or 'yes' forces debug logging
        HEARTHBOARD_LOG_LEVEL: Overrides the root level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Whether debug logging ended up enabled
    """
    env_debug = os.getenv("HEARTHBOARD_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("HEARTHBOARD_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    else:
        final_debug = env_debug or debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    correlation_filter = CorrelationIdFilter()
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] [%(request_id)s] %(levelname)s - %(name)s - %(message)s")
        )
        handler.addFilter(correlation_filter)
        root_logger.addHandler(handler)
    else:
        for existing_handler in root_logger.handlers:
            if not any(isinstance(f, CorrelationIdFilter) for f in existing_handler.filters):
                existing_handler.addFilter(correlation_filter)

    for logger_name, level in NOISY_LOGGERS.items():
        logging.getLogger(logger_name).setLevel(level)

    app_level = logging.DEBUG if final_debug else logging.INFO
    for module in ("hearthboard", "kiosk_ui"):
        logging.getLogger(module).setLevel(app_level)

    if final_debug:
        root_logger.info("Debug logging enabled for hearthboard modules")
    return final_debug

"""Entry point for running kiosk_ui as a module.

Usage:
    python -m kiosk_ui
"""

import asyncio
import logging
import sys

from kiosk_ui.main import main as _async_main

logger = logging.getLogger(__name__)


def main() -> None:
    """Console script entry point."""
    try:
        asyncio.run(_async_main())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception:
        logger.exception("Fatal error")
        sys.exit(1)


if __name__ == "__main__":
    main()

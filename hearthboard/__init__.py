"""hearthboard - household calendar dashboard server.

Fetches several ICS feeds, expands recurring events, merges everything into
one ordered list and serves it (plus the local weather) as JSON for a kiosk
display.
"""

__version__ = "1.0.0"

from typing import Optional


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Installs a colorized console handler so startup messages are visible
    before configuration is loaded. Honors HEARTHBOARD_DEBUG (truthy values:
    "1", "true", "yes", "on") which forces DEBUG verbosity.
    """
    import logging
    import os
    import sys

    from colorlog import ColoredFormatter

    debug_env = os.environ.get("HEARTHBOARD_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # HH:MM:SS  LEVEL   logger.name: message  (only the level is colorized)
        fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
        log_colors = {
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        }
        handler.setFormatter(ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors))
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)
    logging.getLogger(__name__).debug("Logging initialized at level %s", logging.getLevelName(level))


def run_server(args: Optional[object] = None) -> None:
    """Start the hearthboard server (optionally with the console kiosk).

    Args:
        args: Optional argparse namespace with ``port``, ``host`` and ``ui``

    Behavior:
    - Initialize console logging from HEARTHBOARD_LOG_LEVEL.
    - Load configuration from .env and the environment, then apply CLI overrides.
    - ``--ui console`` runs the kiosk client against the embedded server in
      the same event loop; otherwise the server runs alone.
    """
    import asyncio
    import logging
    import os
    import sys

    _init_logging(os.environ.get("HEARTHBOARD_LOG_LEVEL"))
    logger = logging.getLogger(__name__)

    from .core.config_manager import ConfigManager

    config = ConfigManager().load_full_config()

    if args is not None:
        port = getattr(args, "port", None)
        if port is not None:
            config.server_port = int(port)
            logger.debug("Applied command line port override: %d", config.server_port)
        host = getattr(args, "host", None)
        if host:
            config.server_bind = host

    logging.getLogger().setLevel(getattr(logging, config.log_level, logging.INFO))

    ui_mode = getattr(args, "ui", "none")
    if ui_mode == "console":
        from .ui import run_with_console_ui

        logger.info("Starting hearthboard with console kiosk")
        try:
            asyncio.run(run_with_console_ui(config))
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
            sys.exit(130)
        return

    from .api.server import start_server

    logger.info("Starting hearthboard server (no UI)")
    start_server(config)

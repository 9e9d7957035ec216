import logging

from src.config.snapshot_settings import LOG_LEVEL

# Set up Python logging
logger = logging.getLogger("vote-snapshot-logger")
logger.setLevel(LOG_LEVEL)
logger.propagate = False  # Prevent duplicate output through a host app's root handler

# Configure logging handler/format only if no handlers present
if not logger.handlers:
    console_handler = logging.StreamHandler()
    formatter = logging.Formatter(
        fmt="%(asctime)s - [%(levelname)s] - %(name)s - %(funcName)s() - %(message)s"
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

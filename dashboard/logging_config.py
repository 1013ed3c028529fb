import logging
import os

_CONFIGURED = False


def configure_logging():
    global _CONFIGURED
    if _CONFIGURED:
        return
    level_name = os.getenv("DASHBOARD_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    for noisy in ("urllib3", "requests", "watchdog"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    _CONFIGURED = True

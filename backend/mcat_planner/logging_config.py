import logging
import os
from logging.config import dictConfig

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
TELEMETRY_LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
TELEMETRY_LOGGER = "mcat_planner.telemetry"


def configure_logging() -> None:
    """Configure planner logging from MCAT_PLANNER_* environment flags.

    Telemetry events are already JSON lines, so they go to their own stdout
    stream and do not repeat through the root handler.
    """
    level = os.getenv("MCAT_PLANNER_LOG_LEVEL", "INFO").upper()
    telemetry_level = os.getenv("MCAT_PLANNER_TELEMETRY_LOG_LEVEL", "INFO").upper()

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": DEFAULT_LOG_FORMAT},
                "telemetry": {"format": TELEMETRY_LOG_FORMAT},
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
                "telemetry": {
                    "class": "logging.StreamHandler",
                    "formatter": "telemetry",
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {
                "mcat_planner": {"level": level},
                TELEMETRY_LOGGER: {
                    "handlers": ["telemetry"],
                    "level": telemetry_level,
                    "propagate": False,
                },
            },
            "root": {
                "handlers": ["default"],
                "level": level,
            },
        }
    )

    if os.getenv("MCAT_PLANNER_TRACE_SELECTION", "0") == "1":
        logging.getLogger("mcat_planner.resource_selection").setLevel(logging.DEBUG)
    if os.getenv("MCAT_PLANNER_DEBUG_SQL", "0") == "1":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

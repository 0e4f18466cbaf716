import logging
import logging.config
import os

LOG_FILENAME = "fxsense.log"

# Third-party loggers that log every request at INFO/DEBUG
QUIET_LOGGERS = ("httpx", "httpcore")


def build_logging_config(log_dir: str = "logs", verbose: bool = False) -> dict:
    """dictConfig for the CLI and API: console plus a rotating file under ``log_dir``.

    The file always receives fxsense DEBUG records (per-scenario request URLs
    and point counts); the console shows them only when ``verbose`` is set.
    """
    console_level = "DEBUG" if verbose else "INFO"
    loggers = {name: {"level": "WARNING"} for name in QUIET_LOGGERS}
    loggers["fxsense"] = {"level": "DEBUG"}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": console_level,
            },
            "run_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": os.path.join(log_dir, LOG_FILENAME),
                "maxBytes": 5_242_880,
                "backupCount": 3,
                "formatter": "standard",
                "level": "DEBUG",
            },
        },
        "loggers": loggers,
        "root": {
            "level": "INFO",
            "handlers": ["console", "run_file"],
        },
    }


def setup_logging(log_dir: str = "logs", verbose: bool = False):
    os.makedirs(log_dir, exist_ok=True)
    logging.config.dictConfig(build_logging_config(log_dir, verbose=verbose))

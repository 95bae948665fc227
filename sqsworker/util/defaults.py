"""Default values for sqsworker."""

from enum import IntEnum


class EXITCODES(IntEnum):
    """Exit codes for sqsworker."""

    SUCCESS = 0
    """Successful execution."""
    ERROR = 1
    """General unspecified error."""
    CONFIGURATION_ERROR = 2
    """An error in the configuration."""
    WORKER_ERROR = 3
    """The worker or one of its components could not be started."""


DEFAULT_MAX_BATCH_SIZE = 10
SQS_MAX_BATCH_SIZE = 10
DEFAULT_CONFIG_LOCATION = "/etc/sqsworker/worker.yml"
DEFAULT_LOG_FORMAT = "%(asctime)-15s %(name)-10s %(levelname)-8s: %(message)s"
DEFAULT_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_METRICS_PORT = 8000

# dictconfig as described in
# https://docs.python.org/3/library/logging.config.html#configuration-dictionary-schema
DEFAULT_LOG_CONFIG: dict = {
    "version": 1,
    "formatters": {
        "sqsworker": {
            "class": "sqsworker.util.logging.SqsWorkerFormatter",
            "format": DEFAULT_LOG_FORMAT,
            "datefmt": DEFAULT_LOG_DATE_FORMAT,
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "sqsworker",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "root": {"level": "INFO", "handlers": ["console"]},
        "botocore": {"level": "ERROR"},
        "boto3": {"level": "ERROR"},
        "urllib3.connectionpool": {"level": "ERROR"},
    },
    "filters": {},
    "disable_existing_loggers": False,
}

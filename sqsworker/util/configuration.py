"""
Configuration is done via YAML or JSON files.
sqsworker searches for the file :code:`/etc/sqsworker/worker.yml` if no
configuration file is passed.

You can pass multiple configuration files. Their top level keys are merged, values of later
files replace values of earlier files.

..  code-block:: bash
    :caption: Valid Run Examples

    sqsworker run /different/path/file.yml
    sqsworker run /path/to/worker.yml /path/to/transport.yml

Configuration File Structure
----------------------------

..  code-block:: yaml
    :caption: Example of a complete configuration file

    version: 1
    logger:
      level: INFO
    metrics:
      enabled: true
      port: 8000
    worker:
      queue_url: https://sqs.eu-central-1.amazonaws.com/123456789012/jobs
      max_batch_size: 10
      wait_time: 20
      stop_on_empty_batch: false
      max_iterations:
      item_handler: arn:aws:lambda:eu-central-1:123456789012:function:handle-item
      list_handler:
    transport:
      sqs:
        type: sqs_transport
        region_name: eu-central-1
"""

import json
import logging
from copy import deepcopy
from logging.config import dictConfig
from pathlib import Path
from typing import Any, Iterable, List, Optional

from attrs import asdict, define, field, validators
from ruamel.yaml import YAML
from ruamel.yaml.compat import StringIO
from ruamel.yaml.error import YAMLError

from sqsworker.factory import Factory
from sqsworker.factory_error import InvalidConfigurationError
from sqsworker.util.defaults import (
    DEFAULT_CONFIG_LOCATION,
    DEFAULT_LOG_CONFIG,
    DEFAULT_MAX_BATCH_SIZE,
    DEFAULT_METRICS_PORT,
)


class MyYAML(YAML):
    """helper class to dump yaml with ruamel.yaml"""

    def dump(self, data: Any, stream: Any | None = None, **kw: Any) -> Any:
        inefficient = False
        if stream is None:
            inefficient = True
            stream = StringIO()
        YAML.dump(self, data, stream, **kw)
        if inefficient:
            return stream.getvalue()
        return None


yaml = MyYAML(typ="safe", pure=True)


class InvalidConfigurationErrors(InvalidConfigurationError):
    """Raise for multiple Configuration related exceptions."""

    errors: List[InvalidConfigurationError]

    def __init__(self, errors: List[Exception]) -> None:
        unique_errors = []
        for error in errors:
            if not isinstance(error, InvalidConfigurationError):
                error = InvalidConfigurationError(*error.args)
            if error not in unique_errors:
                unique_errors.append(error)
        self.errors = unique_errors
        super().__init__("\n".join([str(error) for error in self.errors]))


class ConfigGetterException(InvalidConfigurationError):
    """Raise if a configuration file could not be read."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class RequiredConfigurationKeyMissingError(InvalidConfigurationError):
    """Raise if required option is missing in configuration."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Required option is missing: {key}")


@define(kw_only=True, frozen=True)
class MetricsConfig:
    """the metrics config class used in Configuration"""

    enabled: bool = field(validator=validators.instance_of(bool), default=False)
    port: int = field(validator=validators.instance_of(int), default=DEFAULT_METRICS_PORT)


@define(kw_only=True, frozen=True)
class WorkerConfig:
    """the worker config class used in Configuration"""

    queue_url: str = field(validator=[validators.instance_of(str), validators.min_len(1)])
    """URL of the queue to receive messages from. Required."""
    max_batch_size: int = field(
        validator=[validators.instance_of(int), validators.ge(1)], default=DEFAULT_MAX_BATCH_SIZE
    )
    """Upper bound of messages per fetch. Defaults to :code:`10`."""
    wait_time: Optional[int] = field(
        validator=validators.optional([validators.instance_of(int), validators.ge(0)]),
        default=None,
    )
    """Seconds to long poll for messages. Defaults to the setting of the queue."""
    stop_on_empty_batch: bool = field(validator=validators.instance_of(bool), default=False)
    """Stop as soon as a fetch returns no messages. Defaults to :code:`False`."""
    max_iterations: Optional[int] = field(
        validator=validators.optional([validators.instance_of(int), validators.ge(0)]),
        default=None,
    )
    """Stop after this number of fetches. Runs until terminated if not set."""
    item_handler: Optional[str] = field(
        validator=validators.optional(validators.instance_of(str)), default=None
    )
    """Name of the remote function invoked with every message (optional)."""
    list_handler: Optional[str] = field(
        validator=validators.optional(validators.instance_of(str)), default=None
    )
    """Name of the remote function invoked with all messages of a batch (optional)."""


@define(kw_only=True)
class LoggerConfig:
    """The logger config class used in Configuration.
    The schema for this class is derived from the python logging module:
    https://docs.python.org/3/library/logging.config.html#dictionary-schema-details
    """

    _LOG_LEVELS = (
        logging.NOTSET,  # 0
        logging.DEBUG,  # 10
        logging.INFO,  # 20
        logging.WARNING,  # 30
        logging.ERROR,  # 40
        logging.CRITICAL,  # 50
    )

    version: int = field(validator=validators.instance_of(int), default=1)
    formatters: dict = field(validator=validators.instance_of(dict), factory=dict)
    filters: dict = field(validator=validators.instance_of(dict), factory=dict)
    handlers: dict = field(validator=validators.instance_of(dict), factory=dict)
    disable_existing_loggers: bool = field(validator=validators.instance_of(bool), default=False)
    level: str = field(
        default="INFO",
        validator=[
            validators.instance_of(str),
            validators.in_([logging.getLevelName(level) for level in _LOG_LEVELS]),
        ],
        eq=False,
    )
    """The log level of the root logger. Defaults to :code:`INFO`."""
    format: str = field(default="", validator=validators.instance_of(str), eq=False)
    """The format of the log message as supported by the :code:`SqsWorkerFormatter`.
    Defaults to :code:`"%(asctime)-15s %(name)-10s %(levelname)-8s: %(message)s"`."""
    datefmt: str = field(default="", validator=validators.instance_of(str), eq=False)
    """The date format of the log message. Defaults to :code:`"%Y-%m-%d %H:%M:%S"`."""
    loggers: dict = field(validator=validators.instance_of(dict), factory=dict)
    """The loggers loglevel configuration. You can alter the log level of single loggers like
    :code:`Worker`, :code:`BatchProcessor` or :code:`botocore` by adding them to this mapping.

    .. code-block:: yaml
        :caption: Example of a custom logger configuration

        logger:
            level: ERROR
            format: "%(asctime)-15s %(hostname)-5s %(name)-10s %(levelname)-8s: %(message)s"
            loggers:
                "BatchProcessor": {"level": "DEBUG"}
    """

    def __attrs_post_init__(self) -> None:
        self._set_defaults()
        self._set_loggers_levels()
        self.loggers.setdefault("root", {}).update({"level": self.level})

    def _set_loggers_levels(self) -> None:
        """merges the given loggers into the default loggers"""
        loggers = deepcopy(DEFAULT_LOG_CONFIG["loggers"])
        for logger_name, logger_config in self.loggers.items():
            loggers[logger_name] = loggers.get(logger_name, {}) | dict(logger_config)
        self.loggers = loggers

    def setup_logging(self) -> None:
        """Setup the logging configuration. Is called in the :code:`sqsworker.runner` module."""
        dictConfig(self.as_dict())

    def as_dict(self) -> dict:
        """returns the dictconfig of this logger configuration"""
        log_config = asdict(self)
        formatter = log_config["formatters"].get("sqsworker", {})
        if self.format:
            formatter["format"] = self.format
        if self.datefmt:
            formatter["datefmt"] = self.datefmt
        return log_config

    def _set_defaults(self) -> None:
        """sets all unset keys to the defined defaults except :code:`loggers`."""
        for key, value in DEFAULT_LOG_CONFIG.items():
            if key == "loggers":
                continue
            if not getattr(self, key):
                setattr(self, key, deepcopy(value))


@define(kw_only=True)
class Configuration:
    """the configuration class"""

    version: str = field(
        validator=validators.instance_of(str), converter=str, default="unset", eq=True
    )
    """It is optionally possible to set a version to your configuration file which
    can be printed via :code:`sqsworker run --version worker.yml`.
    Defaults to :code:`unset`."""
    logger: LoggerConfig = field(
        validator=validators.instance_of(LoggerConfig),
        factory=LoggerConfig,
        converter=lambda x: LoggerConfig(**x) if isinstance(x, dict) else x,
        eq=False,
    )
    """Logger configuration. Defaults to the level :code:`INFO` on stdout."""
    metrics: MetricsConfig = field(
        validator=validators.instance_of(MetricsConfig),
        factory=MetricsConfig,
        converter=lambda x: MetricsConfig(**x) if isinstance(x, dict) else x,
        eq=False,
    )
    """Metrics configuration. The prometheus exporter is disabled by default."""
    worker: dict = field(validator=validators.instance_of(dict), factory=dict, eq=False)
    """Settings of the worker, see :code:`WorkerConfig`. :code:`queue_url` is required."""
    transport: dict = field(validator=validators.instance_of(dict), factory=dict, eq=False)
    """The transport component as :code:`{name: {type: ..., ...}}`."""

    _config_paths: tuple = field(factory=tuple, repr=False, eq=False, alias="config_paths")

    @property
    def config_paths(self) -> list[str]:
        """Paths of the configuration files."""
        return list(self._config_paths)

    @property
    def worker_config(self) -> WorkerConfig:
        """the validated worker section"""
        if "queue_url" not in self.worker:
            raise RequiredConfigurationKeyMissingError("worker.queue_url")
        try:
            return WorkerConfig(**self.worker)
        except (TypeError, ValueError) as error:
            raise InvalidConfigurationError(f"Invalid worker configuration: {error}") from error

    @classmethod
    def _read(cls, config_path: str) -> dict:
        try:
            content = Path(config_path).read_text(encoding="utf8")
        except FileNotFoundError as error:
            raise ConfigGetterException(
                f"One or more of the given config file(s) does not exist: {error.filename}\n",
            ) from error
        try:
            config_dict = yaml.load(content)
        except YAMLError as error:
            raise ConfigGetterException(f"Invalid yaml or json file: {config_path} {error}") from error
        if config_dict is None:
            return {}
        if not isinstance(config_dict, dict):
            raise InvalidConfigurationError(f"Invalid configuration file: {config_path}")
        return dict(config_dict)

    @classmethod
    def from_source(cls, config_path: str) -> "Configuration":
        """Create configuration from a file.

        Parameters
        ----------
        config_path : str
            path of the file to create configuration from.

        Returns
        -------
        config : Configuration
            Configuration object attrs class.

        """
        return cls.from_sources([config_path])

    @classmethod
    def from_sources(cls, config_paths: Iterable[str] | None = None) -> "Configuration":
        """Creates configuration from a list of configuration files.

        Parameters
        ----------
        config_paths : list[str]
            List of configuration files to create configuration from.

        Returns
        -------
        config : Configuration
            resulting configuration object.

        """
        if not config_paths:
            config_paths = [DEFAULT_CONFIG_LOCATION]
        errors = []
        merged: dict = {}
        for config_path in config_paths:
            try:
                merged |= cls._read(config_path)
            except ConfigGetterException:
                raise
            except InvalidConfigurationError as error:
                errors.append(error)
        if errors:
            raise InvalidConfigurationErrors(errors)
        try:
            configuration = Configuration(**merged, config_paths=tuple(config_paths))
        except (TypeError, ValueError) as error:
            raise InvalidConfigurationError(f"Invalid configuration: {error}") from error
        configuration._verify()
        return configuration

    def _verify(self) -> None:
        """Verify the configuration."""
        errors: list[Exception] = []
        try:
            _ = self.worker_config
        except InvalidConfigurationError as error:
            errors.append(error)
        if not self.transport:
            errors.append(RequiredConfigurationKeyMissingError("transport"))
        elif len(self.transport) > 1:
            errors.append(
                InvalidConfigurationError(
                    f"Found multiple transports ({', '.join(self.transport)}),"
                    " but there must be exactly one."
                )
            )
        else:
            try:
                Factory.create(deepcopy(self.transport))
            except Exception as error:  # pylint: disable=broad-except
                errors.append(error)
        if errors:
            raise InvalidConfigurationErrors(errors)

    def as_dict(self) -> dict:
        """Return the configuration as dict."""
        return {
            "version": self.version,
            "logger": asdict(self.logger),
            "metrics": asdict(self.metrics),
            "worker": deepcopy(self.worker),
            "transport": deepcopy(self.transport),
        }

    def as_json(self, indent=None) -> str:
        """Return the configuration as json string."""
        return json.dumps(self.as_dict(), indent=indent)

    def as_yaml(self) -> str:
        """Return the configuration as yaml string."""
        return yaml.dump(self.as_dict())

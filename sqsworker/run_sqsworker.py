# pylint: disable=logging-fstring-interpolation
"""This module can be used to start the sqsworker."""
import logging
import logging.config
import os
import signal
import sys

import click
from colorama import Fore

from sqsworker.runner import Runner
from sqsworker.util.configuration import Configuration, InvalidConfigurationError
from sqsworker.util.defaults import DEFAULT_LOG_CONFIG, EXITCODES
from sqsworker.util.helper import get_versions_string, print_fcolor

logging.captureWarnings(True)
logging.config.dictConfig(DEFAULT_LOG_CONFIG)
logger = logging.getLogger("sqsworker")


def _print_version(config: "Configuration") -> None:
    print(get_versions_string(config))
    sys.exit(EXITCODES.SUCCESS.value)


def _get_configuration(config_paths: tuple[str]) -> Configuration:
    try:
        return Configuration.from_sources(config_paths)
    except InvalidConfigurationError as error:
        logger.error(f"InvalidConfigurationError: {error}")
        sys.exit(EXITCODES.CONFIGURATION_ERROR.value)


@click.group(name="sqsworker")
@click.version_option(version=get_versions_string(), message="%(version)s")
def cli() -> None:
    """
    sqsworker receives batches of messages from an SQS queue, passes them to item and list
    handlers and deletes all successfully handled messages from the queue.
    """


@cli.command(short_help="Run the worker")
@click.argument("configs", nargs=-1, required=False)
@click.option(
    "--max-iterations",
    type=click.IntRange(min=0),
    default=None,
    help="Stop after this number of fetches (overrides worker.max_iterations)",
)
@click.option(
    "--version",
    is_flag=True,
    default=False,
    help="Print version and exit (includes also config version)",
)
def run(configs: tuple[str], max_iterations: int | None = None, version=None) -> None:
    """
    Run sqsworker with the given configuration.

    CONFIG is a path to a configuration file.
    """
    configuration = _get_configuration(configs)
    if version:
        _print_version(configuration)
    if max_iterations is not None:
        configuration.worker["max_iterations"] = max_iterations
    runner = None
    try:
        runner = Runner(configuration)
        runner.setup_logging()
        for version_line in get_versions_string(configuration).split("\n"):
            logger.info(version_line)
        logger.debug(f"Metric export enabled: {configuration.metrics.enabled}")
        logger.debug(f"Config path: {configs}")
        if "pytest" not in sys.modules:  # needed for not blocking tests
            signal.signal(signal.SIGTERM, signal_handler)
            signal.signal(signal.SIGINT, signal_handler)
        runner.run()
    except InvalidConfigurationError as error:
        logger.error(f"InvalidConfigurationError: {error}")
        sys.exit(EXITCODES.CONFIGURATION_ERROR.value)
    except SystemExit as error:
        logger.error(f"Error during setup: error code {error.code}")
        sys.exit(error.code)
    # pylint: disable=broad-except
    except Exception as error:
        if os.environ.get("DEBUG", False):
            logger.exception(f"A critical error occurred: {error}")  # pragma: no cover
        else:
            logger.critical(f"A critical error occurred: {error}")
        if runner:
            runner.stop()
        sys.exit(EXITCODES.ERROR.value)
    # pylint: enable=broad-except


@cli.group(name="test", short_help="Execute tests against a given configuration")
def test() -> None:
    """
    Verify the configuration.
    """


@test.command(name="config")
@click.argument("configs", nargs=-1)
def test_config(configs: tuple[str]) -> None:
    """
    Verify the configuration file

    CONFIG is a path to a configuration file.
    """
    _get_configuration(configs)
    print_fcolor(Fore.GREEN, "The verification of the configuration was successful")


@cli.command(short_help="Print a configuration", name="print")
@click.argument("configs", nargs=-1, required=True)
@click.option(
    "--output",
    type=click.Choice(["json", "yaml"]),
    default="yaml",
    help="What output format to use",
)
def print_config(configs: tuple[str], output) -> None:
    """
    Prints the given configuration as a combined yaml or json file, with all configurations merged.

    CONFIG is a path to a configuration file.
    """
    config = _get_configuration(configs)
    if output == "json":
        print(config.as_json(indent=2))
    else:
        print(config.as_yaml(), end="")


def signal_handler(__: int, _) -> None:
    """Handle signals for stopping the runner."""
    if Runner.instance:
        Runner.instance.stop()


if __name__ == "__main__":
    cli()

"""This module contains helper functions that are shared by different modules."""

import re
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import TYPE_CHECKING

from colorama import Style

from sqsworker.util.defaults import DEFAULT_CONFIG_LOCATION

if TYPE_CHECKING:  # pragma: no cover
    from sqsworker.util.configuration import Configuration


def print_fcolor(fore: str, message: str):
    """Print string with colored font and reset the font color after printing.

    Parameters
    ----------
    fore: str
        Font color that should be used, e.g. :code:`colorama.Fore.GREEN`.
    message: str
        Message that should be printed.
    """
    print(fore + message + Style.RESET_ALL)


def camel_to_snake(camel: str) -> str:
    """ensures that the input string is snake_case"""

    _underscorer1 = re.compile(r"(.)([A-Z][a-z]+)")
    _underscorer2 = re.compile("([a-z0-9])([A-Z])")

    subbed = _underscorer1.sub(r"\1_\2", camel)
    return _underscorer2.sub(r"\1_\2", subbed).lower()


def get_package_version() -> str:
    """returns the installed version of sqsworker"""
    try:
        return version("sqsworker")
    except PackageNotFoundError:
        return "unknown"


def get_versions_string(config: "Configuration" = None) -> str:
    """
    Returns the python and sqsworker versions. If a configuration was found then its version
    and origin are added as well
    """
    padding = 25
    version_string = f"{'python version:'.ljust(padding)}{sys.version.split()[0]}"
    version_string += f"\n{'sqsworker version:'.ljust(padding)}{get_package_version()}"
    if config:
        config_version = (
            f"{config.version}, {', '.join(config.config_paths) if config.config_paths else 'None'}"
        )
    else:
        config_version = f"no configuration found in {DEFAULT_CONFIG_LOCATION}"
    version_string += f"\n{'configuration version:'.ljust(padding)}{config_version}"
    return version_string

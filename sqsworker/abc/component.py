""" abstract module for components"""

import functools
import inspect
import logging
import sys
import time
from abc import ABC
from functools import cached_property

import msgspec
from attrs import asdict, define, field, validators

from sqsworker.metrics.metrics import Metric
from sqsworker.util.defaults import EXITCODES
from sqsworker.util.helper import camel_to_snake

logger = logging.getLogger("Component")


class Component(ABC):
    """Abstract Component Class to define the Interface"""

    @define(kw_only=True, slots=False, frozen=True)
    class Config:
        """Common Configurations
        This class is used to define the configuration of the component.
        It is frozen because the configuration should not be changed after initialization.
        """

        type: str = field(validator=validators.instance_of(str))
        """Type of the component"""

    @define(kw_only=True)
    class Metrics:
        """Base Metric class to track and expose statistics about sqsworker"""

        _labels: dict

        def __attrs_post_init__(self):
            for attribute in asdict(self, recurse=False):
                attribute = getattr(self, attribute)
                if isinstance(attribute, Metric):
                    attribute.labels = self._labels
                    attribute.init_tracker()

    # __dict__ is added to support functools.cached_property
    __slots__ = ["name", "_config", "__dict__"]

    # instance attributes
    name: str
    _config: Config

    # class attributes
    _encoder: msgspec.json.Encoder = msgspec.json.Encoder()

    @property
    def metric_labels(self) -> dict:
        """Labels for the metrics"""
        return {"component": self._config.type, "name": self.name}

    def __init__(self, name: str, configuration: "Component.Config"):
        self._config = configuration
        self.name = name

    @cached_property
    def metrics(self):
        """create and return metrics object"""
        return self.Metrics(labels=self.metric_labels)

    def __repr__(self):
        return camel_to_snake(self.__class__.__name__)

    def describe(self) -> str:
        """Provide a brief name-like description of the component.

        The description is indicating its type _and_ the name provided when creating it.

        Examples
        --------

        >>> SqsTransport(name)

        """
        return f"{self.__class__.__name__} ({self.name})"

    def setup(self):
        """Set the component up."""
        self._populate_cached_properties()
        self._wait_for_health()

    def _wait_for_health(self) -> None:
        """Wait for the component to be healthy.
        if the component is not healthy after a period of time, the process will exit.
        """
        for i in range(3):
            if self.health():
                break
            logger.info("Wait for %s initially becoming healthy: %s/3", self.name, i + 1)
            time.sleep(1 + i)
        else:
            logger.error("Component '%s' did not become healthy", self.name)
            sys.exit(EXITCODES.WORKER_ERROR.value)

    def _populate_cached_properties(self):
        _ = [
            getattr(self, name)
            for name, value in inspect.getmembers(type(self))
            if isinstance(value, functools.cached_property)
        ]

    def shut_down(self):
        """Stop this component.

        Optional: Called when the runner stops

        """
        if hasattr(self, "__dict__"):
            self.__dict__.clear()

    def health(self) -> bool:
        """Check the health of the component.

        Returns
        -------
        bool
            True if the component is healthy, False otherwise.

        """
        logger.debug("Checking health of %s", self.name)
        return True

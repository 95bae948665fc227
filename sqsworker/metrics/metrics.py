"""
sqsworker keeps two kinds of metrics.

The :code:`RunMetrics` of a worker are plain counters owned by one worker instance. They are
returned as the final report of a run and are what callers embedding a worker inspect.

Additionally every counter is mirrored into a prometheus metric, e.g.
:code:`sqsworker_number_of_processed_messages_total` or
:code:`sqsworker_processing_time_per_batch_sum`, which can be scraped from the exporter.

Configuration
=============

Example
-------

..  code-block:: yaml
    :linenos:

    metrics:
      enabled: true
      port: 8000

enabled
-------

Use :code:`true` or :code:`false` to activate or deactivate the metrics exporter. Defaults to
:code:`false`.

port
----

Specifies the port which should be used for the prometheus exporter endpoint. Defaults to
:code:`8000`.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Union

from attrs import define, evolve, field, validators
from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram


@define(kw_only=True)
class RunMetrics:
    """Counters of a single worker, reset only by creating a new worker."""

    processed: int = 0
    """Number of messages that entered item handling."""
    resolved: int = 0
    """Number of messages whose item handler succeeded."""
    rejected: int = 0
    """Number of messages whose item handler failed."""
    iterations: int = 0
    """Number of completed fetches, empty ones included."""

    def snapshot(self) -> "RunMetrics":
        """returns an independent copy of the current counters"""
        return evolve(self)


@define(kw_only=True, slots=False)
class Metric(ABC):
    """Metric base class"""

    name: str = field(validator=validators.instance_of(str))
    description: str = field(validator=validators.instance_of(str))
    labels: dict = field(
        validator=[
            validators.instance_of(dict),
            validators.deep_mapping(
                key_validator=validators.instance_of(str),
                value_validator=validators.instance_of(str),
            ),
        ],
        factory=dict,
    )
    _registry: CollectorRegistry = field(default=REGISTRY)
    _prefix: str = field(default="sqsworker_")
    inject_label_values: bool = field(default=True)
    tracker: Union[Counter, Histogram] = field(init=False, default=None)

    @property
    def fullname(self):
        """returns the fullname"""
        return f"{self._prefix}{self.name}"

    def init_tracker(self) -> None:
        """initializes the tracker and registers it in the registry"""
        try:
            if isinstance(self, CounterMetric):
                self.tracker = Counter(
                    name=self.fullname,
                    documentation=self.description,
                    labelnames=self.labels.keys(),
                    registry=self._registry,
                )
            if isinstance(self, HistogramMetric):
                self.tracker = Histogram(
                    name=self.fullname,
                    documentation=self.description,
                    labelnames=self.labels.keys(),
                    buckets=(0.001, 0.01, 0.1, 1, 10, 60),
                    registry=self._registry,
                )
        except ValueError as error:
            # pylint: disable=protected-access
            self.tracker = self._registry._names_to_collectors.get(self.fullname)
            # pylint: enable=protected-access
            if not isinstance(self.tracker, METRIC_TO_COLLECTOR_TYPE[type(self)]):
                raise ValueError(
                    f"Metric {self.fullname} already exists with different type"
                ) from error
        if self.inject_label_values:
            self.tracker.labels(**self.labels)

    @abstractmethod
    def __add__(self, other):
        """Add"""

    @staticmethod
    def measure_time(metric_name: str = "processing_time_per_batch"):
        """Decorate a coroutine method to observe its execution time in the given histogram."""

        def decorator(func):
            async def inner(self, *args, **kwargs):  # nosemgrep
                metric = getattr(self.metrics, metric_name)
                begin = time.perf_counter()
                try:
                    return await func(self, *args, **kwargs)
                finally:
                    metric += time.perf_counter() - begin

            return inner

        return decorator


@define(kw_only=True)
class CounterMetric(Metric):
    """Wrapper for prometheus Counter metric"""

    def __add__(self, other: Any) -> "CounterMetric":
        return self.add_with_labels(other, self.labels)

    def add_with_labels(self, other: Any, labels: dict) -> "CounterMetric":
        """Add with labels"""
        labels = self.labels | labels
        self.tracker.labels(**labels).inc(other)
        return self


@define(kw_only=True)
class HistogramMetric(Metric):
    """Wrapper for prometheus Histogram metric"""

    def __add__(self, other):
        self.tracker.labels(**self.labels).observe(other)
        return self


METRIC_TO_COLLECTOR_TYPE = {
    CounterMetric: Counter,
    HistogramMetric: Histogram,
}

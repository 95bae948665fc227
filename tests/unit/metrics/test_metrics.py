# pylint: disable=missing-docstring
# pylint: disable=protected-access
# pylint: disable=attribute-defined-outside-init
import asyncio

import pytest
from attrs import define, field
from prometheus_client import CollectorRegistry, Counter

from sqsworker.abc.component import Component
from sqsworker.metrics.metrics import CounterMetric, HistogramMetric, Metric, RunMetrics


class TestRunMetrics:
    def test_starts_with_zero(self):
        assert RunMetrics() == RunMetrics(processed=0, resolved=0, rejected=0, iterations=0)

    def test_snapshot_is_independent_copy(self):
        run_metrics = RunMetrics(processed=1)
        snapshot = run_metrics.snapshot()
        run_metrics.processed += 1
        assert snapshot.processed == 1
        assert run_metrics.processed == 2


class TestCounterMetric:
    def setup_method(self):
        self.registry = CollectorRegistry()
        self.labels = {"worker": "test", "queue": "queue"}

    def counter(self, **kwargs):
        return CounterMetric(
            name="test_counter",
            description="a test counter",
            labels=self.labels,
            registry=self.registry,
            **kwargs,
        )

    def test_init_tracker_registers_prefixed_counter(self):
        metric = self.counter()
        metric.init_tracker()
        assert isinstance(metric.tracker, Counter)
        assert self.registry.get_sample_value("sqsworker_test_counter_total", self.labels) == 0

    def test_add_increments_counter(self):
        metric = self.counter()
        metric.init_tracker()
        metric += 1
        metric += 2
        assert self.registry.get_sample_value("sqsworker_test_counter_total", self.labels) == 3

    def test_add_with_labels_overrides_labels(self):
        metric = self.counter()
        metric.init_tracker()
        metric.add_with_labels(1, {"queue": "other"})
        labels = {"worker": "test", "queue": "other"}
        assert self.registry.get_sample_value("sqsworker_test_counter_total", labels) == 1

    def test_second_metric_with_same_name_reuses_collector(self):
        first, second = self.counter(), self.counter()
        first.init_tracker()
        second.init_tracker()
        assert first.tracker is second.tracker

    def test_same_name_with_other_type_raises(self):
        self.counter().init_tracker()
        histogram = HistogramMetric(
            name="test_counter",
            description="a test histogram",
            labels=self.labels,
            registry=self.registry,
        )
        with pytest.raises(ValueError, match="already exists with different type"):
            histogram.init_tracker()

    def test_labels_must_be_strings(self):
        with pytest.raises(TypeError):
            CounterMetric(name="test", description="test", labels={"worker": 1})


class TestMeasureTime:
    def setup_method(self):
        registry = CollectorRegistry()

        @define(kw_only=True)
        class Metrics(Component.Metrics):
            processing_time_per_batch: HistogramMetric = field(
                factory=lambda: HistogramMetric(
                    name="processing_time_per_batch",
                    description="test histogram",
                    registry=registry,
                )
            )

        class Timed:
            metrics = Metrics(labels={"worker": "test"})

            @Metric.measure_time()
            async def work(self, duration, fail=False):
                await asyncio.sleep(duration)
                if fail:
                    raise RuntimeError("failed")
                return duration

        self.registry = registry
        self.timed = Timed()

    def sample(self, suffix):
        return self.registry.get_sample_value(
            f"sqsworker_processing_time_per_batch_{suffix}", {"worker": "test"}
        )

    @pytest.mark.asyncio
    async def test_measure_time_observes_duration(self):
        assert await self.timed.work(0.01) == 0.01
        assert self.sample("count") == 1
        assert self.sample("sum") > 0

    @pytest.mark.asyncio
    async def test_measure_time_observes_failed_calls(self):
        with pytest.raises(RuntimeError):
            await self.timed.work(0, fail=True)
        assert self.sample("count") == 1

"""This module contains the sqsworker runner and is responsible for stopping the worker."""

import logging

from sqsworker.abc.transport import Transport
from sqsworker.factory import Factory
from sqsworker.metrics.exporter import PrometheusExporter
from sqsworker.metrics.metrics import RunMetrics
from sqsworker.util.configuration import Configuration
from sqsworker.worker import Worker

logger = logging.getLogger("Runner")


class Runner:
    """Provide the main entry point.

    The runner creates the transport and the worker from a configuration and runs the worker until
    :code:`stop` is called, e.g. by the signal handler in :code:`run_sqsworker.py`, or until the
    configured :code:`worker.max_iterations` is reached.

    Example
    -------
    >>> configuration = Configuration.from_sources(["path/to/worker.yml"])
    >>> runner = Runner(configuration)
    >>> run_metrics = runner.run()
    """

    instance: "Runner | None" = None

    _exit_received: bool = False

    def __init__(self, configuration: Configuration) -> None:
        self._configuration = configuration
        self._worker_config = configuration.worker_config
        self._exit_received = False
        self.transport: Transport | None = None
        self.worker: Worker | None = None
        self.exporter: PrometheusExporter | None = None
        Runner.instance = self

    def setup_logging(self) -> None:
        """configures logging from the configuration"""
        self._configuration.logger.setup_logging()
        logger.info("Log level set to '%s'", self._configuration.logger.level)

    def setup(self) -> None:
        """Create and set up the transport, the worker and the metrics exporter."""
        self.transport = Factory.create(self._configuration.transport)
        self.transport.setup()
        self.worker = Worker.from_configuration(self._worker_config, self.transport)
        if self._configuration.metrics.enabled:
            self.exporter = PrometheusExporter(self._configuration.metrics)
        logger.debug("Created %s with %s", self.worker.describe(), self.transport.describe())

    def run(self) -> RunMetrics:
        """Run the worker until it stops and return its counters."""
        if self.worker is None:
            self.setup()
        if self.exporter:
            self.exporter.run()
        try:
            run_metrics = self.worker.start(self._should_stop)
        finally:
            self.shut_down()
        logger.info(
            "Processed %d messages (%d resolved, %d rejected) in %d iterations",
            run_metrics.processed,
            run_metrics.resolved,
            run_metrics.rejected,
            run_metrics.iterations,
        )
        return run_metrics

    def stop(self) -> None:
        """Stop the worker after the current batch. Is called by the signal handler
        in run_sqsworker.py."""
        logger.info("Stop requested, finishing current batch")
        self._exit_received = True

    def shut_down(self) -> None:
        """shuts down the transport and the exporter"""
        if self.exporter:
            self.exporter.shut_down()
        if self.transport:
            self.transport.shut_down()

    def _should_stop(self) -> bool:
        if self._exit_received:
            return True
        max_iterations = self._worker_config.max_iterations
        return max_iterations is not None and self.worker.run_metrics.iterations >= max_iterations

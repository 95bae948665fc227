"""
The worker repeatedly receives a batch of messages and processes it until a stop condition is met.

Example
-------

..  code-block:: python

    from sqsworker.factory import Factory
    from sqsworker.worker import Worker

    transport = Factory.create({"sqs": {"type": "sqs_transport", "region_name": "eu-central-1"}})
    worker = (
        Worker("https://sqs.eu-central-1.amazonaws.com/123456789012/jobs", transport)
        .set_item_handler(handle_message)
        .set_list_handler("arn:aws:lambda:eu-central-1:123456789012:function:summarize")
    )
    run_metrics = worker.start(lambda: worker.run_metrics.iterations >= 100)

The stop condition is checked before every fetch and may be a coroutine function. The run ends
when it returns :code:`True` or when a batch could not be fetched. In both cases the counters
of the run are returned, the worker never raises out of :code:`work` or :code:`start`.
"""

import asyncio
import inspect
import logging
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from attrs import define, field, validators

from sqsworker.abc.component import Component
from sqsworker.abc.transport import Transport
from sqsworker.factory_error import InvalidConfigurationError, MissingQueueUrlError
from sqsworker.framework.batch_processor import BatchProcessor
from sqsworker.framework.handler import HandlerRegistry, HandlerRole, RemoteHandler
from sqsworker.framework.message import Message
from sqsworker.metrics.metrics import CounterMetric, RunMetrics
from sqsworker.util.configuration import WorkerConfig
from sqsworker.util.defaults import DEFAULT_MAX_BATCH_SIZE

logger = logging.getLogger("Worker")

StopCondition = Callable[[], Union[bool, Awaitable[bool]]]


class WorkerState(str, Enum):
    """States of the work loop."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class Worker:
    """Receives batches from one queue and passes them to the batch processor."""

    @define(kw_only=True, frozen=True)
    class Config:
        """Worker Configuration. It can not be changed after the worker was created."""

        queue_url: str = field(validator=[validators.instance_of(str), validators.min_len(1)])
        """URL of the queue to receive messages from."""
        max_batch_size: int = field(
            validator=[validators.instance_of(int), validators.ge(1)],
            default=DEFAULT_MAX_BATCH_SIZE,
        )
        """Upper bound of messages received per fetch. Defaults to :code:`10`."""
        wait_time: Optional[int] = field(
            validator=validators.optional([validators.instance_of(int), validators.ge(0)]),
            default=None,
        )
        """Seconds to long poll for messages. Defaults to the setting of the queue."""
        stop_on_empty_batch: bool = field(validator=validators.instance_of(bool), default=False)
        """Stop the run as soon as a fetch returns no messages. Defaults to :code:`False`."""

    @define(kw_only=True)
    class Metrics(Component.Metrics):
        """Tracks statistics about the work loop"""

        number_of_iterations: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of completed fetches",
                name="number_of_iterations",
            )
        )
        """Number of completed fetches"""

    def __init__(
        self,
        queue_url: str,
        transport: Transport,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
        wait_time: Optional[int] = None,
        stop_on_empty_batch: bool = False,
        name: str = "sqsworker",
    ) -> None:
        if not queue_url:
            raise MissingQueueUrlError()
        try:
            self._config = Worker.Config(
                queue_url=queue_url,
                max_batch_size=max_batch_size,
                wait_time=wait_time,
                stop_on_empty_batch=stop_on_empty_batch,
            )
        except (TypeError, ValueError) as error:
            raise InvalidConfigurationError(f"Invalid worker configuration: {error}") from error
        self.name = name
        self.state = WorkerState.IDLE
        self.run_metrics = RunMetrics()
        self._transport = transport
        self._handlers = HandlerRegistry(transport)
        self.metrics = self.Metrics(labels=self.metric_labels)
        self._processor = BatchProcessor(
            queue_url=queue_url,
            transport=transport,
            handlers=self._handlers,
            run_metrics=self.run_metrics,
            metric_labels=self.metric_labels,
        )

    @classmethod
    def from_configuration(
        cls, configuration: WorkerConfig, transport: Transport, name: str = "sqsworker"
    ) -> "Worker":
        """Create a worker from the :code:`worker` section of a configuration file.
        Configured handlers are names of remote functions."""
        worker = cls(
            configuration.queue_url,
            transport,
            max_batch_size=configuration.max_batch_size,
            wait_time=configuration.wait_time,
            stop_on_empty_batch=configuration.stop_on_empty_batch,
            name=name,
        )
        if configuration.item_handler:
            worker.set_item_handler(RemoteHandler(configuration.item_handler))
        if configuration.list_handler:
            worker.set_list_handler(RemoteHandler(configuration.list_handler))
        return worker

    @property
    def config(self) -> "Worker.Config":
        """the immutable worker configuration"""
        return self._config

    @property
    def metric_labels(self) -> dict:
        """Labels for the metrics"""
        return {"worker": self.name, "queue": self._config.queue_url}

    def describe(self) -> str:
        """name and queue of the worker"""
        return f"{self.__class__.__name__} ({self.name}) - Queue: {self._config.queue_url}"

    def set_item_handler(self, handler: Any) -> "Worker":
        """Set the handler called with every received message.

        Parameters
        ----------
        handler : Any
            A callable, coroutine function, a function name to invoke remotely or a
            :code:`LocalHandler`/:code:`RemoteHandler`.

        Returns
        -------
        Worker
            this worker to chain further calls
        """
        self._handlers.set(HandlerRole.ITEM, handler)
        return self

    def set_list_handler(self, handler: Any) -> "Worker":
        """Set the handler called with all messages of a batch. See :code:`set_item_handler`."""
        self._handlers.set(HandlerRole.LIST, handler)
        return self

    async def process(self, batch: list[Message]):
        """process a single batch, see :code:`BatchProcessor.process`"""
        return await self._processor.process(batch)

    async def work(self, stop_condition: StopCondition) -> RunMetrics:
        """Fetch and process batches until the stop condition is met.

        Parameters
        ----------
        stop_condition : StopCondition
            Checked before every fetch, may return an awaitable.

        Returns
        -------
        RunMetrics
            A snapshot of the counters at the end of the run.
        """
        self.state = WorkerState.RUNNING
        logger.info("Starting %s", self.describe())
        try:
            while not await self._should_stop(stop_condition):
                batch = await self._fetch()
                if not batch and self._config.stop_on_empty_batch:
                    logger.info("Received empty batch, stopping")
                    break
                await self._processor.process(batch)
        except Exception as error:  # pylint: disable=broad-except
            logger.error("Stopping %s after error: %s", self.describe(), error)
        finally:
            self.state = WorkerState.STOPPED
        logger.info("Stopped %s: %s", self.describe(), self.run_metrics)
        return self.run_metrics.snapshot()

    def start(self, stop_condition: StopCondition) -> RunMetrics:
        """Run :code:`work` in a new event loop and block until the run ended.

        If the calling thread already runs an event loop, the new loop is started in a separate
        thread and the calling loop is blocked until the run ended. Coroutines should await
        :code:`work` instead.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.work(stop_condition))
        logger.warning("start was called from a running event loop, use work instead")
        with ThreadPoolExecutor(max_workers=1) as executor:
            return executor.submit(asyncio.run, self.work(stop_condition)).result()

    @staticmethod
    async def _should_stop(stop_condition: StopCondition) -> bool:
        stop = stop_condition()
        if inspect.isawaitable(stop):
            stop = await stop
        return bool(stop)

    async def _fetch(self) -> list[Message]:
        batch = await self._transport.fetch(
            self._config.queue_url, self._config.max_batch_size, self._config.wait_time
        )
        self.run_metrics.iterations += 1
        self.metrics.number_of_iterations += 1
        logger.debug("Fetched %d messages", len(batch))
        return batch

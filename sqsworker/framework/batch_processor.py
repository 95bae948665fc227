"""
The batch processor turns one received batch into handled and deleted messages.

Processing a batch has three steps:

1. The item handler is called concurrently for every message. A failing item handler only
   rejects its own message, the other messages of the batch are not affected.
2. After all item handlers have finished, the list handler is called once with all messages of
   the batch in their original order, including the rejected ones. A failing list handler is
   logged and does not prevent the next step.
3. All messages with a successful item handler are deleted concurrently from the queue.
   Rejected messages stay in the queue and are received again after their visibility timeout.
"""

import asyncio
import logging
from functools import cached_property

from attrs import define, field

from sqsworker.abc.component import Component
from sqsworker.abc.transport import Transport
from sqsworker.framework.handler import HandlerRegistry, HandlerRole
from sqsworker.framework.message import Message
from sqsworker.framework.outcome import ItemOutcome
from sqsworker.metrics.metrics import CounterMetric, HistogramMetric, Metric, RunMetrics

logger = logging.getLogger("BatchProcessor")


class BatchProcessor:
    """Processes the batches of one worker."""

    @define(kw_only=True)
    class Metrics(Component.Metrics):
        """Tracks statistics about the processed batches"""

        number_of_processed_messages: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of messages passed to the item handler",
                name="number_of_processed_messages",
            )
        )
        """Number of messages passed to the item handler"""

        number_of_resolved_messages: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of messages the item handler succeeded for",
                name="number_of_resolved_messages",
            )
        )
        """Number of messages the item handler succeeded for"""

        number_of_rejected_messages: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of messages the item handler failed for",
                name="number_of_rejected_messages",
            )
        )
        """Number of messages the item handler failed for"""

        number_of_failed_deletions: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of resolved messages that could not be deleted",
                name="number_of_failed_deletions",
            )
        )
        """Number of resolved messages that could not be deleted"""

        number_of_list_handler_errors: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of batches the list handler failed for",
                name="number_of_list_handler_errors",
            )
        )
        """Number of batches the list handler failed for"""

        processing_time_per_batch: HistogramMetric = field(
            factory=lambda: HistogramMetric(
                description="Time in seconds that it took to process a batch",
                name="processing_time_per_batch",
            )
        )
        """Time in seconds that it took to process a batch"""

    def __init__(
        self,
        queue_url: str,
        transport: Transport,
        handlers: HandlerRegistry,
        run_metrics: RunMetrics,
        metric_labels: dict,
    ) -> None:
        self._queue_url = queue_url
        self._transport = transport
        self._handlers = handlers
        self._run_metrics = run_metrics
        self._metric_labels = metric_labels

    @cached_property
    def metrics(self) -> "BatchProcessor.Metrics":
        """create and return metrics object"""
        return self.Metrics(labels=self._metric_labels)

    async def process(self, batch: list[Message]) -> list[ItemOutcome]:
        """Handle a batch and delete its successfully handled messages.

        Parameters
        ----------
        batch : list[Message]
            The received messages.

        Returns
        -------
        list[ItemOutcome]
            One outcome per message in the order of the batch. Empty if the batch was empty
            or an unexpected error occurred.
        """
        if not batch:
            return []
        try:
            return await self._process(batch)
        except Exception as error:  # pylint: disable=broad-except
            logger.error("Processing of batch with %d messages failed: %s", len(batch), error)
            return []

    @Metric.measure_time()
    async def _process(self, batch: list[Message]) -> list[ItemOutcome]:
        outcomes = await asyncio.gather(*(self._handle_item(item) for item in batch))
        await self._handle_list([outcome.item for outcome in outcomes])
        await self._delete_resolved(outcomes)
        return outcomes

    async def _handle_item(self, item: Message) -> ItemOutcome:
        self._run_metrics.processed += 1
        self.metrics.number_of_processed_messages += 1
        try:
            result = await self._handlers.invoke(HandlerRole.ITEM, item)
        except Exception as error:  # pylint: disable=broad-except
            self._run_metrics.rejected += 1
            self.metrics.number_of_rejected_messages += 1
            logger.debug("Item handler failed for message '%s': %s", item.message_id, error)
            return ItemOutcome.rejected(item, error)
        self._run_metrics.resolved += 1
        self.metrics.number_of_resolved_messages += 1
        return ItemOutcome.resolved(item, result)

    async def _handle_list(self, items: list[Message]) -> None:
        try:
            await self._handlers.invoke(HandlerRole.LIST, items)
        except Exception as error:  # pylint: disable=broad-except
            self.metrics.number_of_list_handler_errors += 1
            logger.warning("List handler failed for batch of %d messages: %s", len(items), error)

    async def _delete_resolved(self, outcomes: list[ItemOutcome]) -> None:
        resolved = [outcome for outcome in outcomes if outcome.success]
        results = await asyncio.gather(
            *(
                self._transport.delete(self._queue_url, outcome.item.deletion_token)
                for outcome in resolved
            ),
            return_exceptions=True,
        )
        for outcome, result in zip(resolved, results):
            if isinstance(result, Exception):
                outcome.delete_error = result
                self.metrics.number_of_failed_deletions += 1
                logger.warning(
                    "Could not delete message '%s' from queue: %s", outcome.item.message_id, result
                )

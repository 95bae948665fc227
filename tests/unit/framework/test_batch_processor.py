# pylint: disable=missing-docstring
# pylint: disable=protected-access
# pylint: disable=attribute-defined-outside-init
import asyncio
import logging
import uuid
from unittest import mock

import pytest
from prometheus_client import REGISTRY

from sqsworker.framework.batch_processor import BatchProcessor
from sqsworker.framework.handler import HandlerRegistry, HandlerRole
from sqsworker.metrics.metrics import RunMetrics


def fail_for(*failing_ids):
    async def handler(message):
        if message.message_id in failing_ids:
            raise ValueError(f"failed {message.message_id}")
        return message.message_id

    return handler


class TestBatchProcessor:
    @pytest.fixture(autouse=True)
    def setup_processor(self, transport, queue_url):
        self.transport = transport
        self.queue_url = queue_url
        self.labels = {"worker": uuid.uuid4().hex, "queue": queue_url}
        self.handlers = HandlerRegistry(transport)
        self.run_metrics = RunMetrics()
        self.processor = BatchProcessor(
            queue_url=queue_url,
            transport=transport,
            handlers=self.handlers,
            run_metrics=self.run_metrics,
            metric_labels=self.labels,
        )

    def sample_value(self, name):
        return REGISTRY.get_sample_value(f"sqsworker_{name}", self.labels)

    @pytest.mark.asyncio
    async def test_empty_batch_calls_no_handler(self):
        item_handler, list_handler = mock.AsyncMock(), mock.AsyncMock()
        self.handlers.set(HandlerRole.ITEM, item_handler)
        self.handlers.set(HandlerRole.LIST, list_handler)
        assert await self.processor.process([]) == []
        item_handler.assert_not_called()
        list_handler.assert_not_called()
        assert self.run_metrics == RunMetrics()

    @pytest.mark.asyncio
    async def test_failing_item_only_rejects_its_own_message(self, make_batch):
        batch = make_batch(3)
        self.handlers.set(HandlerRole.ITEM, fail_for("message-2"))
        outcomes = await self.processor.process(batch)
        assert [outcome.success for outcome in outcomes] == [True, False, True]
        assert [outcome.item for outcome in outcomes] == batch
        assert outcomes[0].result == "message-1"
        assert str(outcomes[1].error) == "failed message-2"
        assert self.transport.deleted == ["handle-1", "handle-3"]
        assert self.run_metrics == RunMetrics(processed=3, resolved=2, rejected=1)

    @pytest.mark.asyncio
    async def test_counts_match_batch_size_and_failures(self, make_batch):
        batch = make_batch(10)
        self.handlers.set(HandlerRole.ITEM, fail_for("message-1", "message-5", "message-10"))
        outcomes = await self.processor.process(batch)
        assert len(outcomes) == 10
        assert self.run_metrics.processed == 10
        assert self.run_metrics.resolved == 7
        assert self.run_metrics.rejected == 3
        assert len(self.transport.deleted) == 7

    @pytest.mark.asyncio
    async def test_outcomes_keep_batch_order(self, make_batch):
        batch = make_batch(5)

        async def slow_for_first_items(message):
            number = int(message.message_id.split("-")[1])
            await asyncio.sleep(0.01 * (5 - number))
            return number

        self.handlers.set(HandlerRole.ITEM, slow_for_first_items)
        outcomes = await self.processor.process(batch)
        assert [outcome.result for outcome in outcomes] == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_item_handlers_run_concurrently(self, make_batch):
        second_started = asyncio.Event()

        async def wait_for_second(message):
            if message.message_id == "message-1":
                await asyncio.wait_for(second_started.wait(), timeout=1)
            else:
                second_started.set()

        self.handlers.set(HandlerRole.ITEM, wait_for_second)
        outcomes = await self.processor.process(make_batch(2))
        assert all(outcome.success for outcome in outcomes)

    @pytest.mark.asyncio
    async def test_list_handler_receives_all_messages_after_item_handlers(self, make_batch):
        batch = make_batch(3)
        calls = []

        async def item_handler(message):
            calls.append(message.message_id)
            if message.message_id == "message-3":
                raise ValueError("failed")

        async def list_handler(messages):
            calls.append(list(messages))

        self.handlers.set(HandlerRole.ITEM, item_handler)
        self.handlers.set(HandlerRole.LIST, list_handler)
        await self.processor.process(batch)
        assert calls == ["message-1", "message-2", "message-3", batch]

    @pytest.mark.asyncio
    async def test_list_handler_is_called_once_if_all_items_fail(self, make_batch):
        list_handler = mock.AsyncMock()
        self.handlers.set(HandlerRole.ITEM, fail_for("message-1", "message-2"))
        self.handlers.set(HandlerRole.LIST, list_handler)
        await self.processor.process(make_batch(2))
        list_handler.assert_awaited_once()
        assert not self.transport.deleted

    @pytest.mark.asyncio
    async def test_failing_list_handler_does_not_prevent_deletion(self, make_batch, caplog):
        async def failing_list_handler(_):
            raise RuntimeError("list handler failed")

        self.handlers.set(HandlerRole.LIST, failing_list_handler)
        with caplog.at_level(logging.WARNING):
            outcomes = await self.processor.process(make_batch(2))
        assert all(outcome.success for outcome in outcomes)
        assert self.transport.deleted == ["handle-1", "handle-2"]
        assert "list handler failed" in caplog.text
        assert self.sample_value("number_of_list_handler_errors_total") == 1

    @pytest.mark.asyncio
    async def test_list_handler_does_not_change_outcomes(self, make_batch):
        batch = make_batch(3)

        async def changing_list_handler(messages):
            messages.clear()
            return "list result"

        self.handlers.set(HandlerRole.ITEM, fail_for("message-2"))
        self.handlers.set(HandlerRole.LIST, changing_list_handler)
        outcomes = await self.processor.process(batch)
        assert [outcome.item for outcome in outcomes] == batch
        assert [outcome.success for outcome in outcomes] == [True, False, True]
        assert [outcome.result for outcome in outcomes] == ["message-1", None, "message-3"]
        assert str(outcomes[1].error) == "failed message-2"
        assert self.transport.deleted == ["handle-1", "handle-3"]
        assert self.run_metrics == RunMetrics(processed=3, resolved=2, rejected=1)

    @pytest.mark.asyncio
    async def test_remote_handlers_are_submitted_through_transport(self, make_batch):
        batch = make_batch(2)
        self.handlers.set(HandlerRole.ITEM, "handle-item")
        self.handlers.set(HandlerRole.LIST, "handle-list")
        outcomes = await self.processor.process(batch)
        assert [outcome.result for outcome in outcomes] == [{"StatusCode": 202}] * 2
        assert self.transport.invocations == [
            ("handle-item", batch[0]),
            ("handle-item", batch[1]),
            ("handle-list", batch),
        ]

    @pytest.mark.asyncio
    async def test_failed_deletion_is_kept_in_outcome(self, make_batch, caplog):
        deletion_error = RuntimeError("queue unavailable")
        delete = self.transport.delete

        async def delete_all_but_first(queue_url, deletion_token):
            if deletion_token == "handle-1":
                raise deletion_error
            return await delete(queue_url, deletion_token)

        with mock.patch.object(self.transport, "delete", new=delete_all_but_first):
            outcomes = await self.processor.process(make_batch(3))
        assert [outcome.success for outcome in outcomes] == [True, True, True]
        assert outcomes[0].delete_error is deletion_error
        assert outcomes[1].delete_error is None
        assert self.transport.deleted == ["handle-2", "handle-3"]
        assert self.run_metrics == RunMetrics(processed=3, resolved=3, rejected=0)
        assert "queue unavailable" in caplog.text
        assert self.sample_value("number_of_failed_deletions_total") == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_returns_no_outcomes(self, make_batch, caplog):
        with mock.patch.object(
            self.processor, "_delete_resolved", side_effect=RuntimeError("unexpected")
        ):
            outcomes = await self.processor.process(make_batch(2))
        assert outcomes == []
        assert "unexpected" in caplog.text

    @pytest.mark.asyncio
    async def test_process_updates_prometheus_metrics(self, make_batch):
        self.handlers.set(HandlerRole.ITEM, fail_for("message-2"))
        await self.processor.process(make_batch(3))
        assert self.sample_value("number_of_processed_messages_total") == 3
        assert self.sample_value("number_of_resolved_messages_total") == 2
        assert self.sample_value("number_of_rejected_messages_total") == 1
        assert self.sample_value("processing_time_per_batch_count") == 1

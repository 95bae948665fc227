"""
DummyTransport
==============

A dummy transport that returns the batches it was initialized with and records deletions and
remote invocations in memory.

If a batch is a class derived from Exception, that exception will be raised instead of
returning a batch. The exception will be removed and subsequent fetches may return batches or
raise other exceptions in the given order. Once all batches were fetched, every further fetch
returns an empty batch.

Example
^^^^^^^
..  code-block:: yaml
    :linenos:

    transport:
      mydummytransport:
        type: dummy_transport
        batches:
          - [{"ReceiptHandle": "handle-1", "Body": "one"}]
          - []
          - [{"ReceiptHandle": "handle-2", "Body": "two"}]
"""

import asyncio
import copy
from functools import cached_property
from typing import Any, List, Optional, Union

from attrs import define, field, validators

from sqsworker.abc.transport import Transport
from sqsworker.framework.message import Message


class DummyTransport(Transport):
    """DummyTransport Connector"""

    @define(kw_only=True, slots=False, frozen=True)
    class Config(Transport.Config):
        """DummyTransport specific configuration"""

        batches: List[Union[list, type]] = field(
            validator=validators.instance_of(list), factory=list
        )
        """A list of batches, each a list of message dicts, that should be returned."""
        repeat_batches: bool = field(validator=validators.instance_of(bool), default=False)
        """If set to :code:`true`, then the given batches will be repeated after the last
        one is reached. Default: :code:`False`"""

    deleted: list[str]
    invocations: list[tuple[str, Any]]

    def __init__(self, name: str, configuration: "DummyTransport.Config"):
        super().__init__(name, configuration)
        self.deleted = []
        self.invocations = []

    @cached_property
    def _batches(self) -> list:
        return copy.deepcopy(self._config.batches)

    async def fetch(
        self, queue_url: str, max_batch_size: int, wait_time: Optional[int] = None
    ) -> list[Message]:
        """Return the next configured batch, limited to :code:`max_batch_size` messages."""
        await asyncio.sleep(0)
        if not self._batches:
            if not self._config.repeat_batches:
                return []
            del self.__dict__["_batches"]
            if not self._batches:
                return []
        batch = self._batches.pop(0)
        if isinstance(batch, type) and issubclass(batch, Exception):
            raise batch
        messages = [Message.from_dict(raw) for raw in batch[:max_batch_size]]
        self.metrics.number_of_received_messages += len(messages)
        return messages

    async def delete(self, queue_url: str, deletion_token: str) -> Any:
        await asyncio.sleep(0)
        self.deleted.append(deletion_token)
        self.metrics.number_of_deleted_messages += 1
        return {"QueueUrl": queue_url, "ReceiptHandle": deletion_token}

    async def invoke_remote(self, function_name: str, payload: Any) -> Any:
        await asyncio.sleep(0)
        self.invocations.append((function_name, payload))
        self.metrics.number_of_invocations += 1
        return {"StatusCode": 202}

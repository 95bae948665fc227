"""This module provides the abstract base class for all transports.
A transport receives and deletes messages of a queue and submits payloads to remote functions.
New transport types are created by implementing it.
"""

from abc import abstractmethod
from typing import Any, Optional

from attrs import define, field

from sqsworker.abc.component import Component
from sqsworker.abc.exceptions import SqsWorkerException
from sqsworker.framework.message import Message
from sqsworker.metrics.metrics import CounterMetric


class TransportError(SqsWorkerException):
    """Base class for Transport related exceptions."""

    def __init__(self, transport: "Transport", message: str) -> None:
        transport.metrics.number_of_errors += 1
        super().__init__(f"{self.__class__.__name__} in {transport.describe()}: {message}")


class FatalTransportError(TransportError):
    """The transport lost its connection and should not be used any further."""


class TransportWarning(SqsWorkerException):
    """May be catched but must be displayed to the user/logged."""

    def __init__(self, transport: "Transport", message: str) -> None:
        transport.metrics.number_of_warnings += 1
        super().__init__(f"{self.__class__.__name__} in {transport.describe()}: {message}")


class Transport(Component):
    """Connect to a queue and to remotely invocable functions."""

    @define(kw_only=True)
    class Metrics(Component.Metrics):
        """Tracks statistics about this transport"""

        number_of_received_messages: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of messages received from the queue",
                name="number_of_received_messages",
            )
        )
        """Number of messages received from the queue"""

        number_of_deleted_messages: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of messages deleted from the queue",
                name="number_of_deleted_messages",
            )
        )
        """Number of messages deleted from the queue"""

        number_of_invocations: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of submitted remote function invocations",
                name="number_of_invocations",
            )
        )
        """Number of submitted remote function invocations"""

        number_of_warnings: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of warnings that occurred in the transport",
                name="number_of_warnings",
            )
        )
        """Number of warnings that occurred in the transport"""

        number_of_errors: CounterMetric = field(
            factory=lambda: CounterMetric(
                description="Number of errors that occurred in the transport",
                name="number_of_errors",
            )
        )
        """Number of errors that occurred in the transport"""

    @abstractmethod
    async def fetch(
        self, queue_url: str, max_batch_size: int, wait_time: Optional[int] = None
    ) -> list[Message]:
        """Receive up to :code:`max_batch_size` messages from the queue.

        Parameters
        ----------
        queue_url : str
            The queue to receive from.
        max_batch_size : int
            Upper bound of returned messages.
        wait_time : Optional[int]
            Seconds to long poll for messages. :code:`None` uses the default of the queue.

        Returns
        -------
        list[Message]
            The received messages. An empty list if no messages are available.

        Raises
        ------
        TransportError
            If the queue could not be reached.
        """

    @abstractmethod
    async def delete(self, queue_url: str, deletion_token: str) -> Any:
        """Remove a handled message from the queue by its deletion token."""

    @abstractmethod
    async def invoke_remote(self, function_name: str, payload: Any) -> Any:
        """Submit the payload to the named remote function without waiting for its completion.

        Returns
        -------
        Any
            The acknowledgment of the submission.

        Raises
        ------
        TransportError
            If the submission failed.
        """

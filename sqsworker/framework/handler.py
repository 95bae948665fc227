"""
Handlers are the user supplied code a worker runs on received messages.

A worker has exactly one handler per :code:`HandlerRole`. The item handler is called once for
every received message, the list handler once per batch with all messages of the batch.
A handler is either

- a :code:`LocalHandler` wrapping a callable. Coroutine functions are awaited, any other
  callable is run in a thread so that blocking handlers of one batch still run concurrently.
- a :code:`RemoteHandler` naming a function that is invoked fire-and-forget through the
  transport, e.g. an AWS Lambda function name or ARN.
"""

import asyncio
import inspect
from enum import Enum
from typing import Any, Callable, Union

from attrs import define, field, validators

from sqsworker.abc.transport import Transport


class HandlerRole(str, Enum):
    """The roles a handler can be registered for."""

    ITEM = "item"
    """Called with every single message."""
    LIST = "list"
    """Called with all messages of a batch."""


@define(frozen=True)
class LocalHandler:
    """A handler running in the worker process."""

    callback: Callable[[Any], Any]


@define(frozen=True)
class RemoteHandler:
    """A handler submitted by name through the transport."""

    function_name: str = field(validator=validators.instance_of(str))


Handler = Union[LocalHandler, RemoteHandler]


async def _noop(_: Any) -> None:
    return None


def as_handler(value: Any) -> Handler:
    """Wrap a handler value into its variant. Strings name remote functions."""
    if isinstance(value, (LocalHandler, RemoteHandler)):
        return value
    if isinstance(value, str):
        return RemoteHandler(value)
    return LocalHandler(value)


class HandlerRegistry:
    """Holds the item and the list handler and invokes them."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._handlers: dict[HandlerRole, Handler] = {
            HandlerRole.ITEM: LocalHandler(_noop),
            HandlerRole.LIST: LocalHandler(_noop),
        }

    def __getitem__(self, role: HandlerRole) -> Handler:
        return self._handlers[role]

    def set(self, role: HandlerRole, value: Any) -> None:
        """replaces the handler of the given role"""
        self._handlers[role] = as_handler(value)

    async def invoke(self, role: HandlerRole, payload: Any) -> Any:
        """Invoke the handler of the given role with the payload.

        Parameters
        ----------
        role : HandlerRole
            the handler to invoke
        payload : Any
            a message for the item handler, a list of messages for the list handler

        Returns
        -------
        Any
            The result of a local handler or the submission acknowledgment of a remote one.
            Failures of the handler are raised unchanged.
        """
        match self._handlers[role]:
            case RemoteHandler(function_name=function_name):
                return await self._transport.invoke_remote(function_name, payload)
            case LocalHandler(callback=callback) if inspect.iscoroutinefunction(callback):
                return await callback(payload)
            case LocalHandler(callback=callback):
                result = await asyncio.to_thread(callback, payload)
                if inspect.isawaitable(result):
                    result = await result
                return result

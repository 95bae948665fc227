"""The result of handling a single message."""

from typing import Any, Optional

from attrs import define, field

from sqsworker.framework.message import Message


@define(kw_only=True)
class ItemOutcome:
    """Outcome of the item handler for one message.

    Exactly one of :code:`result` and :code:`error` is meaningful, selected by :code:`success`.
    Only successful outcomes are deleted from the queue. If that deletion fails, the error is
    kept in :code:`delete_error` and the message will be received again.
    """

    item: Message
    success: bool
    result: Any = None
    error: Optional[BaseException] = None
    delete_error: Optional[BaseException] = field(default=None, eq=False)

    @classmethod
    def resolved(cls, item: Message, result: Any) -> "ItemOutcome":
        """outcome of a message whose handler succeeded"""
        return cls(item=item, success=True, result=result)

    @classmethod
    def rejected(cls, item: Message, error: BaseException) -> "ItemOutcome":
        """outcome of a message whose handler failed"""
        return cls(item=item, success=False, error=error)

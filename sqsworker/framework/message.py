"""Representation of a message received from a queue."""

from typing import Any

import msgspec
from attrs import define, field, validators


@define(kw_only=True, frozen=True)
class Message:
    """A received queue message. It is identified for deletion by its receipt handle."""

    receipt_handle: str = field(validator=validators.instance_of(str))
    message_id: str = field(default="", validator=validators.instance_of(str))
    body: str = field(default="", validator=validators.instance_of(str))
    attributes: dict = field(factory=dict, validator=validators.instance_of(dict))
    message_attributes: dict = field(factory=dict, validator=validators.instance_of(dict))
    raw: dict = field(factory=dict, eq=False, repr=False)

    @property
    def deletion_token(self) -> str:
        """the token to remove this message from its queue"""
        return self.receipt_handle

    @classmethod
    def from_dict(cls, raw: dict) -> "Message":
        """Create a message from a message dict as returned by :code:`receive_message`."""
        return cls(
            receipt_handle=raw["ReceiptHandle"],
            message_id=raw.get("MessageId", ""),
            body=raw.get("Body", ""),
            attributes=raw.get("Attributes", {}),
            message_attributes=raw.get("MessageAttributes", {}),
            raw=raw,
        )

    def as_dict(self) -> dict:
        """returns the message in the shape of a :code:`receive_message` message dict"""
        if self.raw:
            return self.raw
        return {
            "MessageId": self.message_id,
            "ReceiptHandle": self.receipt_handle,
            "Body": self.body,
            "Attributes": self.attributes,
            "MessageAttributes": self.message_attributes,
        }

    def json(self) -> Any:
        """Decode the body as json.

        Raises
        ------
        msgspec.DecodeError
            If the body is not valid json.
        """
        return msgspec.json.decode(self.body)

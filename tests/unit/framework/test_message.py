# pylint: disable=missing-docstring
import msgspec
import pytest

from sqsworker.framework.message import Message


class TestMessage:
    def setup_method(self):
        self.raw = {
            "MessageId": "message-1",
            "ReceiptHandle": "handle-1",
            "MD5OfBody": "0f0b0c9c",
            "Body": '{"job": 1, "tags": ["a", "b"]}',
            "Attributes": {"ApproximateReceiveCount": "1"},
        }

    def test_from_dict_reads_receive_message_fields(self):
        message = Message.from_dict(self.raw)
        assert message.message_id == "message-1"
        assert message.receipt_handle == "handle-1"
        assert message.attributes == {"ApproximateReceiveCount": "1"}
        assert message.message_attributes == {}

    def test_deletion_token_is_receipt_handle(self):
        assert Message.from_dict(self.raw).deletion_token == "handle-1"

    def test_from_dict_without_receipt_handle_raises(self):
        del self.raw["ReceiptHandle"]
        with pytest.raises(KeyError):
            Message.from_dict(self.raw)

    def test_as_dict_returns_received_dict_unchanged(self):
        assert Message.from_dict(self.raw).as_dict() == self.raw

    def test_as_dict_builds_dict_for_created_messages(self):
        message = Message(receipt_handle="handle-2", body="two")
        assert message.as_dict() == {
            "MessageId": "",
            "ReceiptHandle": "handle-2",
            "Body": "two",
            "Attributes": {},
            "MessageAttributes": {},
        }

    def test_json_decodes_body(self):
        assert Message.from_dict(self.raw).json() == {"job": 1, "tags": ["a", "b"]}

    def test_json_raises_on_invalid_body(self):
        message = Message(receipt_handle="handle-3", body="not json")
        with pytest.raises(msgspec.DecodeError):
            message.json()

    def test_messages_are_immutable(self):
        message = Message.from_dict(self.raw)
        with pytest.raises(AttributeError):
            message.body = "changed"

    def test_equality_ignores_raw_dict(self):
        assert Message.from_dict(self.raw) == Message(
            receipt_handle="handle-1",
            message_id="message-1",
            body='{"job": 1, "tags": ["a", "b"]}',
            attributes={"ApproximateReceiveCount": "1"},
        )

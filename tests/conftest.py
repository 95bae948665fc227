# pylint: disable=missing-docstring
from pathlib import Path
from typing import Callable

import pytest

from sqsworker.connector.dummy.transport import DummyTransport
from sqsworker.factory import Factory
from sqsworker.framework.message import Message

TESTDATA = Path(__file__).parent / "testdata"
path_to_config = str(TESTDATA / "config" / "config.yml")

QUEUE_URL = "https://sqs.eu-central-1.amazonaws.com/123456789012/test-queue"


def raw_message(number: int) -> dict:
    return {
        "MessageId": f"message-{number}",
        "ReceiptHandle": f"handle-{number}",
        "Body": f'{{"job": {number}}}',
    }


@pytest.fixture(name="queue_url")
def fixture_queue_url() -> str:
    return QUEUE_URL


@pytest.fixture(name="config_path")
def fixture_config_path() -> str:
    return path_to_config


@pytest.fixture(name="make_batch")
def fixture_make_batch() -> Callable[..., list[Message]]:
    def make_batch(size: int, start: int = 1) -> list[Message]:
        return [Message.from_dict(raw_message(number)) for number in range(start, start + size)]

    return make_batch


@pytest.fixture(name="make_transport")
def fixture_make_transport() -> Callable[..., DummyTransport]:
    def make_transport(batches: list | None = None, **kwargs) -> DummyTransport:
        config = {"type": "dummy_transport", "batches": batches or []} | kwargs
        return Factory.create({"test transport": config})

    return make_transport


@pytest.fixture(name="transport")
def fixture_transport(make_transport) -> DummyTransport:
    return make_transport()

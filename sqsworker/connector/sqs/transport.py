"""
SqsTransport
============

This section contains the connection settings for the AWS SQS transport.
Messages are received from and deleted in the queue given by :code:`worker.queue_url`.
Handlers configured as function names are invoked asynchronously as AWS Lambda functions
(invocation type :code:`Event`), i.e. only the submission of the payload is awaited.

Example
^^^^^^^
..  code-block:: yaml
    :linenos:

    transport:
      my_sqs:
        type: sqs_transport
        region_name: eu-central-1
        endpoint_url:
        lambda_endpoint_url:
        aws_access_key_id:
        aws_secret_access_key:
        connect_timeout: 5
        max_retries: 3
        visibility_timeout:
"""

import asyncio
import functools
import logging
from functools import cached_property
from typing import Any, Optional

import boto3
from attrs import define, field, validators
from botocore.config import Config as BotoConfig
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    EndpointConnectionError,
)

from sqsworker.abc.transport import (
    FatalTransportError,
    Transport,
    TransportError,
    TransportWarning,
)
from sqsworker.framework.message import Message
from sqsworker.util.defaults import SQS_MAX_BATCH_SIZE

logger = logging.getLogger("SqsTransport")


def _handle_aws_error(func):
    @functools.wraps(func)
    async def _inner(self: "SqsTransport", *args, **kwargs) -> Any:
        try:
            return await func(self, *args, **kwargs)
        except EndpointConnectionError as error:
            raise FatalTransportError(self, "Could not connect to the endpoint URL") from error
        except ConnectionClosedError as error:
            raise FatalTransportError(
                self,
                "Connection was closed before we received a valid response from endpoint URL",
            ) from error
        except (BotoCoreError, ClientError) as error:
            raise TransportError(self, str(error)) from error

    return _inner


def _as_serializable(payload: Any) -> Any:
    if isinstance(payload, Message):
        return payload.as_dict()
    if isinstance(payload, (list, tuple)):
        return [_as_serializable(item) for item in payload]
    return payload


class SqsTransport(Transport):
    """A transport for AWS SQS queues and AWS Lambda functions."""

    @define(kw_only=True, slots=False, frozen=True)
    class Config(Transport.Config):
        """
        SqsTransport Config

        Credentials that are not configured are resolved by the default boto3 credential chain.
        """

        region_name: Optional[str] = field(
            validator=validators.optional(validators.instance_of(str)), default=None
        )
        """Region name of the queue and the functions (optional)."""
        endpoint_url: Optional[str] = field(
            validator=validators.optional(validators.instance_of(str)), default=None
        )
        """Address of the sqs endpoint, e.g. for local test setups (optional)."""
        lambda_endpoint_url: Optional[str] = field(
            validator=validators.optional(validators.instance_of(str)), default=None
        )
        """Address of the lambda endpoint, e.g. for local test setups (optional)."""
        aws_access_key_id: Optional[str] = field(
            validator=validators.optional(validators.instance_of(str)), default=None
        )
        """The access key ID for authentication (optional)."""
        aws_secret_access_key: Optional[str] = field(
            validator=validators.optional(validators.instance_of(str)), default=None
        )
        """The secret used for authentication (optional)."""
        connect_timeout: float = field(
            validator=validators.instance_of(float), default=5.0, converter=float
        )
        """Timeout for the AWS connection (default is 5 seconds)"""
        max_retries: int = field(validator=validators.instance_of(int), default=3)
        """Maximum retry attempts of the AWS clients (default is 3)"""
        visibility_timeout: Optional[int] = field(
            validator=validators.optional(validators.instance_of(int)), default=None
        )
        """Seconds a received message stays hidden from other consumers. Uses the queue
        setting if not set (optional)."""

    def describe(self) -> str:
        """Get name of the transport with its region.

        Returns
        -------
        sqs_transport : str
            Description of the transport and its region.

        """
        base_description = super().describe()
        return f"{base_description} - SQS Transport: {self._config.region_name}"

    @cached_property
    def _session(self) -> boto3.Session:
        return boto3.Session(
            aws_access_key_id=self._config.aws_access_key_id,
            aws_secret_access_key=self._config.aws_secret_access_key,
            region_name=self._config.region_name,
        )

    @cached_property
    def _boto_config(self) -> BotoConfig:
        return BotoConfig(
            connect_timeout=self._config.connect_timeout,
            retries={"max_attempts": self._config.max_retries},
        )

    @cached_property
    def _sqs_client(self):
        return self._session.client(
            "sqs", endpoint_url=self._config.endpoint_url, config=self._boto_config
        )

    @cached_property
    def _lambda_client(self):
        return self._session.client(
            "lambda", endpoint_url=self._config.lambda_endpoint_url, config=self._boto_config
        )

    def health(self) -> bool:
        """The transport is healthy if the clients could be created."""
        try:
            _ = self._sqs_client, self._lambda_client
        except BotoCoreError as error:
            logger.error("Health check failed for %s: %s", self.describe(), error)
            return False
        return super().health()

    @_handle_aws_error
    async def fetch(
        self, queue_url: str, max_batch_size: int, wait_time: Optional[int] = None
    ) -> list[Message]:
        request = {
            "QueueUrl": queue_url,
            "MaxNumberOfMessages": max(1, min(max_batch_size, SQS_MAX_BATCH_SIZE)),
            "AttributeNames": ["All"],
            "MessageAttributeNames": ["All"],
        }
        if wait_time is not None:
            request["WaitTimeSeconds"] = wait_time
        if self._config.visibility_timeout is not None:
            request["VisibilityTimeout"] = self._config.visibility_timeout
        response = await asyncio.to_thread(self._sqs_client.receive_message, **request)
        messages = []
        for raw in response.get("Messages", []):
            if "ReceiptHandle" not in raw:
                warning = TransportWarning(self, f"Skipped message without receipt handle: {raw}")
                logger.warning(str(warning))
                continue
            messages.append(Message.from_dict(raw))
        self.metrics.number_of_received_messages += len(messages)
        logger.debug("Received %d messages from %s", len(messages), queue_url)
        return messages

    @_handle_aws_error
    async def delete(self, queue_url: str, deletion_token: str) -> Any:
        response = await asyncio.to_thread(
            self._sqs_client.delete_message, QueueUrl=queue_url, ReceiptHandle=deletion_token
        )
        self.metrics.number_of_deleted_messages += 1
        return response

    @_handle_aws_error
    async def invoke_remote(self, function_name: str, payload: Any) -> Any:
        response = await asyncio.to_thread(
            self._lambda_client.invoke,
            FunctionName=function_name,
            InvocationType="Event",
            LogType="None",
            Payload=self._encoder.encode(_as_serializable(payload)),
        )
        self.metrics.number_of_invocations += 1
        logger.debug("Submitted payload to %s", function_name)
        return response

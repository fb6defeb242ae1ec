"""
Pubsub.

Publish to SNS topics, subscribe SQS queues to them and consume queued
messages, acknowledging each one from the outcome of its handler.
"""

from pubsub.client import PubsubClient
from pubsub.conf import PubsubConfig
from pubsub.consumers import MessageConsumer, PubsubConsumer, S3EventConsumer, SNSConsumer
from pubsub.envelopes import S3Event, SNSEvent
from pubsub.exceptions import (
    AckExecutionError,
    ConsumeError,
    DecodeError,
    NonRetryableError,
    PubsubConfigurationError,
    PubsubError,
)
from pubsub.outcomes import AckAction, HandlerResult, resolve

__all__ = [
    "AckAction",
    "AckExecutionError",
    "ConsumeError",
    "DecodeError",
    "HandlerResult",
    "MessageConsumer",
    "NonRetryableError",
    "PubsubClient",
    "PubsubConfig",
    "PubsubConfigurationError",
    "PubsubConsumer",
    "PubsubError",
    "S3Event",
    "S3EventConsumer",
    "SNSConsumer",
    "SNSEvent",
    "resolve",
]

"""
Base Pubsub Consumer classes.

Provides abstract base classes for implementing queue consumers, similar
to the EDAConsumer pattern used for RabbitMQ. The three flavors only differ
in the envelope their messages are decoded from.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable

from sentry_sdk import capture_exception

from pubsub.envelopes import DECODERS, S3Event, SNSEvent
from pubsub.exceptions import NonRetryableError
from pubsub.outcomes import HandlerResult
from pubsub.signals import message_finished, message_started

logger = logging.getLogger(__name__)


class PubsubConsumer(ABC):
    """
    Abstract base class for queue consumers.

    Subclasses must implement the `consume` method. Raising
    NonRetryableError from it discards the message, any other exception
    makes it visible again after the requeue visibility timeout.

    Example:
        ```python
        class MyConsumer(SNSConsumer):
            def consume(self, event: SNSEvent) -> None:
                data = json.loads(event.message)
                # Process the message...
        ```
    """

    envelope = "plain"

    @property
    def decoder(self) -> Callable[[Any], Any]:
        return DECODERS[self.envelope]

    def handle(self, payload: Any) -> HandlerResult:
        """
        Process a decoded message.

        Wraps the consume method with signal emission and error handling.

        Returns:
            The HandlerResult the message is acknowledged from.
        """
        message_started.send(sender=self.__class__)
        try:
            self.consume(payload)
            return HandlerResult.ok()
        except NonRetryableError as e:
            self.on_error(payload, e)
            return HandlerResult.discard(e)
        except Exception as e:
            self.on_error(payload, e)
            return HandlerResult.retry(e)
        finally:
            message_finished.send(sender=self.__class__)

    @abstractmethod
    def consume(self, payload: Any) -> None:
        """
        Process the message payload.

        Raises:
            NonRetryableError: The message can never be processed.
            Exception: Any other exception will cause the message to be retried.
        """
        pass

    def on_error(self, payload: Any, error: Exception) -> None:
        """
        Handle errors during message processing.

        Default implementation logs the error and reports to Sentry.
        Subclasses can override for custom error handling.
        """
        logger.error(
            f"[{self.__class__.__name__}] Error processing message: {error}",
            exc_info=True,
            extra={"payload": payload},
        )
        capture_exception(error)


class MessageConsumer(PubsubConsumer):
    """Consumer of raw message bodies."""

    envelope = "plain"

    @abstractmethod
    def consume(self, payload: str) -> None:
        pass


class SNSConsumer(PubsubConsumer):
    """Consumer of messages fanned out by an SNS topic."""

    envelope = "sns"

    @abstractmethod
    def consume(self, payload: SNSEvent) -> None:
        pass


class S3EventConsumer(PubsubConsumer):
    """Consumer of S3 event notifications."""

    envelope = "s3"

    @abstractmethod
    def consume(self, payload: S3Event) -> None:
        pass

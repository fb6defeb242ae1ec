"""
SQS Consumption Backend.

Receives a batch of messages from a queue and processes every message in
parallel: decode the envelope, run the handler, resolve its result and
acknowledge the message (delete it or make it visible again).
"""

import logging
import signal
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Callable

from botocore.exceptions import ClientError
from sentry_sdk import capture_exception

from pubsub.acknowledgements import SQSAcknowledger
from pubsub.conf import PubsubConfig
from pubsub.envelopes import decode_plain
from pubsub.exceptions import AckExecutionError, ConsumeError, DecodeError
from pubsub.outcomes import AckAction, HandlerResult, resolve
from pubsub.signals import message_discarded

logger = logging.getLogger(__name__)

Handler = Callable[[Any], HandlerResult]
Decoder = Callable[[Any], Any]


@dataclass
class Message:
    """A message received from a queue."""

    message_id: str
    receipt_handle: str
    body: str
    attributes: dict[str, str] = field(default_factory=dict)
    message_attributes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "Message":
        message_attributes = {}
        for name, value in (data.get("MessageAttributes") or {}).items():
            if "StringValue" in value:
                message_attributes[name] = value["StringValue"]
            else:
                message_attributes[name] = value.get("BinaryValue")

        return cls(
            message_id=data.get("MessageId", "unknown"),
            receipt_handle=data.get("ReceiptHandle", ""),
            body=data.get("Body", ""),
            attributes=data.get("Attributes") or {},
            message_attributes=message_attributes,
        )


class SQSConsumptionBackend:
    """
    SQS consumption backend with long polling and parallel processing.

    Each message of a batch is processed by its own task. A task always
    reaches the acknowledgment step, whatever happens to the other messages
    of the batch, and the batch is only over once every task is done.

    Example:
        ```python
        def handler(body: str) -> HandlerResult:
            ...
            return HandlerResult.ok()

        backend = SQSConsumptionBackend(boto3.client("sqs"), PubsubConfig.from_settings())
        backend.consume(queue_url, handler)
        ```
    """

    ERROR_BACKOFF_SECONDS = 5  # Backoff on errors

    def __init__(self, client, config: PubsubConfig):
        self.client = client
        self.config = config
        self._running = False
        self._cancel_event = threading.Event()

    def consume(
        self,
        queue_url: str,
        handler: Handler,
        decoder: Decoder = decode_plain,
        cancel_event: threading.Event | None = None,
        executor: ThreadPoolExecutor | None = None,
    ) -> int:
        """
        Receive one batch of messages and process all of them.

        Args:
            queue_url: The URL of the queue to receive from.
            handler: Called with the decoded body of each message.
            decoder: Turns a raw body into what the handler expects.
            cancel_event: Once set, messages that have not been dispatched yet
                are left to their visibility timeout.
            executor: Thread pool to run the tasks on. A pool sized for the
                batch is created when omitted.

        Returns:
            The number of messages processed.

        Raises:
            ClientError: The receive call failed, nothing was processed.
            ConsumeError: One or more messages failed. Raised once every
                message of the batch has been acknowledged.
        """
        response = self.client.receive_message(
            QueueUrl=queue_url,
            MaxNumberOfMessages=self.config.max_number_of_messages,
            WaitTimeSeconds=self.config.wait_time_seconds,
            AttributeNames=["All"],
            MessageAttributeNames=["All"],
        )

        messages = [Message.from_response(data) for data in response.get("Messages", [])]

        if not messages:
            logger.debug("No messages received")
            return 0

        logger.info(f"Received {len(messages)} message(s), processing in parallel...")

        acknowledger = SQSAcknowledger(self.client, queue_url, self.config.requeue_visibility_timeout)

        if executor is None:
            with ThreadPoolExecutor(
                max_workers=min(self.config.thread_count, len(messages)),
                thread_name_prefix="pubsub-worker",
            ) as batch_executor:
                futures = self._dispatch(messages, handler, decoder, acknowledger, cancel_event, batch_executor)
                wait(futures)
        else:
            futures = self._dispatch(messages, handler, decoder, acknowledger, cancel_event, executor)
            wait(futures)

        errors = []
        for future in futures:
            try:
                error = future.result()
            except Exception as e:
                logger.error(f"Unexpected error in message task: {e}", exc_info=True)
                error = e
            if error is not None:
                errors.append(error)

        logger.info(f"Batch complete: {len(futures) - len(errors)} succeeded, {len(errors)} failed")

        if errors:
            raise ConsumeError(errors) from errors[0]

        return len(futures)

    def _dispatch(
        self,
        messages: list[Message],
        handler: Handler,
        decoder: Decoder,
        acknowledger: SQSAcknowledger,
        cancel_event: threading.Event | None,
        executor: ThreadPoolExecutor,
    ) -> list[Future]:
        futures = []
        for index, message in enumerate(messages):
            if cancel_event is not None and cancel_event.is_set():
                abandoned = [m.message_id for m in messages[index:]]
                logger.warning(
                    f"Cancelled, leaving {len(abandoned)} message(s) to their visibility timeout: {abandoned}"
                )
                break
            futures.append(executor.submit(self._process_message, message, handler, decoder, acknowledger))
        return futures

    def _process_message(
        self,
        message: Message,
        handler: Handler,
        decoder: Decoder,
        acknowledger: SQSAcknowledger,
    ) -> BaseException | None:
        """
        Process a single message (runs in thread pool).

        Returns:
            The error of the message, or None when it was processed.
        """
        logger.debug(f"Processing message {message.message_id}")

        result = self._run_handler(message, handler, decoder)
        action = resolve(result)

        try:
            acknowledger.execute(message, action)
        except AckExecutionError as e:
            return e

        if action is AckAction.EXTEND_DELAY:
            logger.warning(f"Message {message.message_id} failed and will be retried: {result.error}")
        elif result.error is not None:
            logger.warning(f"Discarded message {message.message_id} after non-retryable error: {result.error}")
            message_discarded.send_robust(sender=self.__class__, message=message, error=result.error)

        return result.error

    def _run_handler(self, message: Message, handler: Handler, decoder: Decoder) -> HandlerResult:
        try:
            payload = decoder(message.body)
        except DecodeError as e:
            return HandlerResult.retry(e)
        except Exception as e:
            logger.error(f"Failed to decode message {message.message_id}: {e}, body: {message.body!r}", exc_info=True)
            capture_exception(e)
            return HandlerResult.retry(e)

        try:
            result = handler(payload)
        except Exception as e:
            logger.error(f"Error processing message {message.message_id}: {e}", exc_info=True)
            capture_exception(e)
            return HandlerResult.retry(e)

        if not isinstance(result, HandlerResult):
            error = TypeError(f"handler must return a HandlerResult, got {type(result).__name__}")
            logger.error(f"Error processing message {message.message_id}: {error}")
            return HandlerResult.retry(error)

        return result

    def _signal_handler(self, signum, frame):
        """
        Handle shutdown signals gracefully.

        Sets flags to stop polling and wait for in-flight messages.
        """
        signal_name = signal.Signals(signum).name
        logger.info(f"Received {signal_name}, initiating graceful shutdown...")
        self.stop()

    def start_consuming(self, queue_url: str, handler: Handler, decoder: Decoder = decode_plain) -> None:
        """
        Consume batches from the queue until stopped.

        A batch is fully acknowledged before the next one is received.

        Args:
            queue_url: The URL of the queue to consume from.
            handler: Called with the decoded body of each message.
            decoder: Turns a raw body into what the handler expects.
        """
        if threading.current_thread() is threading.main_thread():
            signal.signal(signal.SIGINT, self._signal_handler)
            signal.signal(signal.SIGTERM, self._signal_handler)

        self._running = True
        self._cancel_event.clear()
        logger.info(f"Starting SQS consumer for queue: {queue_url}")
        logger.info(
            f"Config: threads={self.config.thread_count}, wait_time={self.config.wait_time_seconds}s, "
            f"max_messages={self.config.max_number_of_messages}, "
            f"requeue_visibility_timeout={self.config.requeue_visibility_timeout}s"
        )

        with ThreadPoolExecutor(
            max_workers=self.config.thread_count,
            thread_name_prefix="pubsub-worker",
        ) as executor:
            while self._running:
                try:
                    self.consume(
                        queue_url,
                        handler,
                        decoder=decoder,
                        cancel_event=self._cancel_event,
                        executor=executor,
                    )
                except ClientError as e:
                    logger.error(f"SQS client error: {e}", exc_info=True)
                    self._backoff()
                except ConsumeError as e:
                    logger.error(f"Batch finished with errors: {e}")
                    self._backoff()
                except Exception as e:
                    logger.error(f"Unexpected error in consumer loop: {e}", exc_info=True)
                    self._backoff()

            logger.info("Waiting for in-flight messages to complete...")

        logger.info("SQS consumer stopped")

    def _backoff(self) -> None:
        """Sleep before retrying after an error."""
        if self._running:
            logger.info(f"Backing off for {self.ERROR_BACKOFF_SECONDS}s...")
            self._cancel_event.wait(self.ERROR_BACKOFF_SECONDS)

    def stop(self) -> None:
        """Stop the consumer gracefully."""
        logger.info("Stopping SQS consumer...")
        self._running = False
        self._cancel_event.set()

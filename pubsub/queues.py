import logging
import threading
from typing import Any, Callable

from botocore.exceptions import ClientError

from pubsub.envelopes import DECODERS, S3Event, SNSEvent, decode_plain, decode_s3_event, decode_sns
from pubsub.exceptions import PubsubConfigurationError
from pubsub.outcomes import HandlerResult

logger = logging.getLogger(__name__)

QUEUE_NOT_FOUND_CODES = ("AWS.SimpleQueueService.NonExistentQueue", "QueueDoesNotExist")


def to_message_attributes(attributes: dict[str, str] | None) -> dict[str, dict[str, str]]:
    """Convert name -> value pairs to the SQS/SNS message attribute shape."""
    return {name: {"DataType": "String", "StringValue": str(value)} for name, value in (attributes or {}).items()}


class Queue:
    """Handle on a specific SQS queue."""

    def __init__(self, client, queue_arn: str, queue_name: str, queue_url: str):
        self.client = client
        self.queue_arn = queue_arn
        self.queue_name = queue_name
        self.queue_url = queue_url

    def __repr__(self):
        return f"<Queue {self.queue_arn}>"

    def exists(self) -> bool:
        try:
            self.client.sqs.get_queue_attributes(QueueUrl=self.queue_url, AttributeNames=["QueueArn"])
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in QUEUE_NOT_FOUND_CODES:
                return False
            raise
        return True

    def get_attributes(self, names: list[str] | None = None) -> dict[str, str]:
        response = self.client.sqs.get_queue_attributes(QueueUrl=self.queue_url, AttributeNames=names or ["All"])
        return response.get("Attributes", {})

    def set_attributes(self, attributes: dict[str, str]) -> None:
        self.client.sqs.set_queue_attributes(QueueUrl=self.queue_url, Attributes=attributes)

    def send(self, body: str, attributes: dict[str, str] | None = None) -> str:
        """
        Deliver a message to the queue.

        Returns:
            The id SQS assigned to the message.
        """
        response = self.client.sqs.send_message(
            QueueUrl=self.queue_url,
            MessageBody=body,
            MessageAttributes=to_message_attributes(attributes),
        )
        message_id = response["MessageId"]
        logger.info(f"Message {message_id} sent to {self.queue_name}")
        return message_id

    def consume(
        self,
        handler: Callable[[str], HandlerResult],
        cancel_event: threading.Event | None = None,
        executor=None,
    ) -> int:
        """Receive one batch and hand each raw body to the handler."""
        return self._consume(handler, decode_plain, cancel_event, executor)

    def consume_via_sns(
        self,
        handler: Callable[[SNSEvent], HandlerResult],
        cancel_event: threading.Event | None = None,
        executor=None,
    ) -> int:
        """Receive one batch of SNS notifications and hand each decoded event to the handler."""
        return self._consume(handler, decode_sns, cancel_event, executor)

    def consume_via_s3(
        self,
        handler: Callable[[S3Event], HandlerResult],
        cancel_event: threading.Event | None = None,
        executor=None,
    ) -> int:
        """Receive one batch of S3 event notifications and hand each decoded event to the handler."""
        return self._consume(handler, decode_s3_event, cancel_event, executor)

    def _consume(self, handler, decoder, cancel_event, executor) -> int:
        return self.client.backend.consume(
            self.queue_url,
            handler,
            decoder=decoder,
            cancel_event=cancel_event,
            executor=executor,
        )

    def start_consuming(self, handler: Callable[[Any], HandlerResult], envelope: str = "plain") -> None:
        """Consume batches until the backend is stopped."""
        if envelope not in DECODERS:
            raise PubsubConfigurationError(f"Unknown envelope: {envelope}")
        self.client.backend.start_consuming(self.queue_url, handler, decoder=DECODERS[envelope])

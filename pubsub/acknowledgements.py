import logging

from botocore.exceptions import BotoCoreError, ClientError

from pubsub.exceptions import AckExecutionError
from pubsub.outcomes import AckAction

logger = logging.getLogger(__name__)


class SQSAcknowledger:
    """
    Performs the acknowledgment of a received message.

    Exactly one SQS call is made per message. Failures are not retried here:
    an unacknowledged message becomes visible again once its visibility
    timeout expires.
    """

    def __init__(self, client, queue_url: str, requeue_visibility_timeout: int):
        self.client = client
        self.queue_url = queue_url
        self.requeue_visibility_timeout = requeue_visibility_timeout

    def execute(self, message, action: AckAction) -> None:
        try:
            if action is AckAction.DELETE:
                self.client.delete_message(
                    QueueUrl=self.queue_url,
                    ReceiptHandle=message.receipt_handle,
                )
                logger.debug(f"Message {message.message_id} deleted successfully")
            else:
                self.client.change_message_visibility(
                    QueueUrl=self.queue_url,
                    ReceiptHandle=message.receipt_handle,
                    VisibilityTimeout=self.requeue_visibility_timeout,
                )
                logger.debug(
                    f"Message {message.message_id} requeued, visible again in {self.requeue_visibility_timeout}s"
                )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to {action.value} message {message.message_id}: {e}")
            raise AckExecutionError(message.message_id, action, e) from e

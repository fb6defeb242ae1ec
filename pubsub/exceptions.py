"""
Pubsub Exceptions.
"""


class PubsubError(Exception):
    """Base exception for pubsub errors."""

    pass


class PubsubConfigurationError(PubsubError):
    """Raised when pubsub configuration is invalid or missing."""

    pass


class InvalidArnError(PubsubError):
    """Raised when a queue, topic or subscription ARN cannot be parsed."""

    pass


class SubscriptionNotFound(PubsubError):
    """Raised when no SQS subscription matches the given ARN."""

    pass


class NonRetryableError(PubsubError):
    """
    Raised by consumers when a message can never be processed.

    The message is deleted instead of being made visible again.
    """

    pass


class DecodeError(PubsubError):
    """Raised when a message body cannot be decoded into its envelope."""

    retryable = True

    def __init__(self, message: str, body: str | None = None):
        super().__init__(message)
        self.body = body


class AckExecutionError(PubsubError):
    """Raised when deleting a message or changing its visibility fails."""

    def __init__(self, message_id: str, action, error: Exception):
        super().__init__(f"{action.value} failed for message {message_id}: {error}")
        self.message_id = message_id
        self.action = action
        self.error = error


class ConsumeError(PubsubError):
    """
    Raised after a batch has been fully processed when one or more messages failed.

    Attributes:
        errors: Every per-message error, in batch order.
        first: The first error of the batch.
    """

    def __init__(self, errors: list[BaseException]):
        self.errors = errors
        self.first = errors[0]
        super().__init__(f"{len(errors)} message(s) failed, first error: {self.first}")

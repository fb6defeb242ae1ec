"""
Handler outcomes and the acknowledgment they resolve to.
"""

import enum
from dataclasses import dataclass


class AckAction(enum.Enum):
    DELETE = "delete"
    EXTEND_DELAY = "extend_delay"


@dataclass(frozen=True)
class HandlerResult:
    """
    What a handler reports for one message.

    Attributes:
        retryable: Whether a failed message should be delivered again.
        error: The failure, or None when the message was processed.
    """

    retryable: bool = False
    error: BaseException | None = None

    @classmethod
    def ok(cls) -> "HandlerResult":
        return cls()

    @classmethod
    def retry(cls, error: BaseException) -> "HandlerResult":
        return cls(retryable=True, error=error)

    @classmethod
    def discard(cls, error: BaseException) -> "HandlerResult":
        return cls(retryable=False, error=error)

    @property
    def succeeded(self) -> bool:
        return self.error is None


def resolve(result: HandlerResult) -> AckAction:
    """
    Map a handler result to the acknowledgment for its message.

    A successful message is deleted whatever `retryable` says. A retryable
    failure is made visible again after the requeue visibility timeout, and
    the queue's redrive policy moves it to its dead-letter queue once it has
    been received too many times. A non-retryable failure is deleted.
    """
    if result.error is None:
        return AckAction.DELETE
    if result.retryable:
        return AckAction.EXTEND_DELAY
    return AckAction.DELETE

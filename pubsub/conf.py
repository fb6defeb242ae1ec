"""
Pubsub configuration.

Values are read from Django settings once and passed explicitly to the
client and the consumption backend.

Configuration (settings.py):
    PUBSUB_MAX_NUMBER_OF_MESSAGES = 10  # Max messages per receive call (1-10)
    PUBSUB_WAIT_TIME_SECONDS = 20  # Long polling wait time (0-20)
    PUBSUB_REQUEUE_VISIBILITY_TIMEOUT = 30  # Visibility timeout for retryable failures
    PUBSUB_MAX_RECEIVE_COUNT = 5  # maxReceiveCount of redrive policies we create
    PUBSUB_CONSUMER_THREADS = 10  # Number of parallel processing threads
    PUBSUB_AWS_REGION = "us-east-1"
    PUBSUB_AWS_ENDPOINT_URL = None  # e.g. a localstack endpoint
"""

from dataclasses import dataclass

from django.conf import settings

from pubsub.exceptions import PubsubConfigurationError

# SQS service limits
MAX_MESSAGES_LIMIT = 10
MAX_WAIT_TIME_SECONDS = 20
MAX_VISIBILITY_TIMEOUT = 12 * 60 * 60


@dataclass(frozen=True)
class PubsubConfig:
    max_number_of_messages: int = 10
    wait_time_seconds: int = 20
    requeue_visibility_timeout: int = 30
    max_receive_count: int = 5
    thread_count: int = 10
    region_name: str = "us-east-1"
    endpoint_url: str | None = None

    def __post_init__(self):
        if not 1 <= self.max_number_of_messages <= MAX_MESSAGES_LIMIT:
            raise PubsubConfigurationError(f"max_number_of_messages must be between 1 and {MAX_MESSAGES_LIMIT}")
        if not 0 <= self.wait_time_seconds <= MAX_WAIT_TIME_SECONDS:
            raise PubsubConfigurationError(f"wait_time_seconds must be between 0 and {MAX_WAIT_TIME_SECONDS}")
        if not 0 <= self.requeue_visibility_timeout <= MAX_VISIBILITY_TIMEOUT:
            raise PubsubConfigurationError(
                f"requeue_visibility_timeout must be between 0 and {MAX_VISIBILITY_TIMEOUT}"
            )
        if self.max_receive_count < 1:
            raise PubsubConfigurationError("max_receive_count must be at least 1")
        if self.thread_count < 1:
            raise PubsubConfigurationError("thread_count must be at least 1")

    @classmethod
    def from_settings(cls, **overrides) -> "PubsubConfig":
        """Build a config from Django settings, with keyword overrides taking precedence."""
        values = dict(
            max_number_of_messages=getattr(settings, "PUBSUB_MAX_NUMBER_OF_MESSAGES", cls.max_number_of_messages),
            wait_time_seconds=getattr(settings, "PUBSUB_WAIT_TIME_SECONDS", cls.wait_time_seconds),
            requeue_visibility_timeout=getattr(
                settings, "PUBSUB_REQUEUE_VISIBILITY_TIMEOUT", cls.requeue_visibility_timeout
            ),
            max_receive_count=getattr(settings, "PUBSUB_MAX_RECEIVE_COUNT", cls.max_receive_count),
            thread_count=getattr(settings, "PUBSUB_CONSUMER_THREADS", cls.thread_count),
            region_name=getattr(settings, "PUBSUB_AWS_REGION", cls.region_name),
            endpoint_url=getattr(settings, "PUBSUB_AWS_ENDPOINT_URL", cls.endpoint_url),
        )
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

"""
Pubsub client.

Wraps the boto3 SQS and SNS clients and hands out Queue, Topic and
Subscription handles, looked up by ARN or created on the fly.
"""

import json
import logging

import boto3
from botocore.utils import ArnParser, InvalidArnException

from pubsub.backends import SQSConsumptionBackend
from pubsub.conf import PubsubConfig
from pubsub.exceptions import InvalidArnError, SubscriptionNotFound
from pubsub.queues import Queue
from pubsub.topics import Subscription, Topic

logger = logging.getLogger(__name__)

SUBSCRIPTION_PROTOCOL_SQS = "sqs"
QUEUE_ATTRIBUTE_REDRIVE_POLICY = "RedrivePolicy"


def parse_arn(arn: str) -> dict[str, str]:
    try:
        return ArnParser().parse_arn(arn)
    except InvalidArnException as e:
        raise InvalidArnError(f"invalid ARN {arn!r}: {e}") from e


class PubsubClient:
    """
    Entry point for SQS and SNS operations.

    The boto3 clients and the config are shared read-only by every handle
    and every consumer thread.

    Example:
        ```python
        client = PubsubClient.from_settings()
        queue = client.new_queue("arn:aws:sqs:us-east-1:123456789012:orders")
        queue.consume_via_sns(handler)
        ```
    """

    def __init__(self, sqs, sns, config: PubsubConfig | None = None):
        self.sqs = sqs
        self.sns = sns
        self.config = config or PubsubConfig()
        self.backend = SQSConsumptionBackend(sqs, self.config)

    @classmethod
    def from_settings(cls, **overrides) -> "PubsubClient":
        config = PubsubConfig.from_settings(**overrides)
        params = {"region_name": config.region_name}
        if config.endpoint_url:
            params["endpoint_url"] = config.endpoint_url
        return cls(boto3.client("sqs", **params), boto3.client("sns", **params), config)

    def new_queue(self, queue_arn: str) -> Queue:
        """Look up an existing queue by ARN."""
        arn = parse_arn(queue_arn)
        response = self.sqs.get_queue_url(QueueName=arn["resource"], QueueOwnerAWSAccountId=arn["account"])
        return Queue(self, queue_arn=queue_arn, queue_name=arn["resource"], queue_url=response["QueueUrl"])

    def new_topic(self, topic_arn: str) -> Topic:
        """Look up an existing topic by ARN."""
        arn = parse_arn(topic_arn)
        self.sns.get_topic_attributes(TopicArn=topic_arn)
        return Topic(self, topic_arn=topic_arn, topic_name=arn["resource"])

    def new_subscription(self, subscription_arn: str) -> Subscription:
        """Look up an existing SQS subscription by ARN, along with its topic and queue."""
        parse_arn(subscription_arn)

        response = self.sns.get_subscription_attributes(SubscriptionArn=subscription_arn)
        topic = self.new_topic(response["Attributes"]["TopicArn"])

        paginator = self.sns.get_paginator("list_subscriptions_by_topic")
        for page in paginator.paginate(TopicArn=topic.topic_arn):
            for subscription in page.get("Subscriptions", []):
                if (
                    subscription.get("Protocol") == SUBSCRIPTION_PROTOCOL_SQS
                    and subscription.get("SubscriptionArn") == subscription_arn
                ):
                    queue = self.new_queue(subscription["Endpoint"])
                    return Subscription(self, subscription_arn=subscription_arn, topic=topic, queue=queue)

        raise SubscriptionNotFound(f"subscription not found: {subscription_arn}")

    def create_queue(self, queue_name: str, attributes: dict[str, str] | None = None) -> Queue:
        response = self.sqs.create_queue(QueueName=queue_name, Attributes=attributes or {})
        queue_url = response["QueueUrl"]

        response = self.sqs.get_queue_attributes(QueueUrl=queue_url, AttributeNames=["QueueArn"])
        queue_arn = response["Attributes"]["QueueArn"]

        logger.info(f"Queue {queue_name} created: {queue_arn}")
        return Queue(self, queue_arn=queue_arn, queue_name=queue_name, queue_url=queue_url)

    def create_queue_with_dlq(
        self,
        queue_name: str,
        dlq: Queue,
        max_receive_count: int | None = None,
        attributes: dict[str, str] | None = None,
    ) -> Queue:
        """
        Create a queue whose messages move to `dlq` once received more than `max_receive_count` times.

        Defaults to the configured max receive count.
        """
        redrive_policy = {
            "maxReceiveCount": max_receive_count or self.config.max_receive_count,
            "deadLetterTargetArn": dlq.queue_arn,
        }
        attributes = dict(attributes or {})
        attributes[QUEUE_ATTRIBUTE_REDRIVE_POLICY] = json.dumps(redrive_policy)
        return self.create_queue(queue_name, attributes)

    def create_topic(self, topic_name: str, attributes: dict[str, str] | None = None) -> Topic:
        response = self.sns.create_topic(Name=topic_name, Attributes=attributes or {})
        logger.info(f"Topic {topic_name} created: {response['TopicArn']}")
        return Topic(self, topic_arn=response["TopicArn"], topic_name=topic_name)

    def create_subscription(
        self, topic: Topic, queue: Queue, attributes: dict[str, str] | None = None
    ) -> Subscription:
        """Subscribe `queue` to `topic`."""
        response = self.sns.subscribe(
            TopicArn=topic.topic_arn,
            Protocol=SUBSCRIPTION_PROTOCOL_SQS,
            Endpoint=queue.queue_arn,
            Attributes=attributes or {},
            ReturnSubscriptionArn=True,
        )
        logger.info(f"Queue {queue.queue_name} subscribed to {topic.topic_name}: {response['SubscriptionArn']}")
        return Subscription(self, subscription_arn=response["SubscriptionArn"], topic=topic, queue=queue)

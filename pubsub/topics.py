import logging

from botocore.exceptions import ClientError

from pubsub.queues import Queue, to_message_attributes

logger = logging.getLogger(__name__)


class Topic:
    """Handle on a specific SNS topic."""

    def __init__(self, client, topic_arn: str, topic_name: str):
        self.client = client
        self.topic_arn = topic_arn
        self.topic_name = topic_name

    def __repr__(self):
        return f"<Topic {self.topic_arn}>"

    def exists(self) -> bool:
        try:
            self.client.sns.get_topic_attributes(TopicArn=self.topic_arn)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "NotFound":
                return False
            raise
        return True

    def get_attributes(self) -> dict[str, str]:
        return self.client.sns.get_topic_attributes(TopicArn=self.topic_arn).get("Attributes", {})

    def set_attribute(self, name: str, value: str) -> None:
        self.client.sns.set_topic_attributes(TopicArn=self.topic_arn, AttributeName=name, AttributeValue=value)

    def publish(self, message: str, attributes: dict[str, str] | None = None, subject: str | None = None) -> str:
        """
        Publish a message to every subscriber of the topic.

        Returns:
            The id SNS assigned to the message.
        """
        params = dict(
            TopicArn=self.topic_arn,
            Message=message,
            MessageAttributes=to_message_attributes(attributes),
        )
        if subject:
            params["Subject"] = subject

        message_id = self.client.sns.publish(**params)["MessageId"]
        logger.info(f"Message {message_id} published to {self.topic_name}")
        return message_id


class Subscription:
    """Handle on the SQS subscription of a queue to a topic."""

    def __init__(self, client, subscription_arn: str, topic: Topic, queue: Queue):
        self.client = client
        self.subscription_arn = subscription_arn
        self.topic = topic
        self.queue = queue

    def __repr__(self):
        return f"<Subscription {self.subscription_arn}>"

    def get_attributes(self) -> dict[str, str]:
        response = self.client.sns.get_subscription_attributes(SubscriptionArn=self.subscription_arn)
        return response.get("Attributes", {})

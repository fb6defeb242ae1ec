"""
Tests for the pubsubconsume management command.
"""

from io import StringIO
from unittest.mock import MagicMock, patch

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from pubsub.consumers import SNSConsumer
from pubsub.exceptions import PubsubConfigurationError


class OrderConsumer(SNSConsumer):
    def consume(self, payload):
        pass


class NotAConsumer:
    pass


class PubsubConsumeCommandTests(TestCase):
    def test_unknown_consumer(self):
        with self.assertRaises(CommandError):
            call_command("pubsubconsume", consumer_name="nope")

    def test_missing_queue_arn(self):
        with self.assertRaises(CommandError):
            call_command("pubsubconsume", consumer_name="missing-arn")

    def test_not_a_consumer(self):
        with self.assertRaises(CommandError):
            call_command("pubsubconsume", consumer_name="not-a-consumer")

    @patch("pubsub.management.commands.pubsubconsume.PubsubClient")
    def test_invalid_options(self, mock_client_class):
        mock_client_class.from_settings.side_effect = PubsubConfigurationError("max_number_of_messages")

        with self.assertRaises(CommandError):
            call_command("pubsubconsume", consumer_name="orders", max_messages=50)

    @patch("pubsub.management.commands.pubsubconsume.PubsubClient")
    def test_starts_consuming(self, mock_client_class):
        client = mock_client_class.from_settings.return_value
        client.config.wait_time_seconds = 10
        client.config.max_number_of_messages = 5
        client.config.requeue_visibility_timeout = 30
        queue = MagicMock(queue_url="https://sqs.us-east-1.amazonaws.com/123456789012/orders")
        client.new_queue.return_value = queue
        out = StringIO()

        call_command("pubsubconsume", consumer_name="orders", wait_time=10, max_messages=5, stdout=out)

        mock_client_class.from_settings.assert_called_once_with(wait_time_seconds=10, max_number_of_messages=5)
        client.new_queue.assert_called_once_with("arn:aws:sqs:us-east-1:123456789012:orders")
        queue.start_consuming.assert_called_once()
        self.assertEqual(queue.start_consuming.call_args.kwargs["envelope"], "sns")
        self.assertIn("Starting consumer 'orders'", out.getvalue())
        self.assertIn("Consumer stopped", out.getvalue())

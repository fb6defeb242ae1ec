"""
Tests for pubsub configuration.
"""

from django.test import TestCase, override_settings

from pubsub.conf import PubsubConfig
from pubsub.exceptions import PubsubConfigurationError


class PubsubConfigTests(TestCase):
    def test_defaults(self):
        config = PubsubConfig()

        self.assertEqual(config.max_number_of_messages, 10)
        self.assertEqual(config.wait_time_seconds, 20)
        self.assertEqual(config.requeue_visibility_timeout, 30)
        self.assertEqual(config.max_receive_count, 5)
        self.assertEqual(config.thread_count, 10)

    @override_settings(
        PUBSUB_MAX_NUMBER_OF_MESSAGES=5,
        PUBSUB_WAIT_TIME_SECONDS=2,
        PUBSUB_REQUEUE_VISIBILITY_TIMEOUT=60,
        PUBSUB_MAX_RECEIVE_COUNT=3,
        PUBSUB_CONSUMER_THREADS=4,
        PUBSUB_AWS_REGION="sa-east-1",
        PUBSUB_AWS_ENDPOINT_URL="http://localhost:4566",
    )
    def test_from_settings(self):
        config = PubsubConfig.from_settings()

        self.assertEqual(
            config,
            PubsubConfig(
                max_number_of_messages=5,
                wait_time_seconds=2,
                requeue_visibility_timeout=60,
                max_receive_count=3,
                thread_count=4,
                region_name="sa-east-1",
                endpoint_url="http://localhost:4566",
            ),
        )

    @override_settings(PUBSUB_WAIT_TIME_SECONDS=2)
    def test_overrides_take_precedence(self):
        config = PubsubConfig.from_settings(wait_time_seconds=7, max_number_of_messages=None)

        self.assertEqual(config.wait_time_seconds, 7)
        self.assertEqual(config.max_number_of_messages, 10)

    def test_validation(self):
        invalid = [
            dict(max_number_of_messages=0),
            dict(max_number_of_messages=11),
            dict(wait_time_seconds=21),
            dict(requeue_visibility_timeout=-1),
            dict(max_receive_count=0),
            dict(thread_count=0),
        ]
        for values in invalid:
            with self.assertRaises(PubsubConfigurationError):
                PubsubConfig(**values)

"""
Pubsub Consumer Management Command.

Starts a consumer to process messages from a configured queue.

Usage:
    python manage.py pubsubconsume --consumer orders
    python manage.py pubsubconsume --consumer orders --max-messages 5 --wait-time 10

Configuration (settings.py):
    PUBSUB_CONSUMERS = {
        "orders": {
            "queue_arn": "arn:aws:sqs:us-east-1:123456789012:orders",
            "consumer": "orders.consumers.OrderConsumer",
        },
    }
"""

from botocore.exceptions import ClientError

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils.module_loading import import_string

from pubsub.client import PubsubClient
from pubsub.consumers import PubsubConsumer
from pubsub.exceptions import PubsubError


class Command(BaseCommand):
    help = "Start a consumer for processing messages from an SQS queue"

    def add_arguments(self, parser):
        parser.add_argument(
            "--consumer",
            dest="consumer_name",
            required=True,
            help="Name of the consumer to run, as configured in PUBSUB_CONSUMERS",
        )
        parser.add_argument(
            "--wait-time",
            dest="wait_time",
            type=int,
            default=None,
            help="Long polling wait time in seconds (0-20, defaults to PUBSUB_WAIT_TIME_SECONDS)",
        )
        parser.add_argument(
            "--max-messages",
            dest="max_messages",
            type=int,
            default=None,
            help="Maximum messages to receive per poll (1-10, defaults to PUBSUB_MAX_NUMBER_OF_MESSAGES)",
        )

    def handle(self, *args, **options):
        consumer_name = options["consumer_name"]

        consumers = getattr(settings, "PUBSUB_CONSUMERS", {})
        config = consumers.get(consumer_name)
        if not config:
            raise CommandError(f"Unknown consumer: {consumer_name}. Configure it in PUBSUB_CONSUMERS.")

        queue_arn = config.get("queue_arn")
        if not queue_arn:
            raise CommandError(f"Queue ARN not configured for consumer '{consumer_name}'")

        try:
            consumer_class = import_string(config["consumer"])
        except (ImportError, KeyError) as e:
            raise CommandError(f"Failed to import consumer: {e}")

        if not (isinstance(consumer_class, type) and issubclass(consumer_class, PubsubConsumer)):
            raise CommandError(f"{config['consumer']} is not a PubsubConsumer")

        try:
            client = PubsubClient.from_settings(
                wait_time_seconds=options["wait_time"],
                max_number_of_messages=options["max_messages"],
            )
            queue = client.new_queue(queue_arn)
        except (PubsubError, ClientError) as e:
            raise CommandError(str(e))

        consumer = consumer_class()

        self.stdout.write(
            self.style.SUCCESS(
                f"Starting consumer '{consumer_name}' ({consumer_class.__name__})\n"
                f"  Queue: {queue.queue_url}\n"
                f"  Envelope: {consumer.envelope}\n"
                f"  Wait time: {client.config.wait_time_seconds}s\n"
                f"  Max messages: {client.config.max_number_of_messages}\n"
                f"  Requeue visibility timeout: {client.config.requeue_visibility_timeout}s"
            )
        )

        try:
            queue.start_consuming(consumer.handle, envelope=consumer.envelope)
        except KeyboardInterrupt:
            self.stdout.write(self.style.WARNING("\nShutting down..."))
        except Exception as e:
            raise CommandError(f"Consumer failed: {e}")

        self.stdout.write(self.style.SUCCESS("Consumer stopped"))

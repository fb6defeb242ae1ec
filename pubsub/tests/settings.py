SECRET_KEY = "pubsub-tests"

INSTALLED_APPS = [
    "pubsub",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

USE_TZ = True

PUBSUB_AWS_REGION = "us-east-1"
PUBSUB_CONSUMERS = {
    "orders": {
        "queue_arn": "arn:aws:sqs:us-east-1:123456789012:orders",
        "consumer": "pubsub.tests.test_management.OrderConsumer",
    },
    "missing-arn": {
        "consumer": "pubsub.tests.test_management.OrderConsumer",
    },
    "not-a-consumer": {
        "queue_arn": "arn:aws:sqs:us-east-1:123456789012:orders",
        "consumer": "pubsub.tests.test_management.NotAConsumer",
    },
}

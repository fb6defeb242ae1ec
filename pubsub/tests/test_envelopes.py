"""
Tests for message envelope decoders.
"""

import json
from unittest.mock import patch

from django.test import TestCase

from pubsub.envelopes import DECODERS, SNSEvent, decode_plain, decode_s3_event, decode_sns
from pubsub.exceptions import DecodeError

SNS_BODY = {
    "Type": "Notification",
    "MessageId": "22b80b92-fdea-4c2c-8f9d-bdfb0c7bf324",
    "TopicArn": "arn:aws:sns:us-east-1:123456789012:orders",
    "Message": '{"order_id": 42}',
    "Timestamp": "2024-01-01T12:00:00.000Z",
    "SignatureVersion": "1",
    "Signature": "EXAMPLE",
    "SigningCertURL": "https://sns.us-east-1.amazonaws.com/cert.pem",
    "UnsubscribeURL": "https://sns.us-east-1.amazonaws.com/?Action=Unsubscribe",
    "MessageAttributes": {
        "event": {"Type": "String", "Value": "order.created"},
    },
}

S3_BODY = {
    "Records": [
        {
            "eventVersion": "2.1",
            "eventSource": "aws:s3",
            "awsRegion": "us-east-1",
            "eventTime": "2024-01-01T12:00:00.000Z",
            "eventName": "ObjectCreated:Put",
            "userIdentity": {"principalId": "AWS:AIDAEXAMPLE"},
            "requestParameters": {"sourceIPAddress": "127.0.0.1"},
            "responseElements": {"x-amz-request-id": "C3D13FE58DE4C810", "x-amz-id-2": "FMyUVURIY8"},
            "s3": {
                "s3SchemaVersion": "1.0",
                "configurationId": "uploads",
                "bucket": {
                    "name": "media",
                    "ownerIdentity": {"principalId": "A3NL1KOZZKExample"},
                    "arn": "arn:aws:s3:::media",
                },
                "object": {
                    "key": "attachments/photo.jpg",
                    "size": 1024,
                    "eTag": "d41d8cd98f00b204e9800998ecf8427e",
                    "sequencer": "0055AED6DCD90281E5",
                },
            },
        }
    ]
}


class DecodePlainTests(TestCase):
    def test_identity(self):
        self.assertEqual(decode_plain("hello"), "hello")
        self.assertEqual(decode_plain(""), "")

    def test_bytes_are_decoded(self):
        self.assertEqual(decode_plain("olá".encode("utf-8")), "olá")


class DecodeSNSTests(TestCase):
    def test_decode(self):
        event = decode_sns(json.dumps(SNS_BODY))

        self.assertEqual(event.type, "Notification")
        self.assertEqual(event.message, '{"order_id": 42}')
        self.assertEqual(event.topic_arn, "arn:aws:sns:us-east-1:123456789012:orders")
        self.assertIsNone(event.subscribe_url)
        self.assertEqual(event.attributes, {"event": "order.created"})

    def test_round_trip_keeps_message_and_attributes(self):
        event = SNSEvent(
            type="Notification",
            message="payload with \"quotes\" and ünicode",
            topic_arn="arn:aws:sns:us-east-1:123456789012:orders",
            message_attributes={"tenant": {"Type": "String", "Value": "acme"}},
        )

        decoded = decode_sns(event.to_json())

        self.assertEqual(decoded.message, event.message)
        self.assertEqual(decoded.message_attributes, event.message_attributes)
        self.assertEqual(decoded, event)

    @patch("pubsub.envelopes.logger")
    def test_malformed_body_is_retryable(self, mock_logger):
        for body in ("not json", "", "[1, 2]", '{"Message": 42}', '{"MessageAttributes": []}'):
            with self.assertRaises(DecodeError) as ctx:
                decode_sns(body)

            self.assertTrue(ctx.exception.retryable)
            self.assertEqual(ctx.exception.body, body)

        # the raw body is logged for diagnosis
        self.assertIn("not json", mock_logger.error.call_args_list[0][0][0])


class DecodeS3EventTests(TestCase):
    def test_decode(self):
        event = decode_s3_event(json.dumps(S3_BODY))

        self.assertEqual(len(event.records), 1)
        record = event.records[0]
        self.assertEqual(record.event_name, "ObjectCreated:Put")
        self.assertEqual(record.aws_region, "us-east-1")
        self.assertEqual(record.principal_id, "AWS:AIDAEXAMPLE")
        self.assertEqual(record.source_ip_address, "127.0.0.1")
        self.assertEqual(record.request_id, "C3D13FE58DE4C810")
        self.assertEqual(record.s3.bucket.name, "media")
        self.assertEqual(record.s3.bucket.owner_principal_id, "A3NL1KOZZKExample")
        self.assertEqual(record.s3.object.key, "attachments/photo.jpg")
        self.assertEqual(record.s3.object.size, 1024)
        self.assertEqual(record.s3.object.version_id, "")

    def test_missing_fields_default_to_empty(self):
        event = decode_s3_event(b'{"Records": [{"eventName": "ObjectRemoved:Delete"}]}')

        self.assertEqual(event.records[0].event_name, "ObjectRemoved:Delete")
        self.assertEqual(event.records[0].s3.object.size, 0)

        self.assertEqual(decode_s3_event("{}").records, [])

    @patch("pubsub.envelopes.logger")
    def test_malformed_body_is_retryable(self, mock_logger):
        for body in (
            "<xml/>",
            '{"Records": {}}',
            '{"Records": ["a"]}',
            '{"Records": [{"s3": {"object": {"size": "x"}}}]}',
        ):
            with self.assertRaises(DecodeError) as ctx:
                decode_s3_event(body)

            self.assertTrue(ctx.exception.retryable)

        self.assertEqual(mock_logger.error.call_count, 4)

    def test_out_of_range_size_is_retryable(self):
        with self.assertRaises(DecodeError) as ctx:
            decode_s3_event('{"Records": [{"s3": {"object": {"size": 1e400}}}]}')

        self.assertTrue(ctx.exception.retryable)
        self.assertIsInstance(ctx.exception.__cause__, OverflowError)

    def test_fields_of_wrong_type_are_rejected(self):
        for record in (
            {"eventName": 5},
            {"userIdentity": {"principalId": ["AWS"]}},
            {"s3": {"bucket": {"name": {"value": "media"}}}},
            {"s3": {"object": {"key": 42}}},
        ):
            with self.assertRaises(DecodeError) as ctx:
                decode_s3_event(json.dumps({"Records": [record]}))

            self.assertIsInstance(ctx.exception.__cause__, TypeError)


class DecodersTests(TestCase):
    def test_registry(self):
        self.assertIs(DECODERS["plain"], decode_plain)
        self.assertIs(DECODERS["sns"], decode_sns)
        self.assertIs(DECODERS["s3"], decode_s3_event)

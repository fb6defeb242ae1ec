"""
Message envelopes.

A message body reaches a handler in one of three shapes:

    - plain: the body as sent
    - sns: the JSON notification SNS wraps around messages it fans out to a queue
    - s3: the JSON event notification S3 sends for bucket events

Decoders raise DecodeError when the body cannot be interpreted. Such a
failure is always retryable: the message is made visible again instead of
being silently dropped.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from pubsub.exceptions import DecodeError
from pubsub.parsers import JSONParser
from pubsub.parsers.exceptions import ParseError

logger = logging.getLogger(__name__)


@dataclass
class SNSEvent:
    """Notification delivered to a queue subscribed to an SNS topic."""

    type: str = ""
    message_id: str = ""
    message: str = ""
    token: str = ""
    topic_arn: str = ""
    subscribe_url: str | None = None
    unsubscribe_url: str | None = None
    timestamp: str = ""
    signature: str = ""
    signature_version: str = ""
    signing_cert_url: str = ""
    message_attributes: dict[str, dict[str, str]] = field(default_factory=dict)

    FIELDS = {
        "Type": "type",
        "MessageId": "message_id",
        "Message": "message",
        "Token": "token",
        "TopicArn": "topic_arn",
        "SubscribeURL": "subscribe_url",
        "UnsubscribeURL": "unsubscribe_url",
        "Timestamp": "timestamp",
        "Signature": "signature",
        "SignatureVersion": "signature_version",
        "SigningCertURL": "signing_cert_url",
        "MessageAttributes": "message_attributes",
    }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SNSEvent":
        values = {name: data[key] for key, name in cls.FIELDS.items() if data.get(key) is not None}

        for name, value in values.items():
            if name == "message_attributes":
                if not isinstance(value, dict) or not all(isinstance(v, dict) for v in value.values()):
                    raise TypeError("MessageAttributes must be an object of objects")
            elif not isinstance(value, str):
                raise TypeError(f"{name} must be a string, got {type(value).__name__}")

        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        data = {key: getattr(self, name) for key, name in self.FIELDS.items()}
        return {key: value for key, value in data.items() if value is not None}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @property
    def attributes(self) -> dict[str, str]:
        """Message attributes flattened to name -> value."""
        return {name: attribute.get("Value", "") for name, attribute in self.message_attributes.items()}


def _string(data: dict[str, Any], key: str) -> str:
    value = data.get(key, "")
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string, got {type(value).__name__}")
    return value


@dataclass
class S3Bucket:
    name: str = ""
    owner_principal_id: str = ""
    arn: str = ""


@dataclass
class S3Object:
    key: str = ""
    size: int = 0
    e_tag: str = ""
    version_id: str = ""
    sequencer: str = ""


@dataclass
class S3Entity:
    schema_version: str = ""
    configuration_id: str = ""
    bucket: S3Bucket = field(default_factory=S3Bucket)
    object: S3Object = field(default_factory=S3Object)


@dataclass
class S3EventRecord:
    event_version: str = ""
    event_source: str = ""
    aws_region: str = ""
    event_time: str = ""
    event_name: str = ""
    principal_id: str = ""
    source_ip_address: str = ""
    request_id: str = ""
    host_id: str = ""
    s3: S3Entity = field(default_factory=S3Entity)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "S3EventRecord":
        s3 = data.get("s3") or {}
        bucket = s3.get("bucket") or {}
        obj = s3.get("object") or {}
        response = data.get("responseElements") or {}

        return cls(
            event_version=_string(data, "eventVersion"),
            event_source=_string(data, "eventSource"),
            aws_region=_string(data, "awsRegion"),
            event_time=_string(data, "eventTime"),
            event_name=_string(data, "eventName"),
            principal_id=_string(data.get("userIdentity") or {}, "principalId"),
            source_ip_address=_string(data.get("requestParameters") or {}, "sourceIPAddress"),
            request_id=_string(response, "x-amz-request-id"),
            host_id=_string(response, "x-amz-id-2"),
            s3=S3Entity(
                schema_version=_string(s3, "s3SchemaVersion"),
                configuration_id=_string(s3, "configurationId"),
                bucket=S3Bucket(
                    name=_string(bucket, "name"),
                    owner_principal_id=_string(bucket.get("ownerIdentity") or {}, "principalId"),
                    arn=_string(bucket, "arn"),
                ),
                object=S3Object(
                    key=_string(obj, "key"),
                    size=int(obj.get("size") or 0),
                    e_tag=_string(obj, "eTag"),
                    version_id=_string(obj, "versionId"),
                    sequencer=_string(obj, "sequencer"),
                ),
            ),
        )


@dataclass
class S3Event:
    """Event notification sent by S3 to a queue."""

    records: list[S3EventRecord] = field(default_factory=list)


def _parse(body, kind: str) -> dict[str, Any]:
    try:
        return JSONParser.parse(body)
    except ParseError as e:
        logger.error(f"Failed to decode {kind} envelope: {e}, body: {body!r}")
        raise DecodeError(f"invalid {kind} envelope: {e}", body=body) from e


def decode_plain(body) -> str:
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body).decode("utf-8")
    return body


def decode_sns(body) -> SNSEvent:
    data = _parse(body, "SNS")
    try:
        return SNSEvent.from_dict(data)
    except TypeError as e:
        logger.error(f"Failed to decode SNS envelope: {e}, body: {body!r}")
        raise DecodeError(f"invalid SNS envelope: {e}", body=body) from e


def decode_s3_event(body) -> S3Event:
    data = _parse(body, "S3 event")
    records = data.get("Records", [])

    if not isinstance(records, list) or not all(isinstance(record, dict) for record in records):
        logger.error(f"Failed to decode S3 event envelope: Records must be a list of objects, body: {body!r}")
        raise DecodeError("invalid S3 event envelope: Records must be a list of objects", body=body)

    try:
        return S3Event(records=[S3EventRecord.from_dict(record) for record in records])
    except (AttributeError, OverflowError, TypeError, ValueError) as e:
        logger.error(f"Failed to decode S3 event envelope: {e}, body: {body!r}")
        raise DecodeError(f"invalid S3 event envelope: {e}", body=body) from e


DECODERS: dict[str, Callable[[Any], Any]] = {
    "plain": decode_plain,
    "sns": decode_sns,
    "s3": decode_s3_event,
}

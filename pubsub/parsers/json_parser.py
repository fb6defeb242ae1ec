import json

from .base_parser import BaseParser
from .exceptions import ParseError


class JSONParser(BaseParser):
    @staticmethod
    def parse(stream, encoding="utf-8"):
        """
        Parses a message body (str or bytes) as a JSON object and returns the resulting dict.
        """

        if not stream:
            raise ParseError("JSON parse error - stream cannot be empty")

        if isinstance(stream, str):
            decoded_stream = stream
        elif isinstance(stream, (bytes, bytearray, memoryview)):
            try:
                decoded_stream = bytes(stream).decode(encoding)
            except UnicodeDecodeError as exc:
                raise ParseError(f"JSON parse error - {exc}")
        else:
            raise ParseError(f"JSON parse error - unsupported stream type: {type(stream).__name__}")

        try:
            data = json.loads(decoded_stream)
        except ValueError as exc:
            raise ParseError("JSON parse error - %s" % str(exc))

        if not isinstance(data, dict):
            raise ParseError(f"JSON parse error - expected an object, got {type(data).__name__}")

        return data

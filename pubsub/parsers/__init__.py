from .json_parser import JSONParser  # noqa

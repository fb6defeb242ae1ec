from abc import ABC, abstractmethod


class BaseParser(ABC):
    @staticmethod
    @abstractmethod
    def parse(stream, encoding=None):
        pass

from studylib.processor.parsers.factory import ParserFactory
from studylib.processor.parsers.base import BaseParser

__all__ = ["ParserFactory", "BaseParser"]

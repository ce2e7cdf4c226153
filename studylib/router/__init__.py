from studylib.router.router import Router, UnknownProviderError
from studylib.router.base import BaseProvider
from studylib.router.models import AIConfig, ProcessingOptions
from studylib.router.config_loader import load_ai_config, load_processing_options, config_accessor
from studylib.router.response_parser import parse_structured_response

__all__ = [
    "Router",
    "UnknownProviderError",
    "BaseProvider",
    "AIConfig",
    "ProcessingOptions",
    "load_ai_config",
    "load_processing_options",
    "config_accessor",
    "parse_structured_response",
]

# studylib/factory.py
from pathlib import Path
from typing import Optional

from studylib.export.serializer import Exporter
from studylib.generator import StudyGenerator
from studylib.notifier import Notifier
from studylib.orchestrator import Orchestrator
from studylib.processor.extractor import ChapterExtractor
from studylib.processor.parsers.factory import ParserFactory
from studylib.router.config_loader import config_accessor, load_processing_options
from studylib.router.models import ProcessingOptions
from studylib.router.router import Router
from studylib.storage.cache import ContentCache


def build_orchestrator(
    db_path:     Optional[str]               = None,
    config_path: Optional[str]               = None,
    output_dir:  Optional[Path]              = None,
    options:     Optional[ProcessingOptions] = None,
    notifier:    Optional[Notifier]          = None,
) -> Orchestrator:
    """
    Ensambla el Orchestrator con todas sus dependencias.
    Punto de entrada único para el CLI y los tests de integración.

    La config de IA no se lee acá: el Router la relee en cada llamada,
    así listar capítulos no exige tener una API key configurada.
    """
    router = Router(config_accessor(config_path))

    return Orchestrator(
        parser_factory = ParserFactory(),
        extractor      = ChapterExtractor(),
        generator      = StudyGenerator(router),
        cache          = ContentCache(db_path=db_path),
        exporter       = Exporter(output_dir=output_dir, notifier=notifier),
        options        = options or load_processing_options(config_path),
        notifier       = notifier,
    )


def build_generator(config_path: Optional[str] = None) -> StudyGenerator:
    return StudyGenerator(Router(config_accessor(config_path)))

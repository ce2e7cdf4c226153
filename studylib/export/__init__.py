# export/__init__.py
from studylib.export.serializer import Exporter, ExportOutcome, book_payload, chapter_payload
from studylib.export.mindmap import MindMapView, MIND_MAP_FORMATS, combine_mind_maps

__all__ = [
    "Exporter",
    "ExportOutcome",
    "book_payload",
    "chapter_payload",
    "MindMapView",
    "MIND_MAP_FORMATS",
    "combine_mind_maps",
]

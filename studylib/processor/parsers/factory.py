import os

from studylib.errors import UnsupportedDocumentError
from studylib.processor.models import DocumentTree
from .base import BaseParser
from .epub_parser import EpubParser
from .pdf_parser import PdfParser


class ParserFactory:
    """
    Registro central de adaptadores de documento.

    Uso básico:
        tree = ParserFactory.parse_file("/ruta/al/libro.epub")

    Uso con parser registrado externamente:
        factory = ParserFactory()
        factory.register(MiParserCustom())
        tree = factory.parse("/ruta/al/libro.mobi")

    Los parsers se evalúan en orden de registro.
    El primero que responda True a can_handle() gana.
    """

    # Adaptadores disponibles por defecto, elegidos por extensión
    _DEFAULT_PARSERS: list[BaseParser] = [
        EpubParser(),
        PdfParser(),
    ]

    SUPPORTED_EXTENSIONS = (".epub", ".pdf")

    def __init__(self):
        self._parsers: list[BaseParser] = list(self._DEFAULT_PARSERS)

    def register(self, parser: BaseParser) -> None:
        """Registra un parser adicional al inicio de la lista (mayor prioridad)."""
        self._parsers.insert(0, parser)

    def parse(self, file_path: str) -> DocumentTree:
        """
        Detecta el parser correcto para el archivo y devuelve su DocumentTree.

        Raises:
            FileNotFoundError: si el archivo no existe.
            UnsupportedDocumentError: si ningún parser puede manejarlo.
        """
        if not os.path.isfile(file_path):
            raise FileNotFoundError(f"Archivo no encontrado: {file_path}")

        for parser in self._parsers:
            if parser.can_handle(file_path):
                return parser.parse(file_path)

        ext = os.path.splitext(file_path)[1].lower()
        raise UnsupportedDocumentError(
            f"Formato '{ext}' no soportado. "
            f"Formatos disponibles: {', '.join(self.SUPPORTED_EXTENSIONS)}"
        )

    @classmethod
    def parse_file(cls, file_path: str) -> DocumentTree:
        """Shortcut: ParserFactory.parse_file('libro.epub')"""
        return cls().parse(file_path)

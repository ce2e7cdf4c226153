import pytest
from unittest.mock import MagicMock

from studylib.errors import UnsupportedDocumentError
from studylib.processor.models import DocumentTree
from studylib.processor.parsers.factory import ParserFactory


class TestParserFactory:

    def test_elige_por_extension(self, three_chapter_epub):
        tree = ParserFactory.parse_file(str(three_chapter_epub))
        assert isinstance(tree, DocumentTree)
        assert len(tree.nodes) == 3

    def test_archivo_inexistente(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ParserFactory().parse(str(tmp_path / "no_existe.epub"))

    def test_extension_no_soportada(self, tmp_path):
        path = tmp_path / "libro.docx"
        path.write_text("x")
        with pytest.raises(UnsupportedDocumentError, match=".docx"):
            ParserFactory().parse(str(path))

    def test_parser_registrado_tiene_prioridad(self, tmp_path):
        path = tmp_path / "libro.epub"
        path.write_text("x")
        custom = MagicMock()
        custom.can_handle.return_value = True
        custom.parse.return_value = DocumentTree(title="custom", source_path=str(path))

        factory = ParserFactory()
        factory.register(custom)

        assert factory.parse(str(path)).title == "custom"

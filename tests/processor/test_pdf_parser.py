import pytest

from studylib.errors import ExtractionError
from studylib.processor.parsers.pdf_parser import PdfParser


@pytest.fixture
def parser():
    return PdfParser()


class TestPdfParser:

    def test_can_handle(self, parser):
        assert parser.can_handle("libro.pdf")
        assert not parser.can_handle("libro.epub")

    def test_outline_define_el_arbol(self, parser, make_pdf):
        path = make_pdf(
            "libro.pdf",
            ["Capitulo 1\nEl inicio.", "Capitulo 2\nEl medio.", "Capitulo 3\nEl final."],
            toc=[[1, "Capitulo 1", 1], [1, "Capitulo 2", 2], [1, "Capitulo 3", 3]],
            metadata={"title": "Libro PDF", "author": "Autor PDF"},
        )
        tree = parser.parse(str(path))

        assert tree.title == "Libro PDF"
        assert tree.author == "Autor PDF"
        assert [n.title for n in tree.nodes] == ["Capitulo 1", "Capitulo 2", "Capitulo 3"]
        assert "El inicio." in tree.nodes[0].text
        assert "El medio." not in tree.nodes[0].text
        assert "El final." in tree.nodes[2].text

    def test_outline_anidado(self, parser, make_pdf):
        path = make_pdf(
            "anidado.pdf",
            ["Parte 1\nCapitulo 1\nUno.", "Capitulo 2\nDos."],
            toc=[[1, "Parte 1", 1], [2, "Capitulo 1", 1], [2, "Capitulo 2", 2]],
        )
        tree = parser.parse(str(path))

        assert len(tree.nodes) == 1
        assert [c.title for c in tree.nodes[0].children] == ["Capitulo 1", "Capitulo 2"]
        assert "Uno." in tree.nodes[0].children[0].text
        assert "Dos." in tree.nodes[0].children[1].text

    def test_sin_outline_detecta_encabezados(self, parser, make_pdf):
        path = make_pdf("sin_outline.pdf", ["Chapter 1\nAlpha.", "Chapter 2\nBeta."])
        tree = parser.parse(str(path))

        assert [n.title for n in tree.nodes] == ["Chapter 1", "Chapter 2"]
        assert "Beta." in tree.nodes[1].text

    def test_sin_estructura_todo_queda_en_front_text(self, parser, make_pdf):
        path = make_pdf("plano.pdf", ["Solo texto suelto.", "Mas texto suelto."])
        tree = parser.parse(str(path))

        assert tree.nodes == []
        assert "Solo texto suelto." in tree.front_text
        assert "Mas texto suelto." in tree.front_text

    def test_titulo_cae_al_nombre_del_archivo(self, parser, make_pdf):
        path = make_pdf("mi_libro.pdf", ["Esta es una oracion larga que termina en punto y no sirve como titulo."])
        assert parser.parse(str(path)).title == "mi_libro"

    def test_archivo_corrupto_lanza_extraction_error(self, parser, tmp_path):
        path = tmp_path / "roto.pdf"
        path.write_bytes(b"no soy un pdf")
        with pytest.raises(ExtractionError):
            parser.parse(str(path))

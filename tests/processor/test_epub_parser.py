import pytest

from studylib.errors import ExtractionError
from studylib.processor.extractor import ChapterExtractor
from studylib.processor.parsers.epub_parser import EpubParser


@pytest.fixture
def parser():
    return EpubParser()


class TestEpubParser:

    def test_can_handle(self, parser):
        assert parser.can_handle("libro.epub")
        assert parser.can_handle("LIBRO.EPUB")
        assert not parser.can_handle("libro.pdf")

    def test_metadata(self, parser, three_chapter_epub):
        tree = parser.parse(str(three_chapter_epub))
        assert tree.title == "Libro de prueba"
        assert tree.author == "Ana Autora"
        assert tree.language == "es"
        assert tree.source_path == str(three_chapter_epub)

    def test_una_entrada_por_capitulo_en_orden(self, parser, three_chapter_epub):
        tree = parser.parse(str(three_chapter_epub))
        assert [n.title for n in tree.nodes] == ["Capítulo 1", "Capítulo 2", "Capítulo 3"]
        assert "ballena aparece" in tree.nodes[0].text
        assert "capitán ordena" in tree.nodes[1].text
        assert "regresa al puerto" in tree.nodes[2].text

    def test_el_texto_no_trae_html(self, parser, three_chapter_epub):
        tree = parser.parse(str(three_chapter_epub))
        assert "<" not in tree.full_text()

    def test_anclas_cortan_el_mismo_archivo(self, parser, make_epub):
        from ebooklib import epub

        chapters = [
            ("Parte 1",
             '<h1 id="p1">Parte 1</h1><p>Introducción.</p>'
             '<h2 id="s1">Sección A</h2><p>Texto de A.</p>'
             '<h2 id="s2">Sección B</h2><p>Texto de B.</p>'),
            ("Parte 2", "<h1>Parte 2</h1><p>Final del libro.</p>"),
        ]
        toc = [
            (epub.Section("Parte 1", href="chap_0.xhtml"), [
                epub.Link("chap_0.xhtml#s1", "Sección A", "s1"),
                epub.Link("chap_0.xhtml#s2", "Sección B", "s2"),
            ]),
            epub.Link("chap_1.xhtml", "Parte 2", "p2"),
        ]
        path = make_epub("anclas.epub", chapters, toc=toc)

        tree = parser.parse(str(path))
        section_a, section_b = tree.nodes[0].children

        assert "Texto de A." in section_a.text
        assert "Texto de B." not in section_a.text
        assert "Texto de B." in section_b.text
        assert "Final del libro." not in section_b.text
        assert "Final del libro." in tree.nodes[1].text

    def test_sin_indice_todo_el_texto_queda_como_front_text(self, parser, make_epub):
        path = make_epub("plano.epub", toc=[])
        tree = parser.parse(str(path))

        assert tree.nodes == []
        assert "ballena aparece" in tree.front_text
        assert "regresa al puerto" in tree.front_text

    def test_archivo_corrupto_lanza_extraction_error(self, parser, tmp_path):
        path = tmp_path / "roto.epub"
        path.write_text("esto no es un epub")
        with pytest.raises(ExtractionError):
            parser.parse(str(path))


class TestEpubExtraction:

    def test_epub_de_tres_capitulos_da_tres_unidades(self, three_chapter_epub):
        tree = EpubParser().parse(str(three_chapter_epub))
        chapters = ChapterExtractor().extract(tree)

        assert [c.title for c in chapters] == ["Capítulo 1", "Capítulo 2", "Capítulo 3"]
        assert [c.order for c in chapters] == [0, 1, 2]

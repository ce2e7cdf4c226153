import pytest


def write_epub(path, chapters, toc=None, title="Libro de prueba", author="Ana Autora", language="es"):
    """
    EPUB real con ebooklib. chapters = [(titulo, html_del_body), ...];
    un archivo por capítulo. Sin toc explícito, un Link por capítulo.
    """
    from ebooklib import epub

    book = epub.EpubBook()
    book.set_identifier("studylib-test")
    book.set_title(title)
    book.set_language(language)
    book.add_author(author)

    items = []
    for i, (chapter_title, body) in enumerate(chapters):
        item = epub.EpubHtml(title=chapter_title, file_name=f"chap_{i}.xhtml", lang=language)
        item.content = f"<html><body>{body}</body></html>"
        book.add_item(item)
        items.append(item)

    book.toc = toc if toc is not None else [
        epub.Link(f"chap_{i}.xhtml", chapter_title, f"chap{i}")
        for i, (chapter_title, _) in enumerate(chapters)
    ]
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = items

    epub.write_epub(str(path), book)
    return path


def write_pdf(path, pages, toc=None, metadata=None):
    """PDF real con PyMuPDF: una página por texto, outline opcional."""
    import fitz

    doc = fitz.open()
    try:
        for text in pages:
            page = doc.new_page()
            page.insert_text((72, 72), text, fontsize=11)
        if toc:
            doc.set_toc(toc)
        if metadata:
            doc.set_metadata(metadata)
        doc.save(str(path))
    finally:
        doc.close()
    return path


THREE_CHAPTERS = [
    ("Capítulo 1", "<h1>Capítulo 1</h1><p>La ballena aparece en el horizonte.</p>"),
    ("Capítulo 2", "<h1>Capítulo 2</h1><p>El capitán ordena la persecución.</p>"),
    ("Capítulo 3", "<h1>Capítulo 3</h1><p>El barco regresa al puerto.</p>"),
]


@pytest.fixture
def three_chapter_epub(tmp_path):
    return write_epub(tmp_path / "ballena.epub", THREE_CHAPTERS)


@pytest.fixture
def make_epub(tmp_path):
    def _make(name, chapters=THREE_CHAPTERS, **kwargs):
        return write_epub(tmp_path / name, chapters, **kwargs)
    return _make


@pytest.fixture
def make_pdf(tmp_path):
    def _make(name, pages, **kwargs):
        return write_pdf(tmp_path / name, pages, **kwargs)
    return _make

import fitz
import pytest

from studylib.export.raster import html_to_pdf, html_to_png, png_to_pdf

HTML = "<html><body><h1>Quiz</h1><p>Pregunta 1: ¿Quién narra?</p></body></html>"


class TestHtmlToPng:

    def test_devuelve_un_png(self):
        assert html_to_png(HTML).startswith(b"\x89PNG")

    def test_recorta_al_contenido(self):
        pix = fitz.Pixmap(html_to_png(HTML, dpi=72))
        assert abs(pix.width - 595) <= 1
        assert pix.height < 14400

    def test_mas_contenido_da_una_imagen_mas_alta(self):
        short = fitz.Pixmap(html_to_png(HTML, dpi=72))
        long  = fitz.Pixmap(html_to_png(HTML.replace("<p>", "<p>" + "texto largo " * 400), dpi=72))
        assert long.height > short.height


class TestPdf:

    def test_pdf_de_una_pagina_ancho_a4(self):
        pdf = html_to_pdf(HTML)
        assert pdf.startswith(b"%PDF")

        doc = fitz.open(stream=pdf, filetype="pdf")
        try:
            assert doc.page_count == 1
            assert doc[0].rect.width == pytest.approx(595)
        finally:
            doc.close()

    def test_alto_proporcional_a_la_imagen(self):
        png = html_to_png(HTML, dpi=72)
        pix = fitz.Pixmap(png)

        doc = fitz.open(stream=png_to_pdf(png), filetype="pdf")
        try:
            rect = doc[0].rect
            assert rect.height / rect.width == pytest.approx(pix.height / pix.width, rel=1e-3)
        finally:
            doc.close()

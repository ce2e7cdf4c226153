# export/raster.py
import logging

logger = logging.getLogger(__name__)

_PAGE_WIDTH  = 595      # A4 en puntos
_MAX_HEIGHT  = 14400    # alto máximo de página PDF
_MARGIN      = 36
_DEFAULT_DPI = 144


def html_to_png(html: str, dpi: int = _DEFAULT_DPI) -> bytes:
    """
    Renderiza el HTML fuera de pantalla y devuelve un PNG recortado al
    alto que ocupa el contenido.

    Usa una página PDF temporal muy alta: insert_htmlbox informa cuánto
    espacio sobró y con eso se recorta el pixmap. El documento temporal
    se cierra siempre, falle o no el render.

    Requiere: pip install pymupdf
    """
    import fitz  # pymupdf

    doc = fitz.open()
    try:
        page = doc.new_page(width=_PAGE_WIDTH, height=_MAX_HEIGHT)
        box  = fitz.Rect(_MARGIN, _MARGIN, _PAGE_WIDTH - _MARGIN, _MAX_HEIGHT - _MARGIN)

        spare_height, scale = page.insert_htmlbox(box, html)
        if spare_height < 0:
            raise ValueError("El contenido HTML no entra en la página de render")
        if scale < 1:
            logger.warning("Contenido demasiado largo — renderizado a escala %.2f", scale)

        used = box.height - spare_height
        clip = fitz.Rect(0, 0, _PAGE_WIDTH, min(_MAX_HEIGHT, used + 2 * _MARGIN))
        pix  = page.get_pixmap(dpi=dpi, clip=clip)
        logger.debug("HTML rasterizado: %dx%d px", pix.width, pix.height)
        return pix.tobytes("png")
    finally:
        doc.close()


def png_to_pdf(png: bytes) -> bytes:
    """
    Una sola página de ancho A4 con la imagen ocupándola entera;
    el alto de la página sigue la proporción de la imagen.
    """
    import fitz  # pymupdf

    pix = fitz.Pixmap(png)
    width, height = pix.width, pix.height
    if not width or not height:
        raise ValueError("Imagen PNG vacía")

    doc = fitz.open()
    try:
        page = doc.new_page(width=_PAGE_WIDTH, height=height * _PAGE_WIDTH / width)
        page.insert_image(page.rect, stream=png)
        return doc.tobytes()
    finally:
        doc.close()


def html_to_pdf(html: str, dpi: int = _DEFAULT_DPI) -> bytes:
    return png_to_pdf(html_to_png(html, dpi=dpi))

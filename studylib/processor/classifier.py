# studylib/processor/classifier.py
import re

# Material que nunca aporta contenido de estudio, esté donde esté
_ALWAYS_SKIP = re.compile(
    r"^(cover|cubierta|portada|title\s*page|p[aá]gina\s+de\s+t[ií]tulo|half[\s-]*title|"
    r"copyright|cr[eé]ditos|colophon|colof[oó]n|"
    r"(table\s+of\s+)?contents|[ií]ndice(\s+general)?|sumario|"
    r"dedication|dedicatoria|"
    r"acknowledge?ments?|agradecimientos?|"
    r"index|[ií]ndice\s+(anal[ií]tico|alfab[eé]tico|onom[aá]stico)|"
    r"bibliograph(y|ie)|bibliograf[ií]a|references|referencias|works\s+cited|"
    r"about\s+the\s+authors?|sobre\s+el\s+autor|acerca\s+del\s+autor|"
    r"also\s+by|otros\s+libros\s+de)\b",
    re.IGNORECASE,
)

# Solo cuentan como relleno si están al principio del libro
_FRONT_ONLY = re.compile(
    r"^(preface|prefacio|foreword|pr[oó]logo\s+de\s+la\s+edici[oó]n|epigraph|ep[ií]grafe|"
    r"praise\s+for|nota\s+del\s+editor)\b",
    re.IGNORECASE,
)

# Solo cuentan como relleno si están al final del libro
_BACK_ONLY = re.compile(
    r"^(notes|notas|endnotes|glossary|glosario|appendix|ap[eé]ndice|anexo|"
    r"further\s+reading|lecturas\s+recomendadas|afterword|ep[ií]logo\s+del\s+autor)\b",
    re.IGNORECASE,
)

# Prefijos numéricos ("12. ", "IV - ") no cambian la clase; romanos solo en mayúscula
_NUMBER_PREFIX_RE = re.compile(r"^\s*((\d+|[IVXLC]+)\b\s*[.):\-–]\s*)+")

_EXTREMITY_RATIO = 0.15


def is_non_essential(title: str, position: int, total: int) -> bool:
    """
    Decide si una entrada del índice es material no esencial.

    position es el índice de la entrada entre sus hermanas (0-based)
    y total la cantidad de hermanas. Los extremos son el primer y último
    15% de las entradas, y siempre al menos la primera y la última.
    """
    normalized = _normalize(title)
    if not normalized:
        return False

    if _ALWAYS_SKIP.match(normalized):
        return True

    span = max(1, int(total * _EXTREMITY_RATIO))
    at_front = position < span
    at_back  = position >= total - span

    if at_front and _FRONT_ONLY.match(normalized):
        return True
    if at_back and _BACK_ONLY.match(normalized):
        return True
    return False


def _normalize(title: str) -> str:
    text = " ".join(title.split())
    text = _NUMBER_PREFIX_RE.sub("", text)
    return text.strip(" .:-–—")

from abc import ABC, abstractmethod
from typing import Callable

from studylib.processor.models import DocumentTree, TocNode


class BaseParser(ABC):
    @abstractmethod
    def can_handle(self, file_path: str) -> bool:
        """Devuelve True si el parser puede manejar el archivo"""
        raise NotImplementedError

    @abstractmethod
    def parse(self, file_path: str) -> DocumentTree:
        """Parsea el archivo y devuelve el árbol navegable del documento"""
        raise NotImplementedError


# Posición de un ancla: (índice de la unidad, offset dentro de la unidad).
# La unidad es un documento del spine en EPUB o una página en PDF.
Marker = tuple[int, int]


def carve_text(
    units:   list[str],
    markers: list[tuple[Marker, TocNode]],
    render:  Callable[[str], str],
) -> str:
    """
    Reparte el texto de las unidades entre las entradas del índice.

    Cada nodo recibe el rango que va desde su marcador hasta el siguiente
    marcador en orden de lectura, así que ningún fragmento se asigna dos veces.
    Devuelve el texto anterior al primer marcador (portada, créditos...).
    """
    if not units:
        return ""

    ordered = sorted(
        enumerate(markers),
        key=lambda pair: (pair[1][0][0], pair[1][0][1], pair[0]),
    )
    end_of_book: Marker = (len(units) - 1, len(units[-1]))

    first = ordered[0][1][0] if ordered else end_of_book
    front = render(_slice_units(units, (0, 0), first))

    for i, (_, (start, node)) in enumerate(ordered):
        end = ordered[i + 1][1][0] if i + 1 < len(ordered) else end_of_book
        node.text = render(_slice_units(units, start, end))

    return front


def _slice_units(units: list[str], start: Marker, end: Marker) -> str:
    (su, so), (eu, eo) = start, end
    if (su, so) >= (eu, eo):
        return ""
    if su == eu:
        return units[su][so:eo]
    parts = [units[su][so:]]
    parts.extend(units[su + 1:eu])
    parts.append(units[eu][:eo])
    return "\n\n".join(parts)

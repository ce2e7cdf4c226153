from dataclasses import dataclass, field
from typing import Optional


@dataclass
class TocNode:
    """
    Entrada navegable del índice del documento.
    text es el texto PROPIO de la entrada: desde su ancla hasta la siguiente
    ancla del índice en orden de lectura. No incluye el texto de los hijos.
    """
    title:    str
    text:     str = ""
    children: list["TocNode"] = field(default_factory=list)

    def full_text(self) -> str:
        """Texto propio + texto de todos los descendientes, en orden de lectura."""
        parts = [self.text.strip()]
        parts.extend(child.full_text() for child in self.children)
        return "\n\n".join(p for p in parts if p)


@dataclass
class DocumentTree:
    """Lo que sale de cualquier adaptador: índice navegable + metadata."""
    title:       str
    source_path: str
    nodes:       list[TocNode] = field(default_factory=list)
    author:      str = ""
    front_text:  str = ""   # texto anterior a la primera ancla del índice
    language:    Optional[str] = None

    def full_text(self) -> str:
        parts = [self.front_text.strip()]
        parts.extend(node.full_text() for node in self.nodes)
        return "\n\n".join(p for p in parts if p)

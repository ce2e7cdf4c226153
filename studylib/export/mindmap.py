# export/mindmap.py
import copy
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from studylib.errors import UnsupportedFormatError
from studylib.export.html_templates import render_outline_html
from studylib.export.raster import html_to_png
from studylib.models import ChapterResult

logger = logging.getLogger(__name__)


@dataclass
class MindMapView:
    """
    Mapa mental listo para exportar: el árbol {"nodeData": {...}} y,
    opcionalmente, las flechas entre nodos que no son padre e hijo.
    """
    title:  str
    data:   dict
    arrows: list[dict] = field(default_factory=list)

    @property
    def root(self) -> dict:
        return self.data.get("nodeData") or {}

    def to_dict(self) -> dict:
        payload = dict(self.data)
        if self.arrows:
            payload["arrows"] = list(self.arrows)
        return payload


def combine_mind_maps(title: str, chapters: Sequence[ChapterResult]) -> MindMapView:
    """
    Une los mapas de cada capítulo en un solo árbol: la raíz es el título
    del libro y cada capítulo cuelga como una rama. Los ids se prefijan con
    el id del capítulo para que sigan siendo únicos.
    """
    branches: list[dict] = []
    for chapter in chapters:
        if not chapter.mind_map:
            continue
        branch = copy.deepcopy(chapter.mind_map.get("nodeData") or {})
        _prefix_ids(branch, chapter.id)
        branch["topic"] = branch.get("topic") or chapter.title
        branches.append(branch)

    return MindMapView(
        title = title,
        data  = {"nodeData": {"id": "root", "topic": title, "children": branches}},
    )


def as_view(title: str, data: Any) -> MindMapView:
    """Acepta un MindMapView o el dict crudo que devuelve el generador."""
    if isinstance(data, MindMapView):
        return data
    if isinstance(data, dict):
        arrows = data.get("arrows") or []
        tree   = {k: v for k, v in data.items() if k != "arrows"}
        return MindMapView(title=title, data=tree, arrows=list(arrows))
    raise TypeError(f"Mapa mental inválido: {type(data).__name__}")


# ------------------------------------------------------------------
# Rutinas por formato
# ------------------------------------------------------------------

def mind_map_to_json(view: MindMapView) -> bytes:
    return json.dumps(view.to_dict(), indent=2, ensure_ascii=False).encode("utf-8")


def mind_map_to_markdown(view: MindMapView) -> bytes:
    """Esquema: # raíz y una viñeta por nodo, dos espacios por nivel."""
    root  = view.root
    lines = [f"# {root.get('topic', view.title)}", ""]
    _outline_lines(root.get("children") or [], 0, lines)
    return ("\n".join(lines) + "\n").encode("utf-8")


def mind_map_to_png(view: MindMapView) -> bytes:
    return html_to_png(render_outline_html(view.title, view.root))


# Tabla de capacidades: formato → rutina que lo produce
MIND_MAP_FORMATS: dict[str, Callable[[MindMapView], bytes]] = {
    "PNG":  mind_map_to_png,
    "JSON": mind_map_to_json,
    "MD":   mind_map_to_markdown,
}


def render_mind_map(view: MindMapView, fmt: str) -> bytes:
    method = MIND_MAP_FORMATS.get(fmt.upper())
    if method is None:
        raise UnsupportedFormatError(fmt, "mindmap")
    logger.debug("Exportando mapa mental '%s' como %s", view.title, fmt.upper())
    return method(view)


# ------------------------------------------------------------------
# Helpers internos
# ------------------------------------------------------------------

def _outline_lines(children: Sequence[dict], level: int, out: list[str]) -> None:
    for child in children:
        out.append(f"{'  ' * level}- {child.get('topic', '')}")
        _outline_lines(child.get("children") or [], level + 1, out)


def _prefix_ids(node: dict, prefix: str) -> None:
    node["id"] = f"{prefix}:{node.get('id', 'root')}"
    for child in node.get("children") or []:
        _prefix_ids(child, prefix)

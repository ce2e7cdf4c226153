import json
import pytest
from unittest.mock import patch

from studylib.errors import UnsupportedFormatError
from studylib.export.mindmap import (
    MIND_MAP_FORMATS,
    MindMapView,
    as_view,
    combine_mind_maps,
    mind_map_to_markdown,
    render_mind_map,
)
from studylib.models import ChapterResult


def chapter_map(chapter_id: str, topic: str) -> ChapterResult:
    return ChapterResult(
        id        = chapter_id,
        title     = topic,
        content   = "",
        processed = True,
        mind_map  = {"nodeData": {
            "id": "root", "topic": topic,
            "children": [
                {"id": "root-1", "topic": "Idea A", "children": [{"id": "root-1-1", "topic": "Detalle"}]},
                {"id": "root-2", "topic": "Idea B"},
            ],
        }},
    )


def collect_ids(node: dict) -> list[str]:
    ids = [node["id"]]
    for child in node.get("children") or []:
        ids.extend(collect_ids(child))
    return ids


class TestCombine:

    def test_raiz_con_el_titulo_del_libro(self):
        view = combine_mind_maps("Libro", [chapter_map("c1", "Uno"), chapter_map("c2", "Dos")])

        assert view.root["topic"] == "Libro"
        assert [b["topic"] for b in view.root["children"]] == ["Uno", "Dos"]

    def test_ids_unicos_en_el_arbol_combinado(self):
        view = combine_mind_maps("Libro", [chapter_map("c1", "Uno"), chapter_map("c2", "Dos")])
        ids  = collect_ids(view.root)

        assert len(ids) == len(set(ids))
        assert "c2:root-1-1" in ids

    def test_no_modifica_los_mapas_de_capitulo(self):
        chapter = chapter_map("c1", "Uno")
        combine_mind_maps("Libro", [chapter])
        assert chapter.mind_map["nodeData"]["id"] == "root"

    def test_ignora_capitulos_sin_mapa(self):
        empty = ChapterResult(id="c0", title="Vacío", content="")
        view  = combine_mind_maps("Libro", [empty, chapter_map("c1", "Uno")])
        assert len(view.root["children"]) == 1


class TestFormats:

    def test_markdown_con_sangria_por_nivel(self):
        view = as_view("Uno", chapter_map("c1", "Uno").mind_map)
        text = mind_map_to_markdown(view).decode("utf-8")

        assert text == "# Uno\n\n- Idea A\n  - Detalle\n- Idea B\n"

    def test_json_incluye_flechas(self):
        view = MindMapView(
            title  = "Uno",
            data   = chapter_map("c1", "Uno").mind_map,
            arrows = [{"from": "root-1", "to": "root-2", "label": "causa"}],
        )
        data = json.loads(render_mind_map(view, "json"))

        assert data["nodeData"]["topic"] == "Uno"
        assert data["arrows"][0]["label"] == "causa"

    def test_as_view_separa_las_flechas(self):
        view = as_view("Uno", {"nodeData": {"id": "root", "topic": "Uno"}, "arrows": [{"from": "a", "to": "b"}]})
        assert "arrows" not in view.data
        assert view.arrows == [{"from": "a", "to": "b"}]

    def test_png_pasa_por_el_rasterizador(self):
        view = as_view("Uno", chapter_map("c1", "Uno").mind_map)
        with patch("studylib.export.mindmap.html_to_png", return_value=b"\x89PNG") as raster:
            assert MIND_MAP_FORMATS["PNG"](view) == b"\x89PNG"
        html = raster.call_args.args[0]
        assert "<li>Idea A<ul><li>Detalle</li></ul></li>" in html

    def test_formato_desconocido(self):
        view = as_view("Uno", chapter_map("c1", "Uno").mind_map)
        with pytest.raises(UnsupportedFormatError, match="GIF"):
            render_mind_map(view, "GIF")

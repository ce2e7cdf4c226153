import pytest
from studylib.errors import FormatError
from studylib.router.response_parser import extract_fenced_block, parse_structured_response


class TestResponseParser:

    def test_json_valido_directo(self):
        raw = '{"questions": [{"question": "¿Qué?"}]}'
        result = parse_structured_response(raw, "quiz")
        assert result["questions"][0]["question"] == "¿Qué?"

    def test_json_con_espacios_alrededor(self):
        raw = '\n\n   {"flashcards": []}   \n'
        assert parse_structured_response(raw, "flashcard") == {"flashcards": []}

    def test_lista_json_suelta(self):
        assert parse_structured_response('[1, 2, 3]', "quiz") == [1, 2, 3]

    def test_json_en_bloque_markdown(self):
        raw = '```json\n{"nodeData": {"id": "root", "topic": "Tema"}}\n```'
        result = parse_structured_response(raw, "mind map")
        assert result["nodeData"]["topic"] == "Tema"

    def test_json_en_bloque_markdown_sin_lenguaje(self):
        raw = '```\n{"arrows": []}\n```'
        assert parse_structured_response(raw, "arrows") == {"arrows": []}

    def test_bloque_con_otra_etiqueta_de_lenguaje(self):
        raw = '```JSON\n{"a": 1}\n```'
        assert parse_structured_response(raw, "quiz") == {"a": 1}

    def test_prosa_mas_bloque_devuelve_el_bloque(self):
        raw = (
            "Claro, aquí tienes el quiz que pediste:\n\n"
            '```json\n{"questions": [{"question": "Q1"}]}\n```\n\n'
            "Espero que te sirva."
        )
        result = parse_structured_response(raw, "quiz")
        assert result == {"questions": [{"question": "Q1"}]}

    def test_usa_el_primer_bloque(self):
        raw = '```json\n{"primero": true}\n```\ntexto\n```json\n{"segundo": true}\n```'
        assert parse_structured_response(raw, "quiz") == {"primero": True}

    def test_bloque_en_una_sola_linea_con_etiqueta(self):
        raw = 'Aquí está: ```json {"questions": []}```'
        assert parse_structured_response(raw, "quiz") == {"questions": []}

    def test_bloque_en_una_sola_linea_sin_etiqueta(self):
        raw = 'Aquí está: ```{"questions": []}```'
        assert parse_structured_response(raw, "quiz") == {"questions": []}

    def test_bloque_en_una_sola_linea_con_lista(self):
        raw = 'Flechas: ```json [{"from": "a", "to": "b"}]```'
        assert parse_structured_response(raw, "arrows") == [{"from": "a", "to": "b"}]

    def test_prosa_sin_json_lanza_format_error(self):
        with pytest.raises(FormatError) as exc:
            parse_structured_response("Lo siento, no puedo generar esto.", "mind map")
        assert exc.value.mode == "mind map"
        assert "AI returned incorrectly formatted mind map data." in str(exc.value)

    def test_bloque_con_json_roto_lanza_format_error(self):
        raw = '```json\n{"questions": [\n```'
        with pytest.raises(FormatError):
            parse_structured_response(raw, "quiz")

    def test_texto_vacio_lanza_format_error(self):
        with pytest.raises(FormatError):
            parse_structured_response("", "flashcard")

    def test_none_lanza_format_error(self):
        with pytest.raises(FormatError):
            parse_structured_response(None, "flashcard")


class TestExtractFencedBlock:

    def test_sin_bloque_devuelve_none(self):
        assert extract_fenced_block("solo texto") is None

    def test_contenido_recortado(self):
        assert extract_fenced_block("```json\n  {}  \n```") == "{}"

# tests/test_cli.py
import json
import pytest
from pathlib import Path
from unittest.mock import MagicMock, patch
from click.testing import CliRunner

from studylib.cli import main
from studylib.export.serializer import Exporter
from studylib.generator import StudyGenerator
from studylib.models import BookResult, ChapterResult, ProcessingMode, QuizQuestion
from studylib.orchestrator import Orchestrator
from studylib.processor.extractor import ChapterExtractor
from studylib.processor.parsers.factory import ParserFactory
from studylib.storage.cache import ContentCache


QUIZ_RESPONSE = json.dumps({"questions": [
    {"question": f"P{i}", "options": ["a", "b", "c", "d"], "correctAnswerIndex": 1, "answerLocation": "x"}
    for i in range(5)
]})


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------

@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Config y caché dentro de tmp_path: nunca se toca ~/.studylib."""
    monkeypatch.setenv("STUDYLIB_CONFIG_PATH", str(tmp_path / "config.yaml"))
    monkeypatch.setenv("STUDYLIB_DB_PATH", str(tmp_path / "cache.db"))


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def router():
    r = MagicMock()
    r.generate.return_value = QUIZ_RESPONSE
    return r


@pytest.fixture
def fake_build(router):
    """build_orchestrator real, salvo el router: nada sale a la red."""
    def _build(db_path=None, config_path=None, output_dir=None, options=None, notifier=None):
        return Orchestrator(
            parser_factory = ParserFactory(),
            extractor      = ChapterExtractor(),
            generator      = StudyGenerator(router),
            cache          = ContentCache(db_path=db_path),
            exporter       = Exporter(output_dir=output_dir, notifier=notifier),
            options        = options,
            notifier       = notifier,
        )
    with patch("studylib.cli.build_orchestrator", side_effect=_build) as mock:
        yield mock


def make_result_file(path: Path) -> Path:
    book = BookResult("Libro", "Autora", ProcessingMode.QUIZ, (
        ChapterResult(
            id="c1", title="Uno", content="", processed=True,
            quiz=[QuizQuestion("¿Qué?", ["a", "b"], 0, "pág. 1")],
        ),
    ))
    path.write_text(json.dumps(book.to_dict()), encoding="utf-8")
    return path


# ------------------------------------------------------------------
# studylib chapters
# ------------------------------------------------------------------

class TestChapters:

    def test_lista_los_capitulos(self, runner, three_chapter_epub):
        result = runner.invoke(main, ["chapters", "--book", str(three_chapter_epub)])

        assert result.exit_code == 0, result.output
        assert "Capítulo 1" in result.output
        assert "Capítulo 3" in result.output
        assert "caracteres" in result.output

    def test_archivo_inexistente(self, runner, tmp_path):
        result = runner.invoke(main, ["chapters", "--book", str(tmp_path / "nada.epub")])

        assert result.exit_code == 1
        assert "Archivo no encontrado" in result.output

    def test_extension_no_soportada(self, runner, tmp_path):
        book = tmp_path / "libro.docx"
        book.write_text("hola")

        result = runner.invoke(main, ["chapters", "--book", str(book)])

        assert result.exit_code == 1
        assert "Formato no soportado" in result.output

    def test_epub_corrupto_aborta(self, runner, tmp_path):
        book = tmp_path / "roto.epub"
        book.write_bytes(b"no es un zip")

        result = runner.invoke(main, ["chapters", "--book", str(book)])

        assert result.exit_code == 1
        assert "Error:" in result.output


# ------------------------------------------------------------------
# studylib process
# ------------------------------------------------------------------

class TestProcess:

    def test_quiz_guarda_resultado_y_exporta(self, runner, fake_build, router, three_chapter_epub, tmp_path):
        out = tmp_path / "out"
        result = runner.invoke(main, [
            "process",
            "--book",   str(three_chapter_epub),
            "--mode",   "quiz",
            "--format", "csv",
            "--output", str(out),
        ])

        assert result.exit_code == 0, result.output
        assert "[1/3]" in result.output
        assert "[3/3]" in result.output
        assert router.generate.call_count == 3

        saved = json.loads((out / "Libro de prueba.quiz.result.json").read_text(encoding="utf-8"))
        assert saved["mode"] == "quiz"
        assert len(saved["chapters"]) == 3

        csv_lines = (out / "Libro de prueba.csv").read_text(encoding="utf-8").split("\n")
        assert len(csv_lines) == 16

    def test_segunda_corrida_sale_de_cache(self, runner, fake_build, router, three_chapter_epub, tmp_path):
        args = ["process", "--book", str(three_chapter_epub), "--mode", "quiz", "--output", str(tmp_path / "out")]

        runner.invoke(main, args)
        result = runner.invoke(main, args)

        assert result.exit_code == 0, result.output
        assert router.generate.call_count == 3

    def test_idioma_y_opciones_llegan_al_orchestrator(self, runner, fake_build, three_chapter_epub, tmp_path):
        runner.invoke(main, [
            "process", "--book", str(three_chapter_epub),
            "--mode", "flashcard", "--lang", "EN", "--depth", "2", "--no-smart",
            "--output", str(tmp_path / "out"),
        ])

        options = fake_build.call_args.kwargs["options"]
        assert options.processing_mode is ProcessingMode.FLASHCARD
        assert options.output_language == "en"
        assert options.max_sub_chapter_depth == 2
        assert options.use_smart_detection is False

    def test_idioma_invalido(self, runner, fake_build, three_chapter_epub):
        result = runner.invoke(main, ["process", "--book", str(three_chapter_epub), "--lang", "e$"])

        assert result.exit_code == 1
        assert "caracteres inválidos" in result.output
        fake_build.assert_not_called()

    def test_capitulo_desconocido(self, runner, fake_build, three_chapter_epub, tmp_path):
        result = runner.invoke(main, [
            "process", "--book", str(three_chapter_epub),
            "--chapter", "no-existe", "--output", str(tmp_path / "out"),
        ])

        assert result.exit_code == 1
        assert "no-existe" in result.output

    def test_fallo_del_modelo_sale_con_1(self, runner, fake_build, router, three_chapter_epub, tmp_path):
        router.generate.return_value = "esto no es json"

        result = runner.invoke(main, [
            "process", "--book", str(three_chapter_epub),
            "--mode", "quiz", "--output", str(tmp_path / "out"),
        ])

        assert result.exit_code == 1
        assert "Processing failed on 'Capítulo 1'" in result.output
        assert router.generate.call_count == 1

    def test_formato_no_soportado_por_el_modo(self, runner, fake_build, three_chapter_epub, tmp_path):
        result = runner.invoke(main, [
            "process", "--book", str(three_chapter_epub),
            "--mode", "quiz", "--format", "MD", "--output", str(tmp_path / "out"),
        ])

        assert result.exit_code == 1
        assert "Unsupported format: MD" in result.output


# ------------------------------------------------------------------
# studylib export
# ------------------------------------------------------------------

class TestExport:

    def test_reexporta_sin_llamar_a_la_ia(self, runner, tmp_path):
        result_file = make_result_file(tmp_path / "libro.quiz.result.json")
        out = tmp_path / "out"

        with patch("studylib.cli.build_orchestrator") as build:
            result = runner.invoke(main, [
                "export", "--result", str(result_file),
                "--format", "JSON", "--format", "HTML", "--output", str(out),
            ])

        assert result.exit_code == 0, result.output
        build.assert_not_called()
        assert json.loads((out / "Libro.json").read_text(encoding="utf-8"))[0]["question"] == "¿Qué?"
        assert "Ver respuesta" in (out / "Libro.html").read_text(encoding="utf-8")

    def test_resultado_ilegible(self, runner, tmp_path):
        broken = tmp_path / "roto.result.json"
        broken.write_text("{no es json")

        result = runner.invoke(main, ["export", "--result", str(broken), "--format", "JSON"])

        assert result.exit_code == 1
        assert "Resultado ilegible" in result.output


# ------------------------------------------------------------------
# studylib cache clear
# ------------------------------------------------------------------

class TestCacheClear:

    def test_borra_todo_el_libro(self, runner, tmp_path):
        store = ContentCache()
        store.put("ballena.epub", "c1", "quiz", [])
        store.put("ballena.epub", "c2", "quiz", [])
        store.put("otro.epub", "c1", "quiz", [])
        store.close()

        result = runner.invoke(main, ["cache", "clear", "--book", str(tmp_path / "ballena.epub")])

        assert result.exit_code == 0, result.output
        assert "(2 entradas)" in result.output

        store = ContentCache()
        assert store.count("ballena.epub") == 0
        assert store.count("otro.epub") == 1
        store.close()

    def test_borra_un_capitulo_en_todos_los_modos(self, runner):
        store = ContentCache()
        store.put("ballena.epub", "c1", "quiz", [])
        store.put("ballena.epub", "c1", "summary", "Resumen")
        store.put("ballena.epub", "c2", "quiz", [])
        store.close()

        result = runner.invoke(main, ["cache", "clear", "--book", "ballena.epub", "--chapter", "c1"])

        assert result.exit_code == 0, result.output
        assert "c1: 2 entradas borradas" in result.output


# ------------------------------------------------------------------
# studylib test-connection
# ------------------------------------------------------------------

class TestTestConnection:

    def test_sin_config_aborta(self, runner):
        result = runner.invoke(main, ["test-connection"])

        assert result.exit_code == 1
        assert "Config no encontrada" in result.output

    def test_sin_api_key_aborta(self, runner, tmp_path):
        (tmp_path / "config.yaml").write_text("ai:\n  provider: openai\n")

        result = runner.invoke(main, ["test-connection"])

        assert result.exit_code == 1
        assert "sin api_key" in result.output

    def test_conexion_exitosa(self, runner, tmp_path):
        (tmp_path / "config.yaml").write_text("ai:\n  provider: claude\n  api_key: sk-test\n")

        with patch("studylib.cli.build_generator") as build:
            build.return_value.test_connection.return_value = True
            result = runner.invoke(main, ["test-connection"])

        assert result.exit_code == 0, result.output
        assert "Conexión exitosa" in result.output

    def test_conexion_fallida(self, runner, tmp_path):
        (tmp_path / "config.yaml").write_text("ai:\n  provider: gemini\n  api_key: k\n")

        with patch("studylib.cli.build_generator") as build:
            build.return_value.test_connection.return_value = False
            result = runner.invoke(main, ["test-connection"])

        assert result.exit_code == 1
        assert "Conexión fallida" in result.output

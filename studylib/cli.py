# studylib/cli.py
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv

from studylib.errors import StudyLibError
from studylib.export.serializer import Exporter
from studylib.factory import build_generator, build_orchestrator
from studylib.models import BookResult, BookType, ProcessingMode
from studylib.processor.parsers.factory import ParserFactory
from studylib.router.config_loader import load_ai_config, load_processing_options
from studylib.router.models import ProcessingOptions
from studylib.storage.cache import ContentCache


# Carga .env una sola vez, antes que cualquier otra cosa
load_dotenv()

_MODES      = [m.value for m in ProcessingMode]
_BOOK_TYPES = [b.value for b in BookType]
_FORMATS    = ["JSON", "CSV", "HTML", "PDF", "PNG", "MD"]


class ClickNotifier:
    """Notificador de la CLI: líneas [studylib] en la terminal."""

    def info(self, message: str) -> None:
        click.echo(f"[studylib] {message}")

    def success(self, message: str) -> None:
        click.echo(click.style(f"[studylib] ✓ {message}", fg="green"))

    def error(self, message: str) -> None:
        click.echo(click.style(f"[studylib] {message}", fg="red"), err=True)


# ------------------------------------------------------------------
# Grupo raíz
# ------------------------------------------------------------------

@click.group()
@click.version_option(package_name="studylib")
@click.option("--config", "config_path", type=click.Path(), default=None,
              help="Ruta al config.yaml (por defecto ~/.studylib/config.yaml)")
@click.option("--verbose", "-v", is_flag=True, help="Logging detallado (DEBUG)")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], verbose: bool):
    """
    StudyLib — material de estudio a partir de libros.

    Extrae los capítulos de un EPUB o PDF y genera resúmenes,
    mapas mentales, quizzes y flashcards con IA.
    """
    logging.basicConfig(
        level  = logging.DEBUG if verbose else logging.WARNING,
        format = "%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# ------------------------------------------------------------------
# studylib chapters
# ------------------------------------------------------------------

@main.command()
@click.option("--book", "-b", required=True, type=click.Path(exists=False),
              help="Ruta al libro (.epub, .pdf)")
@click.option("--smart/--no-smart", default=None, help="Detección de subcapítulos")
@click.option("--depth", type=click.IntRange(min=0), default=None,
              help="Niveles extra de subcapítulos en modo smart")
@click.option("--skip-non-essential/--keep-all", default=None,
              help="Omitir portada, índice, agradecimientos, etc.")
@click.pass_context
def chapters(ctx: click.Context, book: str, smart: Optional[bool], depth: Optional[int],
             skip_non_essential: Optional[bool]):
    """Lista los capítulos que se van a procesar."""
    _validate_file(book)
    options = _options(ctx, smart=smart, depth=depth, skip_non_essential=skip_non_essential)
    orchestrator = _build(ctx, options)

    try:
        units = orchestrator.load(book)
    except StudyLibError as e:
        _abort(str(e))

    for unit in units:
        indent = "  " * unit.depth
        click.echo(f"{unit.order:>3}  {unit.id:<20} {indent}{unit.title}  ({len(unit.content)} caracteres)")


# ------------------------------------------------------------------
# studylib process
# ------------------------------------------------------------------

@main.command()
@click.option("--book", "-b", required=True, type=click.Path(exists=False),
              help="Ruta al libro (.epub, .pdf)")
@click.option("--mode", "-m", type=click.Choice(_MODES), default=None,
              help="Modo de procesamiento")
@click.option("--chapter", "chapter_ids", multiple=True,
              help="Id de capítulo a procesar (repetible). Por defecto todos.")
@click.option("--lang", default=None, metavar="LANG", help="Idioma de salida (ej: en, es)")
@click.option("--book-type", type=click.Choice(_BOOK_TYPES), default=None)
@click.option("--smart/--no-smart", default=None, help="Detección de subcapítulos")
@click.option("--depth", type=click.IntRange(min=0), default=None)
@click.option("--skip-non-essential/--keep-all", default=None)
@click.option("--instructions", default=None, help="Instrucciones adicionales para el modelo")
@click.option("--format", "-f", "formats", multiple=True,
              type=click.Choice(_FORMATS, case_sensitive=False),
              help="Formato de exportación (repetible)")
@click.option("--output", "-o", type=click.Path(file_okay=False), default=None,
              help="Directorio de salida (por defecto ~/.studylib/output)")
@click.option("--book-summary", is_flag=True,
              help="Modo summary: agrega conexiones y resumen general del libro")
@click.pass_context
def process(ctx: click.Context, book: str, mode: Optional[str], chapter_ids: tuple[str, ...],
            lang: Optional[str], book_type: Optional[str], smart: Optional[bool],
            depth: Optional[int], skip_non_essential: Optional[bool],
            instructions: Optional[str], formats: tuple[str, ...],
            output: Optional[str], book_summary: bool):
    """Genera material de estudio para los capítulos del libro."""
    _validate_file(book)
    if lang is not None:
        _validate_lang(lang, "--lang")

    options = _options(
        ctx, mode=mode, lang=lang, book_type=book_type,
        smart=smart, depth=depth, skip_non_essential=skip_non_essential,
    )
    orchestrator = _build(ctx, options, output)

    try:
        orchestrator.load(book)
        result = orchestrator.process(
            chapter_ids         = list(chapter_ids) or None,
            custom_instructions = instructions,
            on_progress         = _print_progress,
        )
        if book_summary and result.mode is ProcessingMode.SUMMARY:
            result = orchestrator.summarize_book()

    except FileNotFoundError as e:
        _abort(str(e))

    except ValueError as e:
        _abort(str(e))

    except KeyboardInterrupt:
        click.echo(
            "\n[studylib] Proceso interrumpido. "
            "Los capítulos ya generados quedaron en caché."
        )
        sys.exit(0)

    except StudyLibError:
        # El orchestrator ya notificó el error
        sys.exit(1)

    result_path = _save_result(result, output)
    click.echo(f"[studylib] Resultado: {result_path}")

    failed = 0
    for fmt in formats:
        outcome = orchestrator.export(fmt)
        failed += 0 if outcome.ok else 1
    if failed:
        sys.exit(1)


# ------------------------------------------------------------------
# studylib export
# ------------------------------------------------------------------

@main.command()
@click.option("--result", "-r", "result_file", required=True, type=click.Path(exists=True, dir_okay=False),
              help="Archivo .result.json de una corrida anterior")
@click.option("--format", "-f", "formats", required=True, multiple=True,
              type=click.Choice(_FORMATS, case_sensitive=False))
@click.option("--output", "-o", type=click.Path(file_okay=False), default=None)
def export(result_file: str, formats: tuple[str, ...], output: Optional[str]):
    """Re-exporta una corrida guardada a otros formatos, sin llamar a la IA."""
    try:
        data = json.loads(Path(result_file).read_text(encoding="utf-8"))
        book = BookResult.from_dict(data)
    except (ValueError, KeyError, TypeError) as e:
        _abort(f"Resultado ilegible: {result_file} ({e})")

    exporter = Exporter(output_dir=Path(output) if output else None, notifier=ClickNotifier())
    outcomes = [exporter.export_book(book, fmt) for fmt in formats]
    if not all(o.ok for o in outcomes):
        sys.exit(1)


# ------------------------------------------------------------------
# studylib cache
# ------------------------------------------------------------------

@main.group()
def cache():
    """Administra la caché de artefactos generados."""


@cache.command("clear")
@click.option("--book", "-b", required=True, help="Libro (ruta o nombre de archivo)")
@click.option("--chapter", "chapter_id", default=None, help="Id de capítulo. Sin él se borra todo el libro.")
@click.option("--mode", "-m", type=click.Choice(_MODES), default=None)
def cache_clear(book: str, chapter_id: Optional[str], mode: Optional[str]):
    """Borra la caché de un libro o de un capítulo."""
    document_name = Path(book).name
    store = ContentCache()
    try:
        if chapter_id is None:
            removed = store.count(document_name)
            store.clear_all(document_name)
            click.echo(f"[studylib] Caché de '{document_name}' limpiada ({removed} entradas)")
            return

        modes = [mode] if mode else _MODES
        removed = sum(store.clear(document_name, chapter_id, m) for m in modes)
        click.echo(f"[studylib] {chapter_id}: {removed} entradas borradas")
    finally:
        store.close()


# ------------------------------------------------------------------
# studylib test-connection
# ------------------------------------------------------------------

@main.command("test-connection")
@click.pass_context
def test_connection(ctx: click.Context):
    """Hace una llamada mínima al proveedor configurado."""
    config_path = ctx.obj.get("config_path")
    try:
        config = load_ai_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        _abort(str(e))

    if not config.api_key:
        _abort(f"{config.provider}: sin api_key configurada")

    click.echo(f"[studylib] Probando {config.provider} ({config.effective_model})...")
    if build_generator(config_path).test_connection():
        click.echo(click.style("[studylib] ✓ Conexión exitosa", fg="green"))
    else:
        _error("Conexión fallida. Revisa la api_key, la URL y el modelo.")
        sys.exit(1)


# ------------------------------------------------------------------
# Helpers de armado
# ------------------------------------------------------------------

def _options(ctx: click.Context, mode=None, lang=None, book_type=None,
             smart=None, depth=None, skip_non_essential=None) -> ProcessingOptions:
    """Opciones del config.yaml, pisadas por los flags que vinieron."""
    try:
        base = load_processing_options(ctx.obj.get("config_path"))
    except ValueError as e:
        _abort(f"Config inválida: {e}")

    overrides = {
        "processing_mode":             ProcessingMode(mode) if mode else None,
        "output_language":             lang.lower() if lang else None,
        "book_type":                   BookType(book_type) if book_type else None,
        "use_smart_detection":         smart,
        "max_sub_chapter_depth":       depth,
        "skip_non_essential_chapters": skip_non_essential,
    }
    return dataclasses.replace(base, **{k: v for k, v in overrides.items() if v is not None})


def _build(ctx: click.Context, options: ProcessingOptions, output: Optional[str] = None):
    return build_orchestrator(
        config_path = ctx.obj.get("config_path"),
        output_dir  = Path(output) if output else None,
        options     = options,
        notifier    = ClickNotifier(),
    )


def _save_result(result: BookResult, output: Optional[str]) -> Path:
    out_dir = Path(output) if output else Path.home() / ".studylib" / "output"
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"{Path(result.title).name or 'book'}.{result.mode.value}.result.json"
    path.write_text(json.dumps(result.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    return path


# ------------------------------------------------------------------
# Helpers de validación
# ------------------------------------------------------------------

def _validate_file(path: str) -> None:
    """Verifica existencia y formato del archivo."""
    p = Path(path)

    if not p.exists():
        _abort(f"Archivo no encontrado: {path}")

    if not p.is_file():
        _abort(f"La ruta no es un archivo: {path}")

    if p.suffix.lower() not in ParserFactory.SUPPORTED_EXTENSIONS:
        supported = ", ".join(ParserFactory.SUPPORTED_EXTENSIONS)
        _abort(
            f"Formato no soportado: '{p.suffix}'\n"
            f"Formatos disponibles: {supported}"
        )


def _validate_lang(code: str, option: str) -> None:
    """Valida que el código de idioma sea razonable."""
    code = code.strip()

    if not code:
        _abort(f"{option} no puede estar vacío.")

    if not code.replace("-", "").isalpha():
        _abort(
            f"{option} contiene caracteres inválidos: '{code}'\n"
            f"Ejemplos válidos: en, es, ja, fr, zh-cn"
        )

    if len(code) > 10:
        _abort(f"{option}: código de idioma demasiado largo: '{code}'")


# ------------------------------------------------------------------
# Helpers de output
# ------------------------------------------------------------------

def _print_progress(index: int, total: int, title: str) -> None:
    click.echo(f"[studylib] [{index}/{total}] {title}")


def _abort(message: str) -> None:
    """Error de validación — culpa del usuario."""
    click.echo(click.style(f"[studylib] Error: {message}", fg="red"), err=True)
    sys.exit(1)


def _error(message: str) -> None:
    """Error de sistema — no es culpa del usuario."""
    click.echo(click.style(f"[studylib] {message}", fg="red"), err=True)

# studylib/orchestrator.py
import dataclasses
import logging
import threading
from pathlib import Path
from typing import Callable, Optional, Sequence

from studylib.errors import ProcessingCancelledError, StudyLibError
from studylib.export.mindmap import MindMapView, combine_mind_maps
from studylib.export.serializer import ExportOutcome, Exporter, book_payload, chapter_payload
from studylib.generator import StudyGenerator
from studylib.models import BookResult, ChapterResult, ChapterUnit, ProcessingMode
from studylib.notifier import LoggingNotifier, Notifier
from studylib.processor.extractor import ChapterExtractor
from studylib.processor.models import DocumentTree
from studylib.processor.parsers.factory import ParserFactory
from studylib.router.models import ProcessingOptions
from studylib.storage.cache import ContentCache

logger = logging.getLogger(__name__)

# (índice 1-based, total, título del capítulo)
ProgressCallback = Callable[[int, int, str], None]


class NoDocumentLoadedError(StudyLibError):
    """Se pidió procesar o exportar antes de cargar un documento."""
    pass


class Orchestrator:
    """
    Una sesión interactiva: un documento cargado, sus capítulos y el
    último BookResult. No tiene lógica de negocio propia: coordina módulos.

    Responsabilidades:
    - Cargar el documento y extraer capítulos (una vez por documento)
    - Procesar capítulos en orden, uno por vez, consultando la caché antes
      de cada llamada al generador y guardando después de cada éxito
    - Cortar la corrida en el primer error: una sola notificación y re-raise
    - Reemplazar el BookResult entero cuando una corrida termina bien
    """

    def __init__(
        self,
        parser_factory: ParserFactory,
        extractor:      ChapterExtractor,
        generator:      StudyGenerator,
        cache:          ContentCache,
        exporter:       Exporter,
        options:        Optional[ProcessingOptions] = None,
        notifier:       Optional[Notifier]          = None,
    ):
        self._parser_factory = parser_factory
        self._extractor      = extractor
        self._generator      = generator
        self._cache          = cache
        self._exporter       = exporter
        self._options        = options or ProcessingOptions()
        self._notifier       = notifier or LoggingNotifier()

        self._tree:          Optional[DocumentTree] = None
        self._document_name: Optional[str]          = None
        self._chapters:      list[ChapterUnit]      = []
        self._book_result:   Optional[BookResult]   = None

    # ------------------------------------------------------------------
    # Estado de la sesión
    # ------------------------------------------------------------------

    @property
    def options(self) -> ProcessingOptions:
        return self._options

    @property
    def document_name(self) -> Optional[str]:
        return self._document_name

    @property
    def chapters(self) -> list[ChapterUnit]:
        return list(self._chapters)

    @property
    def book_result(self) -> Optional[BookResult]:
        return self._book_result

    # ------------------------------------------------------------------
    # Extracción
    # ------------------------------------------------------------------

    def load(self, file_path: str, options: Optional[ProcessingOptions] = None) -> list[ChapterUnit]:
        """Parsea el archivo y extrae sus capítulos. Reemplaza la sesión anterior."""
        path = Path(file_path)
        tree = self._parser_factory.parse(str(path))
        return self.extract_chapters(tree, path.name, options)

    def extract_chapters(
        self,
        tree:          DocumentTree,
        document_name: Optional[str]               = None,
        options:       Optional[ProcessingOptions] = None,
    ) -> list[ChapterUnit]:
        if options is not None:
            self._options = options

        chapters = self._extractor.extract(
            tree,
            use_smart_detection   = self._options.use_smart_detection,
            skip_non_essential    = self._options.skip_non_essential_chapters,
            max_sub_chapter_depth = self._options.max_sub_chapter_depth,
        )

        self._tree          = tree
        self._document_name = document_name or Path(tree.source_path).name or tree.title
        self._chapters      = chapters
        self._book_result   = None
        self._log(f"'{tree.title}' — {len(chapters)} capítulos")
        return self.chapters

    # ------------------------------------------------------------------
    # Procesamiento
    # ------------------------------------------------------------------

    def process(
        self,
        chapter_ids:         Optional[Sequence[str]]       = None,
        options:             Optional[ProcessingOptions]   = None,
        custom_instructions: Optional[str]                 = None,
        on_progress:         Optional[ProgressCallback]    = None,
        cancel_event:        Optional[threading.Event]     = None,
    ) -> BookResult:
        """
        Procesa los capítulos elegidos (todos si chapter_ids es None) en el
        orden del documento, con el modo de las opciones.

        Raises:
            NoDocumentLoadedError:    no hay documento cargado.
            ValueError:               algún id no pertenece al documento.
            ProcessingCancelledError: cancel_event se activó entre capítulos.
            StudyLibError:            el primer capítulo que falle corta la corrida.
        """
        self._assert_loaded()
        if options is not None:
            self._options = options

        mode     = self._options.processing_mode
        selected = self._select(chapter_ids)
        total    = len(selected)

        # La corrida anterior deja de existir apenas empieza la nueva
        self._book_result = None
        results: list[ChapterResult] = []

        self._log(f"Procesando {total} capítulos en modo {mode.value}")
        for index, chapter in enumerate(selected, start=1):
            try:
                if cancel_event is not None and cancel_event.is_set():
                    raise ProcessingCancelledError(
                        f"Procesamiento cancelado antes del capítulo {index}/{total}"
                    )
                if on_progress:
                    on_progress(index, total, chapter.title)

                artifact = self._artifact_for(chapter, mode, custom_instructions)
                results.append(ChapterResult.from_chapter(chapter, mode, artifact))

            except Exception as e:
                self._notifier.error(f"Processing failed on '{chapter.title}': {e}")
                raise

        self._book_result = BookResult(
            title    = self._tree.title,
            author   = self._tree.author,
            mode     = mode,
            chapters = tuple(results),
        )
        self._notifier.success(f"{total} capítulos procesados ({mode.value})")
        return self._book_result

    def summarize_book(self) -> BookResult:
        """
        Sobre una corrida summary ya terminada: analiza conexiones entre
        capítulos y escribe el resumen general del libro.
        """
        book = self._require_result(ProcessingMode.SUMMARY)
        language = self._options.output_language
        try:
            connections = self._generator.analyze_connections(book.chapters, language)
            overall     = self._generator.generate_overall_summary(
                book.title, book.chapters, connections, language,
            )
        except Exception as e:
            self._notifier.error(str(e))
            raise

        self._book_result = dataclasses.replace(
            book, connections=connections, overall_summary=overall,
        )
        return self._book_result

    def book_mind_map(self, with_arrows: bool = False, regenerate: bool = False) -> MindMapView:
        """
        Mapa mental del libro entero. Por defecto une los mapas de cada
        capítulo; con regenerate=True le pide al modelo un mapa integrado.
        """
        book = self._require_result(ProcessingMode.MINDMAP)
        language = self._options.output_language
        try:
            if regenerate:
                data = self._generator.generate_combined_mind_map(book.title, book.chapters, language)
                view = MindMapView(title=book.title, data=data)
            else:
                view = combine_mind_maps(book.title, book.chapters)
            if with_arrows:
                view.arrows = self._generator.generate_mind_map_arrows(view.data, language)
        except Exception as e:
            self._notifier.error(str(e))
            raise
        return view

    # ------------------------------------------------------------------
    # Caché y exportación
    # ------------------------------------------------------------------

    def clear_cache(self, chapter_id: Optional[str] = None, mode: Optional[ProcessingMode] = None) -> None:
        """Sin chapter_id borra todo el documento; con él, solo esa entrada."""
        self._assert_loaded()
        if chapter_id is None:
            self._cache.clear_all(self._document_name)
            self._log(f"Caché de '{self._document_name}' limpiada")
            return
        mode = mode or self._options.processing_mode
        removed = self._cache.clear(self._document_name, chapter_id, mode.value)
        self._log(f"Caché de {chapter_id} ({mode.value}): {'borrada' if removed else 'no existía'}")

    def export(self, fmt: str, chapter_id: Optional[str] = None) -> ExportOutcome:
        """Exporta el libro entero o un solo capítulo de la última corrida."""
        book = self._book_result
        if book is None:
            self._notifier.error("Export failed: no hay resultados para exportar")
            return ExportOutcome(ok=False, error="no hay resultados para exportar")

        if chapter_id is None:
            return self._exporter.export(book.title, fmt, book_payload(book), book.mode)

        chapter = next((c for c in book.chapters if c.id == chapter_id), None)
        if chapter is None:
            self._notifier.error(f"Export failed: capítulo {chapter_id} no procesado")
            return ExportOutcome(ok=False, error=f"capítulo {chapter_id} no procesado")
        return self._exporter.export(chapter.title, fmt, chapter_payload(chapter, book.mode), book.mode)

    # ------------------------------------------------------------------
    # Pasos internos
    # ------------------------------------------------------------------

    def _artifact_for(self, chapter: ChapterUnit, mode: ProcessingMode, custom_instructions: Optional[str]):
        cached = self._cache.get(self._document_name, chapter.id, mode.value)
        if cached is not None:
            logger.debug("Caché: '%s' (%s)", chapter.title, mode.value)
            return cached

        artifact = self._generate(chapter, mode, custom_instructions)
        self._cache.put(self._document_name, chapter.id, mode.value, artifact)
        return artifact

    def _generate(self, chapter: ChapterUnit, mode: ProcessingMode, custom_instructions: Optional[str]):
        language = self._options.output_language
        if mode is ProcessingMode.SUMMARY:
            return self._generator.summarize(
                chapter.title, chapter.content, self._options.book_type, language, custom_instructions,
            )
        if mode is ProcessingMode.MINDMAP:
            return self._generator.generate_mind_map(chapter.content, language, custom_instructions)
        if mode is ProcessingMode.QUIZ:
            return self._generator.generate_quiz(chapter.title, chapter.content, language, custom_instructions)
        return self._generator.generate_flashcards(chapter.title, chapter.content, language, custom_instructions)

    def _select(self, chapter_ids: Optional[Sequence[str]]) -> list[ChapterUnit]:
        if chapter_ids is None:
            return list(self._chapters)
        wanted  = set(chapter_ids)
        unknown = wanted - {c.id for c in self._chapters}
        if unknown:
            raise ValueError(f"Capítulos desconocidos: {', '.join(sorted(unknown))}")
        # Siempre en el orden del documento, no en el orden pedido
        return [c for c in self._chapters if c.id in wanted]

    def _require_result(self, mode: ProcessingMode) -> BookResult:
        book = self._book_result
        if book is None or book.mode is not mode:
            raise NoDocumentLoadedError(f"No hay una corrida en modo {mode.value} terminada")
        return book

    def _assert_loaded(self) -> None:
        if self._tree is None:
            raise NoDocumentLoadedError("No hay documento cargado")

    def _log(self, message: str) -> None:
        self._notifier.info(message)

# studylib/generator.py
import json
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Sequence

from studylib.errors import (
    FormatError,
    GenerationError,
    ProviderHTTPError,
    StudyLibError,
)
from studylib.models import BookType, ChapterResult, Flashcard, QuizQuestion
from studylib.router.prompt_builder import (
    build_arrows_prompt,
    build_combined_mind_map_prompt,
    build_connections_prompt,
    build_flashcard_prompt,
    build_mind_map_prompt,
    build_overall_summary_prompt,
    build_quiz_prompt,
    build_summary_prompt,
    build_test_connection_prompt,
)
from studylib.router.response_parser import parse_structured_response
from studylib.router.router import Router

logger = logging.getLogger(__name__)

# Cantidad que piden los prompts de quiz y flashcards
EXPECTED_ITEMS = 5


class StudyGenerator:
    """
    Convierte texto de capítulo en artefactos de estudio usando el Router.

    Cada método:
    - arma el prompt del modo (template + instrucciones del usuario)
    - delega la llamada al Router, que agrega la directiva de idioma al final
    - convierte la respuesta en el tipo del modo, o falla

    Nunca devuelve un placeholder: cualquier error sale re-lanzado con el
    prefijo del modo y conservando el mensaje y la familia del error original.
    """

    def __init__(self, router: Router):
        self._router = router

    # ------------------------------------------------------------------
    # Modos por capítulo
    # ------------------------------------------------------------------

    def summarize(
        self,
        title:               str,
        content:             str,
        book_type:           BookType      = BookType.NON_FICTION,
        language:            str           = "en",
        custom_instructions: Optional[str] = None,
    ) -> str:
        with _failure_prefix("Chapter summarization failed"):
            prompt = build_summary_prompt(title, content, book_type, custom_instructions)
            return _non_empty(self._router.generate(prompt, language), "AI returned an empty summary.")

    def generate_mind_map(
        self,
        content:             str,
        language:            str           = "en",
        custom_instructions: Optional[str] = None,
    ) -> dict:
        with _failure_prefix("Chapter mind map generation failed"):
            raw = self._router.generate(build_mind_map_prompt(content, custom_instructions), language)
            return _to_mind_map(raw)

    def generate_quiz(
        self,
        title:               str,
        content:             str,
        language:            str           = "en",
        custom_instructions: Optional[str] = None,
    ) -> list[QuizQuestion]:
        with _failure_prefix("Failed to generate quiz"):
            raw  = self._router.generate(build_quiz_prompt(title, content, custom_instructions), language)
            data = parse_structured_response(raw, "quiz")
            questions = [_to_question(item) for item in _items(data, "questions", "quiz")]
            _check_count(questions, "quiz", title)
            return questions

    def generate_flashcards(
        self,
        title:               str,
        content:             str,
        language:            str           = "en",
        custom_instructions: Optional[str] = None,
    ) -> list[Flashcard]:
        with _failure_prefix("Failed to generate flashcards"):
            raw  = self._router.generate(build_flashcard_prompt(title, content, custom_instructions), language)
            data = parse_structured_response(raw, "flashcard")
            cards = [_to_flashcard(item) for item in _items(data, "flashcards", "flashcard")]
            _check_count(cards, "flashcard", title)
            return cards

    # ------------------------------------------------------------------
    # Libro completo
    # ------------------------------------------------------------------

    def analyze_connections(
        self,
        chapters: Sequence[ChapterResult],
        language: str = "en",
    ) -> str:
        """Prosa sobre cómo se relacionan los capítulos ya resumidos."""
        with _failure_prefix("Chapter connection analysis failed"):
            summaries = "\n\n".join(
                f"{c.title}:\n{c.summary or 'No summary'}" for c in chapters
            )
            raw = self._router.generate(build_connections_prompt(summaries), language)
            return _non_empty(raw, "AI returned empty connection analysis.")

    def generate_overall_summary(
        self,
        book_title:  str,
        chapters:    Sequence[ChapterResult],
        connections: str = "",
        language:    str = "en",
    ) -> str:
        with _failure_prefix("Overall summary generation failed"):
            chapter_info = "\n".join(
                f"Chapter {i}: {c.title}, Content: {c.summary or 'No summary'}"
                for i, c in enumerate(chapters, start=1)
            )
            prompt = build_overall_summary_prompt(book_title, chapter_info, connections)
            return _non_empty(self._router.generate(prompt, language), "AI returned an empty overall summary.")

    def generate_combined_mind_map(
        self,
        book_title:          str,
        chapters:            Sequence[ChapterResult],
        language:            str           = "en",
        custom_instructions: Optional[str] = None,
    ) -> dict:
        """Un solo mapa mental para el libro entero: cada capítulo es una rama."""
        with _failure_prefix("Full book mind map generation failed"):
            prompt = build_combined_mind_map_prompt(
                book_title, [c.content for c in chapters], custom_instructions,
            )
            return _to_mind_map(self._router.generate(prompt, language))

    def generate_mind_map_arrows(self, mind_map: dict, language: str = "en") -> list[dict]:
        """Flechas entre nodos del mapa que no son padre e hijo."""
        with _failure_prefix("Mind map arrow generation failed"):
            payload = json.dumps(mind_map, indent=2, ensure_ascii=False)
            raw  = self._router.generate(build_arrows_prompt(payload), language)
            data = parse_structured_response(raw, "arrows")
            arrows = data.get("arrows") if isinstance(data, dict) else data
            if not isinstance(arrows, list):
                raise FormatError("arrows")
            return [a for a in arrows if isinstance(a, dict) and a.get("from") and a.get("to")]

    def test_connection(self) -> bool:
        """Un viaje de ida y vuelta barato. Nunca lanza: False ante cualquier fallo."""
        try:
            text = self._router.generate(build_test_connection_prompt(), "en") or ""
        except Exception as e:
            logger.warning("Prueba de conexión fallida: %s", e)
            return False
        return "successful" in text.lower()


# ------------------------------------------------------------------
# Helpers internos
# ------------------------------------------------------------------

@contextmanager
def _failure_prefix(prefix: str) -> Iterator[None]:
    try:
        yield
    except Exception as e:
        logger.error("%s: %s", prefix, e)
        raise _with_prefix(prefix, e) from e


def _with_prefix(prefix: str, error: Exception) -> StudyLibError:
    """Mismo tipo de error, mensaje con el prefijo del modo."""
    message = f"{prefix}: {error}"
    if isinstance(error, FormatError):
        return FormatError(error.mode, message)
    if isinstance(error, ProviderHTTPError):
        return ProviderHTTPError(error.provider, error.status, error.reason, message)
    if isinstance(error, StudyLibError):
        return type(error)(message)
    # Errores de red, timeouts y errores del SDK del proveedor
    return GenerationError(message)


def _non_empty(text: Optional[str], message: str) -> str:
    if not text or not text.strip():
        raise GenerationError(message)
    return text.strip()


def _items(data: Any, key: str, mode: str) -> list:
    """Acepta {"<key>": [...]} o una lista JSON suelta."""
    items = data.get(key) if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise FormatError(mode)
    return items


def _to_question(item: Any) -> QuizQuestion:
    try:
        question = QuizQuestion.from_dict(item)
    except (KeyError, TypeError, ValueError) as e:
        raise FormatError("quiz", f"AI returned incorrectly formatted quiz data: {e}") from e
    if not 0 <= question.correct_answer_index < len(question.options):
        raise FormatError(
            "quiz",
            f"correctAnswerIndex {question.correct_answer_index} fuera de rango "
            f"para {len(question.options)} opciones",
        )
    return question


def _to_flashcard(item: Any) -> Flashcard:
    try:
        return Flashcard.from_dict(item)
    except (KeyError, TypeError, ValueError) as e:
        raise FormatError("flashcard", f"AI returned incorrectly formatted flashcard data: {e}") from e


def _check_count(items: list, mode: str, title: str) -> None:
    if len(items) != EXPECTED_ITEMS:
        logger.warning(
            "'%s': se pidieron %d elementos de %s, llegaron %d — se usan tal cual",
            title, EXPECTED_ITEMS, mode, len(items),
        )


def _to_mind_map(raw: Optional[str]) -> dict:
    """
    Normaliza la respuesta a {"nodeData": {...}}.
    Acepta también el nodo raíz suelto. Completa ids faltantes.
    """
    if not raw or not raw.strip():
        raise FormatError("mind map", "AI returned empty mind map data.")

    data = parse_structured_response(raw, "mind map")
    if isinstance(data, dict) and "nodeData" not in data and "topic" in data:
        data = {"nodeData": data}

    root = data.get("nodeData") if isinstance(data, dict) else None
    if not isinstance(root, dict) or not str(root.get("topic", "")).strip():
        raise FormatError("mind map")

    _ensure_ids(root, "root")
    return data


def _ensure_ids(node: dict, fallback: str) -> None:
    node.setdefault("id", fallback)
    children = node.get("children") or []
    if not isinstance(children, list):
        raise FormatError("mind map")
    for i, child in enumerate(children, start=1):
        if not isinstance(child, dict):
            raise FormatError("mind map")
        _ensure_ids(child, f"{node['id']}-{i}")

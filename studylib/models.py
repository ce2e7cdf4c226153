# studylib/models.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ProcessingMode(Enum):
    SUMMARY   = "summary"
    MINDMAP   = "mindmap"
    QUIZ      = "quiz"
    FLASHCARD = "flashcard"


class BookType(Enum):
    FICTION     = "fiction"
    NON_FICTION = "non-fiction"


@dataclass(frozen=True)
class ChapterUnit:
    """Unidad de trabajo que sale del extractor: un capítulo con identidad estable."""
    id:      str
    title:   str
    content: str
    depth:   int = 0
    order:   int = 0


@dataclass
class QuizQuestion:
    question:             str
    options:              list[str]
    correct_answer_index: int
    answer_location:      str = ""

    def to_dict(self) -> dict:
        # El CSV usa este orden de claves como header
        return {
            "question":           self.question,
            "options":            list(self.options),
            "correctAnswerIndex": self.correct_answer_index,
            "answerLocation":     self.answer_location,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QuizQuestion":
        return cls(
            question             = str(data["question"]),
            options              = [str(o) for o in data["options"]],
            correct_answer_index = int(data["correctAnswerIndex"]),
            answer_location      = str(data.get("answerLocation") or ""),
        )


@dataclass
class Flashcard:
    front:           str
    back:            str
    answer_location: str = ""

    def to_dict(self) -> dict:
        return {
            "front":          self.front,
            "back":           self.back,
            "answerLocation": self.answer_location,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Flashcard":
        return cls(
            front           = str(data["front"]),
            back            = str(data["back"]),
            answer_location = str(data.get("answerLocation") or ""),
        )


@dataclass
class ChapterResult:
    """
    Un ChapterUnit más el artefacto del modo activo.
    Solo uno de summary / mind_map / quiz / flashcards queda poblado.
    """
    id:         str
    title:      str
    content:    str
    depth:      int = 0
    order:      int = 0
    processed:  bool = False
    summary:    Optional[str] = None
    mind_map:   Optional[dict] = None
    quiz:       Optional[list[QuizQuestion]] = None
    flashcards: Optional[list[Flashcard]] = None

    @classmethod
    def from_chapter(cls, chapter: ChapterUnit, mode: ProcessingMode, artifact: Any) -> "ChapterResult":
        result = cls(
            id        = chapter.id,
            title     = chapter.title,
            content   = chapter.content,
            depth     = chapter.depth,
            order     = chapter.order,
            processed = True,
        )
        if mode is ProcessingMode.SUMMARY:
            result.summary = artifact
        elif mode is ProcessingMode.MINDMAP:
            result.mind_map = artifact
        elif mode is ProcessingMode.QUIZ:
            result.quiz = list(artifact)
        elif mode is ProcessingMode.FLASHCARD:
            result.flashcards = list(artifact)
        return result

    def artifact(self, mode: ProcessingMode) -> Any:
        return {
            ProcessingMode.SUMMARY:   self.summary,
            ProcessingMode.MINDMAP:   self.mind_map,
            ProcessingMode.QUIZ:      self.quiz,
            ProcessingMode.FLASHCARD: self.flashcards,
        }[mode]

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "id":        self.id,
            "title":     self.title,
            "content":   self.content,
            "depth":     self.depth,
            "order":     self.order,
            "processed": self.processed,
        }
        # Los campos ausentes no se serializan
        if self.summary is not None:
            data["summary"] = self.summary
        if self.mind_map is not None:
            data["mindMap"] = self.mind_map
        if self.quiz is not None:
            data["quiz"] = [q.to_dict() for q in self.quiz]
        if self.flashcards is not None:
            data["flashcards"] = [f.to_dict() for f in self.flashcards]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ChapterResult":
        quiz  = data.get("quiz")
        cards = data.get("flashcards")
        return cls(
            id         = data["id"],
            title      = data["title"],
            content    = data.get("content", ""),
            depth      = int(data.get("depth", 0)),
            order      = int(data.get("order", 0)),
            processed  = bool(data.get("processed", False)),
            summary    = data.get("summary"),
            mind_map   = data.get("mindMap"),
            quiz       = [QuizQuestion.from_dict(q) for q in quiz] if quiz is not None else None,
            flashcards = [Flashcard.from_dict(c) for c in cards] if cards is not None else None,
        )


@dataclass(frozen=True)
class BookResult:
    """
    Resultado completo e inmutable de una corrida.
    Se reemplaza entero en cada corrida nueva — nunca se muta.
    connections y overall_summary solo existen en modo summary,
    cuando se pidió el resumen del libro completo.
    """
    title:           str
    author:          str
    mode:            ProcessingMode
    chapters:        tuple[ChapterResult, ...] = field(default_factory=tuple)
    connections:     Optional[str] = None
    overall_summary: Optional[str] = None

    def artifacts(self) -> list:
        """
        Aplana los artefactos de todos los capítulos en una sola lista,
        que es lo que el exportador recibe para quiz y flashcards.
        """
        items: list = []
        for chapter in self.chapters:
            artifact = chapter.artifact(self.mode)
            if artifact is None:
                continue
            if isinstance(artifact, list):
                items.extend(artifact)
            else:
                items.append(artifact)
        return items

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "title":    self.title,
            "author":   self.author,
            "mode":     self.mode.value,
            "chapters": [c.to_dict() for c in self.chapters],
        }
        if self.connections is not None:
            data["connections"] = self.connections
        if self.overall_summary is not None:
            data["overallSummary"] = self.overall_summary
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "BookResult":
        return cls(
            title           = data.get("title", ""),
            author          = data.get("author", ""),
            mode            = ProcessingMode(data["mode"]),
            chapters        = tuple(ChapterResult.from_dict(c) for c in data.get("chapters", [])),
            connections     = data.get("connections"),
            overall_summary = data.get("overallSummary"),
        )

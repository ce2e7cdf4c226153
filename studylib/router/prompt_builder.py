# router/prompt_builder.py
from typing import Optional

from studylib.models import BookType


_FICTION_SUMMARY = """\
    Please summarize the following chapter of a novel or other work of fiction.

    Chapter Title: {title}

    Chapter Content:
    {content}

    Requirements:
    - Retell the main events of the chapter in the order they happen.
    - Name the characters involved and what changes for them.
    - Point out conflicts, turning points and revelations.
    - Mention recurring themes or motifs when they appear.
    - Write clear paragraphs in Markdown. Do not invent events that are not in the text.
    """

_NON_FICTION_SUMMARY = """\
    Please summarize the following chapter of a non-fiction book.

    Chapter Title: {title}

    Chapter Content:
    {content}

    Requirements:
    - State the central argument or question of the chapter.
    - List the key ideas, concepts and definitions, each with a short explanation.
    - Include the most important evidence, examples or data the author uses.
    - Close with the practical takeaways or conclusions.
    - Use Markdown headings and bullet points. Do not add opinions that are not in the text.
    """

_CONNECTIONS = """\
    Below are the summaries of several chapters of the same book.
    Analyze how these chapters connect to each other.

    {chapter_summaries}

    Requirements:
    - Identify the ideas, characters or arguments that run across chapters.
    - Explain how later chapters build on, contrast with or resolve earlier ones.
    - Describe the overall progression of the book.
    - Answer in Markdown prose.
    """

_OVERALL_SUMMARY = """\
    Write an overall summary of the book "{book_title}".

    Chapter information:
    {chapter_info}

    Connections between chapters:
    {connections}

    Requirements:
    - Give the reader a complete picture of the book in a few paragraphs.
    - Cover the main thesis or storyline, the key ideas and the conclusion.
    - Answer in Markdown.
    """

_MIND_MAP = """\
    Please turn the following content into a mind map.

    Respond ONLY with a JSON object in this exact structure, without any text before or after it:
    {
      "nodeData": {
        "id": "root",
        "topic": "central topic",
        "children": [
          {
            "id": "1",
            "topic": "main branch",
            "children": [
              {"id": "1-1", "topic": "detail"}
            ]
          }
        ]
      }
    }

    Rules:
    - Every node has a unique "id" and a short "topic" (a few words, not full sentences).
    - Use between 3 and 7 main branches and at most 4 levels of depth.
    - Cover the key concepts, their relationships and the important details.

    """

_COMBINED_MIND_MAP = """\
    Please generate a complete mind map for the entire book "{book_title}", integrating the content of all chapters.
    The root topic must be the book title and each chapter becomes a main branch.
    Chapter content:
    {chapters_content}"""

_MIND_MAP_ARROWS = """\
    Below is a mind map in JSON. Find meaningful relationships between nodes that are
    NOT already parent and child, and describe each relationship as an arrow.

    Respond ONLY with a JSON object in this exact structure:
    {
      "arrows": [
        {
          "id": "arrow-1",
          "label": "short description of the relationship",
          "from": "id of the source node",
          "to": "id of the target node"
        }
      ]
    }

    Use only node ids that exist in the mind map. Return at most 8 arrows.
    """

_QUIZ = """\
    Please generate a quiz with 5 questions for the following chapter content.
    For each question, provide 4 multiple-choice options, with one correct answer.
    Also, for each question, provide a snippet from the text that contains the answer.

    Chapter Title: {title}

    Chapter Content:
    {content}

    Please respond in the following JSON format:
    {{
      "questions": [
        {{
          "question": "...",
          "options": ["...", "...", "...", "..."],
          "correctAnswerIndex": 0,
          "answerLocation": "..."
        }}
      ]
    }}
    """

_FLASHCARD = """\
    Please generate 5 flashcards for the following chapter content.
    For each flashcard, provide a "front" (a question or term) and a "back" (the answer or definition).
    Also, for each flashcard, provide a snippet from the text that contains the answer for the back.

    Chapter Title: {title}

    Chapter Content:
    {content}

    Please respond in the following JSON format:
    {{
      "flashcards": [
        {{
          "front": "...",
          "back": "...",
          "answerLocation": "..."
        }}
      ]
    }}
    """

_TEST_CONNECTION = 'Please reply with exactly this sentence: "Connection successful".'

_LANGUAGE_NAMES = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Simplified Chinese",
    "zh-cn": "Simplified Chinese",
    "zh-tw": "Traditional Chinese",
    "ru": "Russian",
}


# ------------------------------------------------------------------
# Prompts por modo
# ------------------------------------------------------------------

def build_summary_prompt(
    title:               str,
    content:             str,
    book_type:           BookType      = BookType.NON_FICTION,
    custom_instructions: Optional[str] = None,
) -> str:
    template = _FICTION_SUMMARY if book_type is BookType.FICTION else _NON_FICTION_SUMMARY
    return _with_instructions(template.format(title=title, content=content), custom_instructions)


def build_mind_map_prompt(content: str, custom_instructions: Optional[str] = None) -> str:
    """El mapa mental no lleva título: el modelo elige el tema central del contenido."""
    prompt = _MIND_MAP + f"Chapter content:\n{content}"
    return _with_instructions(prompt, custom_instructions)


def build_combined_mind_map_prompt(
    book_title:          str,
    chapter_contents:    list[str],
    custom_instructions: Optional[str] = None,
) -> str:
    joined = "\n\n ------------- \n\n".join(chapter_contents)
    prompt = _MIND_MAP + _COMBINED_MIND_MAP.format(book_title=book_title, chapters_content=joined)
    return _with_instructions(prompt, custom_instructions)


def build_arrows_prompt(mind_map_json: str) -> str:
    return _MIND_MAP_ARROWS + f"\n\nCurrent mind map data:\n{mind_map_json}"


def build_quiz_prompt(title: str, content: str, custom_instructions: Optional[str] = None) -> str:
    return _with_instructions(_QUIZ.format(title=title, content=content), custom_instructions)


def build_flashcard_prompt(title: str, content: str, custom_instructions: Optional[str] = None) -> str:
    return _with_instructions(_FLASHCARD.format(title=title, content=content), custom_instructions)


def build_connections_prompt(chapter_summaries: str) -> str:
    return _CONNECTIONS.format(chapter_summaries=chapter_summaries)


def build_overall_summary_prompt(book_title: str, chapter_info: str, connections: str) -> str:
    return _OVERALL_SUMMARY.format(
        book_title   = book_title,
        chapter_info = chapter_info,
        connections  = connections or "No connection analysis available.",
    )


def build_test_connection_prompt() -> str:
    return _TEST_CONNECTION


def build_language_instruction(language: Optional[str]) -> str:
    """
    Directiva de idioma de salida. La agrega el proveedor SIEMPRE al final
    del prompt, después de las instrucciones del usuario.
    """
    code = (language or "en").strip().lower()
    name = _LANGUAGE_NAMES.get(code, code)
    return f"Please respond in {name}."


# ------------------------------------------------------------------
# Helpers internos
# ------------------------------------------------------------------

def _with_instructions(prompt: str, custom_instructions: Optional[str]) -> str:
    """Las instrucciones del usuario se agregan tal cual si no están vacías."""
    if custom_instructions and custom_instructions.strip():
        return f"{prompt}\n\nAdditional instructions: {custom_instructions.strip()}"
    return prompt

# export/html_templates.py
from html import escape
from typing import Any, Mapping, Sequence

_QUIZ_CSS = """\
body { font-family: sans-serif; margin: 2em; }
.question { margin-bottom: 2em; border-bottom: 1px solid #ccc; padding-bottom: 1em; }
.options { margin: 1em 0; }
.option { padding: 0.5em; margin-bottom: 0.5em; border: 1px solid #eee; border-radius: 5px; }
.correct { background-color: #e0ffe0; }
button { padding: 0.5em 1em; cursor: pointer; }
.answer { margin-top: 1em; padding: 1em; background: #f0f0f0; border-radius: 5px; }
"""

_FLASHCARD_CSS = """\
body { font-family: sans-serif; padding: 1em; }
.flashcard { position: relative; width: 300px; height: 200px; margin: 0 1em 1em 0; display: inline-block; perspective: 1000px; cursor: pointer; }
.front, .back { position: absolute; width: 100%; height: 100%; backface-visibility: hidden; padding: 1em; box-sizing: border-box; border: 1px solid #ccc; border-radius: 10px; transition: transform 0.6s; }
.front { background: #fff; }
.back { background: #f9f9f9; transform: rotateY(180deg); }
.flashcard.flipped .front { transform: rotateY(180deg); }
.flashcard.flipped .back { transform: rotateY(0deg); }
"""

_OUTLINE_CSS = """\
body { font-family: sans-serif; margin: 2em; }
h1 { font-size: 20px; }
ul { margin: 0.2em 0 0.2em 1.2em; padding: 0; }
li { margin: 0.2em 0; }
"""


def render_quiz_html(title: str, questions: Sequence[Any]) -> str:
    """
    Página de quiz: la opción correcta lleva la clase .correct y cada
    pregunta tiene un botón que muestra la respuesta y su fuente.
    """
    blocks: list[str] = []
    for index, item in enumerate(_as_dicts(questions), start=1):
        options = item.get("options") or []
        correct = item.get("correctAnswerIndex")
        options_html = "".join(
            f'<div class="option{" correct" if i == correct else ""}">{escape(str(opt))}</div>'
            for i, opt in enumerate(options)
        )
        answer = options[correct] if isinstance(correct, int) and 0 <= correct < len(options) else ""
        blocks.append(
            '<div class="question">'
            f'<h3>Pregunta {index}: {escape(str(item.get("question", "")))}</h3>'
            f'<div class="options">{options_html}</div>'
            "<button onclick=\"this.nextElementSibling.style.display='block'\">Ver respuesta</button>"
            '<div class="answer" style="display:none;">'
            f"<p><strong>Respuesta:</strong> {escape(str(answer))}</p>"
            f'<p><em>Fuente: "{escape(str(item.get("answerLocation", "")))}"</em></p>'
            "</div>"
            "</div>"
        )
    return _page(f"Quiz: {title}", _QUIZ_CSS, f"<h1>Quiz: {escape(title)}</h1>" + "".join(blocks))


def render_flashcard_html(title: str, cards: Sequence[Any]) -> str:
    """Tarjetas que se dan vuelta al hacer click (clase .flipped)."""
    blocks = [
        "<div class=\"flashcard\" onclick=\"this.classList.toggle('flipped')\">"
        f'<div class="front"><p>{escape(str(card.get("front", "")))}</p></div>'
        '<div class="back">'
        f'<p>{escape(str(card.get("back", "")))}</p>'
        f'<p><em>Fuente: "{escape(str(card.get("answerLocation", "")))}"</em></p>'
        "</div>"
        "</div>"
        for card in _as_dicts(cards)
    ]
    return _page(f"Flashcards: {title}", _FLASHCARD_CSS, "".join(blocks))


def render_outline_html(title: str, root: Mapping[str, Any]) -> str:
    """Mapa mental como lista anidada, para rasterizarlo a PNG."""
    return _page(
        title,
        _OUTLINE_CSS,
        f"<h1>{escape(str(root.get('topic', title)))}</h1>{_outline_list(root.get('children') or [])}",
    )


# ------------------------------------------------------------------
# Helpers internos
# ------------------------------------------------------------------

def _outline_list(children: Sequence[Mapping[str, Any]]) -> str:
    if not children:
        return ""
    items = "".join(
        f"<li>{escape(str(child.get('topic', '')))}{_outline_list(child.get('children') or [])}</li>"
        for child in children
    )
    return f"<ul>{items}</ul>"


def _page(title: str, css: str, body: str) -> str:
    return (
        "<html>"
        f"<head><meta charset=\"utf-8\"><title>{escape(title)}</title><style>{css}</style></head>"
        f"<body>{body}</body>"
        "</html>"
    )


def _as_dicts(items: Sequence[Any]) -> list[dict]:
    return [i.to_dict() if hasattr(i, "to_dict") else dict(i) for i in items]

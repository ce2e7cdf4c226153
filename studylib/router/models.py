# router/models.py
from dataclasses import dataclass
from typing import Optional

from studylib.models import BookType, ProcessingMode

DEFAULT_TEMPERATURE = 0.7

# Modelo por defecto de cada proveedor cuando el config no trae uno
DEFAULT_MODELS = {
    "gemini": "gemini-1.5-flash",
    "openai": "gpt-3.5-turbo",
    "claude": "claude-haiku-4-5-20251001",
}
DEFAULT_OPENAI_URL = "https://api.openai.com/v1"


@dataclass(frozen=True)
class AIConfig:
    """
    Configuración del backend de IA.
    Se carga desde ~/.studylib/config.yaml (sección ai:) y se relee en cada
    llamada, así un cambio de config aplica sin reconstruir nada.
    """
    provider:        str
    api_key:         Optional[str]   = None
    api_url:         Optional[str]   = None   # solo para APIs compatibles con OpenAI
    model:           Optional[str]   = None
    temperature:     Optional[float] = None
    timeout_seconds: int             = 60

    @property
    def effective_temperature(self) -> float:
        return DEFAULT_TEMPERATURE if self.temperature is None else self.temperature

    @property
    def effective_model(self) -> str:
        return self.model or DEFAULT_MODELS.get(self.provider, "")


@dataclass(frozen=True)
class ProcessingOptions:
    """Opciones de procesamiento (sección processing: del config)."""
    processing_mode:             ProcessingMode = ProcessingMode.MINDMAP
    book_type:                   BookType       = BookType.NON_FICTION
    use_smart_detection:         bool           = False
    skip_non_essential_chapters: bool           = True
    max_sub_chapter_depth:       int            = 0
    output_language:             str            = "en"

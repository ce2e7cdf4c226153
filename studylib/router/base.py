# router/base.py
from abc import ABC, abstractmethod
from typing import Optional

from studylib.router.models import AIConfig
from studylib.router.prompt_builder import build_language_instruction


class BaseProvider(ABC):
    """
    Contrato que deben cumplir todos los proveedores.
    El Router y el StudyGenerator solo hablan con esta interfaz.
    Nunca importan gemini.py, openai.py ni claude.py directamente.
    """

    def __init__(self, config: AIConfig):
        self._config = config

    @abstractmethod
    def generate(self, prompt: str, language: Optional[str] = None) -> str:
        """
        Envía el prompt al modelo y devuelve el texto crudo de la respuesta.
        La directiva de idioma se agrega SIEMPRE al final del prompt.
        Puede lanzar errores de red, de timeout o ProviderHTTPError;
        el StudyGenerator los re-lanza con el prefijo del modo.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Identificador del proveedor. Coincide con ai.provider del config."""
        ...

    @property
    def config(self) -> AIConfig:
        return self._config

    @staticmethod
    def language_directive(language: Optional[str]) -> str:
        return build_language_instruction(language)

# router/router.py
import logging
from typing import Callable, Optional

from studylib.router.base import BaseProvider
from studylib.router.claude import ClaudeProvider
from studylib.router.gemini import GeminiProvider
from studylib.router.models import AIConfig
from studylib.router.openai import OpenAIProvider

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[AIConfig], BaseProvider]

_DEFAULT_PROVIDERS: dict[str, ProviderFactory] = {
    "gemini": GeminiProvider,
    "openai": OpenAIProvider,
    "claude": ClaudeProvider,
}


class UnknownProviderError(ValueError):
    """ai.provider no corresponde a ningún proveedor registrado."""
    pass


class Router:
    """
    Decide qué proveedor atiende cada llamada.
    El StudyGenerator llama a Router.generate() — nunca a un proveedor directamente.

    La configuración se lee del accessor en CADA llamada: si el usuario
    cambia de proveedor o de modelo a mitad de sesión, la siguiente
    llamada ya usa el nuevo sin reconstruir nada.
    """

    def __init__(
        self,
        config_accessor: Callable[[], AIConfig],
        providers:       Optional[dict[str, ProviderFactory]] = None,
    ):
        self._config_accessor = config_accessor
        self._providers       = dict(providers or _DEFAULT_PROVIDERS)
        # Un proveedor construido por cada AIConfig distinto que se vio
        self._instances: dict[AIConfig, BaseProvider] = {}

    def generate(self, prompt: str, language: Optional[str] = None) -> str:
        provider = self.current_provider()
        logger.debug(
            "Llamando a %s | prompt: %d caracteres | idioma: %s",
            provider.name, len(prompt), language,
        )
        text = provider.generate(prompt, language)
        logger.info("Respuesta de %s: %d caracteres", provider.name, len(text or ""))
        return text

    def current_provider(self) -> BaseProvider:
        config = self._config_accessor()
        instance = self._instances.get(config)
        if instance is None:
            factory = self._providers.get(config.provider)
            if factory is None:
                raise UnknownProviderError(
                    f"Proveedor '{config.provider}' no soportado. "
                    f"Opciones: {', '.join(sorted(self._providers))}"
                )
            logger.info("Inicializando proveedor %s (modelo %s)", config.provider, config.effective_model)
            instance = factory(config)
            self._instances[config] = instance
        return instance

    def available_providers(self) -> list[str]:
        """Útil para logging y para la CLI."""
        return sorted(self._providers)

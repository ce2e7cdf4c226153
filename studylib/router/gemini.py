# router/gemini.py
import logging
from typing import Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from studylib.router.base import BaseProvider
from studylib.router.models import AIConfig

logger = logging.getLogger(__name__)

_RETRYABLE_ERRORS = (
    google_exceptions.ResourceExhausted,   # 429
    google_exceptions.DeadlineExceeded,    # timeout
    google_exceptions.ServiceUnavailable,
)


class GeminiProvider(BaseProvider):

    def __init__(self, config: AIConfig):
        super().__init__(config)
        genai.configure(api_key=config.api_key)
        self._model = genai.GenerativeModel(
            model_name        = config.effective_model,
            generation_config = genai.GenerationConfig(
                temperature = config.effective_temperature,
            ),
        )

    @property
    def name(self) -> str:
        return "gemini"

    def generate(self, prompt: str, language: Optional[str] = None) -> str:
        # Gemini recibe un solo string: prompt + directiva de idioma en negrita
        full_prompt = f"{prompt}\n\n**{self.language_directive(language)}**"

        try:
            response = self._model.generate_content(
                full_prompt,
                request_options={"timeout": self._config.timeout_seconds},
            )
        except _RETRYABLE_ERRORS as e:
            logger.warning("Gemini error retryable: %s", e)
            raise

        return response.text or ""

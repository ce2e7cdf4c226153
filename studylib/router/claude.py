# router/claude.py
import logging
from typing import Optional

import anthropic

from studylib.router.base import BaseProvider
from studylib.router.models import AIConfig

logger = logging.getLogger(__name__)

_RETRYABLE_ERRORS = (
    anthropic.RateLimitError,
    anthropic.APITimeoutError,
    anthropic.APIConnectionError,
)


class ClaudeProvider(BaseProvider):

    def __init__(self, config: AIConfig):
        super().__init__(config)
        self._client = anthropic.Anthropic(
            api_key = config.api_key,
            timeout = config.timeout_seconds,
        )

    @property
    def name(self) -> str:
        return "claude"

    def generate(self, prompt: str, language: Optional[str] = None) -> str:
        try:
            response = self._client.messages.create(
                model       = self._config.effective_model,
                max_tokens  = 4096,
                temperature = self._config.effective_temperature,
                messages    = [{
                    "role":    "user",
                    "content": f"{prompt}\n\n{self.language_directive(language)}",
                }],
            )
        except _RETRYABLE_ERRORS as e:
            logger.warning("Claude error retryable: %s", e)
            raise

        except anthropic.BadRequestError as e:
            # El prompt en sí tiene problemas (ej: contenido bloqueado)
            logger.error("Claude BadRequest: %s", e)
            raise

        if not response.content:
            return ""
        return getattr(response.content[0], "text", "") or ""

# router/openai.py
import logging
from typing import Optional

import requests

from studylib.errors import ProviderHTTPError
from studylib.router.base import BaseProvider
from studylib.router.models import DEFAULT_OPENAI_URL

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseProvider):
    """
    Cualquier API compatible con OpenAI (OpenAI, OpenRouter, DeepSeek, ...).
    Se habla HTTP directo contra {api_url}/chat/completions.
    """

    @property
    def name(self) -> str:
        return "openai"

    @property
    def endpoint(self) -> str:
        base = (self._config.api_url or DEFAULT_OPENAI_URL).rstrip("/")
        return f"{base}/chat/completions"

    def generate(self, prompt: str, language: Optional[str] = None) -> str:
        payload = {
            "model":       self._config.effective_model,
            "messages":    [{
                "role":    "user",
                "content": f"{prompt}\n\n{self.language_directive(language)}",
            }],
            "temperature": self._config.effective_temperature,
        }
        headers = {
            "Content-Type":  "application/json",
            "Authorization": f"Bearer {self._config.api_key or ''}",
        }

        logger.debug("POST %s (modelo %s)", self.endpoint, payload["model"])
        resp = requests.post(
            self.endpoint,
            json    = payload,
            headers = headers,
            timeout = self._config.timeout_seconds,
        )
        if not resp.ok:
            logger.warning("OpenAI respondió %s %s", resp.status_code, resp.reason)
            raise ProviderHTTPError("OpenAI", resp.status_code, resp.reason or "")

        data = resp.json()
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError):
            logger.warning("Respuesta OpenAI sin choices[0].message.content")
            return ""

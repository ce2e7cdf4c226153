# studylib/notifier.py
import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Canal de avisos al usuario: progreso, éxito de una exportación, errores."""

    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoggingNotifier:
    """Notificador por defecto cuando studylib se usa como biblioteca."""

    def info(self, message: str) -> None:
        logger.info(message)

    def success(self, message: str) -> None:
        logger.info(message)

    def error(self, message: str) -> None:
        logger.error(message)

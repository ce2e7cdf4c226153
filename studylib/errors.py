# studylib/errors.py
from typing import Optional


class StudyLibError(Exception):
    """Raíz de todos los errores propios del pipeline."""
    pass


# ------------------------------------------------------------------
# Extracción
# ------------------------------------------------------------------

class ExtractionError(StudyLibError):
    """El documento no se pudo leer o no produjo texto utilizable."""
    pass


class UnsupportedDocumentError(ExtractionError):
    """Ningún adaptador registrado puede abrir el archivo."""
    pass


# ------------------------------------------------------------------
# Generación
# ------------------------------------------------------------------

class GenerationError(StudyLibError):
    """El backend devolvió prosa vacía o inválida."""
    pass


class FormatError(StudyLibError):
    """
    El texto del backend no se pudo convertir en datos estructurados,
    ni directamente ni extrayendo el primer bloque ``` ... ```.
    """

    def __init__(self, mode: str, message: Optional[str] = None):
        self.mode = mode
        super().__init__(message or f"AI returned incorrectly formatted {mode} data.")


class ProviderHTTPError(StudyLibError):
    """Respuesta no-2xx de un backend HTTP."""

    def __init__(
        self,
        provider: str,
        status:   int,
        reason:   str           = "",
        message:  Optional[str] = None,
    ):
        self.provider = provider
        self.status   = status
        self.reason   = reason
        super().__init__(
            message or f"{provider} API request failed: {status} {reason}".rstrip()
        )


class ProcessingCancelledError(StudyLibError):
    """El caller canceló el procesamiento entre dos capítulos."""
    pass


# ------------------------------------------------------------------
# Exportación
# ------------------------------------------------------------------

class UnsupportedFormatError(StudyLibError):
    """El formato pedido no existe para el modo de procesamiento dado."""

    def __init__(self, fmt: str, mode: Optional[str] = None):
        self.format = fmt
        self.mode   = mode
        suffix = f" for mode '{mode}'" if mode else ""
        super().__init__(f"Unsupported format: {fmt}{suffix}")

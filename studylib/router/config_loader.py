# router/config_loader.py
import os
from pathlib import Path
from typing import Callable, Optional

import yaml

from studylib.models import BookType, ProcessingMode
from studylib.router.models import AIConfig, ProcessingOptions

_DEFAULT_CONFIG_PATH = Path.home() / ".studylib" / "config.yaml"

_PROVIDERS = {"gemini", "openai", "claude"}


def resolve_config_path(config_path: Optional[str] = None) -> Path:
    return Path(config_path or os.environ.get("STUDYLIB_CONFIG_PATH") or _DEFAULT_CONFIG_PATH)


def load_ai_config(config_path: Optional[str] = None) -> AIConfig:
    """
    Carga la sección ai: del YAML.
    Resuelve variables de entorno en api_key y api_url (${VAR}).
    """
    path = resolve_config_path(config_path)
    if not path.exists():
        raise FileNotFoundError(
            f"Config no encontrada en {path}. "
            f"Copia config.example.yaml a ~/.studylib/config.yaml"
        )

    entry = _read_yaml(path).get("ai") or {}
    provider = str(entry.get("provider", "gemini")).lower()
    if provider not in _PROVIDERS:
        raise ValueError(
            f"Proveedor '{provider}' no soportado. "
            f"Opciones: {', '.join(sorted(_PROVIDERS))}"
        )

    temperature = entry.get("temperature")
    return AIConfig(
        provider        = provider,
        api_key         = _resolve_env(entry.get("api_key")),
        api_url         = _resolve_env(entry.get("api_url")),
        model           = entry.get("model"),
        temperature     = float(temperature) if temperature is not None else None,
        timeout_seconds = int(entry.get("timeout_seconds", 60)),
    )


def load_processing_options(config_path: Optional[str] = None) -> ProcessingOptions:
    """
    Carga la sección processing: del YAML.
    Sin archivo o sin sección → defaults; el procesamiento no necesita API key.
    """
    path = resolve_config_path(config_path)
    if not path.exists():
        return ProcessingOptions()

    entry = _read_yaml(path).get("processing") or {}
    defaults = ProcessingOptions()
    return ProcessingOptions(
        processing_mode             = ProcessingMode(entry.get("processing_mode", defaults.processing_mode.value)),
        book_type                   = BookType(entry.get("book_type", defaults.book_type.value)),
        use_smart_detection         = bool(entry.get("use_smart_detection", defaults.use_smart_detection)),
        skip_non_essential_chapters = bool(entry.get("skip_non_essential_chapters", defaults.skip_non_essential_chapters)),
        max_sub_chapter_depth       = max(0, int(entry.get("max_sub_chapter_depth", defaults.max_sub_chapter_depth))),
        output_language             = str(entry.get("output_language", defaults.output_language)),
    )


def config_accessor(config_path: Optional[str] = None) -> Callable[[], AIConfig]:
    """
    Devuelve una función que relee el config en cada llamada.
    El Router la usa en lugar de una foto fija de la configuración.
    """
    return lambda: load_ai_config(config_path)


def _read_yaml(path: Path) -> dict:
    with path.open(encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    return raw if isinstance(raw, dict) else {}


def _resolve_env(value: Optional[str]) -> Optional[str]:
    """Expande ${VAR_NAME} desde el entorno."""
    if not value or not str(value).startswith("${"):
        return value
    var_name = str(value).strip("${}").strip()
    return os.environ.get(var_name)

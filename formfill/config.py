"""Application configuration."""
import logging
import os
from pathlib import Path
from typing import List, Optional
from dataclasses import dataclass, field

from formfill.domain.exceptions import ConfigurationError


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


@dataclass
class MatchingConfig:
    """Column-to-field scoring configuration."""
    name_weight: float = 0.40
    label_weight: float = 0.25
    attribute_weight: float = 0.20
    synonym_weight: float = 0.10
    type_weight: float = 0.05
    high_threshold: float = 0.75
    medium_threshold: float = 0.50
    low_threshold: float = 0.25
    type_sample_size: int = 10
    synonyms_file: Optional[str] = None


@dataclass
class FillConfig:
    """Default fill behavior."""
    delay_ms: int = 500
    skip_filled: bool = False
    stop_on_error: bool = True
    highlight_fields: bool = True


@dataclass
class LabelDetectionConfig:
    """Label detection configuration for worksheet forms."""
    keywords: List[str]
    min_label_length: int = 2
    max_label_length_with_colon: int = 100
    max_label_length_without_colon: int = 40
    min_left_cell_text_length: int = 10


@dataclass
class StorageConfig:
    """Profile and settings persistence configuration."""
    profiles_path: Path = field(default_factory=lambda: Path.home() / ".formfill" / "profiles.json")


class Config:
    """Application configuration."""

    def __init__(self):
        self._matching_config = None
        self._fill_config = None
        self._label_config = None
        self._storage_config = None

    @property
    def log_level(self) -> str:
        """Get the logging level name."""
        level = os.getenv("FORMFILL_LOG_LEVEL", "INFO").strip().upper() or "INFO"
        if level not in LOG_LEVELS:
            # Read by the logger setup at import time
            logging.getLogger(__name__).warning(
                "FORMFILL_LOG_LEVEL %r is not a logging level, using INFO", level
            )
            return "INFO"
        return level

    @property
    def matching(self) -> MatchingConfig:
        """Get matching configuration."""
        if self._matching_config is None:
            self._matching_config = MatchingConfig(
                type_sample_size=_env_int("FORMFILL_TYPE_SAMPLE_SIZE", 10, minimum=1),
                synonyms_file=os.getenv("FORMFILL_SYNONYMS_FILE") or None,
            )
        return self._matching_config

    @property
    def fill(self) -> FillConfig:
        """Get default fill configuration."""
        if self._fill_config is None:
            self._fill_config = FillConfig(
                delay_ms=_env_int("FORMFILL_DELAY_MS", 500),
                skip_filled=_env_bool("FORMFILL_SKIP_FILLED", False),
                stop_on_error=_env_bool("FORMFILL_STOP_ON_ERROR", True),
                highlight_fields=_env_bool("FORMFILL_HIGHLIGHT_FIELDS", True),
            )
        return self._fill_config

    @property
    def label_detection(self) -> LabelDetectionConfig:
        """Get label detection configuration."""
        if self._label_config is None:
            keywords = [
                'name', 'address', 'phone', 'mobile', 'email', 'e-mail', 'date', 'birth',
                'city', 'state', 'country', 'zip', 'postal', 'company', 'title', 'website',
                'gender', 'age', 'salary', 'department', 'comments', 'notes',
                'nombre', 'dirección', 'teléfono', 'telefono', 'correo', 'fecha',
                'ciudad', 'estado', 'país', 'pais', 'código postal', 'empresa', 'puesto',
                'apellido', 'nacimiento', 'edad', 'género', 'genero', 'número', 'numero'
            ]
            self._label_config = LabelDetectionConfig(keywords=keywords)
        return self._label_config

    @property
    def storage(self) -> StorageConfig:
        """Get storage configuration."""
        if self._storage_config is None:
            path = os.getenv("FORMFILL_PROFILES_PATH")
            self._storage_config = StorageConfig(profiles_path=Path(path)) if path else StorageConfig()
        return self._storage_config

    def reset(self) -> None:
        """Drop cached sections so the environment is read again."""
        self.__init__()


# Global configuration instance
config = Config()

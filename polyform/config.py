"""
Environment-driven configuration for polyform hosts.

Reads settings from environment variables (a ``.env`` file in the
working directory is honoured) and wires the preset store:

    POLYFORM_PRESET_BACKEND   json (default), sqlite or memory
    POLYFORM_PRESET_PATH      storage file, default ~/.create-poly-app/presets.json
                              (presets.db for sqlite)
    POLYFORM_MAX_PRESETS      capacity bound, default 50; 0 or empty means unbounded
    POLYFORM_CREATE_PRESET_DIR  create missing parent directories (default true)
    LOG_LEVEL                 logging level, default INFO
"""

import logging
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from polyform.core.presets import (
    InMemoryPresetStorage,
    JsonFilePresetStorage,
    PresetStorage,
    PresetStore,
    SQLitePresetStorage,
)

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_PRESET_DIR = Path("~/.create-poly-app")
DEFAULT_MAX_PRESETS = 50
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _is_truthy(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    preset_backend: Literal["json", "sqlite", "memory"] = "json"
    preset_path: Path | None = None
    max_presets: int | None = Field(default=DEFAULT_MAX_PRESETS, ge=1)
    create_preset_dir: bool = True
    log_level: str = "INFO"

    @property
    def resolved_preset_path(self) -> Path:
        """The storage location, falling back to the per-backend default."""
        if self.preset_path is not None:
            return self.preset_path.expanduser()
        filename = "presets.db" if self.preset_backend == "sqlite" else "presets.json"
        return (DEFAULT_PRESET_DIR / filename).expanduser()


def get_settings() -> Settings:
    """Build Settings from the current environment.

    Raises:
        pydantic.ValidationError: If a variable holds an unsupported value.
    """
    raw_max = os.getenv("POLYFORM_MAX_PRESETS", str(DEFAULT_MAX_PRESETS)).strip()
    max_presets = raw_max if raw_max and raw_max != "0" else None

    preset_path = os.getenv("POLYFORM_PRESET_PATH")

    return Settings(
        preset_backend=os.getenv("POLYFORM_PRESET_BACKEND", "json").strip().lower(),
        preset_path=Path(preset_path) if preset_path else None,
        max_presets=max_presets,
        create_preset_dir=_is_truthy(os.getenv("POLYFORM_CREATE_PRESET_DIR"), default=True),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    )


def configure_logging(level: str | None = None) -> None:
    """Configure root logging in the shared ``time [LEVEL] name: message`` format."""
    logging.basicConfig(
        level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
        format=LOG_FORMAT,
    )


def create_preset_storage(settings: Settings) -> PresetStorage:
    match settings.preset_backend:
        case "memory":
            return InMemoryPresetStorage()
        case "sqlite":
            return SQLitePresetStorage(settings.resolved_preset_path)
        case _:
            return JsonFilePresetStorage(
                settings.resolved_preset_path,
                create_directories=settings.create_preset_dir,
            )


def create_preset_store(settings: Settings | None = None) -> PresetStore:
    """Create a PresetStore backed by the configured storage adapter."""
    settings = settings or get_settings()
    storage = create_preset_storage(settings)
    logger.info(
        "Preset store: backend=%s path=%s max_presets=%s",
        settings.preset_backend,
        "n/a" if settings.preset_backend == "memory" else settings.resolved_preset_path,
        settings.max_presets if settings.max_presets is not None else "unbounded",
    )
    return PresetStore(storage, max_presets=settings.max_presets)

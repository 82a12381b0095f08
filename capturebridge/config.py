"""Configuration loading and validation using Pydantic models."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .models import CaptureKind

CONFIG_ENV = "CAPTUREBRIDGE_CONFIG"

RECOMMENDED_OCR_LANGUAGES: tuple[str, ...] = (
    "en-US",
    "zh-Hans",
    "zh-Hant",
    "ja-JP",
    "ko-KR",
    "fr-FR",
    "de-DE",
    "es-ES",
    "pt-BR",
    "it-IT",
    "ru-RU",
)


def _default_capture_dir() -> Path:
    return Path(tempfile.gettempdir()) / "CaptureBridge"


class BridgeConfig(BaseModel):
    timeout_s: float = Field(
        90.0,
        gt=0,
        description="How long a capture request waits for its completion event.",
    )


class CommandConfig(BaseModel):
    argv: list[str] = Field(
        ...,
        min_length=1,
        description="Command to run; {path} and {languages} are substituted.",
    )
    output: Literal["file", "stdout"] = Field(
        "file",
        description="Whether the result is the written file or the command's stdout.",
    )
    timeout_s: float = Field(120.0, gt=0)


class CoordinatorConfig(BaseModel):
    max_workers: int = Field(2, ge=1, le=16)
    output_dir: Path = Field(
        default_factory=_default_capture_dir,
        description="Directory receiving capture files.",
    )
    image_format: Literal["png", "jpg"] = Field("png")
    commands: dict[CaptureKind, CommandConfig] = Field(default_factory=dict)


class APIConfig(BaseModel):
    host: str = Field("127.0.0.1")
    port: int = Field(5283, ge=1024, le=65535)


class LibraryConfig(BaseModel):
    enabled: bool = Field(True)
    directory: Optional[Path] = Field(
        None, description="Defaults to coordinator.output_dir when unset."
    )
    retention_days: int = Field(30, ge=0, description="0 keeps files forever.")
    max_items: int = Field(500, ge=0, description="0 disables the item limit.")
    max_bytes: int = Field(
        2 * 1024 * 1024 * 1024, ge=0, description="0 disables the size limit."
    )
    interval_s: float = Field(6 * 60 * 60, ge=60)


class OCRConfig(BaseModel):
    languages: list[str] = Field(default_factory=lambda: ["en-US"])

    @field_validator("languages")
    @classmethod
    def validate_languages(cls, value: list[str]) -> list[str]:
        unknown = [code for code in value if code not in RECOMMENDED_OCR_LANGUAGES]
        if unknown:
            raise ValueError(f"Unsupported OCR languages: {', '.join(unknown)}")
        if not value:
            raise ValueError("At least one OCR language is required")
        return value


class LoggingConfig(BaseModel):
    dir: Optional[Path] = None
    level: str = Field("INFO")


class AppConfig(BaseModel):
    bridge: BridgeConfig = BridgeConfig()
    coordinator: CoordinatorConfig = CoordinatorConfig()
    api: APIConfig = APIConfig()
    library: LibraryConfig = LibraryConfig()
    ocr: OCRConfig = OCRConfig()
    logging: LoggingConfig = LoggingConfig()

    @property
    def library_dir(self) -> Path:
        return self.library.directory or self.coordinator.output_dir


def default_config_path() -> Path:
    return Path(os.environ.get(CONFIG_ENV, "capturebridge.yml"))


def load_config(path: Path | str | None = None) -> AppConfig:
    """Load YAML configuration from disk; a missing file yields defaults."""

    config_path = Path(path) if path is not None else default_config_path()
    if not config_path.exists():
        return AppConfig()
    with config_path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping")
    return AppConfig.model_validate(data)

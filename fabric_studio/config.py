"""Конфигурация приложения из переменных окружения (и файла `.env`)."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

DEFAULT_MODEL_NAME = "gemini-2.5-flash-image"
API_KEY_VARIABLES = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")


@dataclass(frozen=True)
class AppConfig:
    """Настройки, прочитанные один раз при старте.

    Fields:
        api_key: Ключ Gemini API; отсутствие ключа проявится только при генерации.
        model_name: Имя модели генерации изображений.
        log_level: Уровень логирования.
        appearance_mode: Режим оформления customtkinter ("system" | "dark" | "light").
    """
    api_key: Optional[str] = None
    model_name: str = DEFAULT_MODEL_NAME
    log_level: str = "INFO"
    appearance_mode: str = "system"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        if environ is None:
            load_dotenv()
            environ = os.environ
        api_key = next((environ[name] for name in API_KEY_VARIABLES if environ.get(name)), None)
        return cls(
            api_key=api_key,
            model_name=environ.get("FABRIC_STUDIO_MODEL") or DEFAULT_MODEL_NAME,
            log_level=(environ.get("FABRIC_STUDIO_LOG_LEVEL") or "INFO").upper(),
            appearance_mode=environ.get("FABRIC_STUDIO_APPEARANCE") or "system",
        )

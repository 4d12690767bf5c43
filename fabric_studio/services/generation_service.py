"""Вызов модели генерации изображений Gemini (Google Gen AI SDK).

Принципы:
- SRP: сервис только собирает запрос и разбирает ответ, состояние UI не трогает.
- DIP: клиент SDK можно передать снаружи (тесты используют поддельный клиент).
- Ошибки удалённой стороны превращаются в `RemoteError` с сообщением для пользователя;
  повторов нет.
"""
from __future__ import annotations

import base64
import logging
from typing import Any, Optional

from google import genai
from google.genai import types

from fabric_studio.config import DEFAULT_MODEL_NAME
from fabric_studio.logging_config import measure
from fabric_studio.models.errors import InputError, RemoteError
from fabric_studio.models.image_model import ImageAsset
from fabric_studio.models.settings_model import GenerationResult, GenerationSettings
from fabric_studio.services.image_service import mime_extension
from fabric_studio.services.prompt_service import build_prompt

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "API Key is missing. Please check your environment configuration."
RESULT_NAME_STEM = "generated-result"


def _image_part(asset: ImageAsset) -> types.Part:
    if not asset.data:
        raise InputError("File is empty")
    return types.Part.from_bytes(data=asset.data, mime_type=asset.effective_mime_type)


def parse_response(response: Any) -> GenerationResult:
    """Достаёт изображение и текст из первого кандидата ответа.

    Если в ответе несколько частей одного вида, побеждает последняя.
    """
    image: Optional[ImageAsset] = None
    text: Optional[str] = None

    candidates = getattr(response, "candidates", None) or []
    if candidates:
        content = getattr(candidates[0], "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                data = inline.data
                if isinstance(data, str):
                    data = base64.b64decode(data)
                mime_type = inline.mime_type or "image/png"
                image = ImageAsset(
                    data=data,
                    mime_type=mime_type,
                    name=f"{RESULT_NAME_STEM}.{mime_extension(mime_type)}",
                )
            elif getattr(part, "text", None):
                text = part.text

    return GenerationResult(image=image, text=text)


class GenerationService:
    def __init__(
        self,
        api_key: Optional[str],
        model_name: str = DEFAULT_MODEL_NAME,
        client: Optional[Any] = None,
    ) -> None:
        self._api_key = api_key
        self._model_name = model_name
        self._client = client

    @property
    def model_name(self) -> str:
        return self._model_name

    def generate(
        self,
        model_image: ImageAsset,
        pattern_image: ImageAsset,
        settings: GenerationSettings,
    ) -> GenerationResult:
        """Отправляет фото модели, образец и промпт; ждёт один ответ.

        Raises:
            InputError: если одно из изображений пустое.
            RemoteError: нет ключа API, сетевая ошибка, отказ модели.
        """
        parts = [_image_part(model_image), _image_part(pattern_image)]
        client = self._get_client()
        prompt = build_prompt(settings)

        logger.info(
            "Requesting generation from %s (fabric=%s, area=%s, scale=%s)",
            self._model_name,
            settings.fabric_type.value,
            settings.target_area.value,
            settings.scale.value,
        )
        try:
            with measure("generation"):
                response = client.models.generate_content(
                    model=self._model_name,
                    contents=[prompt, *parts],
                )
        except Exception as exc:
            logger.error("Gemini API error: %s", exc)
            raise RemoteError(f"Generation failed: {exc}") from exc

        result = parse_response(response)
        if result.image is None:
            logger.warning("Model returned no image; text=%r", result.text)
        return result

    def _get_client(self) -> Any:
        if self._client is None:
            if not self._api_key:
                raise RemoteError(MISSING_KEY_MESSAGE)
            self._client = genai.Client(api_key=self._api_key)
        return self._client

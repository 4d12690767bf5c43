"""Иерархия исключений приложения."""
from __future__ import annotations


class FabricStudioError(Exception):
    """Базовое исключение; сообщение предназначено для пользователя."""


class InputError(FabricStudioError):
    """Пустой или нечитаемый файл, незаполненный слот изображения."""


class SelectionError(FabricStudioError):
    """Выделение для обрезки слишком мало."""


class EncodingError(FabricStudioError):
    """Ошибка кодирования/декодирования растра."""


class RemoteError(FabricStudioError):
    """Ошибка удалённого вызова генерации."""

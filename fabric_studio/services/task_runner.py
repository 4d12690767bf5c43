"""Выполнение долгих операций вне UI-потока с защитой от повторного запуска.

Принципы:
- Колбэки завершения всегда выполняются в UI-потоке: рабочий поток только кладёт
  результат в очередь, UI-поток разбирает её через `drain()`.
- Одновременно выполняется не более одной операции на ключ ("crop", "export", ...).
"""
from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, Optional, Set, Tuple

logger = logging.getLogger(__name__)

Callback = Optional[Callable[[Any], None]]


def _spawn_thread(fn: Callable[[], None]) -> None:
    threading.Thread(target=fn, daemon=True).start()


class TaskRunner:
    def __init__(self, spawn: Callable[[Callable[[], None]], None] = _spawn_thread) -> None:
        self._spawn = spawn
        self._in_flight: Set[str] = set()
        self._completions: "queue.Queue[Tuple[str, Callback, Any]]" = queue.Queue()

    def is_busy(self, key: str) -> bool:
        return key in self._in_flight

    def submit(
        self,
        key: str,
        work: Callable[[], Any],
        on_success: Callback = None,
        on_error: Callback = None,
    ) -> bool:
        """Запускает `work` в фоне. Возвращает False, если операция `key` уже идёт."""
        if key in self._in_flight:
            logger.debug("Task %r already running, request ignored", key)
            return False
        self._in_flight.add(key)

        def _run() -> None:
            try:
                value = work()
            except Exception as exc:
                self._completions.put((key, on_error, exc))
                if on_error is None:
                    logger.exception("Task %r failed", key)
            else:
                self._completions.put((key, on_success, value))

        self._spawn(_run)
        return True

    def drain(self) -> int:
        """Выполняет накопившиеся колбэки; вызывать только из UI-потока."""
        handled = 0
        while True:
            try:
                key, callback, value = self._completions.get_nowait()
            except queue.Empty:
                return handled
            self._in_flight.discard(key)
            handled += 1
            if callback is not None:
                callback(value)

    def attach(self, widget: Any, interval_ms: int = 50) -> None:
        """Подключает периодический разбор очереди к циклу событий Tk."""
        def _pump() -> None:
            self.drain()
            widget.after(interval_ms, _pump)

        widget.after(interval_ms, _pump)

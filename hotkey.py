"""Global toggle hotkey based on pynput.

The first press of the configured key fires ``on_activate``, the next press
fires ``on_deactivate``. Auto-repeat while the key is held is ignored.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

try:
    from pynput import keyboard
except Exception:  # pragma: no cover
    keyboard = None  # type: ignore


class ToggleHotkey:
    def __init__(self, hotkey_name: str = "Key.f9") -> None:
        self._hotkey_name = hotkey_name
        self._listener: Optional[object] = None
        self._held = False
        self._active = False
        self._lock = threading.Lock()
        self._on_activate: Optional[Callable[[], None]] = None
        self._on_deactivate: Optional[Callable[[], None]] = None

    @property
    def active(self) -> bool:
        return self._active

    def start(self, on_activate: Callable[[], None], on_deactivate: Callable[[], None]) -> None:
        if keyboard is None:
            raise RuntimeError("pynput is not installed")
        self._on_activate = on_activate
        self._on_deactivate = on_deactivate
        self._listener = keyboard.Listener(on_press=self._handle_press, on_release=self._handle_release)
        self._listener.start()

    def stop(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.stop()
            self._listener = None

    def sync(self, active: bool) -> None:
        """Align the toggle with state changed from elsewhere (e.g. the tray menu)."""
        with self._lock:
            self._active = active

    def _handle_press(self, key: object) -> None:
        if str(key) != self._hotkey_name:
            return
        with self._lock:
            if self._held:
                return
            self._held = True
            self._active = not self._active
            activate = self._active
        callback = self._on_activate if activate else self._on_deactivate
        if callback is not None:
            callback()

    def _handle_release(self, key: object) -> None:
        if str(key) != self._hotkey_name:
            return
        with self._lock:
            self._held = False

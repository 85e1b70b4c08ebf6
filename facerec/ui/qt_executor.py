from __future__ import annotations

import functools
from typing import Any, Callable

from PySide6.QtCore import QObject, Qt, Signal, Slot


class QtMainThreadExecutor(QObject):
    """Posts callables onto the thread that owns this object (the GUI thread)."""

    _invoke = Signal(object)

    def __init__(self) -> None:
        super().__init__()
        self._invoke.connect(self._run, Qt.QueuedConnection)

    def execute(self, fn: Callable[..., Any], *args: Any) -> None:
        self._invoke.emit(functools.partial(fn, *args))

    @Slot(object)
    def _run(self, call: Callable[[], Any]) -> None:
        call()

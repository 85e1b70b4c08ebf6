from __future__ import annotations

from enum import Enum
from typing import Callable, Optional, Protocol

from facerec.logging.audit import audit_event


class PermissionState(str, Enum):
    NOT_REQUESTED = "not_requested"
    DENIED = "denied"
    GRANTED = "granted"


class PermissionStore(Protocol):
    def check(self) -> PermissionState:
        ...

    def request(self, on_result: Callable[[bool], None]) -> None:
        ...


class StaticPermissionStore:
    """Answers from fixed values; used headless and in tests."""

    def __init__(
        self,
        initial: PermissionState = PermissionState.NOT_REQUESTED,
        answer: bool = True,
    ):
        self._initial = initial
        self._answer = answer
        self.prompts = 0

    def check(self) -> PermissionState:
        return self._initial

    def request(self, on_result: Callable[[bool], None]) -> None:
        self.prompts += 1
        on_result(self._answer)


class PermissionGate:
    """Camera permission for one screen session.

    The store is read once on ``load``. Each ``request`` prompts once;
    ``GRANTED`` is terminal and later requests are ignored.
    """

    def __init__(self, store: PermissionStore):
        self._store = store
        self._state: Optional[PermissionState] = None
        self._on_granted: list[Callable[[], None]] = []
        self._on_change: list[Callable[[PermissionState], None]] = []

    @property
    def state(self) -> PermissionState:
        if self._state is None:
            return PermissionState.NOT_REQUESTED
        return self._state

    @property
    def is_granted(self) -> bool:
        return self.state is PermissionState.GRANTED

    def on_granted(self, callback: Callable[[], None]) -> None:
        self._on_granted.append(callback)

    def on_change(self, callback: Callable[[PermissionState], None]) -> None:
        self._on_change.append(callback)

    def load(self) -> PermissionState:
        if self._state is None:
            self._set(self._store.check())
        return self.state

    def request(self) -> None:
        if self.is_granted:
            return
        self._store.request(self._on_result)

    def _on_result(self, granted: bool) -> None:
        if self.is_granted:
            return
        state = PermissionState.GRANTED if granted else PermissionState.DENIED
        audit_event("permission.result", granted=granted)
        self._set(state)

    def _set(self, state: PermissionState) -> None:
        self._state = state
        for callback in list(self._on_change):
            callback(state)
        if state is PermissionState.GRANTED:
            for callback in list(self._on_granted):
                callback()

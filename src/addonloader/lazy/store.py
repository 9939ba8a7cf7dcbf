from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping

LOAD_LAZY_LIBRARY = "LOAD_LAZY_LIBRARY"


@dataclass(frozen=True)
class LibraryLoaded:
    name: str
    value: Any
    type: str = LOAD_LAZY_LIBRARY


def load_lazy_library(name: str, value: Any) -> LibraryLoaded:
    return LibraryLoaded(name=name, value=value)


Listener = Callable[[LibraryLoaded], None]


def raise_collected(errors: list[Exception], message: str) -> None:
    if len(errors) == 1:
        raise errors[0]
    if errors:
        raise ExceptionGroup(message, errors)


class LibraryStore:
    """Loaded lazy libraries keyed by name.

    Entries are written once and never replaced: the first completed load for
    a name wins and later deliveries for it are ignored. Listeners are called
    for every accepted write, after the value is visible in ``snapshot()``.
    Every listener runs even when an earlier one raises; the errors are
    re-raised once all of them have been called.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._libraries: dict[str, Any] = dict(initial or {})
        self._listeners: list[Listener] = []

    def __contains__(self, name: object) -> bool:
        return name in self._libraries

    def __len__(self) -> int:
        return len(self._libraries)

    def snapshot(self) -> Mapping[str, Any]:
        return MappingProxyType(dict(self._libraries))

    def dispatch(self, event: LibraryLoaded) -> bool:
        if event.type != LOAD_LAZY_LIBRARY:
            raise ValueError(f"Unsupported event type: {event.type}")
        if event.name in self._libraries:
            return False
        self._libraries[event.name] = event.value
        errors: list[Exception] = []
        for listener in tuple(self._listeners):
            try:
                listener(event)
            except Exception as exc:
                errors.append(exc)
        raise_collected(errors, f"listeners failed for lazy library {event.name!r}")
        return True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


__all__ = ["LOAD_LAZY_LIBRARY", "LibraryLoaded", "LibraryStore", "load_lazy_library", "raise_collected"]

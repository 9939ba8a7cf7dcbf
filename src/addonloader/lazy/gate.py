"""Gate consumer callables on the availability of lazy libraries.

``preload_lazy_libs`` only starts loading and always calls through.
``inject_lazy_libs`` calls the consumer, with the loaded libraries as keyword
arguments, only once every requested library is in the store::

    @inject_lazy_libs(["plotly", "pandas"], registry)
    def render_chart(data, *, plotly, pandas):
        ...

    render_chart(data)  # None until both libraries have loaded
"""

from __future__ import annotations

from functools import update_wrapper
from typing import Any, Callable, Iterable

from addonloader.lazy.registry import LazyLibraryRegistry
from addonloader.lazy.store import LibraryLoaded

Consumer = Callable[..., Any]


def trigger_loading(libraries: Iterable[str], registry: LazyLibraryRegistry) -> dict[str, Any]:
    """Start loading every resolved library that is not loaded yet.

    Bundle members with no registered loadable, and libraries whose last load
    was rejected, are skipped: they stay absent until ``ensure_loading`` is
    called for them explicitly.
    """
    names = tuple(libraries)
    loaded = registry.loaded_subset(names)
    rejected = registry.rejections
    for name in names:
        if name in loaded or name in rejected or name not in registry.loadables:
            continue
        registry.ensure_loading(name)
    return loaded


def use_lazy_libs(name_or_names: str | Iterable[str], registry: LazyLibraryRegistry) -> dict[str, Any]:
    return trigger_loading(registry.resolve(name_or_names), registry)


def _consumer_name(consumer: Consumer) -> str:
    return getattr(consumer, "display_name", None) or getattr(consumer, "__name__", None) or "consumer"


class LoadGate:
    label = "PreloadLoadables"
    inject = False

    def __init__(
        self,
        consumer: Consumer,
        name_or_names: str | Iterable[str],
        registry: LazyLibraryRegistry,
    ) -> None:
        update_wrapper(self, consumer)
        self._consumer = consumer
        self._requested = name_or_names if isinstance(name_or_names, str) else tuple(name_or_names)
        self._registry = registry
        self._libraries: tuple[str, ...] | None = None

    @property
    def libraries(self) -> tuple[str, ...]:
        # resolved once so the gate key stays stable while loads complete
        if self._libraries is None:
            self._libraries = tuple(self._registry.resolve(self._requested))
        return self._libraries

    @property
    def key(self) -> str:
        return "|".join(self.libraries)

    @property
    def display_name(self) -> str:
        return f"{self.label}({','.join(self.libraries)})({_consumer_name(self._consumer)})"

    def loaded(self) -> dict[str, Any]:
        return trigger_loading(self.libraries, self._registry)

    def is_ready(self, loaded: dict[str, Any] | None = None) -> bool:
        current = self._registry.loaded_subset(self.libraries) if loaded is None else loaded
        return len(current) == len(set(self.libraries))

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        self.loaded()
        return self._consumer(*args, **kwargs)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.display_name}>"


class InjectGate(LoadGate):
    label = "WithLoadables"
    inject = True

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        loaded = self.loaded()
        if not self.is_ready(loaded):
            return None
        return self._consumer(*args, **{**kwargs, **loaded})

    def activate_when_ready(self, *args: Any, **kwargs: Any) -> Callable[[], None]:
        """Call the consumer exactly once, as soon as every library is loaded.

        Returns a callable that cancels the pending activation.
        """
        if self.is_ready(self.loaded()):
            self(*args, **kwargs)
            return lambda: None

        unsubscribe: Callable[[], None] | None = None

        def _on_loaded(event: LibraryLoaded) -> None:
            if event.name not in self.libraries or not self.is_ready():
                return
            if unsubscribe is not None:
                unsubscribe()
            self(*args, **kwargs)

        unsubscribe = self._registry.store.subscribe(_on_loaded)
        return unsubscribe


def preload_lazy_libs(
    name_or_names: str | Iterable[str], registry: LazyLibraryRegistry
) -> Callable[[Consumer], LoadGate]:
    def decorator(consumer: Consumer) -> LoadGate:
        return LoadGate(consumer, name_or_names, registry)

    return decorator


def inject_lazy_libs(
    name_or_names: str | Iterable[str], registry: LazyLibraryRegistry
) -> Callable[[Consumer], InjectGate]:
    def decorator(consumer: Consumer) -> InjectGate:
        return InjectGate(consumer, name_or_names, registry)

    return decorator


__all__ = ["InjectGate", "LoadGate", "inject_lazy_libs", "preload_lazy_libs", "trigger_loading", "use_lazy_libs"]

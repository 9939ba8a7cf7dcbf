from __future__ import annotations

import asyncio
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from addonloader.config import AddonLoaderConfig
from addonloader.failures import InvalidLibraryOrBundleName, LoaderRejection
from addonloader.lazy.bundles import BundleMembers, resolve_libraries
from addonloader.lazy.loadables import Loadable, ModuleLoadable
from addonloader.lazy.store import LibraryStore, load_lazy_library, raise_collected
from addonloader.provenance.ledger import record_event


class LazyLibraryRegistry:
    """Load-once cache of optional libraries.

    ``ensure_loading`` schedules at most one load per name on the running
    event loop; completed values land in the injected :class:`LibraryStore`.
    A failed load is kept in ``rejections`` and clears the in-flight marker so
    a caller may trigger it again.
    """

    def __init__(
        self,
        loadables: Mapping[str, Loadable],
        bundles: Mapping[str, BundleMembers] | None = None,
        *,
        store: LibraryStore | None = None,
        cfg: AddonLoaderConfig | None = None,
    ) -> None:
        overlap = set(loadables).intersection(bundles or {})
        if overlap:
            raise ValueError(f"Bundle names collide with library names: {', '.join(sorted(overlap))}")
        self._loadables = dict(loadables)
        self._bundles = dict(bundles or {})
        self._store = store if store is not None else LibraryStore()
        self._cfg = cfg
        self._in_flight: dict[str, asyncio.Task[Any]] = {}
        self._rejections: dict[str, LoaderRejection] = {}

    @classmethod
    def from_config(cls, cfg: AddonLoaderConfig, *, store: LibraryStore | None = None) -> "LazyLibraryRegistry":
        cfg.validate()
        loadables = {name: ModuleLoadable.from_reference(ref) for name, ref in cfg.lazy_libraries.items()}
        return cls(loadables, cfg.lazy_bundles, store=store, cfg=cfg)

    @property
    def store(self) -> LibraryStore:
        return self._store

    @property
    def loadables(self) -> Mapping[str, Loadable]:
        return MappingProxyType(self._loadables)

    @property
    def bundles(self) -> Mapping[str, BundleMembers]:
        return MappingProxyType(self._bundles)

    @property
    def rejections(self) -> Mapping[str, LoaderRejection]:
        return MappingProxyType(dict(self._rejections))

    def resolve(self, name_or_names: str | Iterable[str]) -> list[str]:
        return resolve_libraries(name_or_names, self._loadables, self._bundles)

    def snapshot(self) -> Mapping[str, Any]:
        return self._store.snapshot()

    def loaded_subset(self, names: Iterable[str]) -> dict[str, Any]:
        snapshot = self._store.snapshot()
        return {name: snapshot[name] for name in names if name in snapshot}

    def is_loading(self, name: str) -> bool:
        return name in self._in_flight

    def ensure_loading(self, name: str) -> asyncio.Task[Any] | None:
        """Start loading ``name`` unless it is loaded or already loading.

        Returns the in-flight task, or ``None`` when the library is already
        in the store. Must be called while an event loop is running.
        """
        if name not in self._loadables:
            raise InvalidLibraryOrBundleName(name)
        if name in self._store:
            return None
        task = self._in_flight.get(name)
        if task is not None:
            return task
        loop = asyncio.get_running_loop()
        self._rejections.pop(name, None)
        task = loop.create_task(self._load(name), name=f"lazy-library:{name}")
        self._in_flight[name] = task
        task.add_done_callback(lambda done, key=name: self._forget(key, done))
        return task

    def _forget(self, name: str, task: asyncio.Task[Any]) -> None:
        if self._in_flight.get(name) is task:
            del self._in_flight[name]

    async def _load(self, name: str) -> Any:
        try:
            value = await self._loadables[name].load()
        except Exception as exc:
            self._reject(name, f"{type(exc).__name__}: {exc}")
            return None
        self.record_loaded(name, value)
        return value

    def _reject(self, name: str, reason: str) -> None:
        self._rejections[name] = LoaderRejection(name, reason)
        record_event(self._cfg, "lazy_library_rejected", {"name": name, "reason": reason}, actor="lazy_registry")

    def record_loaded(self, name: str, value: Any) -> bool:
        """Store ``value`` for ``name`` unless a value is already present.

        ``None`` is never stored; it is recorded as a rejection instead.
        Errors raised by store listeners propagate after the value is stored.
        """
        if name in self._store:
            return False
        if value is None:
            self._reject(name, "loader resolved to None")
            return False
        try:
            return self._store.dispatch(load_lazy_library(name, value))
        finally:
            record_event(
                self._cfg,
                "lazy_library_loaded",
                {"name": name, "type": type(value).__name__},
                actor="lazy_registry",
            )

    async def drain(self) -> None:
        """Wait until no load is in flight, including loads started while waiting.

        Rejected loads never raise here. Errors raised by store listeners
        while a load completed are re-raised once every load has settled.
        """
        errors: list[Exception] = []
        while self._in_flight:
            results = await asyncio.gather(*tuple(self._in_flight.values()), return_exceptions=True)
            errors.extend(result for result in results if isinstance(result, Exception))
        raise_collected(errors, "lazy library listeners failed")


__all__ = ["LazyLibraryRegistry"]

"""Lazy libraries: load optional dependencies once and gate consumers on them."""

from .bundles import resolve_libraries, validate_libs
from .gate import InjectGate, LoadGate, inject_lazy_libs, preload_lazy_libs, trigger_loading, use_lazy_libs
from .loadables import Loadable, ModuleLoadable
from .registry import LazyLibraryRegistry
from .store import LOAD_LAZY_LIBRARY, LibraryLoaded, LibraryStore, load_lazy_library

__all__ = [
    "LOAD_LAZY_LIBRARY",
    "InjectGate",
    "LazyLibraryRegistry",
    "LibraryLoaded",
    "LibraryStore",
    "LoadGate",
    "Loadable",
    "ModuleLoadable",
    "inject_lazy_libs",
    "load_lazy_library",
    "preload_lazy_libs",
    "resolve_libraries",
    "trigger_loading",
    "use_lazy_libs",
    "validate_libs",
]

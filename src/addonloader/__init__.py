"""
addonloader: ordered addon configuration pipelines and lazily loaded libraries.
"""

from .config import AddonLoaderConfig, load_config

_LAZY_EXPORTS = {
    "compose_config": ".composition",
    "get_addons_loader_code": ".composition",
    "name_from_package": ".composition",
    "parse_addon_spec": ".composition",
    "write_addons_loader": ".composition",
    "LazyLibraryRegistry": ".lazy",
    "LibraryStore": ".lazy",
    "inject_lazy_libs": ".lazy",
    "preload_lazy_libs": ".lazy",
    "use_lazy_libs": ".lazy",
}


def __getattr__(name):  # pragma: no cover - thin lazy import shim
    if name in _LAZY_EXPORTS:
        import importlib

        module = importlib.import_module(_LAZY_EXPORTS[name], __name__)

        return getattr(module, name)
    raise AttributeError(name)


__all__ = ["AddonLoaderConfig", "load_config", *_LAZY_EXPORTS]

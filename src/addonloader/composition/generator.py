"""Generate the Python module that applies addon configuration functions in order.

The generated module imports every addon's configuration function, checks that
each of them is callable and folds them left to right over the configuration
handed to its ``load`` function. Loading the generated text is a separate step
(see :mod:`addonloader.composition.loader`).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from addonloader.composition.identifiers import FALLBACK_ALPHABET, FALLBACK_LENGTH, name_from_package
from addonloader.composition.spec import AddonSpec, parse_addon_specs
from addonloader.config import AddonLoaderConfig
from addonloader.failures import DuplicateAddonIdentifier

DEFAULT_EXPORT = "apply_config"

_HEADER = '''"""
This file is autogenerated. Don't change it directly.
Instead, change the "addons" setting in your configuration.
"""

from functools import reduce as _reduce
from importlib import import_module as _import_module

from addonloader.failures import NonCallablePipelineEntry, UndefinedTransformResult


def _import_addon(package, *names):
    module = _import_module(package)
    return tuple(getattr(module, name, None) for name in names)


'''

_RUNTIME = '''

def _safe_wrapper(func):
    def apply(config):
        result = func(config)
        if result is None:
            name = getattr(func, "__qualname__", type(func).__name__)
            raise UndefinedTransformResult(f"Configuration function {{name}} doesn't return config")
        return result

    return apply


def load(config):
    addon_loaders = [{loaders}]
    invalid = [source for source, loader in zip(ADDON_SOURCES, addon_loaders) if not callable(loader)]
    if invalid:
        raise NonCallablePipelineEntry(
            "Each addon has to provide a function applying its configuration to the "
            "projects configuration. Not callable: " + ", ".join(invalid)
        )
    return _reduce(lambda acc, apply: _safe_wrapper(apply)(acc), addon_loaders, config)


__all__ = ["load"]
'''

RESERVED_NAMES = frozenset(
    {
        "ADDON_SOURCES",
        "NonCallablePipelineEntry",
        "UndefinedTransformResult",
        "_import_addon",
        "_import_module",
        "_reduce",
        "_safe_wrapper",
        "load",
    }
)


@dataclass(frozen=True)
class AddonImport:
    spec: AddonSpec
    identifier: str
    extras: tuple[tuple[str, str], ...]

    @property
    def identifiers(self) -> tuple[str, ...]:
        return (self.identifier, *(alias for _, alias in self.extras))

    @property
    def sources(self) -> tuple[str, ...]:
        package = self.spec.package_id
        return (package, *(f"{package}:{name}" for name, _ in self.extras))

    def to_dict(self) -> dict[str, Any]:
        return {
            "spec": self.spec.to_dict(),
            "identifier": self.identifier,
            "extras": [{"export": name, "identifier": alias} for name, alias in self.extras],
        }


def plan_addon_imports(
    specs: Iterable[AddonSpec],
    *,
    fallback_length: int = FALLBACK_LENGTH,
    fallback_alphabet: str = FALLBACK_ALPHABET,
) -> list[AddonImport]:
    """Assign a unique identifier to every default and extra export, in input order."""
    imports: list[AddonImport] = []
    used: set[str] = set(RESERVED_NAMES)
    counter = 0

    def _claim(identifier: str, source: str) -> str:
        if identifier in used:
            raise DuplicateAddonIdentifier(
                f"identifier {identifier!r} for {source!r} collides with another addon or a reserved name"
            )
        used.add(identifier)
        return identifier

    for spec in specs:
        identifier = _claim(
            name_from_package(
                spec.package_id, fallback_length=fallback_length, fallback_alphabet=fallback_alphabet
            ),
            spec.package_id,
        )
        extras: list[tuple[str, str]] = []
        for export in spec.extra_exports:
            base = name_from_package(export, fallback_length=fallback_length, fallback_alphabet=fallback_alphabet)
            extras.append((export, _claim(f"{base}{counter}", f"{spec.package_id}:{export}")))
            counter += 1
        imports.append(AddonImport(spec=spec, identifier=identifier, extras=tuple(extras)))
    return imports


def _import_line(addon: AddonImport, default_export: str) -> str:
    targets = ", ".join(addon.identifiers)
    if len(addon.identifiers) == 1:
        targets += ","
    names = ", ".join(repr(name) for name in (default_export, *(export for export, _ in addon.extras)))
    return f"({targets}) = _import_addon({addon.spec.package_id!r}, {names})\n"


def get_addons_loader_code(addons: Iterable[str] = (), cfg: AddonLoaderConfig | None = None) -> str:
    """Return the source of a module whose ``load(config)`` applies ``addons`` in order."""
    default_export = cfg.default_export if cfg is not None else DEFAULT_EXPORT
    imports = plan_addon_imports(
        parse_addon_specs(addons),
        fallback_length=cfg.identifier_fallback_length if cfg is not None else FALLBACK_LENGTH,
        fallback_alphabet=cfg.identifier_fallback_alphabet if cfg is not None else FALLBACK_ALPHABET,
    )

    buf = _HEADER
    identifiers: list[str] = []
    sources: list[str] = []
    for addon in imports:
        buf += _import_line(addon, default_export)
        identifiers.extend(addon.identifiers)
        sources.extend(addon.sources)

    buf += f"\nADDON_SOURCES = ({''.join(f'{source!r}, ' for source in sources).rstrip()})\n"
    buf += _RUNTIME.format(loaders=", ".join(identifiers))
    return buf


__all__ = ["DEFAULT_EXPORT", "RESERVED_NAMES", "AddonImport", "get_addons_loader_code", "plan_addon_imports"]

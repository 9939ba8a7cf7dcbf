from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from addonloader.failures import InvalidLibraryOrBundleName

BundleMembers = str | Sequence[str]


def _members(value: BundleMembers) -> list[str]:
    return [value] if isinstance(value, str) else list(value)


def validate_libs(maybe_libs: Any, loadables: Mapping[str, Any], bundles: Mapping[str, BundleMembers]) -> bool:
    """True when ``maybe_libs`` names a library or bundle, or a sequence holds at least one."""
    if isinstance(maybe_libs, str):
        return maybe_libs in bundles or maybe_libs in loadables
    if isinstance(maybe_libs, (bytes, bytearray)) or not isinstance(maybe_libs, Iterable):
        return False
    return any(validate_libs(item, loadables, bundles) for item in maybe_libs)


def resolve_libraries(
    name_or_names: str | Iterable[str],
    loadables: Mapping[str, Any],
    bundles: Mapping[str, BundleMembers] | None = None,
) -> list[str]:
    """Flatten a library name, a bundle name or a sequence of either into library names.

    Sequences are resolved element by element and concatenated in order;
    duplicates are kept. A bundle expands to its configured members and is
    rejected only when none of them is a known library.
    """
    bundle_map = bundles or {}

    if isinstance(name_or_names, str):
        if name_or_names in bundle_map:
            members = _members(bundle_map[name_or_names])
            if not any(member in loadables for member in members):
                raise InvalidLibraryOrBundleName(name_or_names)
            return members
        if name_or_names in loadables:
            return [name_or_names]
        raise InvalidLibraryOrBundleName(name_or_names)

    if isinstance(name_or_names, (bytes, bytearray)) or not isinstance(name_or_names, Iterable):
        raise InvalidLibraryOrBundleName(name_or_names)

    requested = list(name_or_names)
    if not requested:
        raise InvalidLibraryOrBundleName(requested)
    resolved: list[str] = []
    for item in requested:
        if not isinstance(item, str):
            raise InvalidLibraryOrBundleName(item)
        resolved.extend(resolve_libraries(item, loadables, bundle_map))
    return resolved


__all__ = ["resolve_libraries", "validate_libs"]

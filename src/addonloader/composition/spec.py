from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from addonloader.failures import InvalidAddonSpec

SPEC_SEPARATOR = ":"
EXPORT_SEPARATOR = ","


def _require_non_empty_str(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise InvalidAddonSpec(f"{field} must be a string, got {type(value).__name__}")
    trimmed = value.strip()
    if not trimmed:
        raise InvalidAddonSpec(f"{field} cannot be empty")
    return trimmed


@dataclass(frozen=True)
class AddonSpec:
    package_id: str
    extra_exports: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.package_id:
            raise InvalidAddonSpec("package id cannot be empty")

    def to_dict(self) -> dict[str, Any]:
        return {"package_id": self.package_id, "extra_exports": list(self.extra_exports)}

    def __str__(self) -> str:
        if not self.extra_exports:
            return self.package_id
        return f"{self.package_id}{SPEC_SEPARATOR}{EXPORT_SEPARATOR.join(self.extra_exports)}"


def parse_addon_spec(spec_string: str) -> AddonSpec:
    """Parse ``package[:export1,export2,...]``.

    Segments after the second ``:`` are ignored. Neither the package nor its
    exports are checked for existence here; importing them is the loader's job.
    """
    raw = _require_non_empty_str(spec_string, "addon spec")
    segments = raw.split(SPEC_SEPARATOR)
    package_id = _require_non_empty_str(segments[0], f"package id in addon spec {raw!r}")
    extras: tuple[str, ...] = ()
    if len(segments) > 1:
        extras = tuple(name.strip() for name in segments[1].split(EXPORT_SEPARATOR) if name.strip())
    return AddonSpec(package_id=package_id, extra_exports=extras)


def parse_addon_specs(spec_strings: Iterable[str]) -> list[AddonSpec]:
    if isinstance(spec_strings, (str, bytes)):
        raise InvalidAddonSpec("addons must be an iterable of spec strings, not a single string")
    return [parse_addon_spec(spec) for spec in spec_strings]


__all__ = ["AddonSpec", "parse_addon_spec", "parse_addon_specs"]

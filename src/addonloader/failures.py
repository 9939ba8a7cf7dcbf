"""Failure codes and exceptions raised by addon composition and lazy loading."""

from __future__ import annotations

INVALID_ADDON_SPEC = "ADDON_0x01"
DUPLICATE_ADDON_IDENTIFIER = "ADDON_0x02"
NON_CALLABLE_PIPELINE_ENTRY = "ADDON_0x03"
UNDEFINED_TRANSFORM_RESULT = "ADDON_0x04"
INVALID_LIBRARY_OR_BUNDLE_NAME = "LAZY_0x01"
LOADER_REJECTION = "LAZY_0x02"


class AddonLoaderError(Exception):
    code: str = "ADDON_0x00"

    def __init__(self, detail: str, *, code: str | None = None):
        resolved = code or type(self).code
        super().__init__(f"{resolved}: {detail}")
        self.code = resolved
        self.detail = detail


class InvalidAddonSpec(AddonLoaderError, ValueError):
    code = INVALID_ADDON_SPEC


class DuplicateAddonIdentifier(AddonLoaderError, ValueError):
    code = DUPLICATE_ADDON_IDENTIFIER


class NonCallablePipelineEntry(AddonLoaderError, TypeError):
    code = NON_CALLABLE_PIPELINE_ENTRY


class UndefinedTransformResult(AddonLoaderError):
    code = UNDEFINED_TRANSFORM_RESULT


class InvalidLibraryOrBundleName(AddonLoaderError, LookupError):
    code = INVALID_LIBRARY_OR_BUNDLE_NAME

    def __init__(self, name: object):
        super().__init__(f"Invalid lib or bundle name {name!r}")
        self.name = name


class LoaderRejection(AddonLoaderError):
    """A lazy library load that raised or resolved to ``None``."""

    code = LOADER_REJECTION

    def __init__(self, name: str, reason: str):
        super().__init__(f"Loading lazy library {name!r} failed: {reason}")
        self.name = name
        self.reason = reason


__all__ = [
    "INVALID_ADDON_SPEC",
    "DUPLICATE_ADDON_IDENTIFIER",
    "NON_CALLABLE_PIPELINE_ENTRY",
    "UNDEFINED_TRANSFORM_RESULT",
    "INVALID_LIBRARY_OR_BUNDLE_NAME",
    "LOADER_REJECTION",
    "AddonLoaderError",
    "InvalidAddonSpec",
    "DuplicateAddonIdentifier",
    "NonCallablePipelineEntry",
    "UndefinedTransformResult",
    "InvalidLibraryOrBundleName",
    "LoaderRejection",
]

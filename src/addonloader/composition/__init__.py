"""Addon composition: spec parsing, identifier synthesis and loader generation."""

from .generator import AddonImport, get_addons_loader_code, plan_addon_imports
from .identifiers import name_from_package
from .loader import compose_config, load_addons_module, write_addons_loader
from .spec import AddonSpec, parse_addon_spec, parse_addon_specs

__all__ = [
    "AddonImport",
    "AddonSpec",
    "compose_config",
    "get_addons_loader_code",
    "load_addons_module",
    "name_from_package",
    "parse_addon_spec",
    "parse_addon_specs",
    "plan_addon_imports",
    "write_addons_loader",
]

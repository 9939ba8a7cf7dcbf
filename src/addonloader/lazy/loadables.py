from __future__ import annotations

import asyncio
from importlib import import_module
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Loadable(Protocol):
    async def load(self) -> Any: ...


class ModuleLoadable:
    """Import ``module_path`` off the event loop, optionally returning one attribute.

    ``ModuleLoadable("plotly.graph_objects")`` or
    ``ModuleLoadable("pandas", attribute="DataFrame")``.
    """

    def __init__(self, module_path: str, attribute: str | None = None) -> None:
        if not module_path.strip():
            raise ValueError("module_path cannot be empty")
        self.module_path = module_path.strip()
        self.attribute = attribute

    @classmethod
    def from_reference(cls, reference: str) -> "ModuleLoadable":
        module_path, _, attribute = reference.partition(":")
        return cls(module_path, attribute or None)

    def _import(self) -> Any:
        module = import_module(self.module_path)
        if self.attribute is None:
            return module
        return getattr(module, self.attribute)

    async def load(self) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._import)

    def __repr__(self) -> str:
        target = f"{self.module_path}:{self.attribute}" if self.attribute else self.module_path
        return f"ModuleLoadable({target!r})"


__all__ = ["Loadable", "ModuleLoadable"]

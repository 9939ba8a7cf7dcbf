from __future__ import annotations

import hashlib
import importlib.util
import os
import tempfile
from pathlib import Path
from types import ModuleType
from typing import Any, Iterable

from addonloader.composition.generator import get_addons_loader_code
from addonloader.config import AddonLoaderConfig
from addonloader.provenance.ledger import record_event


def write_addons_loader(addons: Iterable[str] = (), cfg: AddonLoaderConfig | None = None) -> Path:
    """Write the generated loader for ``addons`` to a fresh temporary file and return its path."""
    specs = list(addons)
    code = get_addons_loader_code(specs, cfg=cfg)
    output_dir = cfg.output_dir if cfg is not None else None
    if output_dir:
        Path(output_dir).mkdir(parents=True, exist_ok=True)
    fd, raw_path = tempfile.mkstemp(prefix="addons_loader_", suffix=".py", dir=output_dir)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(code)
    path = Path(raw_path)
    record_event(
        cfg,
        "addons_loader_written",
        {"addons": specs, "path": str(path), "sha256": hashlib.sha256(code.encode("utf-8")).hexdigest()},
        actor="composition",
    )
    return path


def load_addons_module(path: Path | str) -> ModuleType:
    resolved = Path(path).resolve()
    module_id = hashlib.sha256(str(resolved).encode("utf-8")).hexdigest()[:12]
    spec = importlib.util.spec_from_file_location(f"addonloader.generated.{resolved.stem}_{module_id}", resolved)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load addons loader from {resolved}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def compose_config(addons: Iterable[str], config: Any, cfg: AddonLoaderConfig | None = None) -> Any:
    """Generate, load and run the addons pipeline over ``config``."""
    path = write_addons_loader(addons, cfg=cfg)
    try:
        module = load_addons_module(path)
    finally:
        path.unlink(missing_ok=True)
    return module.load(config)


__all__ = ["compose_config", "load_addons_module", "write_addons_loader"]

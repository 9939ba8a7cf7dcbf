from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any


def _dump(obj: Any) -> str:
    from addonloader.assurance.logging import canonical_json

    return canonical_json(obj)


def _emit(obj: Any) -> None:
    sys.stdout.write(_dump(obj) + "\n")
    sys.stdout.flush()


def _safe_cli_log(cfg: Any, *, action: str, outcome: str, details: dict[str, Any]) -> None:
    try:
        from addonloader.assurance.logging import append_jsonl_log_event

        append_jsonl_log_event(cfg=cfg, action=action, outcome=outcome, details=details)
    except Exception:  # pragma: no cover - best-effort logging
        pass


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="addonloader", description="Addon composition and lazy library tools")
    sub = parser.add_subparsers(dest="command", required=True)

    generate_parser = sub.add_parser("generate", help="Print the generated addons loader module")
    generate_parser.add_argument("addons", nargs="*", help="Addon specs (package[:export,...]); defaults to config")

    write_parser = sub.add_parser("write", help="Write the generated addons loader to a temporary file")
    write_parser.add_argument("addons", nargs="*", help="Addon specs (package[:export,...]); defaults to config")

    identifier_parser = sub.add_parser("identifier", help="Show the identifier generated for package names")
    identifier_parser.add_argument("names", nargs="+")

    resolve_parser = sub.add_parser("resolve", help="Resolve lazy library and bundle names")
    resolve_parser.add_argument("names", nargs="+")

    load_parser = sub.add_parser("load", help="Load lazy libraries and report the outcome")
    load_parser.add_argument("names", nargs="+")

    ledger_parser = sub.add_parser("ledger", help="Ledger operations")
    ledger_sub = ledger_parser.add_subparsers(dest="ledger_command", required=True)
    tail_parser = ledger_sub.add_parser("tail", help="Tail ledger events")
    tail_parser.add_argument("--limit", type=int, default=None, help="Maximum number of events to read from the end")
    ledger_sub.add_parser("verify", help="Verify ledger hashchain integrity")

    sub.add_parser("version", help="Show version information")
    return parser


async def _load_libraries(cfg: Any, names: list[str]) -> dict[str, Any]:
    from addonloader.lazy.gate import trigger_loading
    from addonloader.lazy.registry import LazyLibraryRegistry

    registry = LazyLibraryRegistry.from_config(cfg)
    libraries = registry.resolve(names)
    trigger_loading(libraries, registry)
    await registry.drain()
    loaded = registry.loaded_subset(libraries)
    return {
        "ok": len(loaded) == len(set(libraries)),
        "libraries": libraries,
        "loaded": sorted(loaded),
        "rejected": {name: rejection.reason for name, rejection in sorted(registry.rejections.items())},
        "unavailable": sorted(set(libraries).difference(registry.loadables)),
    }


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        from addonloader.config import load_config

        cfg = load_config()

        if args.command == "generate":
            from addonloader.composition.generator import get_addons_loader_code

            addons = args.addons or list(cfg.addons)
            sys.stdout.write(get_addons_loader_code(addons, cfg=cfg))
            sys.stdout.flush()
            _safe_cli_log(cfg, action="generate", outcome="ok", details={"addons": addons})
            return 0

        if args.command == "write":
            from addonloader.composition.loader import write_addons_loader

            addons = args.addons or list(cfg.addons)
            path = write_addons_loader(addons, cfg=cfg)
            _safe_cli_log(cfg, action="write", outcome="ok", details={"addons": addons, "path": str(path)})
            _emit({"ok": True, "path": str(path)})
            return 0

        if args.command == "identifier":
            from addonloader.composition.identifiers import name_from_package

            identifiers = {
                name: name_from_package(
                    name,
                    fallback_length=cfg.identifier_fallback_length,
                    fallback_alphabet=cfg.identifier_fallback_alphabet,
                )
                for name in args.names
            }
            _emit({"ok": True, "identifiers": identifiers})
            return 0

        if args.command == "resolve":
            from addonloader.lazy.bundles import resolve_libraries

            libraries = resolve_libraries(args.names, cfg.lazy_libraries, cfg.lazy_bundles)
            _safe_cli_log(cfg, action="resolve", outcome="ok", details={"names": args.names, "libraries": libraries})
            _emit({"ok": True, "libraries": libraries})
            return 0

        if args.command == "load":
            result = asyncio.run(_load_libraries(cfg, args.names))
            _safe_cli_log(cfg, action="load", outcome="ok" if result["ok"] else "error", details=result)
            _emit(result)
            return 0 if result["ok"] else 1

        if args.command == "ledger":
            from addonloader.provenance.ledger import read_events

            if not cfg.ledger_enabled:
                _emit({"ok": False, "error": "ledger disabled"})
                return 2
            limit = args.limit if getattr(args, "limit", None) is not None and args.limit >= 0 else None
            try:
                events = read_events(cfg, limit=limit if args.ledger_command == "tail" else None)
            except FileNotFoundError:
                _emit({"ok": False, "error": "ledger not initialized"})
                return 2

            if args.ledger_command == "tail":
                _emit({"ok": True, "count": len(events)})
                for event in events:
                    sys.stdout.write(_dump(event) + "\n")
                return 0

            from addonloader.provenance.hashchain import verify_chain

            valid = verify_chain(events)
            _emit({"ok": valid, "valid": valid, "count": len(events)})
            return 0 if valid else 1

        if args.command == "version":
            from addonloader.version import __version__ as pkg_version

            _emit({"ok": True, "package_version": pkg_version, "python": sys.version.split()[0]})
            return 0

        raise ValueError(f"Unknown command: {args.command}")
    except Exception as exc:  # pragma: no cover - CLI safety net
        _emit({"ok": False, "error": str(exc)})
        return 1


__all__ = ["main"]

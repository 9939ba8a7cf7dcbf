import json
import keyword
from dataclasses import dataclass, field
from os import environ
from pathlib import PurePosixPath, PureWindowsPath
from typing import Any, Mapping, MutableMapping


ENV_PREFIX = "ADDONLOADER_"


@dataclass(frozen=True)
class AddonLoaderConfig:
    version: str = "0.1.0"
    addons: tuple[str, ...] = ()
    default_export: str = "apply_config"
    identifier_fallback_length: int = 10
    identifier_fallback_alphabet: str = "abcdefghijk"
    output_dir: str | None = None
    lazy_libraries: dict[str, str] = field(default_factory=dict)
    lazy_bundles: dict[str, tuple[str, ...]] = field(default_factory=dict)
    log_schema_version: str = "1"
    log_path: str = ".addonloader/logs/addonloader.jsonl"
    ledger_enabled: bool = False
    ledger_dir: str = ".addonloader/ledger"
    ledger_filename: str = "events.jsonl"

    def __post_init__(self) -> None:
        object.__setattr__(self, "addons", tuple(self.addons))
        object.__setattr__(self, "ledger_filename", (self.ledger_filename or "").strip())
        bundles = {
            name: (members,) if isinstance(members, str) else tuple(members)
            for name, members in (self.lazy_bundles or {}).items()
        }
        object.__setattr__(self, "lazy_bundles", bundles)
        object.__setattr__(self, "lazy_libraries", dict(self.lazy_libraries or {}))

    def validate(self) -> None:
        if not self.default_export.isidentifier() or keyword.iskeyword(self.default_export):
            raise ValueError("default_export must be a valid identifier")
        if self.identifier_fallback_length <= 0:
            raise ValueError("identifier_fallback_length must be > 0")
        if not self.identifier_fallback_alphabet or not self.identifier_fallback_alphabet.isalpha():
            raise ValueError("identifier_fallback_alphabet must be a non-empty string of letters")
        for index, spec in enumerate(self.addons):
            if not isinstance(spec, str) or not spec.strip():
                raise ValueError(f"addons[{index}] must be a non-empty string")
        for name, module_path in self.lazy_libraries.items():
            if not (name or "").strip():
                raise ValueError("lazy library names cannot be empty")
            if not (module_path or "").strip():
                raise ValueError(f"lazy library '{name}' must name a module")
        for name, members in self.lazy_bundles.items():
            if name in self.lazy_libraries:
                raise ValueError(f"lazy bundle '{name}' collides with a lazy library of the same name")
            if not members:
                raise ValueError(f"lazy bundle '{name}' must list at least one library")
        if self.ledger_enabled and not (self.ledger_dir or "").strip():
            raise ValueError("ledger_dir must be set when ledger logging is enabled")
        if self.ledger_enabled and not self.ledger_filename:
            raise ValueError("ledger_filename must be set when ledger logging is enabled")
        if self.ledger_enabled:
            _require_relative_path(self.ledger_filename, "ledger_filename")


def _require_relative_path(raw: str, field_name: str) -> None:
    posix = PurePosixPath(raw)
    windows = PureWindowsPath(raw)
    if posix.is_absolute() or windows.is_absolute() or windows.drive:
        raise ValueError(f"{field_name} must be a relative path")
    if raw.startswith("~"):
        raise ValueError(f"{field_name} must not start with ~")
    if ".." in posix.parts or ".." in windows.parts:
        raise ValueError(f"{field_name} must not contain parent directory traversal")


def _coerce_bool(value: str) -> bool:
    truthy = {"1", "true", "yes", "on"}
    falsy = {"0", "false", "no", "off"}
    lowered = value.strip().lower()
    if lowered in truthy:
        return True
    if lowered in falsy:
        return False
    raise ValueError(f"Invalid boolean value: {value}")


def _coerce_int(value: str, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid integer for {field_name}: {value}") from exc


def _coerce_json(value: str, field_name: str) -> Any:
    try:
        return json.loads(value)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON for {field_name}: {exc}") from exc


def _coerce_str_list(value: str, field_name: str) -> tuple[str, ...]:
    parsed = _coerce_json(value, field_name)
    if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
        raise ValueError(f"{field_name} must be a JSON array of strings")
    return tuple(parsed)


def _coerce_libraries(value: str, field_name: str) -> dict[str, str]:
    parsed = _coerce_json(value, field_name)
    if not isinstance(parsed, dict) or not all(isinstance(item, str) for item in parsed.values()):
        raise ValueError(f"{field_name} must be a JSON object mapping names to module paths")
    return parsed


def _coerce_bundles(value: str, field_name: str) -> dict[str, tuple[str, ...]]:
    parsed = _coerce_json(value, field_name)
    if not isinstance(parsed, dict):
        raise ValueError(f"{field_name} must be a JSON object mapping bundle names to library names")
    bundles: dict[str, tuple[str, ...]] = {}
    for name, members in parsed.items():
        if isinstance(members, str):
            bundles[name] = (members,)
        elif isinstance(members, list) and all(isinstance(item, str) for item in members):
            bundles[name] = tuple(members)
        else:
            raise ValueError(f"{field_name}[{name}] must be a string or a list of strings")
    return bundles


def _get_env(env: Mapping[str, str], key: str) -> str | None:
    return env.get(f"{ENV_PREFIX}{key}")


def load_config(env: Mapping[str, str] | None = None) -> AddonLoaderConfig:
    source: Mapping[str, str] | MutableMapping[str, str] = env if env is not None else environ

    addons_raw = _get_env(source, "ADDONS")
    fallback_length_raw = _get_env(source, "IDENTIFIER_FALLBACK_LENGTH")
    libraries_raw = _get_env(source, "LAZY_LIBRARIES")
    bundles_raw = _get_env(source, "LAZY_BUNDLES")
    ledger_enabled_raw = _get_env(source, "LEDGER_ENABLED")

    cfg = AddonLoaderConfig(
        version=_get_env(source, "VERSION") or AddonLoaderConfig.version,
        addons=_coerce_str_list(addons_raw, "addons") if addons_raw is not None else (),
        default_export=_get_env(source, "DEFAULT_EXPORT") or AddonLoaderConfig.default_export,
        identifier_fallback_length=(
            _coerce_int(fallback_length_raw, "identifier_fallback_length")
            if fallback_length_raw is not None
            else AddonLoaderConfig.identifier_fallback_length
        ),
        identifier_fallback_alphabet=(
            _get_env(source, "IDENTIFIER_FALLBACK_ALPHABET") or AddonLoaderConfig.identifier_fallback_alphabet
        ),
        output_dir=_get_env(source, "OUTPUT_DIR") or None,
        lazy_libraries=_coerce_libraries(libraries_raw, "lazy_libraries") if libraries_raw is not None else {},
        lazy_bundles=_coerce_bundles(bundles_raw, "lazy_bundles") if bundles_raw is not None else {},
        log_schema_version=_get_env(source, "LOG_SCHEMA_VERSION") or AddonLoaderConfig.log_schema_version,
        log_path=_get_env(source, "LOG_PATH") or AddonLoaderConfig.log_path,
        ledger_enabled=(
            _coerce_bool(ledger_enabled_raw) if ledger_enabled_raw is not None else AddonLoaderConfig.ledger_enabled
        ),
        ledger_dir=_get_env(source, "LEDGER_DIR") or AddonLoaderConfig.ledger_dir,
        ledger_filename=_get_env(source, "LEDGER_FILENAME") or AddonLoaderConfig.ledger_filename,
    )
    cfg.validate()
    return cfg


__all__ = ["AddonLoaderConfig", "load_config"]

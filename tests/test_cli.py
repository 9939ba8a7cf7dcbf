import json
import unittest
from contextlib import redirect_stdout
from io import StringIO
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

from addonloader.config import AddonLoaderConfig
from addonloader.provenance.ledger import append_event, read_events


class CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def make_config(self, **overrides) -> AddonLoaderConfig:
        values = {"log_path": str(self.root / "logs" / "addonloader.jsonl")}
        values.update(overrides)
        return AddonLoaderConfig(**values)

    def run_cli(self, args: list[str], cfg: AddonLoaderConfig) -> tuple[int, str]:
        buffer = StringIO()
        with patch("addonloader.config.load_config", return_value=cfg):
            from addonloader.cli import main

            with redirect_stdout(buffer):
                exit_code = main(args)
        return exit_code, buffer.getvalue()


class CliCompositionTest(CliTestCase):
    def test_generate_prints_loader_module(self) -> None:
        exit_code, output = self.run_cli(["generate", "acme.seo", "acme.blocks:toolbar"], self.make_config())

        self.assertEqual(exit_code, 0)
        self.assertIn("_import_addon('acme.seo', 'apply_config')", output)
        self.assertIn("_import_addon('acme.blocks', 'apply_config', 'toolbar')", output)
        compile(output, "<generated>", "exec")

    def test_generate_defaults_to_configured_addons(self) -> None:
        cfg = self.make_config(addons=("acme.theme",))
        exit_code, output = self.run_cli(["generate"], cfg)

        self.assertEqual(exit_code, 0)
        self.assertIn("'acme.theme'", output)
        log_lines = Path(cfg.log_path).read_text(encoding="utf-8").splitlines()
        self.assertEqual(json.loads(log_lines[-1])["action"], "generate")

    def test_write_reports_path(self) -> None:
        cfg = self.make_config(output_dir=str(self.root / "generated"))
        exit_code, output = self.run_cli(["write", "acme.seo"], cfg)

        self.assertEqual(exit_code, 0)
        payload = json.loads(output)
        self.assertTrue(payload["ok"])
        path = Path(payload["path"])
        self.assertEqual(path.parent, self.root / "generated")
        self.assertIn("'acme.seo'", path.read_text(encoding="utf-8"))

    def test_identifier(self) -> None:
        exit_code, output = self.run_cli(["identifier", "@plone/volto-slate", "class"], self.make_config())

        self.assertEqual(exit_code, 0)
        self.assertEqual(
            json.loads(output)["identifiers"],
            {"@plone/volto-slate": "plonevoltoSlate", "class": "class_"},
        )

    def test_invalid_addon_spec_fails(self) -> None:
        exit_code, output = self.run_cli(["generate", ":toolbar"], self.make_config())

        self.assertEqual(exit_code, 1)
        self.assertFalse(json.loads(output)["ok"])


class CliLazyLibrariesTest(CliTestCase):
    def lazy_config(self, **overrides) -> AddonLoaderConfig:
        return self.make_config(
            lazy_libraries={"json": "json", "dumps": "json:dumps", "broken": "addonloader_missing_module_0"},
            lazy_bundles={"codecs": ["json", "dumps"]},
            **overrides,
        )

    def test_resolve(self) -> None:
        exit_code, output = self.run_cli(["resolve", "codecs", "json"], self.lazy_config())

        self.assertEqual(exit_code, 0)
        self.assertEqual(json.loads(output)["libraries"], ["json", "dumps", "json"])

    def test_resolve_unknown_name_fails(self) -> None:
        exit_code, output = self.run_cli(["resolve", "nope"], self.lazy_config())

        self.assertEqual(exit_code, 1)
        self.assertIn("Invalid lib or bundle name 'nope'", json.loads(output)["error"])

    def test_load_reports_loaded_libraries(self) -> None:
        exit_code, output = self.run_cli(["load", "codecs"], self.lazy_config())

        self.assertEqual(exit_code, 0)
        payload = json.loads(output)
        self.assertTrue(payload["ok"])
        self.assertEqual(payload["loaded"], ["dumps", "json"])
        self.assertEqual(payload["rejected"], {})

    def test_load_reports_rejections(self) -> None:
        cfg = self.lazy_config(ledger_enabled=True, ledger_dir=str(self.root / "ledger"))
        exit_code, output = self.run_cli(["load", "json", "broken"], cfg)

        self.assertEqual(exit_code, 1)
        payload = json.loads(output)
        self.assertFalse(payload["ok"])
        self.assertEqual(payload["loaded"], ["json"])
        self.assertIn("ModuleNotFoundError", payload["rejected"]["broken"])
        types = sorted(event["type"] for event in read_events(cfg))
        self.assertEqual(types, ["lazy_library_loaded", "lazy_library_rejected"])

    def test_load_partially_valid_bundle_reports_unavailable_members(self) -> None:
        cfg = self.make_config(lazy_libraries={"json": "json"}, lazy_bundles={"mixed": ["json", "nope"]})
        exit_code, output = self.run_cli(["load", "mixed"], cfg)

        self.assertEqual(exit_code, 1)
        payload = json.loads(output)
        self.assertFalse(payload["ok"])
        self.assertEqual(payload["libraries"], ["json", "nope"])
        self.assertEqual(payload["loaded"], ["json"])
        self.assertEqual(payload["unavailable"], ["nope"])
        self.assertEqual(payload["rejected"], {})


class CliLedgerCommandsTest(CliTestCase):
    def test_ledger_tail_streams_events(self) -> None:
        cfg = self.make_config(ledger_enabled=True, ledger_dir=str(self.root / "ledger"))
        first = append_event(cfg, "alpha", {"value": 1}, "2024-01-01T00:00:00Z", "tester")
        second = append_event(cfg, "beta", {"value": 2}, "2024-01-01T00:01:00Z", "tester")

        exit_code, output = self.run_cli(["ledger", "tail"], cfg)

        self.assertEqual(exit_code, 0)
        lines = output.splitlines()
        summary = json.loads(lines[0])
        self.assertTrue(summary["ok"])
        self.assertEqual(summary["count"], 2)
        self.assertEqual([json.loads(line) for line in lines[1:]], [first, second])

        exit_code, output = self.run_cli(["ledger", "tail", "--limit", "1"], cfg)
        self.assertEqual([json.loads(line) for line in output.splitlines()[1:]], [second])

    def test_ledger_verify_checks_chain(self) -> None:
        cfg = self.make_config(ledger_enabled=True, ledger_dir=str(self.root / "ledger"))
        append_event(cfg, "alpha", {"value": 1}, "2024-01-01T00:00:00Z", "tester")
        append_event(cfg, "beta", {"value": 2}, "2024-01-01T00:01:00Z", "tester")

        exit_code, output = self.run_cli(["ledger", "verify"], cfg)

        self.assertEqual(exit_code, 0)
        summary = json.loads(output)
        self.assertTrue(summary["valid"])
        self.assertEqual(summary["count"], 2)

    def test_ledger_disabled_or_missing(self) -> None:
        exit_code, output = self.run_cli(["ledger", "tail"], self.make_config())
        self.assertEqual(exit_code, 2)
        self.assertEqual(json.loads(output)["error"], "ledger disabled")

        cfg = self.make_config(ledger_enabled=True, ledger_dir=str(self.root / "empty"))
        exit_code, output = self.run_cli(["ledger", "verify"], cfg)
        self.assertEqual(exit_code, 2)
        self.assertEqual(json.loads(output)["error"], "ledger not initialized")


class CliMiscTest(CliTestCase):
    def test_version(self) -> None:
        from addonloader.version import __version__

        exit_code, output = self.run_cli(["version"], self.make_config())

        self.assertEqual(exit_code, 0)
        self.assertEqual(json.loads(output)["package_version"], __version__)

    def test_logging_failures_do_not_fail_commands(self) -> None:
        with patch("addonloader.assurance.logging.append_jsonl_log_event", side_effect=RuntimeError("boom")):
            exit_code, output = self.run_cli(["generate", "acme.seo"], self.make_config())

        self.assertEqual(exit_code, 0)
        self.assertIn("'acme.seo'", output)


if __name__ == "__main__":
    unittest.main()

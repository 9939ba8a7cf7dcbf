import importlib
import sys
import textwrap
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from uuid import uuid4

from addonloader.composition.loader import compose_config, load_addons_module, write_addons_loader
from addonloader.config import AddonLoaderConfig
from addonloader.failures import NonCallablePipelineEntry, UndefinedTransformResult


class AddonModulesTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.prefix = f"addon_{uuid4().hex[:8]}"
        sys.path.insert(0, str(self.root))

    def tearDown(self) -> None:
        sys.path.remove(str(self.root))
        for name in [name for name in sys.modules if name.startswith(self.prefix)]:
            del sys.modules[name]
        self._tmp.cleanup()

    def write_addon(self, name: str, body: str) -> str:
        module_name = f"{self.prefix}_{name}"
        (self.root / f"{module_name}.py").write_text(textwrap.dedent(body), encoding="utf-8")
        importlib.invalidate_caches()
        return module_name


class CompositionPipelineTest(AddonModulesTestCase):
    def test_each_addon_adds_its_key(self) -> None:
        addons = [
            self.write_addon(
                f"key{index}",
                f"""
                def apply_config(config):
                    return {{**config, "key_{index}": {index}}}
                """,
            )
            for index in range(4)
        ]

        result = compose_config(addons, {"initial": True})

        self.assertEqual(result, {"initial": True, "key_0": 0, "key_1": 1, "key_2": 2, "key_3": 3})

    def test_order_is_significant(self) -> None:
        base = self.write_addon(
            "base",
            """
            def apply_config(config):
                return {**config, "base": 1}
            """,
        )
        derived = self.write_addon(
            "derived",
            """
            def apply_config(config):
                return {**config, "derived": config["base"] + 1}
            """,
        )

        self.assertEqual(compose_config([base, derived], {}), {"base": 1, "derived": 2})
        with self.assertRaises(KeyError):
            compose_config([derived, base], {})

    def test_extra_exports_run_after_default_export_in_listed_order(self) -> None:
        blocks = self.write_addon(
            "blocks",
            """
            def _mark(config, name):
                return {**config, "order": [*config.get("order", []), name]}

            def apply_config(config):
                return _mark(config, "default")

            def slots(config):
                return _mark(config, "slots")

            def toolbar(config):
                return _mark(config, "toolbar")
            """,
        )

        result = compose_config([f"{blocks}:toolbar,slots"], {})

        self.assertEqual(result["order"], ["default", "toolbar", "slots"])

    def test_transform_returning_none_aborts(self) -> None:
        forgetful = self.write_addon(
            "forgetful",
            """
            def apply_config(config):
                config["touched"] = True
            """,
        )

        with self.assertRaisesRegex(UndefinedTransformResult, "doesn't return config"):
            compose_config([forgetful], {})

    def test_non_callable_entry_aborts_before_any_transform(self) -> None:
        tracked = self.write_addon(
            "tracked",
            """
            CALLS = []

            def apply_config(config):
                CALLS.append(config)
                return config
            """,
        )
        broken = self.write_addon("broken", "apply_config = 42\n")

        with self.assertRaisesRegex(NonCallablePipelineEntry, broken):
            compose_config([tracked, broken], {})
        self.assertEqual(sys.modules[tracked].CALLS, [])

    def test_missing_extra_export_is_reported_as_not_callable(self) -> None:
        plain = self.write_addon(
            "plain",
            """
            def apply_config(config):
                return config
            """,
        )

        with self.assertRaises(NonCallablePipelineEntry) as ctx:
            compose_config([f"{plain}:missing"], {})
        self.assertIsInstance(ctx.exception, TypeError)
        self.assertIn(f"{plain}:missing", str(ctx.exception))

    def test_no_addons_returns_initial_config(self) -> None:
        initial = {"a": 1}
        self.assertIs(compose_config([], initial), initial)

    def test_configured_default_export(self) -> None:
        custom = self.write_addon(
            "custom",
            """
            def install(config):
                return {**config, "installed": True}
            """,
        )

        result = compose_config([custom], {}, cfg=AddonLoaderConfig(default_export="install"))

        self.assertEqual(result, {"installed": True})


class AddonsLoaderFileTest(AddonModulesTestCase):
    def test_write_and_load_generated_module(self) -> None:
        addon = self.write_addon(
            "seo",
            """
            def apply_config(config):
                return {**config, "seo": True}
            """,
        )
        out_dir = self.root / "generated"
        cfg = AddonLoaderConfig(output_dir=str(out_dir))

        path = write_addons_loader([addon], cfg=cfg)

        self.assertEqual(path.parent, out_dir)
        self.assertEqual(path.suffix, ".py")
        module = load_addons_module(path)
        self.assertEqual(module.__all__, ["load"])
        self.assertEqual(module.load({}), {"seo": True})

    def test_each_write_uses_a_fresh_file(self) -> None:
        cfg = AddonLoaderConfig(output_dir=str(self.root / "generated"))
        first = write_addons_loader([], cfg=cfg)
        second = write_addons_loader([], cfg=cfg)
        self.assertNotEqual(first, second)
        self.assertEqual(first.read_text(encoding="utf-8"), second.read_text(encoding="utf-8"))

    def test_load_missing_file_raises(self) -> None:
        with self.assertRaises((ImportError, FileNotFoundError)):
            load_addons_module(self.root / "missing.py")


if __name__ == "__main__":
    unittest.main()

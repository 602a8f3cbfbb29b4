from __future__ import annotations

from pathlib import Path
import tempfile
import textwrap
import unittest

from core.config_loader import (
    first_existing,
    load_config_file,
    normalize_string_list,
    normalize_string_mapping,
)


class ConfigLoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_loads_json_toml_and_yaml(self) -> None:
        (self.root / "a.json").write_text('{"skip": ["vendor"]}')
        (self.root / "b.toml").write_text(
            textwrap.dedent(
                """
                skip = ["vendor"]

                [externals]
                jquery = "jQuery"
                """
            )
        )
        (self.root / "c.yml").write_text("skip:\n  - vendor\n")
        self.assertEqual(load_config_file(self.root / "a.json")["skip"], ["vendor"])
        self.assertEqual(load_config_file(self.root / "b.toml")["externals"], {"jquery": "jQuery"})
        self.assertEqual(load_config_file(self.root / "c.yml")["skip"], ["vendor"])

    def test_rejects_unknown_suffix(self) -> None:
        path = self.root / "deodar.ini"
        path.write_text("[x]")
        with self.assertRaises(ValueError):
            load_config_file(path)

    def test_rejects_non_mapping_root(self) -> None:
        path = self.root / "deodar.json"
        path.write_text("[1, 2]")
        with self.assertRaises(TypeError):
            load_config_file(path)

    def test_first_existing_respects_order(self) -> None:
        (self.root / "deodar.yaml").write_text("{}")
        (self.root / "deodar.toml").write_text("")
        self.assertEqual(
            first_existing(self.root, ["deodar.json", "deodar.toml", "deodar.yaml"]),
            self.root / "deodar.toml",
        )
        self.assertIsNone(first_existing(self.root, ["deodar.json"]))

    def test_normalize_string_list(self) -> None:
        self.assertEqual(normalize_string_list(None), [])
        self.assertEqual(normalize_string_list(" vendor "), ["vendor"])
        self.assertEqual(normalize_string_list(["a", " ", "b"]), ["a", "b"])
        with self.assertRaises(TypeError):
            normalize_string_list([1])

    def test_normalize_string_mapping(self) -> None:
        self.assertEqual(normalize_string_mapping({"react": "React"}), {"react": "React"})
        with self.assertRaises(TypeError):
            normalize_string_mapping(["react"], field_name="externals")
        with self.assertRaises(TypeError):
            normalize_string_mapping({"react": 1})


if __name__ == "__main__":  # pragma: no cover
    unittest.main()

"""
Unit tests for configuration decoding and validation.
"""

import shutil
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from switcheroo.config import (
    Configuration,
    ConfigurationEntry,
    DeviceSelector,
    Rules,
    decode_config,
    decode_config_text,
    get_config_path,
    load_config,
    parse_bool,
)
from switcheroo.errors import (
    ConfigMalformedError,
    ConfigUnreadableError,
    InvalidBooleanLiteralError,
    UnknownInputSourceError,
)


class TestDeviceSelector(unittest.TestCase):
    """Tests for substring matching."""

    def test_matches_substring(self):
        selector = DeviceSelector("HHKB")
        self.assertTrue(selector.matches("HHKB-Classic"))
        self.assertTrue(selector.matches("PFU HHKB"))
        self.assertTrue(selector.matches("HHKB"))

    def test_case_sensitive(self):
        self.assertFalse(DeviceSelector("hhkb").matches("HHKB-Classic"))

    def test_no_wildcards(self):
        self.assertFalse(DeviceSelector("HHKB*").matches("HHKB-Classic"))

    def test_equality_by_pattern(self):
        self.assertEqual(DeviceSelector("X"), DeviceSelector("X"))
        self.assertEqual(len({DeviceSelector("X"), DeviceSelector("X")}), 1)
        self.assertNotEqual(DeviceSelector("X"), DeviceSelector("Y"))


class TestDecodeConfig(unittest.TestCase):
    """Tests for decoding configuration documents."""

    def test_yaml(self):
        text = """
entries:
  - selector: HHKB-Classic
    rules:
      input_source: xkb:us
      natural_scroll: false
"""
        expected = Configuration(entries=(
            ConfigurationEntry(
                selector=DeviceSelector("HHKB-Classic"),
                rules=Rules(input_source="xkb:us", natural_scroll=False),
            ),
        ))
        self.assertEqual(decode_config_text(text), expected)

    def test_json(self):
        text = """
{
    "entries": [
        {
            "selector": "HHKB-Classic",
            "rules": {
                "input_source": "xkb:us"
            }
        },
        {
            "selector": "SteelSeries Rival 3",
            "rules": {
                "natural_scroll": false
            }
        }
    ]
}
"""
        config = decode_config_text(text)
        self.assertEqual(config.entries, (
            ConfigurationEntry(DeviceSelector("HHKB-Classic"), Rules(input_source="xkb:us")),
            ConfigurationEntry(DeviceSelector("SteelSeries Rival 3"), Rules(natural_scroll=False)),
        ))

    def test_natural_scroll_only(self):
        config = decode_config({"entries": [{"selector": "X", "rules": {"natural_scroll": True}}]})
        self.assertIsNone(config.entries[0].rules.input_source)
        self.assertTrue(config.entries[0].rules.natural_scroll)

    def test_empty_entries(self):
        self.assertEqual(decode_config({"entries": []}), Configuration())

    def test_missing_entries(self):
        with self.assertRaises(ConfigMalformedError):
            decode_config({})

    def test_not_a_mapping(self):
        with self.assertRaises(ConfigMalformedError):
            decode_config(["HHKB"])

    def test_selector_must_be_string(self):
        with self.assertRaises(ConfigMalformedError):
            decode_config({"entries": [{"selector": 42, "rules": {}}]})

    def test_natural_scroll_must_be_bool(self):
        with self.assertRaises(ConfigMalformedError):
            decode_config({"entries": [{"selector": "X", "rules": {"natural_scroll": "yes"}}]})

    def test_input_source_must_be_string(self):
        with self.assertRaises(ConfigMalformedError):
            decode_config({"entries": [{"selector": "X", "rules": {"input_source": 1}}]})

    def test_invalid_yaml(self):
        with self.assertRaises(ConfigMalformedError):
            decode_config_text("entries: [unclosed")


class TestValidate(unittest.TestCase):
    """Tests for checking input sources against the OS catalog."""

    def test_known_input_sources(self):
        config = decode_config({"entries": [
            {"selector": "X", "rules": {"input_source": "xkb:us"}},
            {"selector": "Y", "rules": {"natural_scroll": False}},
        ]})
        config.validate({"xkb:us", "xkb:de"})

    def test_unknown_input_source(self):
        config = decode_config({"entries": [
            {"selector": "X", "rules": {"input_source": "xkb:us"}},
            {"selector": "Y", "rules": {"input_source": "bogus"}},
        ]})
        with self.assertRaises(UnknownInputSourceError) as ctx:
            config.validate(["xkb:us"])
        self.assertEqual(ctx.exception.input_source, "bogus")
        self.assertEqual(ctx.exception.entry, config.entries[1])
        self.assertIn("bogus", str(ctx.exception))
        self.assertIn("'Y'", str(ctx.exception))


class TestParseBool(unittest.TestCase):

    def test_literals(self):
        self.assertTrue(parse_bool("true"))
        self.assertFalse(parse_bool("false"))

    def test_rejects_everything_else(self):
        for raw in ("True", "1", "yes", ""):
            with self.assertRaises(InvalidBooleanLiteralError) as ctx:
                parse_bool(raw)
            self.assertEqual(ctx.exception.raw, raw)


class TestLoadConfig(unittest.TestCase):
    """Tests for reading configuration files."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_load(self):
        path = self.temp_dir / "config.yaml"
        path.write_text("entries:\n  - selector: HHKB\n    rules:\n      input_source: xkb:us\n")
        config = load_config(path)
        self.assertEqual(config.entries[0].selector, DeviceSelector("HHKB"))

    def test_missing_file(self):
        with self.assertRaises(ConfigUnreadableError) as ctx:
            load_config(self.temp_dir / "missing.yaml")
        self.assertEqual(ctx.exception.path, self.temp_dir / "missing.yaml")

    def test_linux_config_path(self):
        with mock.patch("switcheroo.config.os.name", "posix"), \
                mock.patch("switcheroo.config.os.uname", create=True) as uname, \
                mock.patch.dict("os.environ", {"XDG_CONFIG_HOME": str(self.temp_dir)}):
            uname.return_value.sysname = "Linux"
            self.assertEqual(get_config_path(), self.temp_dir / "switcheroo" / "config.yaml")


if __name__ == '__main__':
    unittest.main()

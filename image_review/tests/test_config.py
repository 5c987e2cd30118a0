import logging
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

from image_review.review_lib import config as config_mod, log as log_mod


class ConfigTests(unittest.TestCase):
    def test_default_export_path_is_in_working_directory(self) -> None:
        with TemporaryDirectory() as tmp:
            with mock.patch.object(Path, "cwd", return_value=Path(tmp)):
                cfg = config_mod.load_config()
        self.assertEqual(cfg.export_path, Path(tmp) / config_mod.DEFAULT_EXPORT_FILENAME)
        self.assertIsNone(cfg.log_file)

    def test_override_creates_parent_directory(self) -> None:
        with TemporaryDirectory() as tmp:
            target = Path(tmp) / "nested" / "verdicts.json"
            cfg = config_mod.load_config(target, Path(tmp) / "logs" / "review.log")
            self.assertEqual(cfg.export_path, target)
            self.assertTrue(target.parent.is_dir())
            self.assertTrue((Path(tmp) / "logs").is_dir())


class LogTests(unittest.TestCase):
    def test_parse_level(self) -> None:
        self.assertEqual(log_mod.parse_level("debug"), logging.DEBUG)
        with self.assertRaises(ValueError):
            log_mod.parse_level("chatty")
        with self.assertRaises(ValueError):
            log_mod.parse_level("basicConfig")


if __name__ == "__main__":
    unittest.main()

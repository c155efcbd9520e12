import os
import tempfile
import unittest
from datetime import timedelta
from pathlib import Path
from unittest import mock

from room_reservations import AppConfig, ConfigError, load_config


class TestLoadConfig(unittest.TestCase):
    def setUp(self) -> None:
        patcher = mock.patch.dict(os.environ, {}, clear=True)
        patcher.start()
        self.addCleanup(patcher.stop)

    def write_config(self, temp_dir: str, text: str, name: str = "rooms.yaml") -> Path:
        path = Path(temp_dir) / name
        path.write_text(text, encoding="utf-8")
        return path

    def test_defaults_without_file_or_env(self) -> None:
        config = load_config()

        self.assertEqual(config.rooms, ("A", "B", "C", "D"))
        self.assertEqual(config.port, 3000)
        self.assertEqual(config.event_log_size, 1000)
        self.assertEqual(config.past_tolerance, timedelta(0))

    def test_yaml_file_then_env_overrides(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = self.write_config(
                temp_dir,
                "rooms: [Aurora, Borealis]\npast_tolerance_seconds: 1.5\nport: 8080\nevent_log_size: 50\n",
            )

            from_file = load_config(path)
            self.assertEqual(from_file.rooms, ("Aurora", "Borealis"))
            self.assertEqual(from_file.past_tolerance, timedelta(seconds=1.5))
            self.assertEqual(from_file.port, 8080)
            self.assertEqual(from_file.event_log_size, 50)

            os.environ.update(
                {
                    "ROOM_RESERVATIONS_CONFIG": str(path),
                    "ROOM_RESERVATIONS_ROOMS": "X, Y,,X",
                    "PORT": "9000",
                    "LOG_LEVEL": "debug",
                }
            )
            overridden = load_config()
            self.assertEqual(overridden.rooms, ("X", "Y"))
            self.assertEqual(overridden.port, 9000)
            self.assertEqual(overridden.log_level, "DEBUG")
            self.assertEqual(overridden.past_tolerance_seconds, 1.5)

    def test_empty_file_keeps_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = self.write_config(temp_dir, "")

            self.assertEqual(load_config(path), AppConfig())

    def test_invalid_configs_raise(self) -> None:
        bad_payloads = [
            "- just\n- a list\n",
            "rooms: []\n",
            "rooms: 12\n",
            "past_tolerance_seconds: -1\n",
            "event_log_size: 0\n",
            "port: 70000\n",
            "port: abc\n",
            "colour: blue\n",
            "rooms: [A\n",
        ]
        with tempfile.TemporaryDirectory() as temp_dir:
            for index, payload in enumerate(bad_payloads):
                path = self.write_config(temp_dir, payload, name=f"bad{index}.yaml")
                with self.subTest(payload=payload):
                    with self.assertRaises(ConfigError):
                        load_config(path)

    def test_invalid_env_value_raises(self) -> None:
        os.environ["ROOM_RESERVATIONS_PAST_TOLERANCE"] = "-3"

        with self.assertRaises(ConfigError):
            load_config()

    def test_missing_file_raises(self) -> None:
        with self.assertRaises(ConfigError):
            load_config("/nonexistent/room-reservations.yaml")


class TestEntryPoint(unittest.TestCase):
    def test_entry_point_logs_under_its_module_name(self) -> None:
        import room_reservations.__main__ as entry_point

        self.assertEqual(entry_point.logger.name, "room_reservations.__main__")


if __name__ == "__main__":
    unittest.main()

import tempfile
import unittest
from pathlib import Path

from cognimaze.ai.provider_local import LocalProvider
from cognimaze.core.state import Settings

import run


class SettingsTestCase(unittest.TestCase):
    def test_defaults(self):
        settings = Settings()
        self.assertEqual((15, 15), (settings.maze_width, settings.maze_height))
        self.assertEqual(1000, settings.hesitation_threshold_ms)
        self.assertEqual(2000, settings.hesitating_threshold_ms)
        self.assertEqual("local", settings.ai_provider)

    def test_load_from_dict_overrides_known_sections(self):
        settings = Settings()
        settings.load_from_dict(
            {
                "maze": {"width": 21, "height": 11, "seed": 99},
                "session": {"hesitation_threshold_ms": 800},
                "ai": {"provider": "remote", "url": "http://analysis.local"},
                "server": {"port": 8080},
                "logging": {"level": "debug"},
            }
        )
        self.assertEqual((21, 11, 99), (settings.maze_width, settings.maze_height, settings.maze_seed))
        self.assertEqual(800, settings.hesitation_threshold_ms)
        self.assertEqual(2000, settings.hesitating_threshold_ms)
        self.assertEqual("remote", settings.ai_provider)
        self.assertEqual("http://analysis.local", settings.analysis_url)
        self.assertEqual(8080, settings.server_port)
        self.assertEqual("127.0.0.1", settings.server_host)
        self.assertEqual("debug", settings.log_level)

    def test_empty_sections_keep_defaults(self):
        settings = Settings()
        settings.load_from_dict({"maze": None, "session": None, "ai": None, "server": None, "logging": None})
        self.assertEqual((15, 15), (settings.maze_width, settings.maze_height))
        self.assertEqual(1000, settings.max_sessions)
        self.assertEqual("INFO", settings.log_level)

    def test_max_sessions_from_server_section(self):
        settings = Settings()
        settings.load_from_dict({"server": {"max_sessions": 25}})
        self.assertEqual(25, settings.max_sessions)

    def test_environment_overrides(self):
        settings = Settings()
        settings.load_from_env({"PORT": "4000", "COGNIMAZE_ANALYSIS_URL": "http://env.local"})
        self.assertEqual(4000, settings.server_port)
        self.assertEqual("http://env.local", settings.analysis_url)
        self.assertEqual("auto", settings.ai_provider)

    def test_new_session_uses_configured_maze_and_thresholds(self):
        settings = Settings()
        settings.load_from_dict({"maze": {"width": 9, "height": 7, "seed": 5}, "session": {"hesitation_threshold_ms": 500}})
        session = settings.new_session()
        self.assertEqual((9, 7), (session.maze.width, session.maze.height))
        self.assertEqual(5, session.maze.seed)
        self.assertEqual(500, session.hesitation_threshold_ms)


class LauncherTestCase(unittest.TestCase):
    def test_missing_config_gives_defaults(self):
        self.assertEqual({}, run.load_config(Path("does/not/exist.yaml")))

    def test_config_file_is_parsed(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yaml"
            path.write_text("maze:\n  width: 19\nai:\n  provider: local\n", encoding="utf-8")
            config = run.load_config(path)
        self.assertEqual({"maze": {"width": 19}, "ai": {"provider": "local"}}, config)

    def test_broken_config_falls_back(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yaml"
            path.write_text("maze: [unclosed", encoding="utf-8")
            self.assertEqual({}, run.load_config(path))

    def test_config_with_empty_section_loads(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yaml"
            path.write_text("maze:\nserver:\n  port: 3100\n", encoding="utf-8")
            settings = Settings()
            settings.load_from_dict(run.load_config(path))
        self.assertEqual(15, settings.maze_width)
        self.assertEqual(3100, settings.server_port)

    def test_local_provider_selected_by_default(self):
        self.assertIsInstance(run.create_ai_provider(Settings()), LocalProvider)


if __name__ == "__main__":
    unittest.main()

import os
import tempfile
import unittest

from stackplan.config import (
    DEFAULT_STATE_PATH,
    StackConfig,
    import_object,
    load_config,
    with_overrides,
)
from stackplan.deploy import LocalRemoteClient
from stackplan.errors import ConfigError


class TestLoadConfig(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = self._tmp.name

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def write(self, text: str) -> str:
        path = os.path.join(self.dir, "stackplan.yaml")
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return path

    def test_defaults_without_file(self) -> None:
        cwd = os.getcwd()
        os.chdir(self.dir)
        try:
            config = load_config(environ={})
        finally:
            os.chdir(cwd)
        self.assertEqual(config, StackConfig())
        self.assertEqual(config.state_path, DEFAULT_STATE_PATH)

    def test_yaml_sections(self) -> None:
        path = self.write(
            "state:\n"
            "  backend: drive\n"
            "  drive:\n"
            "    folder_id: FOLDER\n"
            "    name: prod.json\n"
            "    auth:\n"
            "      kind: service_account\n"
            "      key_file: /tmp/key.json\n"
            "apply:\n"
            "  max_concurrency: 8\n"
        )
        config = load_config(path, environ={})
        self.assertEqual(config.state_backend, "drive")
        self.assertEqual(config.drive_folder_id, "FOLDER")
        self.assertEqual(config.drive_state_name, "prod.json")
        self.assertEqual(config.max_concurrency, 8)
        self.assertEqual(config.auth_info().key_file, "/tmp/key.json")

    def test_environment_overrides_file(self) -> None:
        path = self.write("state:\n  path: from-file.json\napply:\n  max_concurrency: 2\n")
        config = load_config(
            path,
            environ={"STACKPLAN_STATE_PATH": "from-env.json", "STACKPLAN_MAX_CONCURRENCY": "6"},
        )
        self.assertEqual(config.state_path, "from-env.json")
        self.assertEqual(config.max_concurrency, 6)

    def test_invalid_values(self) -> None:
        cases = [
            "state:\n  backend: s3\n",
            "apply:\n  max_concurrency: 0\n",
            "apply:\n  max_concurrency: many\n",
            "state:\n  backend: drive\n",
            "state: [1, 2]\n",
            "- not a mapping\n",
        ]
        for text in cases:
            with self.subTest(text=text):
                with self.assertRaises(ConfigError):
                    load_config(self.write(text), environ={})

    def test_missing_explicit_file(self) -> None:
        with self.assertRaises(ConfigError):
            load_config(os.path.join(self.dir, "nope.yaml"), environ={})

    def test_bad_env_integer(self) -> None:
        path = self.write("")
        with self.assertRaises(ConfigError):
            load_config(path, environ={"STACKPLAN_MAX_CONCURRENCY": "x"})

    def test_invalid_auth(self) -> None:
        config = StackConfig(
            state_backend="drive",
            drive_folder_id="F",
            drive_auth={"kind": "oauth"},
        )
        with self.assertRaises(ConfigError):
            config.auth_info()


class TestOverridesAndImports(unittest.TestCase):
    def test_with_overrides_ignores_none(self) -> None:
        config = with_overrides(StackConfig(), state_path=None, max_concurrency=2)
        self.assertEqual(config.state_path, DEFAULT_STATE_PATH)
        self.assertEqual(config.max_concurrency, 2)

    def test_with_overrides_validates(self) -> None:
        with self.assertRaises(ConfigError):
            with_overrides(StackConfig(), max_concurrency=0)

    def test_import_object(self) -> None:
        self.assertIs(import_object("stackplan.deploy.remote:LocalRemoteClient"), LocalRemoteClient)
        with self.assertRaises(ConfigError):
            import_object("stackplan.deploy.remote:Missing")
        with self.assertRaises(ConfigError):
            import_object("no_such_module_here:thing")


if __name__ == "__main__":
    unittest.main()

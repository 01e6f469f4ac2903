from __future__ import annotations

from pathlib import Path
import tempfile
import textwrap
import unittest

from core.config_loader import load_config_file
from packager.configuration import load_project_configurations
from packager.errors import ConfigurationError
from packager.mapping import FileMapping
from packager.platforms import PlatformInfo


class ProjectConfigurationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def write(self, name: str, content: str) -> Path:
        path = self.root / name
        path.write_text(textwrap.dedent(content).strip() + "\n")
        return path

    def test_loads_single_toml_project(self) -> None:
        path = self.write(
            "dist.toml",
            """
            [project]
            name = "demo"
            version = "1.4.0"
            dist_dir = "out"
            plugins = ["demo_plugins.metadata"]
            platforms = ["linux", { name = "win32", variables = { ext = ".exe" } }]
            dependencies = ["zlib", { name = "openssl", multiplatform = true }]

            [project.artifact]
            id = "{name}-{version}-{platform}"
            format = "tgz"
            files = [
                "README.md",
                { pattern = "bin/*{ext}", path = "tools/", platform = "win32" },
            ]
            """,
        )

        (config,) = load_project_configurations(path)
        self.assertEqual(config.name, "demo")
        self.assertEqual(config.version, "1.4.0")
        self.assertEqual(config.dir, self.root.resolve())
        self.assertEqual(config.dist_dir, "out")
        self.assertEqual(config.plugins, ["demo_plugins.metadata"])
        self.assertEqual(
            config.platforms,
            [PlatformInfo(name="linux"), PlatformInfo(name="win32", variables={"ext": ".exe"})],
        )
        self.assertEqual([dependency.name for dependency in config.dependencies], ["zlib", "openssl"])
        self.assertFalse(config.dependencies[0].platform_specific)
        self.assertTrue(config.dependencies[1].platform_specific)
        self.assertEqual(config.artifact.format, "gztar")
        self.assertEqual(config.artifact.id, "{name}-{version}-{platform}")
        self.assertEqual(
            config.artifact.files,
            [
                FileMapping(pattern="README.md", path="README.md"),
                FileMapping(
                    pattern="bin/*{ext}",
                    path="tools/*{ext}",
                    platform_set=frozenset({"win32"}),
                ),
            ],
        )

    def test_loads_project_list_from_json(self) -> None:
        path = self.write(
            "dist.json",
            """
            {
                "projects": [
                    {"name": "a", "artifact": {"files": ["a.txt"]}},
                    {"name": "b", "dir": "sub", "artifact": {"files": ["b.txt"]}}
                ]
            }
            """,
        )
        configs = load_project_configurations(path)
        self.assertEqual([config.name for config in configs], ["a", "b"])
        self.assertEqual(configs[0].version, "0.0.0")
        self.assertEqual(configs[1].dir, (self.root / "sub").resolve())

    def test_loads_yaml(self) -> None:
        path = self.write(
            "dist.yaml",
            """
            project:
              name: demo
              artifact:
                files:
                  - pattern: lib/**
                    path: share/
            """,
        )
        (config,) = load_project_configurations(path)
        self.assertEqual(config.artifact.files[0].path, "share/**")

    def test_duplicated_project_names(self) -> None:
        path = self.write(
            "dist.json",
            '{"projects": [{"name": "a", "artifact": {"files": []}}, {"name": "a", "artifact": {"files": []}}]}',
        )
        with self.assertRaises(ConfigurationError):
            load_project_configurations(path)

    def test_project_name_is_required(self) -> None:
        path = self.write("dist.json", '{"project": {"artifact": {"files": []}}}')
        with self.assertRaises(ConfigurationError):
            load_project_configurations(path)

    def test_missing_files_list(self) -> None:
        path = self.write("dist.json", '{"project": {"name": "a", "artifact": {}}}')
        with self.assertRaisesRegex(ConfigurationError, "files"):
            load_project_configurations(path)

    def test_unsupported_archive_format(self) -> None:
        path = self.write("dist.json", '{"project": {"name": "a", "artifact": {"files": [], "format": "rar"}}}')
        with self.assertRaises(ConfigurationError):
            load_project_configurations(path)

    def test_missing_file(self) -> None:
        with self.assertRaises(ConfigurationError):
            load_project_configurations(self.root / "absent.toml")

    def test_loader_rejects_unknown_suffix(self) -> None:
        path = self.write("dist.ini", "[project]")
        with self.assertRaises(ValueError):
            load_config_file(path)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()

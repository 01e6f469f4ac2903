from __future__ import annotations

from pathlib import Path
import io
import json
import tempfile
import textwrap
import unittest
import zipfile

from core.console import Console
from packager.artifact import ArtifactMetadata
from packager.configuration import load_project_configurations
from packager.errors import ConfigurationError
from packager.platforms import PlatformSpecifier
from packager.project import Project


class _MetadataPlugin:
    def __init__(self) -> None:
        self.calls = []

    async def process_artifact_metadata(self, metadata: ArtifactMetadata) -> None:
        self.calls.append("metadata")
        metadata["channel"] = "stable"


class _IdPlugin:
    def __init__(self) -> None:
        self.platforms = []

    def get_default_artifact_id(self, platform):
        self.platforms.append(platform)
        return "{name}_{version}_{platform}"


class ArtifactGenerateTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        for relative in (
            "README.md",
            "build/linux/app",
            "build/darwin/app",
            "build/linux/libfoo.so",
            "src/lib/a/b/c.js",
            "src/lib/index.js",
            "src/lib/notes.txt",
            "dependencies/zlib/include/zlib.h",
            "dependencies/zlib/linux/lib/libz.so",
        ):
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(relative)
        self.stream = io.StringIO()

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def load_project(self, config: str, specifier: PlatformSpecifier | None = None, **console_options) -> Project:
        config_path = self.root / "dist.toml"
        config_path.write_text(textwrap.dedent(config))
        (project_config,) = load_project_configurations(config_path)
        console = Console(stream=self.stream, **console_options)
        project = Project(project_config, specifier=specifier, console=console)
        project.load()
        project.clean()
        return project

    def manifest(self, project: Project) -> dict:
        return json.loads((project.dist_dir / f"{project.name}.json").read_text())

    async def test_platform_restricted_mapping_produces_single_artifact(self) -> None:
        project = self.load_project(
            """
            [project]
            name = "demo"
            version = "2.0.0"
            platforms = ["linux", "darwin"]

            [project.artifact]
            files = [
                { pattern = "build/linux/app", path = "bin/app", platform = "linux" },
                { pattern = "build/darwin/app", path = "bin/app", platform = "darwin" },
            ]
            """,
            PlatformSpecifier(platforms=("linux",)),
        )

        await project.distribute()

        archives = sorted(path.name for path in project.dist_dir.glob("*.zip"))
        self.assertEqual(archives, ["demo-linux.zip"])
        with zipfile.ZipFile(project.dist_dir / "demo-linux.zip") as archive:
            self.assertEqual(archive.namelist(), ["bin/app"])
            self.assertEqual(archive.read("bin/app"), b"build/linux/app")

        manifest = self.manifest(project)
        self.assertEqual(
            manifest,
            {
                "name": "demo",
                "version": "2.0.0",
                "artifacts": [{"id": "demo-linux", "platform": "linux", "path": "demo-linux.zip"}],
            },
        )

    async def test_multiplatform_filters_mappings_per_platform(self) -> None:
        project = self.load_project(
            """
            [project]
            name = "demo"
            platforms = ["linux", { name = "darwin", variables = { os = "macos" } }]

            [project.artifact]
            files = [
                "README.md",
                { pattern = "build/{platform}/app", path = "bin/{os}/app" },
                { pattern = "src/lib/**/*.js", path = "lib/**/*.js", platform = "linux" },
            ]
            """,
            PlatformSpecifier(multiplatform=True),
        )

        metadata = await project.distribute()

        with zipfile.ZipFile(project.dist_dir / "demo-linux.zip") as archive:
            self.assertEqual(
                archive.namelist(),
                ["README.md", "bin/{os}/app", "lib/a/b/c.js", "lib/index.js"],
            )
        with zipfile.ZipFile(project.dist_dir / "demo-darwin.zip") as archive:
            self.assertEqual(archive.namelist(), ["README.md", "bin/macos/app"])
            self.assertEqual(archive.read("bin/macos/app"), b"build/darwin/app")

        self.assertEqual([item.id for item in metadata.artifacts], ["demo-linux", "demo-darwin"])
        self.assertEqual(len(self.manifest(project)["artifacts"]), 2)

        lines = self.stream.getvalue().splitlines()
        copied = [line for line in lines if " -> " in line]
        generated = [line for line in lines if line.startswith("Artifact generated")]
        self.assertEqual(len(copied), 6)
        self.assertEqual(len(generated), 2)

    async def test_unspecified_platform_uses_name_only(self) -> None:
        project = self.load_project(
            """
            [project]
            name = "demo"

            [project.artifact]
            target_dir = "demo-{version}"
            files = [{ pattern = "src/lib/*.txt", path = "docs/" }]
            """,
        )

        await project.distribute()

        with zipfile.ZipFile(project.dist_dir / "demo.zip") as archive:
            self.assertEqual(archive.namelist(), ["demo-0.0.0/docs/notes.txt"])
        self.assertEqual(
            self.manifest(project)["artifacts"],
            [{"id": "demo", "path": "demo.zip"}],
        )

    async def test_rooted_destination_stays_under_target_dir(self) -> None:
        project = self.load_project(
            """
            [project]
            name = "demo"

            [project.artifact]
            target_dir = "pkg"
            files = [{ pattern = "README.md", path = "/docs/README.md" }]
            """,
        )

        await project.distribute()

        with zipfile.ZipFile(project.dist_dir / "demo.zip") as archive:
            self.assertEqual(archive.namelist(), ["pkg/docs/README.md"])

    async def test_wildcards_supplied_by_platform_variables(self) -> None:
        project = self.load_project(
            """
            [project]
            name = "demo"
            platforms = [{ name = "linux", variables = { libglob = "*.so" } }]

            [project.artifact]
            files = [{ pattern = "build/{platform}/{libglob}", path = "lib/*.so" }]
            """,
            PlatformSpecifier(platform="linux"),
        )

        await project.distribute()

        with zipfile.ZipFile(project.dist_dir / "demo-linux.zip") as archive:
            self.assertEqual(archive.namelist(), ["lib/libfoo.so"])

    async def test_rendered_pattern_without_enough_wildcards_is_fatal(self) -> None:
        project = self.load_project(
            """
            [project]
            name = "demo"
            platforms = [{ name = "linux", variables = { libglob = "libfoo.so" } }]

            [project.artifact]
            files = [{ pattern = "build/{platform}/{libglob}", path = "lib/*.so" }]
            """,
            PlatformSpecifier(platform="linux"),
        )

        with self.assertRaisesRegex(ConfigurationError, "more wildcards"):
            await project.distribute()
        self.assertEqual(list(project.dist_dir.iterdir()), [])

    async def test_dependency_package_directories(self) -> None:
        project = self.load_project(
            """
            [project]
            name = "demo"
            platforms = ["linux", "darwin"]
            dependencies = [{ name = "zlib", platforms = ["linux"] }]

            [project.artifact]
            base_dir = "src"
            files = [
                { package = "zlib", pattern = "**/*.*", path = "deps/zlib/**/*.*" },
            ]
            """,
            PlatformSpecifier(multiplatform=True),
        )

        await project.distribute()

        with zipfile.ZipFile(project.dist_dir / "demo-linux.zip") as archive:
            self.assertEqual(archive.namelist(), ["deps/zlib/lib/libz.so"])
        with zipfile.ZipFile(project.dist_dir / "demo-darwin.zip") as archive:
            self.assertEqual(archive.namelist(), ["deps/zlib/include/zlib.h", "deps/zlib/linux/lib/libz.so"])

    async def test_unknown_dependency_package_is_fatal(self) -> None:
        project = self.load_project(
            """
            [project]
            name = "demo"

            [project.artifact]
            files = [{ package = "openssl", pattern = "lib/*.so" }]
            """,
        )

        with self.assertRaisesRegex(ConfigurationError, "openssl"):
            await project.distribute()
        self.assertEqual(list(project.dist_dir.iterdir()), [])

    async def test_plugins_customize_metadata_and_default_id(self) -> None:
        project = self.load_project(
            """
            [project]
            name = "demo"
            version = "1.0.0"
            platforms = ["linux"]

            [project.artifact]
            files = ["README.md"]
            """,
            PlatformSpecifier(platform="linux"),
        )
        metadata_plugin = _MetadataPlugin()
        id_plugin = _IdPlugin()
        project.plugins = [metadata_plugin, id_plugin]

        await project.distribute()

        self.assertEqual(metadata_plugin.calls, ["metadata"])
        self.assertEqual([platform.name for platform in id_plugin.platforms], ["linux"])
        manifest = self.manifest(project)
        self.assertEqual(manifest["channel"], "stable")
        self.assertEqual(manifest["artifacts"][0]["id"], "demo_1.0.0_linux")
        self.assertTrue((project.dist_dir / "demo_1.0.0_linux.zip").exists())

    async def test_configured_id_wins_over_plugin(self) -> None:
        project = self.load_project(
            """
            [project]
            name = "demo"

            [project.artifact]
            id = "custom-{name}"
            files = ["README.md"]
            """,
        )
        id_plugin = _IdPlugin()
        project.plugins = [id_plugin]

        await project.distribute()

        self.assertEqual(id_plugin.platforms, [])
        self.assertTrue((project.dist_dir / "custom-demo.zip").exists())

    async def test_dry_run_writes_no_files(self) -> None:
        project = self.load_project(
            """
            [project]
            name = "demo"

            [project.artifact]
            files = ["README.md"]
            """,
            dry_run=True,
        )

        metadata = await project.distribute()

        self.assertEqual(len(metadata.artifacts), 1)
        self.assertFalse(project.dist_dir.exists())
        self.assertIn("[DRY] Would write artifact metadata", self.stream.getvalue())


if __name__ == "__main__":  # pragma: no cover
    unittest.main()

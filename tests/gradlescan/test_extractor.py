"""Tests for the Gradle extraction orchestrator and dependency merger."""

from __future__ import annotations

import textwrap
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from gradlescan.core.config import ExtractConfig
from gradlescan.core.exceptions import FileLoadError
from gradlescan.engines.gradle_extractor.classifier import (
    CatalogFile,
    GcvPropsFile,
    GradleScriptFile,
    KotlinSourceFile,
    PropsFile,
    classify,
    dispatch,
)
from gradlescan.engines.gradle_extractor.extractor import (
    extract_all_package_files,
    merge_dependencies,
    processing_sequence,
)
from gradlescan.engines.gradle_extractor.loader import LocalFileLoader
from gradlescan.engines.gradle_extractor.models import (
    ManagerData,
    PackageDependency,
    PackageFile,
    PackageRegistry,
    RegistryUrls,
)
from gradlescan.engines.gradle_extractor.ordering import reorder_files
from gradlescan.engines.gradle_extractor.registries import RegistryCatalog
from gradlescan.engines.gradle_extractor.utils import GCV_LOCK_HEADER
from gradlescan.engines.gradle_extractor.variables import VariableRegistry


# ── helpers ──────────────────────────────────────────────────────────────


class _FakeLoader:
    """In-memory loader: unknown paths load as None."""

    def __init__(self, files: dict[str, str]) -> None:
        self.files = {path: textwrap.dedent(text).lstrip("\n") for path, text in files.items()}
        self.calls: list[list[str]] = []

    async def load_all(self, package_files):
        requested = list(package_files)
        self.calls.append(requested)
        return {path: self.files.get(path) for path in requested}


async def _extract(files: dict[str, str]) -> tuple[list[PackageFile] | None, _FakeLoader]:
    loader = _FakeLoader(files)
    config = ExtractConfig(local_dir=Path("/nonexistent"), repository="org/repo")
    result = await extract_all_package_files(config, list(files), loader)
    return result, loader


def _by_file(result: list[PackageFile] | None) -> dict[str, PackageFile]:
    assert result is not None
    return {p.package_file: p for p in result}


def _dep(name: str | None, package_file: str | None, position: int | None = 0, **kwargs) -> PackageDependency:
    manager_data = ManagerData(package_file=package_file, file_replace_position=position) if package_file else None
    return PackageDependency(dep_name=name, current_value="1.0", manager_data=manager_data, **kwargs)


# ── orchestration ────────────────────────────────────────────────────────


class TestExtractAllPackageFiles:
    @pytest.mark.asyncio
    async def test_empty_project_returns_none(self):
        result, _ = await _extract(
            {
                "build.gradle": "// nothing here\n",
                "gradle.properties": "org.gradle.caching=true\n",
            }
        )
        assert result is None

    @pytest.mark.asyncio
    async def test_every_input_file_gets_a_record(self):
        result, _ = await _extract(
            {
                "build.gradle": "dependencies { implementation 'com.a:a:1.0' }\n",
                "gradle.properties": "org.gradle.caching=true\n",
            }
        )
        files = _by_file(result)
        assert set(files) == {"build.gradle", "gradle.properties"}
        assert files["gradle.properties"].deps == []
        assert [d.dep_name for d in files["build.gradle"].deps] == ["com.a:a"]

    @pytest.mark.asyncio
    async def test_contents_loaded_once_up_front(self):
        _, loader = await _extract(
            {
                "buildSrc/src/main/kotlin/Deps.kt": 'val v = "1"\n',
                "build.gradle": "implementation 'com.a:a:1.0'\n",
            }
        )
        assert len(loader.calls) == 1
        assert sorted(set(loader.calls[0])) == ["build.gradle", "buildSrc/src/main/kotlin/Deps.kt"]

    @pytest.mark.asyncio
    async def test_kotlin_forward_reference_resolved_on_second_pass(self):
        kt = "buildSrc/src/main/kotlin/Deps.kt"
        content = """
            object Libs {
                val lib = "com.example:lib:$v"
            }
            val v = "1.2.3"
        """
        result, loader = await _extract({kt: content})
        deps = _by_file(result)[kt].deps
        assert [(d.dep_name, d.current_value) for d in deps] == [("com.example:lib", "1.2.3")]
        assert deps[0].file_replace_position == loader.files[kt].index("1.2.3")

    @pytest.mark.asyncio
    async def test_kotlin_double_pass_is_deduplicated(self):
        kt = "buildSrc/src/main/kotlin/Deps.kt"
        result, _ = await _extract({kt: 'val v = "2.0"\nval lib = "com.example:lib:$v"\n'})
        deps = _by_file(result)[kt].deps
        assert len(deps) == 1

    @pytest.mark.asyncio
    async def test_kotlin_variables_visible_to_scripts(self):
        result, _ = await _extract(
            {
                "buildSrc/src/main/kotlin/Versions.kt": 'object Versions { const val okio = "3.6.0" }\n',
                "app/build.gradle.kts": 'dependencies { implementation("com.squareup.okio:okio:${Versions.okio}") }\n',
            }
        )
        files = _by_file(result)
        # attributed to where the version is defined
        deps = files["buildSrc/src/main/kotlin/Versions.kt"].deps
        assert [(d.dep_name, d.current_value) for d in deps] == [("com.squareup.okio:okio", "3.6.0")]
        assert files["app/build.gradle.kts"].deps == []

    @pytest.mark.asyncio
    async def test_properties_visible_to_subproject_and_shadowed(self):
        result, _ = await _extract(
            {
                "gradle.properties": "libVersion=1.0\n",
                "app/gradle.properties": "libVersion=2.0\n",
                "app/build.gradle": 'implementation "com.example:lib:$libVersion"\n',
                "core/build.gradle": 'implementation "com.example:core:$libVersion"\n',
            }
        )
        files = _by_file(result)
        assert [(d.dep_name, d.current_value) for d in files["app/gradle.properties"].deps] == [
            ("com.example:lib", "2.0")
        ]
        assert [(d.dep_name, d.current_value) for d in files["gradle.properties"].deps] == [
            ("com.example:core", "1.0")
        ]

    @pytest.mark.asyncio
    async def test_failed_file_does_not_abort_run(self):
        result, _ = await _extract(
            {
                "gradle/libs.versions.toml": "[versions\nbroken = ",
                "build.gradle": "implementation 'com.a:a:1.0'\n",
            }
        )
        files = _by_file(result)
        assert files["gradle/libs.versions.toml"].deps == []
        assert [d.dep_name for d in files["build.gradle"].deps] == ["com.a:a"]

    @pytest.mark.asyncio
    async def test_unloadable_file_is_skipped(self):
        loader = _FakeLoader({"build.gradle": "implementation 'com.a:a:1.0'\n"})
        config = ExtractConfig(local_dir=Path("/nonexistent"))
        result = await extract_all_package_files(config, ["build.gradle", "missing.gradle"], loader)
        files = _by_file(result)
        assert files["missing.gradle"].deps == []
        assert len(files["build.gradle"].deps) == 1

    @pytest.mark.asyncio
    async def test_batch_load_failure_propagates(self):
        loader = AsyncMock()
        loader.load_all.side_effect = FileLoadError("build.gradle", "permission denied")
        with pytest.raises(FileLoadError):
            await extract_all_package_files(ExtractConfig(), ["build.gradle"], loader)

    @pytest.mark.asyncio
    async def test_build_src_dep_type_without_kotlin(self):
        result, _ = await _extract({"buildSrc/build.gradle": "implementation 'com.a:a:1.0'\n"})
        dep = _by_file(result)["buildSrc/build.gradle"].deps[0]
        assert dep.dep_type == "devDependencies"
        assert dep.datasource == "maven"

    @pytest.mark.asyncio
    async def test_build_src_dep_type_with_kotlin(self):
        result, _ = await _extract(
            {
                "buildSrc/build.gradle": "implementation 'com.a:a:1.0'\n",
                "buildSrc/src/main/kotlin/Deps.kt": 'val unused = "1"\n',
            }
        )
        dep = _by_file(result)["buildSrc/build.gradle"].deps[0]
        assert dep.dep_type == "dependencies"

    @pytest.mark.asyncio
    async def test_registry_resolution_across_files(self):
        result, _ = await _extract(
            {
                "settings.gradle": """
                    pluginManagement {
                        repositories {
                            maven { url 'https://plugins.corp.example' }
                        }
                    }
                    """,
                "build.gradle": """
                    plugins {
                        id 'com.corp.plugin' version '1.0'
                    }
                    repositories {
                        mavenCentral()
                        exclusiveContent {
                            forRepository { maven { url 'https://corp.example/m2' } }
                            filter { includeGroupAndSubgroups 'com.corp' }
                        }
                    }
                    dependencies {
                        implementation 'com.corp.tools:tool:2.0'
                        implementation 'org.public:lib:3.0'
                    }
                    """,
            }
        )
        deps = {d.dep_name: d for d in _by_file(result)["build.gradle"].deps}
        assert deps["com.corp.plugin"].registry_urls == ["https://plugins.corp.example"]
        assert deps["com.corp.tools:tool"].registry_urls == ["https://corp.example/m2"]
        assert deps["org.public:lib"].registry_urls == [RegistryUrls.maven_central]

    @pytest.mark.asyncio
    async def test_plugin_without_registries_uses_portal(self):
        result, _ = await _extract({"build.gradle": "plugins { id 'com.x.plugin' version '1.0' }\n"})
        dep = _by_file(result)["build.gradle"].deps[0]
        assert dep.registry_urls == [RegistryUrls.gradle_plugin_portal]

    @pytest.mark.asyncio
    async def test_consistent_versions(self):
        result, _ = await _extract(
            {
                "build.gradle": "plugins { id 'com.palantir.consistent-versions' version '2.16.0' }\n",
                "versions.props": "com.google.guava:guava = 32.1.2-jre\n",
                "versions.lock": f"{GCV_LOCK_HEADER}\ncom.google.guava:guava:32.1.2-jre (1 constraints: 0)\n",
            }
        )
        deps = _by_file(result)["versions.props"].deps
        assert [(d.dep_name, d.current_value) for d in deps] == [("com.google.guava:guava", "32.1.2-jre")]

    @pytest.mark.asyncio
    async def test_rerun_is_identical(self):
        files = {
            "gradle.properties": "v=1.0\n",
            "build.gradle": 'implementation "com.a:a:$v"\nimplementation "com.b:b:$v"\n',
            "buildSrc/src/main/kotlin/Deps.kt": 'val k = "com.k:k:1.0"\n',
        }
        first, _ = await _extract(files)
        second, _ = await _extract(files)
        assert first == second
        for pkg in first:
            keys = [(d.dep_name, d.file_replace_position) for d in pkg.deps]
            assert len(keys) == len(set(keys))

    @pytest.mark.asyncio
    async def test_local_loader(self, tmp_path):
        (tmp_path / "build.gradle").write_text("implementation 'com.a:a:1.0'\n")
        config = ExtractConfig(local_dir=tmp_path)
        result = await extract_all_package_files(config, ["build.gradle"])
        assert [d.dep_name for d in _by_file(result)["build.gradle"].deps] == ["com.a:a"]


# ── merging ──────────────────────────────────────────────────────────────


class TestMergeDependencies:
    def test_drops_dep_without_owning_file(self):
        by_name = {"build.gradle": PackageFile(package_file="build.gradle")}
        result = merge_dependencies([_dep("com.a:a", None)], by_name, RegistryCatalog(), False)
        assert result == [PackageFile(package_file="build.gradle")]

    def test_drops_dep_without_name(self):
        by_name = {"build.gradle": PackageFile(package_file="build.gradle")}
        catalog = RegistryCatalog([PackageRegistry("https://repo.example/")])
        result = merge_dependencies([_dep(None, "build.gradle")], by_name, catalog, False)
        assert result[0].deps == []

    def test_creates_record_for_unknown_file(self):
        result = merge_dependencies([_dep("com.a:a", "applied.gradle")], {}, RegistryCatalog(), False)
        assert [p.package_file for p in result] == ["applied.gradle"]

    def test_dedup_by_name_and_position(self):
        deps = [
            _dep("com.a:a", "build.gradle", 10),
            _dep("com.a:a", "build.gradle", 10),
            _dep("com.a:a", "build.gradle", 20),
        ]
        result = merge_dependencies(deps, {}, RegistryCatalog(), False)
        assert [d.file_replace_position for d in result[0].deps] == [10, 20]

    def test_copies_file_replace_position(self):
        result = merge_dependencies([_dep("com.a:a", "build.gradle", 42)], {}, RegistryCatalog(), False)
        assert result[0].deps[0].file_replace_position == 42

    def test_foreign_datasource_left_alone(self):
        dep = _dep("some-image", "build.gradle", datasource="docker")
        catalog = RegistryCatalog([PackageRegistry("https://repo.example/")])
        result = merge_dependencies([dep], {}, catalog, False)
        merged = result[0].deps[0]
        assert merged.registry_urls == []
        assert merged.dep_type is None

    def test_explicit_dep_type_kept(self):
        dep = _dep("com.a:a", "buildSrc/build.gradle", dep_type="test")
        result = merge_dependencies([dep], {}, RegistryCatalog(), False)
        assert result[0].deps[0].dep_type == "test"


# ── ordering / classification ────────────────────────────────────────────


class TestOrdering:
    def test_reorder_files(self):
        files = [
            "sub/build.gradle",
            "other.gradle",
            "build.gradle",
            "gradle/deps.gradle",
            "gradle.properties",
            "settings.gradle",
            "sub/gradle.properties",
        ]
        assert reorder_files(files) == [
            "gradle.properties",
            "build.gradle",
            "settings.gradle",
            "other.gradle",
            "gradle/deps.gradle",
            "sub/gradle.properties",
            "sub/build.gradle",
        ]

    def test_processing_sequence_runs_kotlin_twice_first(self):
        files = ["build.gradle", "buildSrc/A.kt", "gradle.properties", "buildSrc/B.kt"]
        assert processing_sequence(files) == [
            "buildSrc/A.kt",
            "buildSrc/B.kt",
            "buildSrc/A.kt",
            "buildSrc/B.kt",
            "gradle.properties",
            "build.gradle",
        ]


class TestClassifier:
    CONTENTS = {
        "gradle.properties": "a=b\n",
        "gradle/libs.versions.toml": "[versions]\n",
        "versions.props": "a:b = 1\n",
        "versions.lock": f"{GCV_LOCK_HEADER}\n",
        "other/versions.props": "a:b = 1\n",
        "buildSrc/Deps.kt": 'val a = "1"\n',
        "build.gradle.kts": "",
        "README.md": "# readme\n",
    }

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("gradle.properties", PropsFile),
            ("gradle/libs.versions.toml", CatalogFile),
            ("versions.props", GcvPropsFile),
            ("buildSrc/Deps.kt", KotlinSourceFile),
            ("build.gradle.kts", GradleScriptFile),
        ],
    )
    def test_classify(self, path, expected):
        assert isinstance(classify(path, self.CONTENTS, VariableRegistry()), expected)

    def test_gcv_props_without_lock_is_skipped(self):
        assert classify("other/versions.props", self.CONTENTS, VariableRegistry()) is None

    def test_unknown_file_is_skipped(self):
        assert classify("README.md", self.CONTENTS, VariableRegistry()) is None

    def test_kotlin_variables_published_to_root(self):
        registry = VariableRegistry()
        dispatch("buildSrc/Deps.kt", self.CONTENTS, registry, RegistryCatalog())
        assert registry.get("/anywhere")["a"].value == "1"

    def test_props_variables_published_to_own_directory(self):
        registry = VariableRegistry()
        contents = {"sub/gradle.properties": "x=1\n"}
        dispatch("sub/gradle.properties", contents, registry, RegistryCatalog())
        assert "x" in registry.get("/sub/child")
        assert "x" not in registry.get("/")

    def test_script_registries_added_to_catalog(self):
        catalog = RegistryCatalog()
        contents = {"build.gradle": "repositories { mavenCentral() }\n"}
        dispatch("build.gradle", contents, VariableRegistry(), catalog)
        assert [r.registry_url for r in catalog] == [RegistryUrls.maven_central]


class TestLocalFileLoader:
    @pytest.mark.asyncio
    async def test_missing_files_load_as_none(self, tmp_path):
        (tmp_path / "build.gradle").write_text("x")
        loader = LocalFileLoader(tmp_path)
        contents = await loader.load_all(["build.gradle", "nope.gradle", "build.gradle"])
        assert contents == {"build.gradle": "x", "nope.gradle": None}

"""Data models for the Gradle extraction engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

MAVEN_DATASOURCE = "maven"

RegistryScope = Literal["dep", "plugin"]
RegistryType = Literal["regular", "exclusive"]
ContentMode = Literal["include", "exclude"]
ContentMatcher = Literal["exact", "regex", "subgroup"]


class RegistryUrls:
    maven_central = "https://repo.maven.apache.org/maven2"
    google = "https://dl.google.com/android/maven2/"
    gradle_plugin_portal = "https://plugins.gradle.org/m2/"
    jcenter = "https://jcenter.bintray.com/"


@dataclass
class ManagerData:
    """Where a dependency lives, so it can be edited in place later."""

    package_file: str | None
    file_replace_position: int | None = None
    shared_variable_name: str | None = None


@dataclass
class PackageDependency:
    """A single dependency occurrence found in a package file."""

    dep_name: str | None
    package_name: str | None = None
    current_value: str | None = None
    dep_type: str | None = None
    datasource: str | None = None
    registry_urls: list[str] = field(default_factory=list)
    file_replace_position: int | None = None
    locked_version: str | None = None
    manager_data: ManagerData | None = None


@dataclass
class PackageFile:
    """Aggregated result for one physical package file."""

    package_file: str
    datasource: str = MAVEN_DATASOURCE
    deps: list[PackageDependency] = field(default_factory=list)


@dataclass
class VariableData:
    """A variable binding and the location of its value text."""

    key: str
    value: str
    file_replace_position: int
    package_file: str


@dataclass
class ContentDescriptorSpec:
    """One include/exclude rule of a repository content filter."""

    mode: ContentMode
    matcher: ContentMatcher
    group_id: str
    artifact_id: str | None = None
    version: str | None = None


@dataclass
class PackageRegistry:
    registry_url: str
    scope: RegistryScope = "dep"
    registry_type: RegistryType = "regular"
    content: list[ContentDescriptorSpec] = field(default_factory=list)


@dataclass
class ParseResult:
    """What a sub-format parser reports back for one file."""

    deps: list[PackageDependency] = field(default_factory=list)
    vars: dict[str, VariableData] = field(default_factory=dict)
    registries: list[PackageRegistry] = field(default_factory=list)

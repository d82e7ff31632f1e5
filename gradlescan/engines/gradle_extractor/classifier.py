"""File classification and dispatch to the sub-format parsers.

Each package file is classified into exactly one variant. A variant carries
the inputs its parser needs and nothing more; ``var_scope`` names the
directory its variables are published to, if any.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union

from gradlescan.core.exceptions import PackageFileNotLoadedError
from gradlescan.engines.gradle_extractor import parsers
from gradlescan.engines.gradle_extractor.models import (
    PackageDependency,
    ParseResult,
    VariableData,
)
from gradlescan.engines.gradle_extractor.registries import RegistryCatalog
from gradlescan.engines.gradle_extractor.utils import (
    is_gcv_props_file,
    is_gradle_script_file,
    is_kotlin_source_file,
    is_props_file,
    is_toml_file,
    package_file_dir,
    uses_gcv,
)
from gradlescan.engines.gradle_extractor.variables import ROOT_SCOPE, VariableRegistry


@dataclass(frozen=True)
class PropsFile:
    kind: ClassVar[str] = "properties"
    package_file: str
    content: str

    @property
    def var_scope(self) -> str:
        return package_file_dir(self.package_file)

    def parse(self) -> ParseResult:
        return parsers.parse_props(self.content, self.package_file)


@dataclass(frozen=True)
class CatalogFile:
    kind: ClassVar[str] = "catalog"
    var_scope: ClassVar[str | None] = None
    package_file: str
    content: str

    def parse(self) -> ParseResult:
        return parsers.parse_catalog_file(self.package_file, self.content)


@dataclass(frozen=True)
class GcvPropsFile:
    kind: ClassVar[str] = "consistent-versions"
    var_scope: ClassVar[str | None] = None
    package_file: str
    file_contents: dict[str, str | None]

    def parse(self) -> ParseResult:
        return parsers.parse_gcv_file(self.package_file, self.file_contents)


@dataclass(frozen=True)
class KotlinSourceFile:
    """Kotlin variables are published to the root scope, visible everywhere."""

    kind: ClassVar[str] = "kotlin"
    var_scope: ClassVar[str | None] = ROOT_SCOPE
    package_file: str
    content: str
    variables: dict[str, VariableData]

    def parse(self) -> ParseResult:
        return parsers.parse_kotlin_source(self.content, self.variables, self.package_file)


@dataclass(frozen=True)
class GradleScriptFile:
    kind: ClassVar[str] = "gradle"
    package_file: str
    content: str
    variables: dict[str, VariableData]
    file_contents: dict[str, str | None]

    @property
    def var_scope(self) -> str:
        return package_file_dir(self.package_file)

    def parse(self) -> ParseResult:
        return parsers.parse_gradle(
            self.content, self.variables, self.package_file, self.file_contents
        )


ClassifiedFile = Union[PropsFile, CatalogFile, GcvPropsFile, KotlinSourceFile, GradleScriptFile]


def classify(
    package_file: str,
    file_contents: dict[str, str | None],
    var_registry: VariableRegistry,
) -> ClassifiedFile | None:
    """Pick the sub-format for *package_file*, or ``None`` to skip it.

    Precedence: properties, version catalog, consistent-versions props (only
    when the plugin's lock file is present), Kotlin source, build script.
    """
    content = file_contents.get(package_file)
    if content is None:
        raise PackageFileNotLoadedError(package_file)

    if is_props_file(package_file):
        return PropsFile(package_file, content)
    if is_toml_file(package_file):
        return CatalogFile(package_file, content)
    if is_gcv_props_file(package_file) and uses_gcv(package_file, file_contents):
        return GcvPropsFile(package_file, file_contents)
    if is_kotlin_source_file(package_file):
        variables = var_registry.get(package_file_dir(package_file))
        return KotlinSourceFile(package_file, content, variables)
    if is_gradle_script_file(package_file):
        variables = var_registry.get(package_file_dir(package_file))
        return GradleScriptFile(package_file, content, variables, file_contents)
    return None


def dispatch(
    package_file: str,
    file_contents: dict[str, str | None],
    var_registry: VariableRegistry,
    registry_catalog: RegistryCatalog,
) -> list[PackageDependency]:
    """Classify and parse one file, publishing what it declares.

    Returns the dependencies found; variables and registries are folded into
    the shared stores. Parser errors propagate to the caller.
    """
    classified = classify(package_file, file_contents, var_registry)
    if classified is None:
        return []

    result = classified.parse()
    if classified.var_scope is not None and result.vars:
        var_registry.update(classified.var_scope, result.vars)
    if isinstance(classified, GradleScriptFile):
        registry_catalog.add(result.registries)
    return result.deps

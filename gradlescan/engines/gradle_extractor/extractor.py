"""Gradle extraction: orchestrate per-file parsing, then merge and resolve registries."""

from __future__ import annotations

import structlog

from gradlescan.core.config import ExtractConfig
from gradlescan.core.exceptions import UnidentifiableDependencyError
from gradlescan.engines.gradle_extractor.classifier import dispatch
from gradlescan.engines.gradle_extractor.loader import FileLoader, LocalFileLoader
from gradlescan.engines.gradle_extractor.models import (
    MAVEN_DATASOURCE,
    PackageDependency,
    PackageFile,
)
from gradlescan.engines.gradle_extractor.ordering import reorder_files
from gradlescan.engines.gradle_extractor.registries import (
    RegistryCatalog,
    get_registry_urls_for_dep,
)
from gradlescan.engines.gradle_extractor.utils import is_kotlin_source_file
from gradlescan.engines.gradle_extractor.variables import VariableRegistry

log = structlog.get_logger("gradlescan.engine")

_BUILD_SRC = "buildSrc"


def processing_sequence(package_files: list[str]) -> list[str]:
    """Kotlin sources twice, then everything else in dependency-friendly order.

    The second Kotlin pass sees the root-scope variables published by the
    first, which resolves references to variables declared further down.
    """
    kotlin_files = [f for f in package_files if is_kotlin_source_file(f)]
    other_files = reorder_files([f for f in package_files if not is_kotlin_source_file(f)])
    return [*kotlin_files, *kotlin_files, *other_files]


async def parse_package_files(
    config: ExtractConfig,
    package_files: list[str],
    loader: FileLoader,
    extracted_deps: list[PackageDependency],
    package_files_by_name: dict[str, PackageFile],
    registry_catalog: RegistryCatalog,
) -> list[PackageDependency]:
    """Parse *package_files* in order, sharing one variable registry.

    A failure in one file is logged and skipped. A failure of the batch
    load propagates.
    """
    var_registry = VariableRegistry()
    file_contents = await loader.load_all(package_files)

    for package_file in package_files:
        package_files_by_name.setdefault(package_file, PackageFile(package_file=package_file))

    for package_file in package_files:
        try:
            deps = dispatch(package_file, file_contents, var_registry, registry_catalog)
        except Exception:
            log.debug(
                "gradle.file_failed",
                package_file=package_file,
                repository=config.repository,
                exc_info=True,
            )
            continue
        extracted_deps.extend(deps)

    return extracted_deps


def _default_dep_type(package_file: str, has_kotlin_sources: bool) -> str:
    if package_file.startswith(_BUILD_SRC) and not has_kotlin_sources:
        return "devDependencies"
    return "dependencies"


def merge_dependencies(
    extracted_deps: list[PackageDependency],
    package_files_by_name: dict[str, PackageFile],
    registry_catalog: RegistryCatalog,
    has_kotlin_sources: bool,
) -> list[PackageFile]:
    """Default, resolve and group *extracted_deps* by owning file.

    Within a file, two deps with the same name and replace position are
    the same occurrence; only the first is kept.
    """
    for dep in extracted_deps:
        manager_data = dep.manager_data
        dep.file_replace_position = manager_data.file_replace_position if manager_data else None

        key = manager_data.package_file if manager_data else None
        if not key:
            log.debug("gradle.dep_dropped", reason="no_package_file", dep_name=dep.dep_name)
            continue

        pkg_file = package_files_by_name.get(key)
        if pkg_file is None:
            pkg_file = PackageFile(package_file=key)

        if dep.datasource is None:
            dep.datasource = MAVEN_DATASOURCE

        if dep.datasource == MAVEN_DATASOURCE:
            try:
                dep.registry_urls = get_registry_urls_for_dep(registry_catalog, dep)
            except UnidentifiableDependencyError:
                log.debug("gradle.dep_dropped", reason="no_name", package_file=key)
                continue
            if dep.dep_type is None:
                dep.dep_type = _default_dep_type(key, has_kotlin_sources)

        already_known = any(
            item.dep_name == dep.dep_name
            and item.manager_data is not None
            and item.manager_data.file_replace_position == manager_data.file_replace_position
            for item in pkg_file.deps
        )
        if not already_known:
            pkg_file.deps.append(dep)

        package_files_by_name[key] = pkg_file

    return list(package_files_by_name.values())


async def extract_all_package_files(
    config: ExtractConfig,
    package_files: list[str],
    loader: FileLoader | None = None,
) -> list[PackageFile] | None:
    """Extract every Gradle dependency declared across *package_files*.

    Returns one :class:`PackageFile` per input file (and per file reached
    only through ``apply from``), or ``None`` if nothing was found at all.
    """
    loader = loader or LocalFileLoader(config.local_dir)
    package_files_by_name: dict[str, PackageFile] = {}
    registry_catalog = RegistryCatalog()
    extracted_deps: list[PackageDependency] = []
    has_kotlin_sources = any(is_kotlin_source_file(f) for f in package_files)

    await parse_package_files(
        config,
        processing_sequence(package_files),
        loader,
        extracted_deps,
        package_files_by_name,
        registry_catalog,
    )

    if not extracted_deps:
        log.info("gradle.no_deps", repository=config.repository, files=len(package_files))
        return None

    result = merge_dependencies(
        extracted_deps, package_files_by_name, registry_catalog, has_kotlin_sources
    )
    log.info(
        "gradle.extract_done",
        repository=config.repository,
        files=len(result),
        deps=sum(len(p.deps) for p in result),
        registries=len(registry_catalog),
    )
    return result

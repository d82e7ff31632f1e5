"""Parser for Gradle version catalogs (``gradle/libs.versions.toml``)."""

from __future__ import annotations

import re
import sys

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from gradlescan.engines.gradle_extractor.models import PackageDependency, ParseResult
from gradlescan.engines.gradle_extractor.parsers.common import make_dep, plugin_dep


def _section_span(content: str, section: str) -> tuple[int, int]:
    m = re.search(rf"^\s*\[{re.escape(section)}\]\s*$", content, re.MULTILINE)
    if m is None:
        return -1, -1
    nxt = re.search(r"^\s*\[[^\]]+\]\s*$", content[m.end():], re.MULTILINE)
    return m.end(), m.end() + nxt.start() if nxt else len(content)


def _value_position(content: str, section: str, key: str, value: str) -> int | None:
    """Offset of *value* in the entry for *key* under ``[section]``."""
    start, end = _section_span(content, section)
    if start < 0:
        return None
    key_re = re.compile(rf"^\s*[\"']?{re.escape(key)}[\"']?\s*=", re.MULTILINE)
    m = key_re.search(content, start, end)
    if m is None:
        return None
    for quote in ('"', "'"):
        idx = content.find(f"{quote}{value}{quote}", m.end(), end)
        if idx >= 0:
            return idx + 1
        # g:a:version string notation
        idx = content.find(f":{value}{quote}", m.end(), end)
        if idx >= 0:
            return idx + 1
    return None


def _resolve_version(
    spec: object,
    content: str,
    section: str,
    key: str,
    versions: dict[str, str],
) -> tuple[str | None, int | None]:
    if isinstance(spec, str):
        return spec, _value_position(content, section, key, spec)
    if isinstance(spec, dict):
        ref = spec.get("ref")
        if isinstance(ref, str) and ref in versions:
            return versions[ref], _value_position(content, "versions", ref, versions[ref])
        for strictness in ("strictly", "require", "prefer"):
            value = spec.get(strictness)
            if isinstance(value, str):
                return value, _value_position(content, section, key, value)
    return None, None


def _library(
    key: str,
    spec: object,
    content: str,
    package_file: str,
    versions: dict[str, str],
) -> PackageDependency | None:
    if isinstance(spec, str):
        parts = spec.split(":")
        if len(parts) != 3:
            return None
        group, artifact, version = parts
        return make_dep(
            f"{group}:{artifact}",
            version,
            package_file,
            _value_position(content, "libraries", key, version),
        )
    if not isinstance(spec, dict):
        return None

    if isinstance(spec.get("module"), str):
        group, _, artifact = spec["module"].partition(":")
    else:
        group, artifact = spec.get("group"), spec.get("name")
    if not group or not artifact:
        return None

    version_spec = spec.get("version")
    version, position = _resolve_version(version_spec, content, "libraries", key, versions)
    if version is None:
        return None
    return make_dep(f"{group}:{artifact}", version, package_file, position)


def parse_catalog(package_file: str, content: str) -> list[PackageDependency]:
    data = tomllib.loads(content)

    versions = {k: v for k, v in data.get("versions", {}).items() if isinstance(v, str)}
    deps: list[PackageDependency] = []

    for key, spec in data.get("libraries", {}).items():
        dep = _library(key, spec, content, package_file, versions)
        if dep is not None:
            deps.append(dep)

    for key, spec in data.get("plugins", {}).items():
        if isinstance(spec, str):
            plugin_id, _, version = spec.partition(":")
            version_spec: object = version or None
        elif isinstance(spec, dict) and isinstance(spec.get("id"), str):
            plugin_id = spec["id"]
            version_spec = spec.get("version")
        else:
            continue
        version, position = _resolve_version(version_spec, content, "plugins", key, versions)
        if version is None or position is None:
            continue
        deps.append(plugin_dep(plugin_id, version, package_file, position))

    return deps


def parse_catalog_file(package_file: str, content: str) -> ParseResult:
    return ParseResult(deps=parse_catalog(package_file, content))

"""Repository content filters deciding whether a registry serves a dependency."""

from __future__ import annotations

import re

from gradlescan.core.exceptions import UnidentifiableDependencyError
from gradlescan.engines.gradle_extractor import versioning
from gradlescan.engines.gradle_extractor.models import (
    ContentDescriptorSpec,
    PackageDependency,
)
from gradlescan.engines.gradle_extractor.versioning import VersionMatcher


def _split_coordinates(dep: PackageDependency) -> tuple[str, str | None]:
    name = dep.package_name or dep.dep_name
    if not name:
        raise UnidentifiableDependencyError("dependency has no package or dep name")
    group_id, _, artifact_id = name.partition(":")
    return group_id, artifact_id.split(":", 1)[0] if artifact_id else None


def _group_matches(rule: ContentDescriptorSpec, group_id: str) -> bool:
    if rule.matcher == "regex":
        return re.search(rule.group_id, group_id) is not None
    if rule.matcher == "subgroup":
        base = rule.group_id.rstrip(".")
        return group_id == base or f"{group_id}.".startswith(f"{base}.")
    return group_id == rule.group_id


def _artifact_matches(rule: ContentDescriptorSpec, artifact_id: str | None) -> bool:
    if not rule.artifact_id:
        return True
    if artifact_id is None:
        return False
    if rule.matcher == "regex":
        return re.search(rule.artifact_id, artifact_id) is not None
    return artifact_id == rule.artifact_id


def _version_matches(
    rule: ContentDescriptorSpec,
    current_value: str | None,
    version_matcher: VersionMatcher,
) -> bool:
    if not rule.version or not current_value:
        return True
    if rule.matcher == "regex":
        return re.search(rule.version, current_value) is not None
    # exact version or a Gradle version range
    return version_matcher(current_value, rule.version)


def matches_content_descriptor(
    dep: PackageDependency,
    content: list[ContentDescriptorSpec] | None = None,
    version_matcher: VersionMatcher = versioning.matches,
) -> bool:
    """Evaluate *content* rules against *dep*.

    With includes only, the dependency must hit at least one include; with
    excludes only, it must hit none; with both, it must hit an include and
    no exclude. An empty rule set admits everything.

    Raises :class:`UnidentifiableDependencyError` if *dep* has no name.
    """
    group_id, artifact_id = _split_coordinates(dep)
    has_includes = has_excludes = False
    matches_include = matches_exclude = False

    for rule in content or []:
        is_match = (
            _group_matches(rule, group_id)
            and _artifact_matches(rule, artifact_id)
            and _version_matches(rule, dep.current_value, version_matcher)
        )
        if rule.mode == "include":
            has_includes = True
            matches_include = matches_include or is_match
        elif rule.mode == "exclude":
            has_excludes = True
            matches_exclude = matches_exclude or is_match

    if has_includes and has_excludes:
        return matches_include and not matches_exclude
    if has_includes:
        return matches_include
    if has_excludes:
        return not matches_exclude
    return True

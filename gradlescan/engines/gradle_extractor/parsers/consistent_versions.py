"""Parser for the Palantir consistent-versions plugin (``versions.props``).

Version pins live in ``versions.props``; the resolved set lives in the
sibling ``versions.lock``. Only dependencies present in the lock file are
reported, each attributed to the props line that pins it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from gradlescan.core.exceptions import PackageFileNotLoadedError
from gradlescan.engines.gradle_extractor.models import (
    ManagerData,
    PackageDependency,
    ParseResult,
)
from gradlescan.engines.gradle_extractor.utils import GCV_LOCK_FILE, sibling_file

_LOCK_LINE_RE = re.compile(
    r"^(?P<group>[\w.\-]+):(?P<artifact>[\w.\-]+):(?P<version>[^\s]+)\s+\(",
    re.MULTILINE,
)
_PROPS_LINE_RE = re.compile(
    r"^[ \t]*(?P<key>[\w.\-*]+:[\w.\-*]+)[ \t]*=[ \t]*(?P<version>[^\s#]+)[ \t]*(?:#.*)?$",
    re.MULTILINE,
)
_TEST_SECTION = "[Test dependencies]"


@dataclass
class _LockEntry:
    version: str
    dep_type: str


@dataclass
class _Pin:
    version: str
    position: int


def _parse_lock(content: str) -> dict[str, _LockEntry]:
    test_start = content.find(_TEST_SECTION)
    entries: dict[str, _LockEntry] = {}
    for m in _LOCK_LINE_RE.finditer(content):
        dep_type = "test" if 0 <= test_start < m.start() else "dependencies"
        entries[f"{m.group('group')}:{m.group('artifact')}"] = _LockEntry(
            version=m.group("version"), dep_type=dep_type
        )
    return entries


def _parse_props(content: str) -> dict[str, _Pin]:
    return {
        m.group("key"): _Pin(version=m.group("version"), position=m.start("version"))
        for m in _PROPS_LINE_RE.finditer(content)
    }


def _glob_to_regex(glob: str) -> re.Pattern[str]:
    return re.compile("^" + ".*".join(re.escape(part) for part in glob.split("*")) + "$")


def parse_gcv(props_file: str, file_contents: dict[str, str | None]) -> list[PackageDependency]:
    props_content = file_contents.get(props_file)
    lock_content = file_contents.get(sibling_file(props_file, GCV_LOCK_FILE))
    if props_content is None or lock_content is None:
        raise PackageFileNotLoadedError(props_file)

    locked = _parse_lock(lock_content)
    pins = _parse_props(props_content)
    deps: list[PackageDependency] = []
    matched: set[str] = set()

    for key, pin in pins.items():
        if "*" in key or key not in locked:
            continue
        matched.add(key)
        deps.append(
            PackageDependency(
                dep_name=key,
                current_value=pin.version,
                dep_type=locked[key].dep_type,
                locked_version=locked[key].version,
                manager_data=ManagerData(
                    package_file=props_file, file_replace_position=pin.position
                ),
            )
        )

    # longer globs are more specific and claim their matches first
    globs = sorted((k for k in pins if "*" in k), key=len, reverse=True)
    for glob in globs:
        pattern = _glob_to_regex(glob)
        pin = pins[glob]
        for name, entry in locked.items():
            if name in matched or not pattern.match(name):
                continue
            matched.add(name)
            deps.append(
                PackageDependency(
                    dep_name=name,
                    current_value=pin.version,
                    dep_type=entry.dep_type,
                    locked_version=entry.version,
                    manager_data=ManagerData(
                        package_file=props_file,
                        file_replace_position=pin.position,
                        shared_variable_name=glob,
                    ),
                )
            )

    return deps


def parse_gcv_file(props_file: str, file_contents: dict[str, str | None]) -> ParseResult:
    return ParseResult(deps=parse_gcv(props_file, file_contents))

"""Parser for ``gradle.properties`` files.

Every property becomes a variable visible to scripts in the same directory
and below; values shaped like ``group:artifact:version`` are dependencies too.
"""

from __future__ import annotations

import re

from gradlescan.engines.gradle_extractor.models import ParseResult, VariableData
from gradlescan.engines.gradle_extractor.parsers.common import coordinate_dep

_PROP_RE = re.compile(
    r"^(?P<lead>[ \t]*)(?P<key>[^\s#!=:][^\s=:]*)[ \t]*[=:][ \t]*(?P<value>[^\n]*?)[ \t]*$",
    re.MULTILINE,
)


def parse_props(content: str, package_file: str) -> ParseResult:
    result = ParseResult()
    for m in _PROP_RE.finditer(content):
        key, value = m.group("key"), m.group("value")
        position = m.start("value")
        result.vars[key] = VariableData(
            key=key,
            value=value,
            file_replace_position=position,
            package_file=package_file,
        )
        dep = coordinate_dep(value, position, package_file, {}, interpolate_refs=False)
        if dep is not None:
            result.deps.append(dep)
    return result

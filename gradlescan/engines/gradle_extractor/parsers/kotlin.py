"""Parser for Kotlin sources under ``buildSrc`` (``Dependencies.kt`` and friends).

Handles the usual version-holder layout:

    object Versions {
        const val guava = "32.1.2-jre"
    }
    object Libs {
        const val guava = "com.google.guava:guava:${Versions.guava}"
    }

The text is scanned strictly in order: a reference to a variable declared
further down is unresolved on this pass.
"""

from __future__ import annotations

import re

from gradlescan.engines.gradle_extractor.models import ParseResult, VariableData
from gradlescan.engines.gradle_extractor.parsers.common import (
    blank_comments,
    coordinate_dep,
    find_block_end,
    interpolate,
)

_OBJECT_RE = re.compile(r"\bobject\s+(\w+)[^{\n]*\{")
_TOKEN_RE = re.compile(
    r"(?P<decl>\b(?:(?:private|internal|public|protected|const|override)\s+)*va[lr]\s+"
    r"(?P<name>\w+)\s*(?::\s*String\s*)?=\s*\"(?P<value>[^\"\n]*)\")"
    r"|\"(?P<literal>[^\"\n]*)\""
)


def _object_spans(content: str) -> list[tuple[str, int, int]]:
    return [
        (m.group(1), m.end(), find_block_end(content, m.end() - 1))
        for m in _OBJECT_RE.finditer(content)
    ]


def _qualifier(spans: list[tuple[str, int, int]], position: int) -> str:
    return ".".join(name for name, start, end in spans if start <= position < end)


def parse_kotlin_source(
    content: str,
    variables: dict[str, VariableData],
    package_file: str,
) -> ParseResult:
    result = ParseResult()
    text = blank_comments(content)
    spans = _object_spans(text)
    scope = dict(variables)

    for m in _TOKEN_RE.finditer(text):
        if m.group("decl"):
            raw, start = m.group("value"), m.start("value")
        else:
            raw, start = m.group("literal"), m.start("literal")

        dep = coordinate_dep(raw, start, package_file, scope)
        if dep is not None:
            result.deps.append(dep)

        if not m.group("decl"):
            continue
        value, alias = interpolate(raw, scope)
        if value is None:
            continue
        var = VariableData(
            key=m.group("name"),
            value=value,
            file_replace_position=alias.file_replace_position if alias else start,
            package_file=alias.package_file if alias else package_file,
        )
        keys = [m.group("name")]
        qualifier = _qualifier(spans, m.start())
        if qualifier:
            keys.insert(0, f"{qualifier}.{m.group('name')}")
        for key in keys:
            scope[key] = result.vars[key] = VariableData(
                key=key,
                value=var.value,
                file_replace_position=var.file_replace_position,
                package_file=var.package_file,
            )

    return result

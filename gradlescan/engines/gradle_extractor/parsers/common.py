"""Helpers shared by the Gradle sub-format parsers."""

from __future__ import annotations

import re

from gradlescan.engines.gradle_extractor.models import (
    ManagerData,
    PackageDependency,
    VariableData,
)

# group:artifact:version with optional classifier / @extension suffix
COORDINATE_RE = re.compile(
    r"^(?P<group>[\w.\-]+):(?P<artifact>[\w.\-]+):(?P<version>[^:@\s]+)"
    r"(?::[\w.\-]+)?(?:@[\w.\-]+)?$"
)

# $name, ${name}, $obj.name, ${obj.name}
_INTERPOLATION_RE = re.compile(r"\$\{\s*([\w.]+)\s*\}|\$([A-Za-z_][\w]*(?:\.[A-Za-z_]\w*)*)")

# strings are matched so that `//` and `/*` inside them are left alone
_STRING_OR_COMMENT_RE = re.compile(
    r"(?P<string>\"\"\"[\s\S]*?\"\"\"|'''[\s\S]*?'''"
    r"|\"(?:\\.|[^\"\\\n])*\"|'(?:\\.|[^'\\\n])*')"
    r"|(?P<comment>/\*[\s\S]*?(?:\*/|$)|//[^\n]*)"
)

# project.foo / rootProject.ext.foo style qualifiers
_SCOPE_PREFIXES = ("project.", "rootProject.", "ext.", "extra.")


def blank_comments(content: str) -> str:
    """Replace comments with spaces, keeping every other offset intact."""

    def _blank(m: re.Match[str]) -> str:
        if m.group("comment") is None:
            return m.group(0)
        return re.sub(r"[^\n]", " ", m.group(0))

    return _STRING_OR_COMMENT_RE.sub(_blank, content)


def lookup_variable(key: str, variables: dict[str, VariableData]) -> VariableData | None:
    """Find *key* in *variables*, dropping ``project.`` / ``ext.`` qualifiers."""
    while key not in variables:
        prefix = next((p for p in _SCOPE_PREFIXES if key.startswith(p)), None)
        if prefix is None:
            return None
        key = key[len(prefix):]
    return variables[key]


def interpolate(
    template: str, variables: dict[str, VariableData]
) -> tuple[str | None, VariableData | None]:
    """Substitute ``$var`` references in *template*.

    Returns ``(value, variable)``: *variable* is set when the whole template
    is a single reference. *value* is ``None`` if any reference is unknown.
    """
    refs = list(_INTERPOLATION_RE.finditer(template))
    if not refs:
        return template, None

    parts: list[str] = []
    cursor = 0
    for ref in refs:
        var = lookup_variable(ref.group(1) or ref.group(2), variables)
        if var is None:
            return None, None
        parts.append(template[cursor:ref.start()])
        parts.append(var.value)
        cursor = ref.end()
    parts.append(template[cursor:])

    whole = refs[0] if len(refs) == 1 and refs[0].group(0) == template else None
    single = lookup_variable(whole.group(1) or whole.group(2), variables) if whole else None
    return "".join(parts), single


def find_block_end(content: str, open_brace: int) -> int:
    """Index of the ``}`` closing the ``{`` at *open_brace* (or end of text)."""
    depth = 0
    quote: str | None = None
    i = open_brace
    while i < len(content):
        ch = content[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return len(content)


def iter_blocks(content: str, keyword: str, start: int = 0, end: int | None = None):
    """Yield ``(body_start, body_end)`` for every ``keyword {`` block in range."""
    end = len(content) if end is None else end
    pattern = re.compile(rf"\b{keyword}\s*\{{")
    pos = start
    while True:
        m = pattern.search(content, pos, end)
        if m is None:
            return
        close = find_block_end(content, m.end() - 1)
        yield m.end(), close
        pos = close + 1


def make_dep(
    dep_name: str,
    current_value: str | None,
    package_file: str,
    position: int | None,
    *,
    package_name: str | None = None,
    dep_type: str | None = None,
) -> PackageDependency:
    return PackageDependency(
        dep_name=dep_name,
        package_name=package_name,
        current_value=current_value,
        dep_type=dep_type,
        manager_data=ManagerData(package_file=package_file, file_replace_position=position),
    )


def coordinate_dep(
    literal: str,
    literal_start: int,
    package_file: str,
    variables: dict[str, VariableData],
    interpolate_refs: bool = True,
) -> PackageDependency | None:
    """Build a dependency from a ``group:artifact:version`` string literal.

    *literal_start* is the offset of the literal's first character in the
    file. A version taken wholly from one variable is attributed to that
    variable's definition.
    """
    if interpolate_refs:
        value, _ = interpolate(literal, variables)
        if value is None:
            return None
    else:
        value = literal
    m = COORDINATE_RE.match(value)
    if m is None:
        return None

    group, artifact, version = m.group("group", "artifact", "version")
    if "$" in group or "$" in artifact or "$" in version:
        return None

    # locate the version text inside the original literal
    raw_m = re.match(r"^[^:]+:[^:]+:(?P<version>[^:@]+)", literal)
    raw_version = raw_m.group("version") if raw_m else version
    position = literal_start + (raw_m.start("version") if raw_m else 0)
    if interpolate_refs:
        _, var = interpolate(raw_version, variables)
        if var is not None:
            return make_dep(
                f"{group}:{artifact}",
                version,
                var.package_file,
                var.file_replace_position,
            )
    return make_dep(f"{group}:{artifact}", version, package_file, position)


def plugin_dep(
    plugin_id: str,
    version: str,
    package_file: str,
    position: int,
) -> PackageDependency:
    return make_dep(
        plugin_id,
        version,
        package_file,
        position,
        package_name=f"{plugin_id}:{plugin_id}.gradle.plugin",
        dep_type="plugin",
    )

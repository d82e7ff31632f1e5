"""Parser for Gradle build scripts (``*.gradle`` and ``*.gradle.kts``).

A line-oriented scanner, not a Groovy/Kotlin grammar. Recognised forms:

  - variables      def v = '1.0' / val v = "1.0" / ext.v = '1.0' / ext { v = '1.0' }
                   extra["v"] = "1.0" / val v by extra("1.0")
  - coordinates    implementation "group:artifact:$v"
  - map notation   implementation group: 'g', name: 'a', version: v
  - plugins        id 'x' version 'y' / id("x") version "y" / kotlin("jvm") version "y"
  - includes       apply from: 'other.gradle' (followed through the loaded files)
  - repositories   mavenCentral(), google(), maven { url ... }, content { ... },
                   exclusiveContent { forRepository { ... } filter { ... } }

Only double-quoted strings interpolate, as in Groovy.
"""

from __future__ import annotations

import posixpath
import re

import structlog

from gradlescan.engines.gradle_extractor.models import (
    ContentDescriptorSpec,
    PackageRegistry,
    ParseResult,
    RegistryScope,
    RegistryUrls,
    VariableData,
)
from gradlescan.engines.gradle_extractor.parsers.common import (
    blank_comments,
    coordinate_dep,
    find_block_end,
    interpolate,
    iter_blocks,
    lookup_variable,
    make_dep,
    plugin_dep,
)

log = structlog.get_logger("gradlescan.engine")

_IDENT = r"[A-Za-z_][\w.]*"

_TOKEN_RE = re.compile(
    rf"(?P<apply>\bapply\s*\(?\s*from\s*[:=]\s*(?:file\s*\(\s*)?(?P<apq>[\"'])(?P<apath>[^\"'\n]+)(?P=apq))"
    rf"|(?P<map>\bgroup\s*[:=]\s*(?P<mgq>[\"'])(?P<mgroup>[^\"'\n]+)(?P=mgq)\s*,\s*"
    rf"name\s*[:=]\s*(?P<mnq>[\"'])(?P<mname>[^\"'\n]+)(?P=mnq)\s*,\s*"
    rf"version\s*[:=]\s*(?:(?P<mvq>[\"'])(?P<mversion>[^\"'\n]+)(?P=mvq)|(?P<mvar>{_IDENT})))"
    rf"|(?P<plugin>\b(?:id\s*\(?\s*(?P<piq>[\"'])(?P<pid>[\w.\-]+)(?P=piq)"
    rf"|kotlin\s*\(\s*(?P<pkq>[\"'])(?P<pkotlin>[\w.\-]+)(?P=pkq))\s*\)?\s*"
    rf"version\s*\(?\s*(?:(?P<pvq>[\"'])(?P<pversion>[^\"'\n]+)(?P=pvq)|(?P<pvar>{_IDENT})))"
    rf"|(?P<byextra>\bval\s+(?P<bkey>\w+)\s+by\s+extra\s*\(\s*(?P<bq>\")(?P<bvalue>[^\"\n]*)\"\s*\))"
    rf"|(?P<indexed>\b(?:ext|extra)\s*\[\s*[\"'](?P<ikey>[\w.]+)[\"']\s*\]\s*=\s*"
    rf"(?P<iq>[\"'])(?P<ivalue>[^\"'\n]*)(?P=iq))"
    rf"|(?P<assign>(?:\b(?:def|val|var|String)\s+|\b(?:project\.)?ext(?:ra)?\.)?"
    rf"\b(?P<akey>[A-Za-z_]\w*)\s*=\s*(?P<aq>[\"'])(?P<avalue>[^\"'\n]*)(?P=aq))"
    rf"|(?P<lq>[\"'])(?P<literal>[^\"'\n]*)(?P=lq)"
)

_REPO_RE = re.compile(
    r"\b(?P<kind>exclusiveContent|mavenCentral|google|gradlePluginPortal|jcenter|maven)\b"
    r"\s*(?P<open>[({])?"
)
_WELL_KNOWN = {
    "mavenCentral": RegistryUrls.maven_central,
    "google": RegistryUrls.google,
    "gradlePluginPortal": RegistryUrls.gradle_plugin_portal,
    "jcenter": RegistryUrls.jcenter,
}
_MAVEN_ARG_RE = re.compile(
    r"\(\s*(?:url\s*=\s*)?(?:uri\s*\(\s*)?(?P<q>[\"'])(?P<url>[^\"'\n]+)(?P=q)"
)
_MAVEN_URL_RE = re.compile(
    r"\b(?:url|setUrl)\s*(?:=\s*)?\(?\s*(?:uri\s*\(\s*)?(?P<q>[\"'])(?P<url>[^\"'\n]+)(?P=q)"
)
_RULE_RE = re.compile(
    r"\b(?P<mode>include|exclude)"
    r"(?P<kind>GroupAndSubgroups|GroupByRegex|Group|ModuleByRegex|Module|VersionByRegex|Version)"
    r"\b\s*\(?(?P<args>[^\n)]*)"
)
_ARG_RE = re.compile(r"([\"'])(.*?)\1")
# suffix -> (matcher, number of string arguments)
_RULE_KINDS = {
    "Group": ("exact", 1),
    "GroupByRegex": ("regex", 1),
    "GroupAndSubgroups": ("subgroup", 1),
    "Module": ("exact", 2),
    "ModuleByRegex": ("regex", 2),
    "Version": ("exact", 3),
    "VersionByRegex": ("regex", 3),
}
_ROOT_PREFIXES = ("${rootDir}/", "$rootDir/", "${rootProject.projectDir}/", "$rootProject.projectDir/")
_PROJECT_PREFIXES = ("${projectDir}/", "$projectDir/")


# ── content filters ──────────────────────────────────────────────────────


def parse_content_rules(body: str) -> list[ContentDescriptorSpec]:
    rules: list[ContentDescriptorSpec] = []
    for m in _RULE_RE.finditer(body):
        matcher, arity = _RULE_KINDS[m.group("kind")]
        args = [value for _, value in _ARG_RE.findall(m.group("args"))]
        if len(args) < arity:
            continue
        rules.append(
            ContentDescriptorSpec(
                mode=m.group("mode"),  # type: ignore[arg-type]
                matcher=matcher,  # type: ignore[arg-type]
                group_id=args[0],
                artifact_id=args[1] if arity >= 2 else None,
                version=args[2] if arity >= 3 else None,
            )
        )
    return rules


def _content_in(text: str, start: int, end: int) -> list[ContentDescriptorSpec]:
    rules: list[ContentDescriptorSpec] = []
    for body_start, body_end in iter_blocks(text, "content", start, end):
        rules.extend(parse_content_rules(text[body_start:body_end]))
    return rules


# ── repositories ─────────────────────────────────────────────────────────


def _resolve_url(quote: str, raw: str, variables: dict[str, VariableData]) -> str | None:
    if quote != '"':
        return raw
    url, _ = interpolate(raw, variables)
    return url


def _trailing_block(text: str, pos: int, end: int) -> tuple[int, int] | None:
    m = re.compile(r"\s*\{").match(text, pos, end)
    if m is None:
        return None
    return m.end(), find_block_end(text, m.end() - 1)


def _parse_repositories(
    text: str,
    start: int,
    end: int,
    scope: RegistryScope,
    variables: dict[str, VariableData],
) -> list[PackageRegistry]:
    registries: list[PackageRegistry] = []
    pos = start
    while True:
        m = _REPO_RE.search(text, pos, end)
        if m is None:
            return registries
        kind, opener = m.group("kind"), m.group("open")
        pos = m.end()

        if kind == "exclusiveContent":
            if opener != "{":
                continue
            body_end = find_block_end(text, m.end() - 1)
            targets: list[PackageRegistry] = []
            for fr_start, fr_end in iter_blocks(text, "forRepository", m.end(), body_end):
                targets.extend(_parse_repositories(text, fr_start, fr_end, scope, variables))
            rules: list[ContentDescriptorSpec] = []
            for f_start, f_end in iter_blocks(text, "filter", m.end(), body_end):
                rules.extend(parse_content_rules(text[f_start:f_end]))
            registries.extend(
                PackageRegistry(
                    registry_url=target.registry_url,
                    scope=scope,
                    registry_type="exclusive",
                    content=rules,
                )
                for target in targets
            )
            pos = body_end + 1
            continue

        url: str | None = None
        block: tuple[int, int] | None = None
        if opener == "(":
            close = text.find(")", m.end(), end)
            close = end if close < 0 else close
            if kind == "maven":
                arg = _MAVEN_ARG_RE.match(text, m.end() - 1, close + 1)
                if arg is not None:
                    url = _resolve_url(arg.group("q"), arg.group("url"), variables)
            block = _trailing_block(text, close + 1, end)
            pos = close + 1
        elif opener == "{":
            block = (m.end(), find_block_end(text, m.end() - 1))

        if kind in _WELL_KNOWN:
            url = _WELL_KNOWN[kind]
        elif block is not None and url is None:
            found = _MAVEN_URL_RE.search(text, block[0], block[1])
            if found is not None:
                url = _resolve_url(found.group("q"), found.group("url"), variables)

        content = _content_in(text, *block) if block else []
        if block is not None:
            pos = block[1] + 1
        if url:
            registries.append(PackageRegistry(registry_url=url, scope=scope, content=content))


def parse_registries(text: str, variables: dict[str, VariableData]) -> list[PackageRegistry]:
    """Collect every repository declared in *text*.

    Repositories under ``pluginManagement`` resolve plugins; all others
    resolve ordinary dependencies.
    """
    plugin_spans = list(iter_blocks(text, "pluginManagement"))
    registries: list[PackageRegistry] = []
    for start, end in iter_blocks(text, "repositories"):
        scope: RegistryScope = (
            "plugin" if any(s <= start < e for s, e in plugin_spans) else "dep"
        )
        registries.extend(_parse_repositories(text, start, end, scope, variables))
    return registries


# ── apply from ───────────────────────────────────────────────────────────


def resolve_apply_path(raw: str, package_file: str) -> str | None:
    if raw.startswith(("http://", "https://")):
        return None
    for prefix in _ROOT_PREFIXES:
        if raw.startswith(prefix):
            return posixpath.normpath(raw[len(prefix):])
    for prefix in _PROJECT_PREFIXES:
        if raw.startswith(prefix):
            raw = raw[len(prefix):]
            break
    if "$" in raw:
        return None
    return posixpath.normpath(posixpath.join(posixpath.dirname(package_file), raw))


# ── script ───────────────────────────────────────────────────────────────


def _bind(
    key: str,
    raw: str,
    quote: str,
    start: int,
    scope: dict[str, VariableData],
    package_file: str,
) -> VariableData | None:
    if quote == '"':
        value, alias = interpolate(raw, scope)
    else:
        value, alias = raw, None
    if value is None:
        return None
    if alias is not None:
        return VariableData(key, value, alias.file_replace_position, alias.package_file)
    return VariableData(key, value, start, package_file)


def _version_from(
    m: re.Match[str],
    quote_group: str,
    value_group: str,
    var_group: str,
    scope: dict[str, VariableData],
    package_file: str,
) -> tuple[str, str, int] | None:
    """Resolve a version given as a literal or an identifier.

    Returns ``(version, package_file, position)``.
    """
    if m.group(var_group):
        var = lookup_variable(m.group(var_group), scope)
        if var is None:
            return None
        return var.value, var.package_file, var.file_replace_position
    var = _bind("", m.group(value_group), m.group(quote_group), m.start(value_group), scope, package_file)
    if var is None:
        return None
    return var.value, var.package_file, var.file_replace_position


def parse_gradle(
    content: str,
    variables: dict[str, VariableData],
    package_file: str,
    file_contents: dict[str, str | None],
    _applied: frozenset[str] = frozenset(),
) -> ParseResult:
    """Extract deps, variables and repositories from one build script.

    *variables* are the bindings visible from the script's directory;
    ``apply from`` targets are parsed with the bindings accumulated so far
    and their findings are merged into this result.
    """
    result = ParseResult()
    text = blank_comments(content)
    scope = dict(variables)
    applied = _applied | {package_file}

    for m in _TOKEN_RE.finditer(text):
        if m.group("apply"):
            target = resolve_apply_path(m.group("apath"), package_file)
            sub_content = file_contents.get(target) if target else None
            if target is None or sub_content is None or target in applied:
                log.debug("gradle.apply_from_skipped", package_file=package_file, target=m.group("apath"))
                continue
            sub = parse_gradle(sub_content, scope, target, file_contents, applied)
            result.deps.extend(sub.deps)
            result.registries.extend(sub.registries)
            result.vars.update(sub.vars)
            scope.update(sub.vars)
        elif m.group("map"):
            version = _version_from(m, "mvq", "mversion", "mvar", scope, package_file)
            if version is not None:
                value, owner, position = version
                result.deps.append(
                    make_dep(f"{m.group('mgroup')}:{m.group('mname')}", value, owner, position)
                )
        elif m.group("plugin"):
            version = _version_from(m, "pvq", "pversion", "pvar", scope, package_file)
            plugin_id = m.group("pid") or f"org.jetbrains.kotlin.{m.group('pkotlin')}"
            if version is not None:
                value, owner, position = version
                result.deps.append(plugin_dep(plugin_id, value, owner, position))
        elif m.group("literal") is not None:
            if m.group("lq") == '"':
                dep = coordinate_dep(m.group("literal"), m.start("literal"), package_file, scope)
            else:
                dep = coordinate_dep(
                    m.group("literal"), m.start("literal"), package_file, scope, interpolate_refs=False
                )
            if dep is not None:
                result.deps.append(dep)
        else:
            prefix = "b" if m.group("byextra") else "i" if m.group("indexed") else "a"
            key, raw = m.group(f"{prefix}key"), m.group(f"{prefix}value")
            quote, start = m.group(f"{prefix}q"), m.start(f"{prefix}value")
            dep = coordinate_dep(raw, start, package_file, scope, interpolate_refs=quote == '"')
            if dep is not None:
                result.deps.append(dep)
            var = _bind(key, raw, quote, start, scope, package_file)
            if var is not None:
                scope[key] = result.vars[key] = var

    result.registries = parse_registries(text, scope) + result.registries
    return result

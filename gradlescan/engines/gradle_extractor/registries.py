"""Registry catalog: declared repositories and per-dependency URL resolution."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from gradlescan.engines.gradle_extractor.content import matches_content_descriptor
from gradlescan.engines.gradle_extractor.models import (
    PackageDependency,
    PackageRegistry,
    RegistryUrls,
)


class RegistryCatalog:
    """Ordered set of :class:`PackageRegistry`, unique by (url, scope).

    Re-declaring a known (url, scope) pair is a no-op; the first
    declaration's content rules and type are kept.
    """

    def __init__(self, registries: Iterable[PackageRegistry] = ()) -> None:
        self._registries: list[PackageRegistry] = []
        self.add(registries)

    def add(self, registries: Iterable[PackageRegistry]) -> None:
        for registry in registries:
            known = any(
                item.registry_url == registry.registry_url and item.scope == registry.scope
                for item in self._registries
            )
            if not known:
                self._registries.append(registry)

    def __iter__(self) -> Iterator[PackageRegistry]:
        return iter(self._registries)

    def __len__(self) -> int:
        return len(self._registries)


def get_registry_urls_for_dep(
    catalog: Iterable[PackageRegistry],
    dep: PackageDependency,
) -> list[str]:
    """Resolve the candidate registry URLs for *dep*.

    Exclusive registries that match shadow every other match. A plugin
    with no matching registry falls back to the Gradle Plugin Portal.
    """
    scope = "plugin" if dep.dep_type == "plugin" else "dep"

    matching = [
        item
        for item in catalog
        if item.scope == scope and matches_content_descriptor(dep, item.content)
    ]
    exclusive = [item for item in matching if item.registry_type == "exclusive"]

    registry_urls = [item.registry_url for item in (exclusive or matching)]
    if not registry_urls and scope == "plugin":
        registry_urls.append(RegistryUrls.gradle_plugin_portal)

    return list(dict.fromkeys(registry_urls))

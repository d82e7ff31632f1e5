#!/usr/bin/env python3
"""Standalone Gradle dependency extraction.

Usage:
    python scan_gradle.py /path/to/repo
    python scan_gradle.py .                    # scan current directory
    python scan_gradle.py /path/to/repo --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path

from gradlescan.core.config import ExtractConfig
from gradlescan.core.logging import setup_logging
from gradlescan.engines.gradle_extractor.discovery import discover_package_files
from gradlescan.engines.gradle_extractor.extractor import extract_all_package_files
from gradlescan.engines.gradle_extractor.models import PackageFile


def _print_package_files(package_files: list[PackageFile] | None, as_json: bool) -> None:
    if not package_files:
        print("No dependencies found.")
        return

    if as_json:
        print(json.dumps([asdict(p) for p in package_files], indent=2))
        return

    total = sum(len(p.deps) for p in package_files)
    print(f"Found {total} dependencies in {len(package_files)} file(s)\n")

    for pkg in package_files:
        if not pkg.deps:
            continue
        print(f"  {pkg.package_file}")
        for d in pkg.deps:
            version = d.current_value or ""
            urls = f"  -> {', '.join(d.registry_urls)}" if d.registry_urls else ""
            print(f"    {d.dep_name} {version} [{d.dep_type}]{urls}")
        print()


def main() -> None:
    parser = argparse.ArgumentParser(description="Extract Gradle dependencies from a checkout")
    parser.add_argument("target", help="Local path of the project to scan")
    parser.add_argument("--json", action="store_true", dest="as_json", help="Output as JSON")
    args = parser.parse_args()

    setup_logging()

    repo = Path(args.target).resolve()
    if not repo.is_dir():
        print(f"Error: {repo} is not a directory", file=sys.stderr)
        sys.exit(1)

    config = ExtractConfig.from_env(repo)
    package_files = discover_package_files(repo)
    result = asyncio.run(extract_all_package_files(config, package_files))
    _print_package_files(result, args.as_json)


if __name__ == "__main__":
    main()

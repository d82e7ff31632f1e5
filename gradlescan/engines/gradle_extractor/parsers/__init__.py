"""Sub-format parsers: each is a pure function from file text to a ParseResult."""

from gradlescan.engines.gradle_extractor.parsers.catalog import parse_catalog_file
from gradlescan.engines.gradle_extractor.parsers.consistent_versions import parse_gcv_file
from gradlescan.engines.gradle_extractor.parsers.groovy import parse_gradle
from gradlescan.engines.gradle_extractor.parsers.kotlin import parse_kotlin_source
from gradlescan.engines.gradle_extractor.parsers.properties import parse_props

__all__ = [
    "parse_catalog_file",
    "parse_gcv_file",
    "parse_gradle",
    "parse_kotlin_source",
    "parse_props",
]

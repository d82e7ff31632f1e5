"""gradlescan: Gradle dependency extraction and registry resolution."""

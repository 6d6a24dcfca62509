"""Command-line entrypoints, one per pipeline stage."""

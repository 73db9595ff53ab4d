"""Command-line interface for retention-core."""

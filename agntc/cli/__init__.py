"""Command-line interface for agntc."""

"""Command-line interface for Slit."""

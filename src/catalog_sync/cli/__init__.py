"""Command-line interface for catalog-sync."""

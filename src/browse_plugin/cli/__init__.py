"""Command line interface for browse-plugin."""

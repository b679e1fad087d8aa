"""Command line interface for apislice."""

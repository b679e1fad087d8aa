"""Data models for apislice."""

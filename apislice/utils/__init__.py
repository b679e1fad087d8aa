"""Shared utilities for apislice."""

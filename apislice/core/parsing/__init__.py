"""Document loading and serialization."""

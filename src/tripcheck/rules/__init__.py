"""Packaged version-specific constraint documents (JSON Schema)."""

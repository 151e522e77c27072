"""Domain layer — step types, finding reports, and per-section rules.

This layer depends only on stdlib, pydantic, and jsonschema.
It must never import from services, infrastructure, commands, or config.
"""

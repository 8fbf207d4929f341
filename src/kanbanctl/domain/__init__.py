"""Domain layer: entities, invariants, ordering, and queries.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""

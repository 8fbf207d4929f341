"""Infrastructure layer: database, repositories, filesystem, workspace.

This layer depends on stdlib, third-party libs (SQLAlchemy, structlog),
and the domain layer's models and errors.
It must never import from services, commands, or output.
"""

"""Infrastructure layer — state persistence and rule-document loading.

This layer depends on stdlib and third-party libs (SQLAlchemy, pluggy).
It must never import from services, commands, or output.
The service layer bridges between domain rules and infrastructure.
"""

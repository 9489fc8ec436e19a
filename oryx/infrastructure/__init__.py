"""Infrastructure layer - adapters implementing domain protocols.

Structure:
- logging/: structlog console logger
- persistence/: Collection data layer (SQLAlchemy adapter)

The infrastructure layer depends on the domain layer (implements protocols)
but the domain layer does NOT depend on infrastructure.
"""

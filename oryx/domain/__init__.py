"""Domain layer - framework-free contracts.

Structure:
- protocols/: Ports implemented by infrastructure adapters (logging, storage)

The domain layer has NO dependencies on FastAPI or SQLAlchemy.
"""

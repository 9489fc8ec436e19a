"""Test suite for Oryx.

Test structure:
- unit/: Unit tests - modules in isolation, mocked collaborators
- integration/: Integration tests - real SQL database (aiosqlite)
- api/: API tests - full HTTP cycle through FastAPI TestClient
- resources/: Application trees used as discovery fixtures
"""

"""
GalKing Test Suite

Test Structure:
    tests/
    ├── conftest.py          # Shared fixtures and configuration
    ├── fakes.py             # In-memory repository, content lookup and clock
    ├── unit/                # Service and scoring tests against the fakes
    └── integration/         # SQL repositories and HTTP API on SQLite

Running Tests:
    # Run all tests
    pytest backend/tests/ -v

    # Run only unit tests
    pytest backend/tests/unit/ -v

    # Run only integration tests
    pytest backend/tests/integration/ -v
"""

"""
DoseTrack Test Suite
====================

Test Structure:
- test_tools/: Schedule generation, classification and aggregation
- test_services/: Store, recorder and service tests against SQLite
- test_api/: API endpoint tests for FastAPI routes
- conftest.py: Shared pytest fixtures

Running Tests:
    # Run all tests
    pytest

    # Run specific test module
    pytest tests/test_api/

    # Skip the threaded store tests
    pytest -m "not slow"
"""

from datetime import datetime, timezone

# Reference instant for clock-dependent tests: Sunday 2024-03-10 09:30 UTC
NOW = datetime(2024, 3, 10, 9, 30, tzinfo=timezone.utc)
TODAY = NOW.date()

__all__ = [
    "NOW",
    "TODAY",
]

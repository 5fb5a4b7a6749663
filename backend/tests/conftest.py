"""Root conftest — shared test configuration."""

import os

# Ensure tests never talk to a real database or use a real signing key
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("LOG_FORMAT", "text")

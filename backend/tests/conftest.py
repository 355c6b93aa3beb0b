"""Root conftest: shared test configuration."""

import os

# Ensure tests never reach the real providers or a real database
os.environ.setdefault("ELEVENLABS_API_KEY", "")
os.environ.setdefault("ELEVENLABS_AGENT_ID", "")
os.environ.setdefault("UNSPLASH_ACCESS_KEY", "")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("LOG_FORMAT", "text")

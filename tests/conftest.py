"""Root conftest — shared test configuration."""

import os

# Tests never touch a real database or the hosted embed
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("AUDIT_TOOL_CALLS", "false")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("EMBED_ORIGIN", "https://chat.usable.dev")

"""Shared fixtures."""

import pytest

from tests.fakes import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    from grancamino.core.config import Settings
    return Settings(
        _env_file=None,
        GOOGLE_DRIVE_FOLDER_ID="folder-1",
        SUPABASE_URL="https://example.supabase.co",
        SUPABASE_ANON_KEY="anon",
        ANTHROPIC_API_KEY="",
        FILE_DECODE_TIMEOUT_SECONDS=2.0,
        CONTEXT_TIMEOUT_SECONDS=5.0,
        LLM_TIMEOUT_SECONDS=2.0,
    )

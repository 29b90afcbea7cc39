import os

# Settings are read at import time; keep tests off any real project and bypass flags.
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ["DEV_BYPASS"] = "false"
os.environ["ADMIN_BYPASS"] = "false"

import pytest

from app.config.settings import Settings
from app.modules.auth.service import clear_auth_cache
from app.modules.rbac.schemas import RequestContext
from tests.fakes import FakeSupabase


@pytest.fixture
def supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def ctx() -> RequestContext:
    return RequestContext(user_id="user-1", tenant_id="tenant-1")


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, environment="development", dev_bypass=False, admin_bypass=False)


@pytest.fixture(autouse=True)
def _reset_auth_cache():
    clear_auth_cache()
    yield
    clear_auth_cache()

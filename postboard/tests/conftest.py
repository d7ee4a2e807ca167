"""Shared fixtures for postboard tests."""

import pytest
from httpx import ASGITransport, AsyncClient


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Reset all module-level singletons and caches between tests."""
    yield

    # 1. Settings LRU cache
    from postboard.config import get_settings

    get_settings.cache_clear()

    # 2. HTTP client singleton
    import postboard.services.http_client as http_mod

    http_mod._client = None

    # 3. Health check cache
    import postboard.main as main_mod

    main_mod._health_cache = None


@pytest.fixture
def database_url(tmp_path):
    """A file-backed SQLite URL, so every pooled connection sees one database."""
    return f"sqlite+aiosqlite:///{tmp_path / 'postboard-test.db'}"


@pytest.fixture
def mock_settings(monkeypatch, database_url):
    """Provide a Settings object with safe test defaults."""
    from postboard.config import Settings, get_settings

    test_settings = Settings(
        database_url=database_url,
        create_schema_on_startup=True,
        avatar_reject_error_status=False,
    )

    get_settings.cache_clear()
    monkeypatch.setattr("postboard.config.get_settings", lambda: test_settings)

    # Modules that did ``from postboard.config import get_settings`` hold
    # their own binding
    for mod_path in [
        "postboard.main",
        "postboard.services.avatar",
    ]:
        monkeypatch.setattr(f"{mod_path}.get_settings", lambda: test_settings)

    return test_settings


@pytest.fixture
async def store(database_url):
    """A PostStore on a fresh database with the schema in place."""
    from postboard.services.post_store import PostStore, create_engine

    post_store = PostStore(create_engine(database_url))
    await post_store.create_schema()
    yield post_store
    await post_store.dispose()


@pytest.fixture
async def app_client(mock_settings):
    """An HTTP client bound to the app, with the lifespan running."""
    from postboard.main import app

    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as client:
            yield client

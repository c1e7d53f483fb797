from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from birdscope.config import ConfigManager
from birdscope.config.models import BackendConfig, BirdScopeConfig
from birdscope.remote.rest import RestClient
from birdscope.remote.session import SessionContext, UserSession
from birdscope.storage.key_value import MemoryKeyValueStore
from birdscope.system.path_resolver import PathResolver

TEST_BASE_URL = "https://backend.test"
TEST_API_KEY = "test-anon-key"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def path_resolver(tmp_path: Path) -> PathResolver:
    """Provide a PathResolver whose writable paths all live in a temp directory.

    Overrides both the attribute and the methods, since some callers read
    ``data_dir`` directly.
    """
    resolver = PathResolver()

    temp_config_dir = tmp_path / "config"
    temp_config_dir.mkdir(parents=True)
    temp_data_dir = tmp_path / "data"
    temp_data_dir.mkdir(parents=True)

    resolver.data_dir = temp_data_dir
    resolver.get_data_dir = lambda: temp_data_dir
    resolver.get_birdscope_config_path = lambda: temp_config_dir / "birdscope.yaml"
    resolver.get_storage_path = lambda: temp_data_dir / "storage" / "birdscope.db"

    return resolver


@pytest.fixture
def test_config(path_resolver: PathResolver) -> BirdScopeConfig:
    """Should load a default configuration from the temp config location."""
    manager = ConfigManager(path_resolver)
    return manager.load()


@pytest.fixture
def backend_config() -> BackendConfig:
    """Backend settings pointing at a host served by MockTransport."""
    return BackendConfig(base_url=TEST_BASE_URL, api_key=TEST_API_KEY)


@pytest.fixture
def session_context() -> SessionContext:
    """Session context signed in as a regular (non-subscriber) user."""
    return SessionContext(UserSession(user_id="user-123", access_token="user-token"))


@pytest.fixture
def anonymous_session() -> SessionContext:
    """Session context with nobody signed in."""
    return SessionContext()


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    """Empty in-memory key-value store."""
    return MemoryKeyValueStore()


@pytest.fixture
def rest_factory(backend_config: BackendConfig, session_context: SessionContext):
    """Create RestClient instances whose HTTP traffic goes to a handler function.

    Example usage:
        def handler(request):
            return httpx.Response(200, json={"ok": True})

        rest = rest_factory(handler)
    """

    def _create(handler: Handler, session: SessionContext | None = None) -> RestClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return RestClient(backend_config, session or session_context, client=client)

    return _create

"""Tests for the dependency injection container."""

import pytest
from dependency_injector import providers

from birdscope.config.models import BackendConfig, BirdScopeConfig, MediaConfig, UsageConfig
from birdscope.core.container import Container
from birdscope.feedback.client import FeedbackClient
from birdscope.identification.client import IdentificationClient
from birdscope.media.client import MediaCacheClient
from birdscope.storage.sqlite import SQLiteKeyValueStore


@pytest.fixture
def container(path_resolver):
    """Container wired to a temp data directory and a custom config."""
    container = Container()
    container.path_resolver.override(providers.Object(path_resolver))
    container.config.override(
        providers.Object(
            BirdScopeConfig(
                backend=BackendConfig(base_url="https://backend.test", api_key="k"),
                media=MediaConfig(max_retries=4),
                usage=UsageConfig(free_identification_limit=3),
            )
        )
    )
    return container


class TestContainer:
    """Test provider wiring."""

    def test_shared_clients_are_singletons(self, container):
        """Should hand out one instance of each stateful client."""
        assert container.media_client() is container.media_client()
        assert container.usage_counter() is container.usage_counter()
        assert container.history_store() is container.history_store()
        assert container.onboarding_state() is container.onboarding_state()
        assert container.session_context() is container.session_context()

    def test_per_request_clients_are_factories(self, container):
        """Should build a new identification and feedback client each time."""
        assert isinstance(container.identification_client(), IdentificationClient)
        assert container.identification_client() is not container.identification_client()
        assert isinstance(container.feedback_client(), FeedbackClient)
        assert container.feedback_client() is not container.feedback_client()

    def test_clients_share_session_and_http_pool(self, container):
        """Should wire one session context and HTTP client through every remote client."""
        rest = container.rest_client()

        assert rest.session_context is container.session_context()
        assert rest.client is container.http_client()
        assert container.identification_client().rest is rest
        assert container.search_client().client is container.http_client()

    def test_config_flows_into_clients(self, container, path_resolver):
        """Should configure clients from the loaded configuration."""
        media = container.media_client()

        assert isinstance(media, MediaCacheClient)
        assert media.max_retries == 4
        assert container.usage_counter().limit == 3
        assert container.rest_client().base_url == "https://backend.test"

        store = container.key_value_store()
        assert isinstance(store, SQLiteKeyValueStore)
        assert store.db_path == path_resolver.get_storage_path()

    def test_default_config_loads_from_path_resolver(self, path_resolver):
        """Should load configuration through the path resolver when not overridden."""
        container = Container()
        container.path_resolver.override(providers.Object(path_resolver))

        config = container.config()

        assert isinstance(config, BirdScopeConfig)
        assert path_resolver.get_birdscope_config_path().exists()

"""Dependency injection container for the BirdScope client."""

from dependency_injector import containers, providers

from birdscope.config import get_config
from birdscope.feedback.client import FeedbackClient
from birdscope.history.onboarding import OnboardingState
from birdscope.history.store import SearchHistoryStore
from birdscope.identification.client import IdentificationClient
from birdscope.media.client import MediaCacheClient
from birdscope.remote.rest import RestClient, create_http_client
from birdscope.remote.session import SessionContext
from birdscope.search.inaturalist import BirdSearchClient
from birdscope.storage.sqlite import SQLiteKeyValueStore
from birdscope.system.path_resolver import PathResolver
from birdscope.usage.counter import RestUsageBackend, UsageCounter


class Container(containers.DeclarativeContainer):
    """Client dependency injection container.

    Clients that hold state shared across the process (session, HTTP pool,
    media cache, usage count, history lock, onboarding listeners) are
    singletons. Clients whose state is per call are factories.
    """

    # Core infrastructure - singletons
    path_resolver = providers.Singleton(PathResolver)

    config = providers.Singleton(
        get_config,
        path_resolver=path_resolver,
    )

    session_context = providers.Singleton(SessionContext)

    http_client = providers.Singleton(
        create_http_client,
        backend=config.provided.backend,
    )

    rest_client = providers.Singleton(
        RestClient,
        backend=config.provided.backend,
        session_context=session_context,
        client=http_client,
    )

    # Local state
    storage_path = providers.Factory(
        lambda resolver: resolver.get_storage_path(),
        resolver=path_resolver,
    )

    key_value_store = providers.Singleton(
        SQLiteKeyValueStore,
        db_path=storage_path,
    )

    history_store = providers.Singleton(
        SearchHistoryStore,
        storage=key_value_store,
        max_entries=config.provided.history.max_entries,
        key=config.provided.history.storage_key,
    )

    onboarding_state = providers.Singleton(
        OnboardingState,
        storage=key_value_store,
        key=config.provided.history.onboarding_key,
    )

    # Remote services
    media_client = providers.Singleton(
        MediaCacheClient.from_config,
        rest=rest_client,
        config=config.provided.media,
    )

    usage_backend = providers.Singleton(
        RestUsageBackend,
        rest=rest_client,
        config=config.provided.usage,
    )

    usage_counter = providers.Singleton(
        UsageCounter,
        backend=usage_backend,
        session_context=session_context,
        limit=config.provided.usage.free_identification_limit,
    )

    search_client = providers.Singleton(
        BirdSearchClient,
        client=http_client,
        config=config.provided.search,
    )

    # Per-request clients - factories
    identification_client = providers.Factory(
        IdentificationClient,
        rest=rest_client,
        config=config.provided.identification,
    )

    feedback_client = providers.Factory(
        FeedbackClient,
        rest=rest_client,
        session_context=session_context,
        config=config.provided.feedback,
    )

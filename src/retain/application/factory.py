"""
Engine Factory
Centralizes the logic for wiring a SchedulingEngine from configuration.
"""

from retain.application.config import EngineConfig
from retain.application.engine import SchedulingEngine
from retain.domain.ports import ResultCache, ReviewStateStore
from retain.infrastructure.adapters import YamlReviewStateStore
from retain.infrastructure.cache import NullResultCache, TTLResultCache


def get_result_cache(config: EngineConfig) -> ResultCache:
    """
    Returns the ResultCache implementation selected by config.
    """
    if not config.cache_enabled:
        return NullResultCache()
    return TTLResultCache(
        ttl_seconds=config.cache_ttl_seconds,
        max_entries=config.cache_max_entries,
    )


def get_store(config: EngineConfig) -> ReviewStateStore:
    """
    Returns the file-backed store at config.store_path.
    """
    return YamlReviewStateStore(config.store_path, timeout=config.store_timeout)


def build_engine(config: EngineConfig, store: ReviewStateStore | None = None) -> SchedulingEngine:
    """
    Returns an engine over ``store``, or over the configured YAML store if none is given.
    """
    return SchedulingEngine(
        store=store if store is not None else get_store(config),
        cache=get_result_cache(config),
        config=config,
    )

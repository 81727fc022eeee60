# Infrastructure Store Adapters Package
from .memory_store import InMemoryReviewStateStore
from .yaml_store import YamlReviewStateStore

__all__ = ["InMemoryReviewStateStore", "YamlReviewStateStore"]

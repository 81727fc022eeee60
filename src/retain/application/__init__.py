# Application Package
from .batch import BatchProcessor
from .config import EngineConfig, resolve_config
from .engine import SchedulingEngine

__all__ = ["BatchProcessor", "EngineConfig", "SchedulingEngine", "resolve_config"]

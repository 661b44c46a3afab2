"""Engine components orchestrating fetch → parse → dedup → evaluate."""

from .artifacts import ArtifactStore
from .dedup import composite_key, filter_new
from .fetch import FetchOrchestrator, discover_tasks
from .normalize import normalize
from .parsers import ParserRegistry, RawRecordParser, default_registry
from .thread_pool import ThreadPoolManager

__all__ = [
    "ArtifactStore",
    "FetchOrchestrator",
    "ParserRegistry",
    "RawRecordParser",
    "ThreadPoolManager",
    "composite_key",
    "default_registry",
    "discover_tasks",
    "filter_new",
    "normalize",
]

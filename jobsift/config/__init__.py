"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    Credentials,
    EvaluationConfig,
    GlobalConfig,
    RecordStoreConfig,
    RecordStoreKind,
    SourceConfig,
    default_sources,
)

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "Credentials",
    "EvaluationConfig",
    "GlobalConfig",
    "RecordStoreConfig",
    "RecordStoreKind",
    "SourceConfig",
    "default_sources",
]

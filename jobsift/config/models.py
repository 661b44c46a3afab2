"""Pydantic models used across the jobsift configuration flow."""

from __future__ import annotations

import os
import re
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from ..errors import ConfigurationError

_ACTOR_ID_PATTERN = re.compile(r"^[A-Za-z0-9]+$")


class RecordStoreKind(str, Enum):
    """Supported flat record store backends."""

    CSV = "csv"
    SQLITE = "sqlite"


class SourceConfig(BaseModel):
    """A remote scraping actor and the parser projecting its items."""

    actor_id: str
    name: str
    parser: str | None = Field(
        default=None,
        description="Parser registry key; defaults to the actor name.",
    )
    enabled: bool = True

    @field_validator("actor_id")
    @classmethod
    def _validate_actor_id(cls, value: str) -> str:
        value = value.strip()
        if not _ACTOR_ID_PATTERN.match(value):
            raise ValueError(f"Malformed actor id: {value!r}")
        return value

    @property
    def parser_key(self) -> str:
        return self.parser or self.name


def default_sources() -> list[SourceConfig]:
    return [
        SourceConfig(actor_id="vQO5g45mnm8jwognj", name="memo23/apify-ziprecruiter-scraper"),
        SourceConfig(actor_id="qA8rz8tR61HdkfTBL", name="curious_coder/indeed-scraper"),
    ]


class RecordStoreConfig(BaseModel):
    """Where ranked rows are appended."""

    kind: RecordStoreKind = RecordStoreKind.CSV
    path: Path = Field(default=Path("data/outputs/jobs.csv"))

    @field_validator("path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    def resolved_path(self, base_dir: Path) -> Path:
        if not self.path.is_absolute():
            return (base_dir / self.path).resolve()
        return self.path


class EvaluationConfig(BaseModel):
    """Bulk inference and polling parameters (intervals in seconds)."""

    model: str = "gpt-4o-mini"
    completion_window: str = "24h"
    poll_initial_interval: float = 1.0
    poll_multiplier: float = 1.2
    poll_max_interval: float = 600.0
    deadline_hours: float = 24.0

    @model_validator(mode="after")
    def _validate_polling(self) -> "EvaluationConfig":
        if self.poll_initial_interval <= 0:
            raise ValueError("poll_initial_interval must be > 0")
        if self.poll_multiplier < 1:
            raise ValueError("poll_multiplier must be >= 1")
        if self.poll_max_interval < self.poll_initial_interval:
            raise ValueError("poll_max_interval must be >= poll_initial_interval")
        if self.deadline_hours <= 0:
            raise ValueError("deadline_hours must be > 0")
        return self

    @property
    def deadline_seconds(self) -> float:
        return self.deadline_hours * 3600


class GlobalConfig(BaseModel):
    """Controls shared by every pipeline run."""

    sources: list[SourceConfig] = Field(default_factory=default_sources)
    fetch_concurrency: int = 7
    inputs_dir: Path = Field(default=Path("data/inputs"))
    artifacts_dir: Path = Field(default=Path("data/artifacts"))
    candidate_summary_path: Path = Field(default=Path("candidate_summary.txt"))
    record_store: RecordStoreConfig = Field(default_factory=RecordStoreConfig)
    write_chunk_size: int = 1000
    write_chunk_delay: float = 1.0
    evaluation: EvaluationConfig = Field(default_factory=EvaluationConfig)
    schedule_cron: str = "0 6 * * *"

    @field_validator("inputs_dir", "artifacts_dir", "candidate_summary_path", mode="before")
    @classmethod
    def _coerce_paths(cls, value: Any) -> Path:
        return Path(value)

    @model_validator(mode="after")
    def _validate_limits(self) -> "GlobalConfig":
        if self.fetch_concurrency < 1:
            raise ValueError("fetch_concurrency must be >= 1")
        if self.write_chunk_size < 1:
            raise ValueError("write_chunk_size must be >= 1")
        if self.write_chunk_delay < 0:
            raise ValueError("write_chunk_delay must be >= 0")
        return self

    @property
    def enabled_sources(self) -> list[SourceConfig]:
        return [source for source in self.sources if source.enabled]

    def resolve(self, path: Path, base_dir: Path) -> Path:
        """Return path relative to the project root unless already absolute."""

        if not path.is_absolute():
            return (base_dir / path).resolve()
        return path


class Credentials(BaseModel):
    """API tokens read from the environment."""

    apify_api_key: str = ""
    openai_api_key: str = ""

    @classmethod
    def from_env(cls) -> "Credentials":
        return cls(
            apify_api_key=os.environ.get("APIFY_API_KEY", "").strip(),
            openai_api_key=os.environ.get("OPENAI_API_KEY", "").strip(),
        )

    def require(self, *names: str) -> "Credentials":
        env_names = {
            "apify_api_key": "APIFY_API_KEY",
            "openai_api_key": "OPENAI_API_KEY",
        }
        missing = [env_names[name] for name in names if not getattr(self, name)]
        if missing:
            raise ConfigurationError(
                f"{', '.join(missing)} is not set in the environment variables."
            )
        return self


__all__ = [
    "Credentials",
    "EvaluationConfig",
    "GlobalConfig",
    "RecordStoreConfig",
    "RecordStoreKind",
    "SourceConfig",
    "default_sources",
]

"""Configuration loading helpers for jobsift."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .models import Credentials, GlobalConfig

GLOBAL_CONFIG_FILENAME = "global_config.yaml"
RESUME_PLACEHOLDER = "[your resume]"


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    data_dir: Path | None = None
    inputs_dir: Path | None = None
    outputs_dir: Path | None = None
    artifacts_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get("JOBSIFT_HOME")
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path(__file__).resolve().parents[2]).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.inputs_dir = (self.data_dir / "inputs").resolve()
        self.outputs_dir = (self.data_dir / "outputs").resolve()
        self.artifacts_dir = (self.data_dir / "artifacts").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (
            self.data_dir,
            self.inputs_dir,
            self.outputs_dir,
            self.artifacts_dir,
            self.logs_dir,
        ):
            directory.mkdir(parents=True, exist_ok=True)

    def global_config_path(self) -> Path:
        return self.data_dir / GLOBAL_CONFIG_FILENAME

    def env_path(self) -> Path:
        return self.project_root / ".env"


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._global_cache: GlobalConfig | None = None

    # ------------------------------------------------------------------
    # Global configuration helpers
    # ------------------------------------------------------------------
    def load_global_config(self) -> GlobalConfig:
        if self._global_cache is not None:
            return self._global_cache
        path = self.locator.global_config_path()
        if path.exists():
            payload = _read_file(path)
            try:
                global_cfg = GlobalConfig.model_validate(payload)
            except ValidationError as exc:
                raise ConfigurationError(f"Invalid configuration in {path}: {exc}") from exc
        else:
            global_cfg = GlobalConfig()
            self.save_global_config(global_cfg)
        self._global_cache = global_cfg
        return global_cfg

    def save_global_config(self, config: GlobalConfig) -> None:
        path = self.locator.global_config_path()
        payload = config.model_dump(mode="json")
        _write_file(path, payload)
        self._global_cache = config

    # ------------------------------------------------------------------
    # Run inputs
    # ------------------------------------------------------------------
    def resolve(self, path: Path) -> Path:
        return self.load_global_config().resolve(path, self.locator.project_root)

    def inputs_dir(self) -> Path:
        return self.resolve(self.load_global_config().inputs_dir)

    def artifacts_dir(self) -> Path:
        return self.resolve(self.load_global_config().artifacts_dir)

    def record_store_path(self) -> Path:
        config = self.load_global_config()
        return config.record_store.resolved_path(self.locator.project_root)

    def load_candidate_summary(self) -> str:
        path = self.resolve(self.load_global_config().candidate_summary_path)
        if not path.exists():
            raise ConfigurationError(f"Candidate summary not found: {path}")
        summary = path.read_text(encoding="utf-8").strip()
        if not summary or RESUME_PLACEHOLDER in summary:
            raise ConfigurationError("Candidate summary is empty")
        return summary

    def load_credentials(self) -> Credentials:
        env_path = self.locator.env_path()
        if env_path.exists():
            load_dotenv(env_path, override=False)
        return Credentials.from_env()


__all__ = ["ConfigLocator", "ConfigRepository", "GLOBAL_CONFIG_FILENAME", "RESUME_PLACEHOLDER"]

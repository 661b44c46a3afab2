from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from jobsift.config import EvaluationConfig, GlobalConfig, SourceConfig


def test_source_config_parser_key_defaults_to_name() -> None:
    source = SourceConfig(actor_id="abc123", name="memo23/apify-ziprecruiter-scraper")
    assert source.parser_key == "memo23/apify-ziprecruiter-scraper"
    assert SourceConfig(actor_id="abc123", name="x", parser="zip").parser_key == "zip"


@pytest.mark.parametrize("actor_id", ["", "abc/def", "abc def", "../etc"])
def test_source_config_rejects_malformed_actor_ids(actor_id: str) -> None:
    with pytest.raises(ValidationError):
        SourceConfig(actor_id=actor_id, name="x")


def test_global_config_enabled_sources_and_resolve(tmp_path: Path) -> None:
    config = GlobalConfig(
        sources=[
            SourceConfig(actor_id="a1", name="one"),
            SourceConfig(actor_id="b2", name="two", enabled=False),
        ]
    )
    assert [source.name for source in config.enabled_sources] == ["one"]
    assert config.resolve(Path("data/inputs"), tmp_path) == (tmp_path / "data" / "inputs").resolve()
    assert config.resolve(tmp_path, Path("/elsewhere")) == tmp_path


@pytest.mark.parametrize(
    "overrides",
    [{"fetch_concurrency": 0}, {"write_chunk_size": 0}, {"write_chunk_delay": -1}],
)
def test_global_config_limits(overrides) -> None:
    with pytest.raises(ValidationError):
        GlobalConfig(**overrides)


def test_evaluation_config_deadline_seconds() -> None:
    assert EvaluationConfig().deadline_seconds == 24 * 3600
    with pytest.raises(ValidationError):
        EvaluationConfig(poll_initial_interval=10, poll_max_interval=5)

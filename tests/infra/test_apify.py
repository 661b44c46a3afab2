from __future__ import annotations

import json

import httpx
import pytest

from jobsift.errors import ScrapeTaskError
from jobsift.infra.apify import ApifyScrapeClient, actor_path


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler), base_url="https://api.apify.com")


def test_actor_path_replaces_slash() -> None:
    assert actor_path("memo23/apify-ziprecruiter-scraper") == "memo23~apify-ziprecruiter-scraper"
    assert actor_path("vQO5g45mnm8jwognj") == "vQO5g45mnm8jwognj"


def test_run_scrape_task_polls_until_succeeded() -> None:
    seen: list[tuple[str, str]] = []
    statuses = iter(["RUNNING", "SUCCEEDED"])

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        assert request.headers["Authorization"] == "Bearer token-1"
        if request.method == "POST":
            assert json.loads(request.content) == {"search": "python"}
            return httpx.Response(201, json={"data": {"id": "run-1", "status": "READY"}})
        if request.url.path == "/v2/actor-runs/run-1":
            assert request.url.params["waitForFinish"] == "60"
            return httpx.Response(
                200, json={"data": {"id": "run-1", "status": next(statuses), "defaultDatasetId": "ds-1"}}
            )
        assert request.url.params["clean"] == "true"
        return httpx.Response(200, json=[{"Title": "Cook"}])

    client = ApifyScrapeClient("token-1", client=_client(handler))
    items = client.run_scrape_task("vQO5g45mnm8jwognj", {"search": "python"})

    assert items == [{"Title": "Cook"}]
    assert seen == [
        ("POST", "/v2/acts/vQO5g45mnm8jwognj/runs"),
        ("GET", "/v2/actor-runs/run-1"),
        ("GET", "/v2/actor-runs/run-1"),
        ("GET", "/v2/datasets/ds-1/items"),
    ]


def test_failed_run_raises_scrape_task_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(201, json={"data": {"id": "run-2", "status": "RUNNING"}})
        return httpx.Response(200, json={"data": {"id": "run-2", "status": "FAILED"}})

    client = ApifyScrapeClient("token", client=_client(handler))
    with pytest.raises(ScrapeTaskError, match="FAILED"):
        client.run_scrape_task("abc", {})


def test_http_error_is_wrapped() -> None:
    client = ApifyScrapeClient("bad", client=_client(lambda request: httpx.Response(401, json={"error": {}})))
    with pytest.raises(ScrapeTaskError):
        client.run_scrape_task("abc", {})

"""Apify REST client running one actor per scrape task."""

from __future__ import annotations

import time
from typing import Any, Callable

import httpx
import structlog

from ..errors import ScrapeTaskError

APIFY_BASE_URL = "https://api.apify.com"
_WAIT_FOR_FINISH = 60
_SUCCEEDED = "SUCCEEDED"
_FAILED_STATUSES = {"FAILED", "ABORTED", "TIMED-OUT", "TIMED_OUT"}


def actor_path(actor_id: str) -> str:
    """Actor ids of the form ``user/name`` use ``~`` in URLs."""

    return actor_id.replace("/", "~")


class ApifyScrapeClient:
    """Start an actor run, wait for it and download its dataset items."""

    def __init__(
        self,
        api_token: str,
        *,
        base_url: str = APIFY_BASE_URL,
        client: httpx.Client | None = None,
        max_wait_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self._client = client or httpx.Client(base_url=base_url, timeout=_WAIT_FOR_FINISH + 30)
        self._headers = {"Authorization": f"Bearer {api_token}"}
        self.max_wait_seconds = max_wait_seconds
        self._clock = clock
        self.logger = logger or structlog.get_logger("jobsift").bind(component="apify")

    def close(self) -> None:
        self._client.close()

    def run_scrape_task(self, actor_id: str, payload: dict[str, Any]) -> list[Any]:
        run = self._start_run(actor_id, payload)
        run_id = run["id"]
        self.logger.info("actor_run_started", actor_id=actor_id, run_id=run_id)
        run = self._wait_for_run(actor_id, run)
        dataset_id = run.get("defaultDatasetId")
        if not dataset_id:
            raise ScrapeTaskError(f"Actor run {run_id} has no default dataset")
        items = self._dataset_items(dataset_id)
        self.logger.info("actor_run_items", actor_id=actor_id, run_id=run_id, items=len(items))
        return items

    # ------------------------------------------------------------------
    def _start_run(self, actor_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        response = self._request("POST", f"/v2/acts/{actor_path(actor_id)}/runs", json=payload)
        return self._data(response)

    def _wait_for_run(self, actor_id: str, run: dict[str, Any]) -> dict[str, Any]:
        started = self._clock()
        while True:
            status = run.get("status")
            if status == _SUCCEEDED:
                return run
            if status in _FAILED_STATUSES:
                raise ScrapeTaskError(f"Actor {actor_id} run {run.get('id')} ended with status {status}")
            if self._clock() - started > self.max_wait_seconds:
                raise ScrapeTaskError(f"Actor {actor_id} run {run.get('id')} did not finish in time")
            response = self._request(
                "GET",
                f"/v2/actor-runs/{run['id']}",
                params={"waitForFinish": _WAIT_FOR_FINISH},
            )
            run = self._data(response)

    def _dataset_items(self, dataset_id: str) -> list[Any]:
        response = self._request(
            "GET",
            f"/v2/datasets/{dataset_id}/items",
            params={"clean": "true", "format": "json"},
        )
        items = response.json()
        if not isinstance(items, list):
            raise ScrapeTaskError(f"Dataset {dataset_id} did not return a list of items")
        return items

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, headers=self._headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ScrapeTaskError(f"Apify request failed: {method} {url}: {exc}") from exc
        return response

    @staticmethod
    def _data(response: httpx.Response) -> dict[str, Any]:
        body = response.json()
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict) or "id" not in data:
            raise ScrapeTaskError("Unexpected Apify response payload")
        return data


__all__ = ["APIFY_BASE_URL", "ApifyScrapeClient", "actor_path"]

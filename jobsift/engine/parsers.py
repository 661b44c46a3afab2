"""Projection of vendor-specific scrape items into :class:`Job` records."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping

from ..logging_conf import get_logger
from .models import Job, RawRecordBatch

APIFY_README_URL = "https://console.apify.com/actors/{actor_id}/information/latest/readme"


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


class RawRecordParser(ABC):
    """Map the items of one scrape source onto the common record shape."""

    vendor: str = ""

    def parse(self, batch: RawRecordBatch) -> list[Job]:
        source = f"{self.vendor} via Apify {APIFY_README_URL.format(actor_id=batch.source_config_id)}"
        return [
            self.parse_item(item, source)
            for item in batch.items
            if isinstance(item, Mapping)
        ]

    @abstractmethod
    def parse_item(self, item: Mapping[str, Any], source: str) -> Job:
        """Project a single vendor item."""


class ZipRecruiterParser(RawRecordParser):
    vendor = "ZipRecruiter"

    def parse_item(self, item: Mapping[str, Any], source: str) -> Job:
        return Job(
            title=_text(item.get("Title")),
            company_name=_text(item.get("OrgName")),
            location=_text(item.get("City")),
            job_url=_text(item.get("Href")),
            pay=_text(item.get("FormattedSalaryShort")),
            contract_type=_text(item.get("EmploymentType")),
            description=_text(item.get("description")),
            source=source,
        )


class IndeedParser(RawRecordParser):
    vendor = "Indeed"

    def parse_item(self, item: Mapping[str, Any], source: str) -> Job:
        apply_url = _text(item.get("thirdPartyApplyUrl")).replace("indeed.com//", "indeed.com/")
        salary = item.get("salarySnippet") or {}
        job_types = item.get("jobTypes") or []
        return Job(
            title=_text(item.get("displayTitle")),
            company_name=_text(item.get("company")),
            location=_text(item.get("jobLocationCity")),
            job_url=apply_url,
            pay=_text(salary.get("text")) if isinstance(salary, Mapping) else "",
            contract_type=_text(job_types[0]) if job_types else "",
            description=_text(item.get("jobDescription")),
            source=source,
        )


class ParserRegistry:
    """Lookup table from source name to parser."""

    def __init__(self, parsers: Mapping[str, RawRecordParser] | None = None) -> None:
        self._parsers: dict[str, RawRecordParser] = dict(parsers or {})
        self.logger = get_logger("parsers")

    def register(self, name: str, parser: RawRecordParser) -> None:
        self._parsers[name] = parser

    def get(self, name: str) -> RawRecordParser | None:
        return self._parsers.get(name)

    def names(self) -> list[str]:
        return sorted(self._parsers)

    def parse_batches(
        self,
        batches: Iterable[RawRecordBatch],
        aliases: Mapping[str, str] | None = None,
    ) -> list[Job]:
        """Flatten every batch into jobs; ``aliases`` maps source name to parser key."""

        jobs: list[Job] = []
        for batch in batches:
            key = (aliases or {}).get(batch.source_name, batch.source_name)
            parser = self.get(key)
            if parser is None:
                self.logger.warning("parser_missing", source=batch.source_name)
                continue
            parsed = parser.parse(batch)
            self.logger.debug("batch_parsed", source=batch.source_name, jobs=len(parsed))
            jobs.extend(parsed)
        return jobs


def default_registry() -> ParserRegistry:
    return ParserRegistry(
        {
            "memo23/apify-ziprecruiter-scraper": ZipRecruiterParser(),
            "curious_coder/indeed-scraper": IndeedParser(),
        }
    )


__all__ = [
    "IndeedParser",
    "ParserRegistry",
    "RawRecordParser",
    "ZipRecruiterParser",
    "default_registry",
]

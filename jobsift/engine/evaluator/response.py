"""Parsing of batch output files and the free-text model answers inside them.

Model answers are expected as ``<employer fit>,<candidate fit>,"<rationale>"``
but arrive in many shapes. Each strategy below returns a
:class:`ParseAttempt`; strategies are tried in order and the first successful
attempt wins.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Sequence

from ...logging_conf import get_logger
from ..models import EvaluationResult, ResultStatus

STRICT_PATTERN = re.compile(
    r"^\s*(\d+(?:\.\d+)?)\s*,\s*(\d+(?:\.\d+)?)\s*,\s*\"(.*)\"\s*$", re.DOTALL
)
_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)")


@dataclass(frozen=True, slots=True)
class ParseAttempt:
    ok: bool
    strategy: str
    employer_fit: float | None = None
    candidate_fit: float | None = None
    rationale: str = ""

    @classmethod
    def failure(cls, strategy: str) -> "ParseAttempt":
        return cls(ok=False, strategy=strategy)


ParseStrategy = Callable[[str], ParseAttempt]


def _leading_number(token: str) -> float | None:
    """Parse the numeric prefix of ``token`` ("85%" -> 85.0), ``None`` if absent."""

    match = _NUMBER_PATTERN.match(token.strip())
    if not match:
        return None
    return float(match.group(0))


def _strip_quotes(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return text[1:-1]
    return text


def parse_strict(text: str) -> ParseAttempt:
    match = STRICT_PATTERN.match(text)
    if not match:
        return ParseAttempt.failure("strict")
    return ParseAttempt(
        ok=True,
        strategy="strict",
        employer_fit=float(match.group(1)),
        candidate_fit=float(match.group(2)),
        rationale=match.group(3),
    )


def parse_lenient(text: str) -> ParseAttempt:
    tokens = text.split(",")
    employer = _leading_number(tokens[0])
    # a bare "85" has no second token; treat it as unparsable
    candidate = _leading_number(tokens[1]) if len(tokens) > 1 else None
    if employer is None and candidate is None:
        return ParseAttempt.failure("lenient")
    return ParseAttempt(
        ok=True,
        strategy="lenient",
        employer_fit=employer if employer is not None else 0.0,
        candidate_fit=candidate if candidate is not None else 0.0,
        rationale=_strip_quotes(",".join(tokens[2:])),
    )


def parse_raw(text: str) -> ParseAttempt:
    return ParseAttempt(ok=True, strategy="raw", rationale=text)


DEFAULT_STRATEGIES: tuple[ParseStrategy, ...] = (parse_strict, parse_lenient, parse_raw)


def parse_answer(
    text: str, strategies: Sequence[ParseStrategy] = DEFAULT_STRATEGIES
) -> ParseAttempt:
    for strategy in strategies:
        attempt = strategy(text)
        if attempt.ok:
            return attempt
    return ParseAttempt.failure("none")


def composite_score(employer_fit: float, candidate_fit: float) -> int:
    """``round(employer * candidate / 100)`` with halves rounded up."""

    return int(math.floor(employer_fit * candidate_fit / 100 + 0.5))


def to_result(attempt: ParseAttempt, generated_at: datetime) -> EvaluationResult:
    if not attempt.ok:
        return EvaluationResult(generated_at=generated_at, status=ResultStatus.MISSING)
    composite = None
    if attempt.employer_fit is not None and attempt.candidate_fit is not None:
        composite = composite_score(attempt.employer_fit, attempt.candidate_fit)
    return EvaluationResult(
        employer_fit=attempt.employer_fit,
        candidate_fit=attempt.candidate_fit,
        composite_match=composite,
        rationale=attempt.rationale,
        generated_at=generated_at,
        status=ResultStatus.PARSED if composite is not None else ResultStatus.UNPARSED,
    )


def _answer_text(record: dict[str, Any]) -> str | None:
    response = record.get("response") or {}
    body = response.get("body") if isinstance(response, dict) else None
    if not isinstance(body, dict):
        return None
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str):
        return None
    return content.strip()


def read_answers(content: str) -> dict[str, str]:
    """Map correlation id to answer text; malformed lines are dropped."""

    logger = get_logger("evaluator")
    answers: dict[str, str] = {}
    for line_no, line in enumerate(content.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as exc:
            logger.warning("batch_line_invalid_json", line=line_no, error=str(exc))
            continue
        if not isinstance(record, dict) or not record.get("custom_id"):
            logger.warning("batch_line_without_id", line=line_no)
            continue
        text = _answer_text(record)
        if text is None:
            logger.warning(
                "batch_line_without_answer", line=line_no, custom_id=record["custom_id"]
            )
            continue
        answers[str(record["custom_id"])] = text
    return answers


def correlation_id(index: int) -> str:
    return f"match-{index}"


def map_results(
    content: str,
    count: int,
    generated_at: datetime,
    strategies: Sequence[ParseStrategy] = DEFAULT_STRATEGIES,
) -> list[EvaluationResult]:
    """One result per input index, looked up by correlation id."""

    answers = read_answers(content)
    results: list[EvaluationResult] = []
    for index in range(count):
        text = answers.get(correlation_id(index))
        if text is None:
            results.append(EvaluationResult(generated_at=generated_at, status=ResultStatus.MISSING))
            continue
        results.append(to_result(parse_answer(text, strategies), generated_at))
    return results


__all__ = [
    "DEFAULT_STRATEGIES",
    "ParseAttempt",
    "ParseStrategy",
    "composite_score",
    "correlation_id",
    "map_results",
    "parse_answer",
    "parse_lenient",
    "parse_raw",
    "parse_strict",
    "read_answers",
    "to_result",
]

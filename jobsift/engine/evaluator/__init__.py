"""Batch match evaluation."""

from .backoff import PollBackoff
from .batch import BatchEvaluator, EvaluatorState, InferenceBatchClient
from .response import ParseAttempt, composite_score, map_results, parse_answer

__all__ = [
    "BatchEvaluator",
    "EvaluatorState",
    "InferenceBatchClient",
    "ParseAttempt",
    "PollBackoff",
    "composite_score",
    "map_results",
    "parse_answer",
]

"""Prompt and request-line construction for the match evaluation batch."""

from __future__ import annotations

import json
from typing import Any

from ..models import Job

MATCH_PROMPT = """Job Match Evaluation Prompt:

[ROLE] Job Match Evaluator
[TASK] Score the fit between the job and the candidate from two sides:
    - EMPLOYER FIT: how well the candidate satisfies the job's requirements (0-100)
    - CANDIDATE FIT: how well the job satisfies the candidate's goals and location preferences (0-100)
    - score 0 for internships unless school enrollment is not required
    - score 0 for supervisor/director positions
    - score 0 for jobs requiring a language other than English
[RULES]
- JOB: {job}
- CANDIDATE: {candidate}
- OUTPUT EXACTLY: <employer fit>,<candidate fit>,"<one sentence rationale, max 250 characters>"
- NO extra text, NO Markdown.

RESPONSE:"""


def build_match_prompt(job: Job, candidate_summary: str) -> str:
    return MATCH_PROMPT.format(
        job=json.dumps(job.to_dict(), ensure_ascii=False),
        candidate=candidate_summary,
    )


def build_request_line(custom_id: str, job: Job, candidate_summary: str, model: str) -> dict[str, Any]:
    return {
        "custom_id": custom_id,
        "method": "POST",
        "url": "/v1/chat/completions",
        "body": {
            "model": model,
            "messages": [
                {"role": "user", "content": build_match_prompt(job, candidate_summary)},
            ],
        },
    }


__all__ = ["MATCH_PROMPT", "build_match_prompt", "build_request_line"]

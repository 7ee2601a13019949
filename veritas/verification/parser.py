"""Defensive parsing of the oracle's verification judgment.

The oracle is asked for a JSON object but is free to return anything. Parse
failures never raise: they produce a degraded, lowest-confidence judgment that
carries the raw text as its reasoning.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from veritas.ledger.models import VerificationConfidence, VerificationStatus
from veritas.verification.schemas import VerificationResult

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("status", "confidence", "keyFacts", "issues", "context", "recommendation", "reasoning")
LIST_FIELDS = ("keyFacts", "issues")
NOT_PROVIDED = "Not provided"
PARSE_FAILED_ISSUE = "AI response parsing failed"

FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)


@dataclass
class ParsedJudgment:
    kind: Literal["ok", "degraded"]
    result: VerificationResult
    raw_text: str
    missing_fields: List[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return self.kind == "degraded"


def _strip_fence(text: str) -> str:
    match = FENCE_RE.match(text)
    return match.group(1) if match else text.strip()


def _enum_value(enum_cls, value: Any):
    if not isinstance(value, str):
        return None
    try:
        return enum_cls(value.strip().upper())
    except ValueError:
        return None


def _string_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list) or not value:
        return None
    return [item if isinstance(item, str) else json.dumps(item) for item in value]


def _text(value: Any) -> Optional[str]:
    if not value:
        return None
    return value if isinstance(value, str) else json.dumps(value)


def degraded_judgment(raw_text: str) -> ParsedJudgment:
    return ParsedJudgment(
        kind="degraded",
        result=VerificationResult(
            status=VerificationStatus.UNVERIFIED,
            confidence=VerificationConfidence.LOW,
            key_facts=[],
            issues=[PARSE_FAILED_ISSUE],
            context="",
            recommendation="Manual review required",
            reasoning=raw_text,
        ),
        raw_text=raw_text,
        missing_fields=list(REQUIRED_FIELDS),
    )


def parse_judgment(raw_text: str) -> ParsedJudgment:
    try:
        data = json.loads(_strip_fence(raw_text))
    except ValueError:
        logger.error("Failed to parse oracle verification content as JSON")
        return degraded_judgment(raw_text)

    if not isinstance(data, dict) or not any(key in data for key in REQUIRED_FIELDS):
        logger.error("Oracle verification content has none of the expected keys")
        return degraded_judgment(raw_text)

    fields: Dict[str, Any] = {
        "status": _enum_value(VerificationStatus, data.get("status")),
        "confidence": _enum_value(VerificationConfidence, data.get("confidence")),
        "keyFacts": _string_list(data.get("keyFacts")),
        "issues": _string_list(data.get("issues")),
        "context": _text(data.get("context")),
        "recommendation": _text(data.get("recommendation")),
        "reasoning": _text(data.get("reasoning")),
    }
    missing = [name for name in REQUIRED_FIELDS if fields[name] is None]
    if missing:
        logger.warning(f"Missing fields in verification response: {missing}")

    result = VerificationResult(
        status=fields["status"] or VerificationStatus.UNVERIFIED,
        confidence=fields["confidence"] or VerificationConfidence.LOW,
        key_facts=fields["keyFacts"] or [],
        issues=fields["issues"] or [],
        context=fields["context"] or "",
        recommendation=fields["recommendation"] or NOT_PROVIDED,
        reasoning=fields["reasoning"] or NOT_PROVIDED,
    )
    return ParsedJudgment(kind="ok", result=result, raw_text=raw_text, missing_fields=missing)

"""Normalization of raw answers into a small tagged value.

Responses carry either a typed `answer` (Yes / No / N/A) or a free-text
`response_value`, historically compared case-insensitively at every call site.
`normalize_answer` is the single place where that comparison happens.
"""
# app/services/answers.py
from dataclasses import dataclass
import enum

from supplier_eval.db.models.response import AnswerValue


class AnswerKind(str, enum.Enum):
    YES = "yes"
    NO = "no"
    NOT_APPLICABLE = "not_applicable"
    OTHER = "other"


_ALIASES = {
    "yes": AnswerKind.YES,
    "no": AnswerKind.NO,
    "n/a": AnswerKind.NOT_APPLICABLE,
    "na": AnswerKind.NOT_APPLICABLE,
    "not applicable": AnswerKind.NOT_APPLICABLE,
}

UNSATISFACTORY = frozenset({AnswerKind.NO, AnswerKind.NOT_APPLICABLE})


@dataclass(frozen=True)
class NormalizedAnswer:
    kind: AnswerKind
    text: str | None = None

    @property
    def is_unsatisfactory(self) -> bool:
        return self.kind in UNSATISFACTORY

    def as_answer_value(self) -> AnswerValue | None:
        """Typed column value, or None for free text."""
        return {
            AnswerKind.YES: AnswerValue.yes,
            AnswerKind.NO: AnswerValue.no,
            AnswerKind.NOT_APPLICABLE: AnswerValue.not_applicable,
        }.get(self.kind)


def normalize_answer(answer=None, response_value=None) -> NormalizedAnswer:
    """Normalize a response's answer.

    The typed `answer` wins when present; `response_value` is the fallback.

    Args:
        answer: An `AnswerValue`, its string value, or None.
        response_value: Free text, or None.

    Returns:
        NormalizedAnswer: `OTHER` keeps the original text; empty input is `OTHER` with no text.
    """
    raw = answer.value if isinstance(answer, AnswerValue) else answer
    if raw is None or not str(raw).strip():
        raw = response_value
    if raw is None:
        return NormalizedAnswer(AnswerKind.OTHER)

    text = str(raw).strip()
    kind = _ALIASES.get(text.casefold())
    if kind is None:
        return NormalizedAnswer(AnswerKind.OTHER, text or None)
    return NormalizedAnswer(kind, text)

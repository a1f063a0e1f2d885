"""Validation utilities."""
from collections.abc import Mapping

from fastapi import HTTPException

from learnhub.errors import InvalidAnswerMapError


def validate_id(name: str, value: str) -> str:
    """Validate ID string (non-empty, no path separators)."""
    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{name} is required")
    cleaned = value.strip()
    if not cleaned:
        raise HTTPException(status_code=400, detail=f"{name} is required")
    if "/" in cleaned or "\\" in cleaned:
        raise HTTPException(status_code=400, detail=f"Invalid {name}")
    return cleaned


def _as_position(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def validate_answer_map(answers: object) -> dict[int, int]:
    """
    Validate an answer map built outside the session (e.g. the document view).

    Keys and values must be non-negative positions; JSON string keys such as
    ``"0"`` are accepted.
    """
    if not isinstance(answers, Mapping):
        raise InvalidAnswerMapError("answers must be a mapping of positions")
    validated: dict[int, int] = {}
    for raw_question, raw_variant in answers.items():
        question = _as_position(raw_question)
        variant = _as_position(raw_variant)
        if question is None or variant is None:
            raise InvalidAnswerMapError(
                f"Invalid answer pair {raw_question!r} -> {raw_variant!r}"
            )
        validated[question] = variant
    return validated

"""Utility modules."""
from learnhub.utils.time_utils import format_clock, format_time_taken, variant_label
from learnhub.utils.validation import validate_answer_map, validate_id

__all__ = [
    "format_clock",
    "format_time_taken",
    "variant_label",
    "validate_answer_map",
    "validate_id",
]

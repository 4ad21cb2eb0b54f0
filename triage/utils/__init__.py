"""Utility functions and helpers."""

from triage.utils.logging import get_logger, setup_logging
from triage.utils.parsing import (
    as_str_list,
    extract_json,
    parse_date,
    snake_keys,
    strip_code_fences,
)

__all__ = [
    "as_str_list",
    "extract_json",
    "get_logger",
    "parse_date",
    "setup_logging",
    "snake_keys",
    "strip_code_fences",
]

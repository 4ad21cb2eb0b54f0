"""
Shared parsing utilities for collaborator responses.

LLM answers are requested as JSON but routinely arrive wrapped in markdown
code fences or with loosely formatted dates.
"""

import json
import re
from datetime import datetime
from typing import Any, Optional

from triage.errors import MalformedResponseError


DATE_FORMATS = (
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%Y/%m/%d",
    "%d.%m.%Y",
)


def strip_code_fences(content: str) -> str:
    """Return the body of the first ``` block, or the content unchanged."""
    content = content.strip()
    if "```json" in content:
        return content.split("```json", 1)[1].split("```", 1)[0].strip()
    if "```" in content:
        return content.split("```", 1)[1].split("```", 1)[0].strip()
    return content


def extract_json(content: str, collaborator: str = "") -> Any:
    """
    Parse a JSON payload out of an LLM response.

    Args:
        content: Raw response text
        collaborator: Name used in the error for diagnostics

    Raises:
        MalformedResponseError: if no JSON can be parsed
    """
    if not content or not content.strip():
        raise MalformedResponseError("Empty response", collaborator=collaborator)

    body = strip_code_fences(content)
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        pass

    # Fall back to the outermost object or array in the text
    match = re.search(r"(\{.*\}|\[.*\])", body, re.DOTALL)
    if match:
        try:
            return json.loads(match.group(1))
        except json.JSONDecodeError:
            pass

    raise MalformedResponseError(
        f"Response is not JSON: {content[:80]!r}", collaborator=collaborator
    )


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse a document date in the common formats found on clinical papers.

    Returns None for anything unparseable instead of guessing.
    """
    if value is None or isinstance(value, datetime):
        return value
    text = str(value).strip()
    if not text:
        return None

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        return parsed.replace(tzinfo=None)
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def snake_keys(data: Any) -> Any:
    """Convert the top-level camelCase keys of a dict to snake_case."""
    if not isinstance(data, dict):
        return data
    return {re.sub(r"(?<!^)(?=[A-Z])", "_", str(k)).lower(): v for k, v in data.items()}


def as_str_list(value: Any) -> list[str]:
    """Coerce a JSON value to a list of non-empty strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return [str(value)]

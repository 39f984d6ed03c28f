"""
Payload Locator - Finds the JSON object inside a model reply.

Models wrap JSON in prose and markdown fences often enough that the reply is
never parsed as-is. The object is taken to span from the first "{" to the
last "}"; everything around it is discarded.
"""

import json
import logging
from typing import Any, Dict

from powerguard.core.exceptions import PayloadParseError

logger = logging.getLogger("powerguard.ai.response.payload")


def extract_json_object(raw: str) -> Dict[str, Any]:
    """
    Locate and parse the JSON object embedded in a model reply.

    Args:
        raw: Raw model output, possibly with prose or code fences around it

    Returns:
        The parsed object

    Raises:
        PayloadParseError: if no parseable JSON object is present

    Example:
        >>> extract_json_object('Sure! ```json\\n{"insights": []}\\n``` Hope this helps')
        {'insights': []}
    """
    if not raw:
        raise PayloadParseError("Empty payload")

    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        raise PayloadParseError("No JSON object in payload")

    candidate = raw[start:end + 1]
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.debug(f"Payload candidate (first 200 chars): {candidate[:200]}")
        raise PayloadParseError(f"Invalid JSON in payload: {e}") from e

    if not isinstance(data, dict):
        raise PayloadParseError(f"Expected a JSON object, got {type(data).__name__}")
    return data

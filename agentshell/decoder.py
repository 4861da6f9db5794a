"""Structured payload extraction from model output.

Models are asked to return comparable items as a JSON array inside a
```` ```json ```` fenced block.  :func:`decode` pulls that block out
(or, failing that, tries the whole response) and normalises the
result so callers always receive either ``None`` or a non-empty list
of records.  A single JSON object becomes a one-element list.

Decoding is best effort: malformed JSON simply means the response is
shown as plain text.
"""

from __future__ import annotations

import json
import re
from typing import Any, List, Optional

JSON_BLOCK_RE = re.compile(r"```json\s*(.*?)```", re.DOTALL)


def decode(raw_text: str) -> Optional[List[Any]]:
    """Return the structured payload in ``raw_text`` or ``None``.

    :param raw_text: Model output, possibly containing prose around a
      fenced JSON block.
    :returns: A non-empty list of records, or ``None`` when the text is
      not structured (including an empty JSON array).
    """
    if not raw_text:
        return None
    match = JSON_BLOCK_RE.search(raw_text)
    candidate = match.group(1) if match else raw_text.strip()
    try:
        data = json.loads(candidate)
    except (ValueError, TypeError):
        return None
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list) and data:
        return data
    return None


def strip_json_block(raw_text: str) -> str:
    """Return the prose around the first fenced JSON block.

    Text without a fenced block is either all JSON or not structured
    at all, so an empty string is returned for it.
    """
    if not JSON_BLOCK_RE.search(raw_text or ""):
        return ""
    return JSON_BLOCK_RE.sub("", raw_text, count=1).strip()

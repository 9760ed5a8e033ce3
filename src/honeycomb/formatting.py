"""
Response formatting helpers shared by the tool modules.
"""

import json
from typing import Any, Optional


def to_json(payload: Any) -> str:
    """Serialize a tool response the way every tool returns it."""
    return json.dumps(payload, indent=2, default=str)


def text_or_empty(value: Optional[str]) -> str:
    """Optional text fields (descriptions, urls) are emitted as "" instead of null."""
    return value if value is not None else ""

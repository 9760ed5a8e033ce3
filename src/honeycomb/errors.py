"""
Exception types shared by the Honeycomb client, the column analyzer and the tools.
"""

from typing import Any, Dict, List, Optional


class ToolInputError(ValueError):
    """Caller input is missing or invalid. Raised before any API call is made."""

    def __init__(self, message: str, parameter: Optional[str] = None):
        super().__init__(message)
        self.parameter = parameter

    @classmethod
    def missing(cls, parameter: str) -> "ToolInputError":
        return cls(f"Missing required parameter: {parameter}", parameter=parameter)


class HoneycombAPIError(Exception):
    """The Honeycomb API (or the query it was asked to run) failed."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_data = response_data
        self.suggestions = list(suggestions or [])

    def get_formatted_message(self) -> str:
        """Message with status code and remediation suggestions."""
        prefix = f"Honeycomb API error ({self.status_code})" if self.status_code else "Honeycomb API error"
        text = f"{prefix}: {self.message}"
        if self.suggestions:
            text += "\n\nSuggested next steps:\n" + "\n".join(f"- {s}" for s in self.suggestions)
        return text

    def __str__(self) -> str:
        return self.message


def require(value: Optional[str], parameter: str) -> str:
    """Return value if it is a non-empty string, else raise ToolInputError."""
    if value is None or not isinstance(value, str) or not value.strip():
        raise ToolInputError.missing(parameter)
    return value

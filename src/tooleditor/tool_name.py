"""
Tool name validation.

A tool name is the function identifier the assistant calls, so it is held to
the same policy everywhere: 1-64 characters of letters, digits, "_", "-" and ".".
"""

import re
from dataclasses import dataclass

MAX_NAME_LENGTH = 64

_VALID_NAME = re.compile(r"[a-zA-Z0-9_.-]+")


@dataclass(frozen=True)
class CheckResult:
    """Outcome of a single-value check."""
    valid: bool
    error: str | None = None


def validate_tool_name(name: str) -> CheckResult:
    """
    Check a proposed tool name against the naming policy.

    Args:
        name: The candidate name

    Returns:
        CheckResult with the first violated rule as error message

    Examples:
        >>> validate_tool_name("get_weather").valid
        True
        >>> validate_tool_name("bad name!").error
        'Name can only contain letters, numbers, _, -, and .'
    """
    if not name or not name.strip():
        return CheckResult(False, "Name is required")

    if len(name) > MAX_NAME_LENGTH:
        return CheckResult(False, f"Name must be {MAX_NAME_LENGTH} characters or less")

    if not _VALID_NAME.fullmatch(name):
        return CheckResult(False, "Name can only contain letters, numbers, _, -, and .")

    return CheckResult(True)

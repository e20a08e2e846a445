"""
Tool Field Validation

Per-kind validators for the values typed into the editor form. JSON-bearing
fields arrive as raw strings and are only checked for syntax here; the
validators report every failing field in one pass so the form can highlight
all of them at once.

Usage:
    from tooleditor.tool_fields import validate_webhook_tool

    result = validate_webhook_tool(
        name="get_weather",
        description="Fetch the forecast",
        url="https://api.example.com/weather",
    )
    if not result.valid:
        print(result.errors)
"""

import json
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

from tooleditor.errors import JsonSyntaxError
from tooleditor.tool_name import CheckResult

ALLOWED_URL_SCHEMES = ("http", "https")
FORBIDDEN_HOST_CHARS = frozenset("<>\\^|\"")


# =============================================================================
# JSON Parsing
# =============================================================================


def _reject_constant(token: str) -> Any:
    raise ValueError(f"Unexpected token {token} in JSON")


def parse_json(text: str) -> Any:
    """
    Parse strict JSON text.

    This is the only JSON parser used by the editor, so field validation and
    the save path can never disagree about what is valid. NaN and Infinity are
    rejected because they are not JSON.

    Raises:
        JsonSyntaxError: If the text is not valid JSON
    """
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except (ValueError, TypeError) as e:
        raise JsonSyntaxError(str(e)) from e


# =============================================================================
# Validation Result
# =============================================================================


@dataclass
class ValidationResult:
    """Result of validating one tool kind's form fields."""
    valid: bool
    errors: dict[str, str] = field(default_factory=dict)

    def first_error(self) -> str | None:
        """Return the first reported error message, if any."""
        for message in self.errors.values():
            if message:
                return message
        return None


def _result(errors: dict[str, str]) -> ValidationResult:
    return ValidationResult(valid=not errors, errors=errors)


# =============================================================================
# Single-value Checks
# =============================================================================


def validate_url(url: str) -> CheckResult:
    """Check that url is an absolute HTTP or HTTPS URL."""
    if not url or not url.strip():
        return CheckResult(False, "URL is required")

    try:
        parts = urlsplit(url.strip())
        # Accessing port validates it
        parts.port
    except ValueError:
        return CheckResult(False, "Invalid URL format")

    if not parts.scheme:
        return CheckResult(False, "Invalid URL format")

    if parts.scheme.lower() not in ALLOWED_URL_SCHEMES:
        return CheckResult(False, "URL must use HTTP or HTTPS protocol")

    host = parts.hostname
    if not host or any(ch.isspace() or ch in FORBIDDEN_HOST_CHARS for ch in host):
        return CheckResult(False, "Invalid URL format")

    return CheckResult(True)


def validate_json_string(value: str) -> CheckResult:
    """Check JSON syntax; blank input is valid because the fields are optional."""
    if not value or not value.strip():
        return CheckResult(True)

    try:
        parse_json(value)
    except JsonSyntaxError:
        return CheckResult(False, "Invalid JSON syntax")
    return CheckResult(True)


def _check_required_text(errors: dict[str, str], name: str, description: str) -> None:
    if not name or not name.strip():
        errors["name"] = "Name is required"
    if not description or not description.strip():
        errors["description"] = "Description is required"


def _check_json_field(errors: dict[str, str], field_name: str, value: str) -> None:
    if value:
        check = validate_json_string(value)
        if not check.valid:
            errors[field_name] = check.error or "Invalid JSON syntax"


# =============================================================================
# Per-kind Validators
# =============================================================================


def validate_client_tool(name: str, description: str, parameters: str = "") -> ValidationResult:
    """Validate client tool fields."""
    errors: dict[str, str] = {}
    _check_required_text(errors, name, description)
    _check_json_field(errors, "parameters", parameters)
    return _result(errors)


def validate_knowledge_tool(
    name: str,
    description: str,
    document_folder_ids: list[str] | None,
) -> ValidationResult:
    """Validate knowledge tool fields. Folder ownership is checked later, asynchronously."""
    errors: dict[str, str] = {}
    _check_required_text(errors, name, description)
    if not document_folder_ids:
        errors["folders"] = "At least one folder must be selected"
    return _result(errors)


def validate_webhook_tool(
    name: str,
    description: str,
    url: str,
    headers: str = "",
    query_parameters: str = "",
    parameters: str = "",
) -> ValidationResult:
    """Validate webhook tool fields."""
    errors: dict[str, str] = {}
    _check_required_text(errors, name, description)

    url_check = validate_url(url)
    if not url_check.valid:
        errors["url"] = url_check.error or "Invalid URL format"

    _check_json_field(errors, "headers", headers)
    _check_json_field(errors, "queryParameters", query_parameters)
    _check_json_field(errors, "parameters", parameters)
    return _result(errors)

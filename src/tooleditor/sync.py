"""
Form <-> JSON Synchronizer

The editor shows a tool either as form fields or as its JSON document. The
draft is the single source of truth; the two views are projections of it:

    form_to_document(draft)         draft -> JSON document (never fails)
    document_to_fields(document)    JSON document -> draft fields (may fail)

FormJsonSynchronizer drives the mode switches on top of these projections.
Switching to JSON always succeeds. Switching back to the form parses and
classifies the buffer first and, for knowledge tools, asks the ownership
collaborator about the referenced folders; any failure leaves the editor in
JSON mode with the buffer untouched and the problem reported.
"""

import copy
import logging
from typing import Any, Callable

from tooleditor.collaborators import (
    Notifier,
    OwnershipChecker,
    check_folder_ownership,
    log_notifier,
)
from tooleditor.draft import EditMode, ToolDraft, tool_to_fields
from tooleditor.errors import ToolEditorError
from tooleditor.tool_fields import parse_json
from tooleditor.tool_types import ToolKind, classify_tool, dumps_json

logger = logging.getLogger(__name__)


# =============================================================================
# Example Documents
# =============================================================================


EXAMPLE_DOCUMENTS: dict[ToolKind, dict[str, Any]] = {
    ToolKind.CLIENT: {
        "type": "client",
        "name": "my_client_tool",
        "description": "Describe when the AI should call this client-side function",
        "parameters": {
            "type": "object",
            "properties": {
                "param1": {
                    "type": "string",
                    "description": "Description of parameter",
                },
            },
            "required": ["param1"],
        },
    },
    ToolKind.KNOWLEDGE: {
        "type": "server",
        "subtype": "knowledge",
        "name": "search_knowledge",
        "description": "Search the knowledge base when the user asks for information",
        "documentFolderIds": [],
    },
    ToolKind.WEBHOOK: {
        "type": "server",
        "subtype": "webhook",
        "name": "call_api",
        "description": "Call an external API when the user requests specific action",
        "url": "https://api.example.com/endpoint",
        "method": "POST",
        "awaitResponse": True,
    },
}

# Shown by "See Example" in the JSON view
WEATHER_EXAMPLE: dict[str, Any] = {
    "type": "server",
    "subtype": "webhook",
    "name": "get_weather",
    "description": "Get the current weather for a location when the user asks for it",
    "url": "https://api.weather.example.com/current",
    "method": "POST",
    "parameters": {
        "type": "object",
        "properties": {
            "location": {
                "type": "string",
                "description": "The city or location to get weather for",
            },
            "units": {
                "type": "string",
                "enum": ["celsius", "fahrenheit"],
                "description": "Temperature units",
            },
        },
        "required": ["location"],
    },
    "awaitResponse": True,
}


def example_document(kind: ToolKind) -> dict[str, Any]:
    """Return a fresh copy of the starter document for a tool kind."""
    if kind not in EXAMPLE_DOCUMENTS:
        raise ValueError(f"No example document for {kind.value} tools")
    return copy.deepcopy(EXAMPLE_DOCUMENTS[kind])


# =============================================================================
# Projections
# =============================================================================


def _embed(text: str, key: str) -> Any:
    """Parsed JSON value, or the raw text when it does not parse yet."""
    try:
        return parse_json(text)
    except ToolEditorError:
        return text


def form_to_document(
    draft: ToolDraft,
    fragment: Callable[[str, str], Any] = _embed,
) -> dict[str, Any]:
    """
    Project the form fields onto a tool document.

    fragment(text, key) turns the text of a JSON-bearing field into the value
    embedded under key. The default keeps unparseable text as a string.

    An untouched form (no name, no description) yields the example document for
    the current kind so the JSON view never starts from an empty shell.
    """
    if draft.is_form_empty and draft.kind in EXAMPLE_DOCUMENTS:
        return example_document(draft.kind)

    document: dict[str, Any] = {}

    if draft.kind == ToolKind.CLIENT:
        document["type"] = "client"
        document["name"] = draft.name
        document["description"] = draft.description
        if draft.client_parameters:
            document["parameters"] = fragment(draft.client_parameters, "parameters")

    elif draft.kind == ToolKind.KNOWLEDGE:
        document["type"] = "server"
        document["subtype"] = "knowledge"
        document["name"] = draft.name
        document["description"] = draft.description
        document["documentFolderIds"] = list(draft.selected_folders)

    elif draft.kind == ToolKind.WEBHOOK:
        document["type"] = "server"
        document["subtype"] = "webhook"
        document["name"] = draft.name
        document["description"] = draft.description
        document["url"] = draft.url
        document["method"] = draft.method
        if draft.headers:
            document["headers"] = fragment(draft.headers, "headers")
        if draft.query_parameters:
            document["queryParameters"] = fragment(draft.query_parameters, "queryParameters")
        if draft.webhook_parameters:
            document["parameters"] = fragment(draft.webhook_parameters, "parameters")
        document["awaitResponse"] = draft.await_response

    else:
        document["type"] = draft.kind.value
        document["name"] = draft.name
        document["description"] = draft.description

    return document


def form_to_json(draft: ToolDraft) -> str:
    return dumps_json(form_to_document(draft), indent=draft.indent)


def document_to_fields(document: Any, indent: int = 2) -> dict[str, Any]:
    """
    Classify a parsed document and map it to draft field values.

    Raises:
        MissingTypeError, MissingSubtypeError, UnknownTypeError, UnknownSubtypeError
    """
    kind = classify_tool(document)
    return tool_to_fields(document, kind, indent)


def json_to_fields(text: str, indent: int = 2) -> dict[str, Any]:
    """Parse JSON text and map it to draft field values."""
    return document_to_fields(parse_json(text), indent)


# =============================================================================
# Synchronizer
# =============================================================================


class FormJsonSynchronizer:
    """
    Moves a draft between form and JSON mode.

    Args:
        draft: The draft being edited
        ownership_checker: Collaborator consulted for knowledge tools
        notify: Notification sink, same signature as ``App.notify``
    """

    def __init__(
        self,
        draft: ToolDraft,
        ownership_checker: OwnershipChecker,
        notify: Notifier | None = None,
    ) -> None:
        self.draft = draft
        self.ownership_checker = ownership_checker
        self.notify = notify or log_notifier

    def switch_to_json(self) -> str:
        """Serialize the form into the JSON buffer and show the JSON view."""
        self.draft.raw_json = form_to_json(self.draft)
        self.draft.json_error = ""
        self.draft.mode = EditMode.JSON
        logger.debug(f"Switched {self.draft.kind.value} draft to JSON mode")
        return self.draft.raw_json

    async def switch_to_form(self) -> bool:
        """
        Parse the JSON buffer back into the form and show the form view.

        Returns:
            True if the editor is now in form mode
        """
        draft = self.draft
        if not draft.raw_json.strip():
            draft.mode = EditMode.FORM
            return True

        try:
            values = json_to_fields(draft.raw_json, draft.indent)
        except ToolEditorError as e:
            self._fail(e)
            return False

        draft.apply_fields(values)

        if values["kind"] == ToolKind.KNOWLEDGE and values["selected_folders"]:
            try:
                await check_folder_ownership(self.ownership_checker, values["selected_folders"])
            except ToolEditorError as e:
                # Fields are already populated; the mode flag decides what is shown
                self._fail(e)
                return False

        draft.json_error = ""
        draft.clear_field_errors()
        draft.mode = EditMode.FORM
        self.notify("Switched to form editor", severity="information")
        logger.debug(f"Switched {draft.kind.value} draft to form mode")
        return True

    def load_example(self) -> str:
        """Replace the JSON buffer with the weather webhook example."""
        self.draft.set_raw_json(dumps_json(WEATHER_EXAMPLE, indent=self.draft.indent))
        return self.draft.raw_json

    def _fail(self, error: ToolEditorError) -> None:
        logger.info(f"Cannot switch to form editor: {error.message}")
        self.draft.json_error = error.message
        self.notify(error.message, severity="error")

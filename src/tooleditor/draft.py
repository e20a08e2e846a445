"""
Tool Draft - the editable state of one editor session

All form fields, the JSON buffer, the edit mode and the per-field error map
live on a single ToolDraft. Fields are changed through the ``set_*`` methods
so the error bookkeeping (clear a field's error when it is edited, live name
and URL feedback) happens in one place.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from tooleditor.tool_fields import validate_url
from tooleditor.tool_name import validate_tool_name
from tooleditor.tool_types import (
    DEFAULT_METHOD,
    HTTP_METHODS,
    Tool,
    ToolKind,
    dumps_json,
    text_field,
    tool_to_json,
)


class EditMode(Enum):
    """Which representation the editor is showing"""
    FORM = "form"
    JSON = "json"


# Error map keys
NAME = "name"
DESCRIPTION = "description"
URL = "url"
HEADERS = "headers"
QUERY_PARAMETERS = "queryParameters"
PARAMETERS = "parameters"
FOLDERS = "folders"


def _fragment_text(value: Any, indent: int) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        # Unparsed text carried through the JSON view comes back untouched
        return value
    return dumps_json(value, indent=indent)


@dataclass
class ToolDraft:
    """Editable tool state for one open editor."""
    kind: ToolKind = ToolKind.WEBHOOK
    name: str = ""
    description: str = ""
    url: str = ""
    method: str = DEFAULT_METHOD
    headers: str = ""
    query_parameters: str = ""
    webhook_parameters: str = ""
    await_response: bool = True
    client_parameters: str = ""
    selected_folders: list[str] = field(default_factory=list)

    mode: EditMode = EditMode.FORM
    raw_json: str = ""
    json_error: str = ""
    errors: dict[str, str] = field(default_factory=dict)

    kind_locked: bool = False
    indent: int = 2

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def fresh(cls, kind: ToolKind = ToolKind.WEBHOOK, indent: int = 2) -> "ToolDraft":
        return cls(kind=kind, indent=indent)

    @classmethod
    def from_tool(cls, tool: Tool, indent: int = 2) -> "ToolDraft":
        """Seed both representations from an existing tool; the kind cannot change."""
        draft = cls(indent=indent)
        draft.apply_fields(tool_to_fields(tool.to_dict(), tool.kind, indent))
        draft.raw_json = tool_to_json(tool, indent=indent)
        draft.kind_locked = True
        return draft

    def apply_fields(self, values: dict[str, Any]) -> None:
        """Replace form fields in bulk (used when leaving the JSON view)."""
        for key, value in values.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown draft field: {key}")
            setattr(self, key, value)

    # -------------------------------------------------------------------------
    # Field updates
    # -------------------------------------------------------------------------

    def set_kind(self, kind: ToolKind) -> bool:
        if self.kind_locked and kind != self.kind:
            return False
        self.kind = kind
        return True

    def set_name(self, value: str) -> None:
        self.name = value
        check = validate_tool_name(value)
        self._set_error(NAME, check.error)

    def set_description(self, value: str) -> None:
        self.description = value
        self.errors.pop(DESCRIPTION, None)

    def set_url(self, value: str) -> None:
        self.url = value
        if value.strip():
            self._set_error(URL, validate_url(value).error)
        else:
            self.errors.pop(URL, None)

    def set_method(self, value: str) -> None:
        method = value.upper()
        if method not in HTTP_METHODS:
            raise ValueError(f"Unsupported HTTP method: {value}")
        self.method = method

    def set_headers(self, value: str) -> None:
        self.headers = value
        self.errors.pop(HEADERS, None)

    def set_query_parameters(self, value: str) -> None:
        self.query_parameters = value
        self.errors.pop(QUERY_PARAMETERS, None)

    def set_webhook_parameters(self, value: str) -> None:
        self.webhook_parameters = value
        self.errors.pop(PARAMETERS, None)

    def set_client_parameters(self, value: str) -> None:
        self.client_parameters = value
        self.errors.pop(PARAMETERS, None)

    def set_await_response(self, value: bool) -> None:
        self.await_response = bool(value)

    def set_selected_folders(self, folder_ids: list[str]) -> None:
        self.selected_folders = list(dict.fromkeys(folder_ids))
        self.errors.pop(FOLDERS, None)

    def toggle_folder(self, folder_id: str) -> bool:
        """Select or deselect a folder. Returns True if it is now selected."""
        self.errors.pop(FOLDERS, None)
        if folder_id in self.selected_folders:
            self.selected_folders = [f for f in self.selected_folders if f != folder_id]
            return False
        self.selected_folders = [*self.selected_folders, folder_id]
        return True

    def set_raw_json(self, text: str) -> None:
        self.raw_json = text
        self.json_error = ""

    # -------------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------------

    def _set_error(self, key: str, message: str | None) -> None:
        if message:
            self.errors[key] = message
        else:
            self.errors.pop(key, None)

    def set_field_errors(self, errors: dict[str, str]) -> None:
        for key, message in errors.items():
            self._set_error(key, message)

    def clear_field_errors(self) -> None:
        self.errors.clear()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def is_form_empty(self) -> bool:
        return not self.name and not self.description


def tool_to_fields(document: dict[str, Any], kind: ToolKind, indent: int = 2) -> dict[str, Any]:
    """
    Map a classified tool document onto draft field values.

    Optional fields of the kind that the document omits reset to their
    defaults instead of keeping the previous form values.
    """
    values: dict[str, Any] = {
        "kind": kind,
        "name": text_field(document, "name"),
        "description": text_field(document, "description"),
    }

    if kind == ToolKind.CLIENT:
        values["client_parameters"] = _fragment_text(document.get("parameters"), indent)
    elif kind == ToolKind.KNOWLEDGE:
        folder_ids = document.get("documentFolderIds")
        values["selected_folders"] = (
            list(dict.fromkeys(str(f) for f in folder_ids)) if isinstance(folder_ids, list) else []
        )
    elif kind == ToolKind.WEBHOOK:
        await_response = document.get("awaitResponse")
        values.update({
            "url": text_field(document, "url"),
            "method": str(document.get("method") or DEFAULT_METHOD).upper(),
            "await_response": True if await_response is None else bool(await_response),
            "headers": _fragment_text(document.get("headers"), indent),
            "query_parameters": _fragment_text(document.get("queryParameters"), indent),
            "webhook_parameters": _fragment_text(document.get("parameters"), indent),
        })
    return values


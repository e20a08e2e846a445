"""
Tool Types - the tagged union persisted by the editor

Three persistable variants share a name and description:

- ClientTool: a function executed by the client application
- KnowledgeTool: scopes retrieval to a set of document folders
- WebhookTool: describes an HTTP endpoint (never called by the editor)

The canonical JSON of a tool (``to_dict`` / ``tool_to_json``) is also the text
shown in the JSON editor, so its shape is the wire contract. ``classify_tool``
is the single discriminator: it maps parsed input to exactly one ToolKind or
raises the specific error describing why it cannot.

Usage:
    from tooleditor.tool_types import tool_from_dict, tool_to_json

    tool = tool_from_dict({"type": "client", "name": "ping", "description": "Ping"})
    print(tool_to_json(tool))
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

from tooleditor.errors import (
    MissingSubtypeError,
    MissingTypeError,
    UnknownSubtypeError,
    UnknownTypeError,
    ValidationFailedError,
)


HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")
DEFAULT_METHOD = "POST"


class ToolKind(Enum):
    """Tool kinds offered by the editor"""
    CLIENT = "client"
    KNOWLEDGE = "knowledge"
    WEBHOOK = "webhook"
    SYSTEM = "system"  # reserved, not persistable yet

    @property
    def label(self) -> str:
        return {
            ToolKind.CLIENT: "Client",
            ToolKind.KNOWLEDGE: "Knowledge",
            ToolKind.WEBHOOK: "Webhook",
            ToolKind.SYSTEM: "System",
        }[self]


# =============================================================================
# Tool Variants
# =============================================================================


@dataclass
class ClientTool:
    """A client-side function tool. Parameters may be any JSON value."""
    name: str
    description: str
    parameters: Any = None

    kind: ClassVar[ToolKind] = ToolKind.CLIENT

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": "client",
            "name": self.name,
            "description": self.description,
        }
        if self.parameters is not None:
            data["parameters"] = self.parameters
        return data


@dataclass
class KnowledgeTool:
    """A server-side retrieval tool bound to document folders."""
    name: str
    description: str
    document_folder_ids: list[str] = field(default_factory=list)

    kind: ClassVar[ToolKind] = ToolKind.KNOWLEDGE

    def __post_init__(self) -> None:
        # Folder ids behave as a set but keep their selection order
        self.document_folder_ids = list(dict.fromkeys(self.document_folder_ids))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "server",
            "subtype": "knowledge",
            "name": self.name,
            "description": self.description,
            "documentFolderIds": list(self.document_folder_ids),
        }


@dataclass
class WebhookTool:
    """A server-side tool describing an HTTP endpoint."""
    name: str
    description: str
    url: str
    method: str = DEFAULT_METHOD
    headers: dict[str, str] | None = None
    query_parameters: dict[str, Any] | None = None
    parameters: dict[str, Any] | None = None
    await_response: bool = True

    kind: ClassVar[ToolKind] = ToolKind.WEBHOOK

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": "server",
            "subtype": "webhook",
            "name": self.name,
            "description": self.description,
            "url": self.url,
            "method": self.method,
        }
        if self.headers is not None:
            data["headers"] = self.headers
        if self.query_parameters is not None:
            data["queryParameters"] = self.query_parameters
        if self.parameters is not None:
            data["parameters"] = self.parameters
        data["awaitResponse"] = self.await_response
        return data


Tool = Union[ClientTool, KnowledgeTool, WebhookTool]


# =============================================================================
# Discriminator
# =============================================================================


def classify_tool(data: Any) -> ToolKind:
    """
    Determine which tool variant a parsed JSON document describes.

    Raises:
        MissingTypeError: No "type" field (or not a JSON object)
        MissingSubtypeError: Server tool without "subtype"
        UnknownSubtypeError: Subtype other than knowledge/webhook
        UnknownTypeError: Type other than client/server
    """
    if not isinstance(data, dict) or not data.get("type"):
        raise MissingTypeError('Missing required field: "type"')

    tool_type = data["type"]
    if tool_type == "client":
        return ToolKind.CLIENT

    if tool_type == "server":
        subtype = data.get("subtype")
        if not subtype:
            raise MissingSubtypeError('Server tools must have a "subtype" field')
        if subtype == "knowledge":
            return ToolKind.KNOWLEDGE
        if subtype == "webhook":
            return ToolKind.WEBHOOK
        raise UnknownSubtypeError(
            f'Invalid subtype: "{subtype}". Must be "knowledge" or "webhook"', subtype
        )

    raise UnknownTypeError(
        f'Invalid type: "{tool_type}". Must be "client" or "server"', tool_type
    )


def _optional_object(data: dict[str, Any], key: str) -> dict[str, Any] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValidationFailedError(
            f'"{key}" must be a JSON object', {key: f'"{key}" must be a JSON object'}
        )
    return value


def text_field(data: dict[str, Any], key: str) -> str:
    """Read an optional text field, treating null as empty."""
    value = data.get(key)
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def tool_from_dict(data: Any) -> Tool:
    """
    Build a typed tool record from a parsed JSON document.

    Name, description and URL content are not checked here; that is the job of
    the field validators. Structural problems (non-object webhook fragments,
    unknown HTTP method) raise ValidationFailedError; client parameters only
    need to be JSON.
    """
    kind = classify_tool(data)
    name = text_field(data, "name")
    description = text_field(data, "description")

    if kind == ToolKind.CLIENT:
        return ClientTool(
            name=name,
            description=description,
            parameters=data.get("parameters"),
        )

    if kind == ToolKind.KNOWLEDGE:
        folder_ids = data.get("documentFolderIds") or []
        if not isinstance(folder_ids, list) or not all(isinstance(f, str) for f in folder_ids):
            message = '"documentFolderIds" must be a list of folder ids'
            raise ValidationFailedError(message, {"folders": message})
        return KnowledgeTool(name=name, description=description, document_folder_ids=folder_ids)

    method = str(data.get("method") or DEFAULT_METHOD).upper()
    if method not in HTTP_METHODS:
        message = f"Method must be one of {', '.join(HTTP_METHODS)}"
        raise ValidationFailedError(message, {"method": message})

    await_response = data.get("awaitResponse")
    return WebhookTool(
        name=name,
        description=description,
        url=text_field(data, "url"),
        method=method,
        headers=_optional_object(data, "headers"),
        query_parameters=_optional_object(data, "queryParameters"),
        parameters=_optional_object(data, "parameters"),
        await_response=True if await_response is None else bool(await_response),
    )


def dumps_json(value: Any, indent: int = 2) -> str:
    """Pretty-print a value the way the JSON editor displays it."""
    return json.dumps(value, indent=indent, ensure_ascii=False)


def tool_to_json(tool: Tool, indent: int = 2) -> str:
    """Serialize a tool to its canonical JSON text."""
    return dumps_json(tool.to_dict(), indent=indent)

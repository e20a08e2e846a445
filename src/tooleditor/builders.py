"""
Schema Fragment Builders

Row editors behind the webhook "Advanced Settings" section and the client
parameters box. Each builder owns an ordered list of rows and re-emits the
JSON text it represents after every change; the JSON text, not the rows, is
what the draft keeps.

- HeadersBuilder: rows -> {"Header-Name": "value"}
- BodyParamsBuilder / QueryParamsBuilder: rows -> JSON Schema object
- SchemaBuilder: free-form JSON Schema text
"""

import itertools
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Literal

from tooleditor.errors import JsonSyntaxError
from tooleditor.tool_fields import parse_json, validate_json_string
from tooleditor.tool_types import dumps_json


DataType = Literal["string", "number", "boolean", "array", "object"]
DATA_TYPES: tuple[str, ...] = ("string", "number", "boolean", "array", "object")

ValueType = Literal["llm_prompt", "static"]
HeaderType = Literal["secret", "static"]

OnChange = Callable[[str], None]


class _RowIds:
    """Row ids only need to be unique inside one builder."""

    def __init__(self, prefix: str) -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def next(self) -> str:
        return f"{self._prefix}-{next(self._counter)}"


def _load_object(value: str) -> dict[str, Any] | None:
    if not value or not value.strip():
        return None
    try:
        parsed = parse_json(value)
    except JsonSyntaxError:
        return None
    return parsed if isinstance(parsed, dict) else None


# =============================================================================
# Headers
# =============================================================================


@dataclass
class HeaderRow:
    """One request header."""
    id: str
    type: HeaderType = "secret"
    name: str = ""
    value: str = ""


class HeadersBuilder:
    """Edits webhook headers as rows and emits them as a flat JSON object."""

    def __init__(self, value: str = "", on_change: OnChange | None = None) -> None:
        self._ids = _RowIds("header")
        self._on_change = on_change
        self.rows: list[HeaderRow] = []

        parsed = _load_object(value)
        if parsed:
            self.rows = [
                HeaderRow(
                    id=self._ids.next(),
                    type="static",
                    name=name,
                    value=val if isinstance(val, str) else dumps_json(val, indent=None),
                )
                for name, val in parsed.items()
            ]

    def to_object(self) -> dict[str, str]:
        return {row.name: row.value for row in self.rows if row.name}

    def to_json(self) -> str:
        return dumps_json(self.to_object())

    def _emit(self) -> None:
        if self._on_change is not None:
            self._on_change(self.to_json())

    def get_row(self, row_id: str) -> HeaderRow | None:
        for row in self.rows:
            if row.id == row_id:
                return row
        return None

    def add_row(self) -> HeaderRow:
        row = HeaderRow(id=self._ids.next())
        self.rows.append(row)
        self._emit()
        return row

    def remove_row(self, row_id: str) -> None:
        self.rows = [row for row in self.rows if row.id != row_id]
        self._emit()

    def update_row(self, row_id: str, **changes: Any) -> None:
        """Update fields (type, name, value) of one row."""
        self.rows = [replace(row, **changes) if row.id == row_id else row for row in self.rows]
        self._emit()


# =============================================================================
# Parameters (body / query)
# =============================================================================


@dataclass
class ParamRow:
    """
    One parameter in a JSON Schema "properties" map.

    Attributes:
        id: Row id, unique within its builder
        data_type: JSON Schema type
        identifier: Property name; rows without one are not emitted
        required: Listed in the schema's "required" array
        value_type: llm_prompt (the model fills it in) or static
        description: Extraction instructions for the model
        enum_values: Allowed values, in insertion order
        static_value: Fixed value for static rows, emitted as "const"
    """
    id: str
    data_type: DataType = "string"
    identifier: str = ""
    required: bool = False
    value_type: ValueType = "llm_prompt"
    description: str = ""
    enum_values: list[str] = field(default_factory=list)
    static_value: str = ""

    def to_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {
            "type": self.data_type,
            "description": self.description,
        }
        if self.enum_values:
            schema["enum"] = list(self.enum_values)
        if self.value_type == "static" and self.static_value:
            schema["const"] = self.static_value
        return schema


class ParamsBuilder:
    """Edits a JSON Schema object ("type": "object") one property per row."""

    ROW_PREFIX = "param"

    def __init__(self, value: str = "", on_change: OnChange | None = None) -> None:
        self._ids = _RowIds(self.ROW_PREFIX)
        self._on_change = on_change
        self.rows: list[ParamRow] = []

        parsed = _load_object(value)
        if parsed and parsed.get("type") == "object" and isinstance(parsed.get("properties"), dict):
            required = parsed.get("required")
            required_names = required if isinstance(required, list) else []
            self.rows = [
                self._row_from_schema(key, prop, key in required_names)
                for key, prop in parsed["properties"].items()
            ]

    def _row_from_schema(self, key: str, prop: Any, required: bool) -> ParamRow:
        prop = prop if isinstance(prop, dict) else {}
        data_type = prop.get("type") or "string"
        enum_values = prop.get("enum")
        has_const = "const" in prop
        return ParamRow(
            id=self._ids.next(),
            data_type=data_type,
            identifier=key,
            required=required,
            value_type="static" if has_const else "llm_prompt",
            description=prop.get("description") or "",
            enum_values=[str(v) for v in enum_values] if isinstance(enum_values, list) else [],
            static_value=str(prop["const"]) if has_const else "",
        )

    def to_schema(self) -> dict[str, Any]:
        properties: dict[str, Any] = {}
        required: list[str] = []

        for row in self.rows:
            if not row.identifier:
                continue
            properties[row.identifier] = row.to_schema()
            if row.required:
                required.append(row.identifier)

        schema: dict[str, Any] = {
            "type": "object",
            "properties": properties,
        }
        if required:
            schema["required"] = required
        return schema

    def to_json(self) -> str:
        return dumps_json(self.to_schema())

    def _emit(self) -> None:
        if self._on_change is not None:
            self._on_change(self.to_json())

    def get_row(self, row_id: str) -> ParamRow | None:
        for row in self.rows:
            if row.id == row_id:
                return row
        return None

    def add_row(self) -> ParamRow:
        row = ParamRow(id=self._ids.next())
        self.rows.append(row)
        self._emit()
        return row

    def remove_row(self, row_id: str) -> None:
        self.rows = [row for row in self.rows if row.id != row_id]
        self._emit()

    def update_row(self, row_id: str, **changes: Any) -> None:
        """Update fields of one row, e.g. ``update_row(rid, identifier="city")``."""
        data_type = changes.get("data_type")
        if data_type is not None and data_type not in DATA_TYPES:
            raise ValueError(f"Unknown data type: {data_type}")
        self.rows = [replace(row, **changes) if row.id == row_id else row for row in self.rows]
        self._emit()

    def add_enum_value(self, row_id: str, value: str) -> bool:
        """Append an enum value. Blank and duplicate values are ignored."""
        value = value.strip()
        row = self.get_row(row_id)
        if row is None or not value or value in row.enum_values:
            return False
        self.update_row(row_id, enum_values=[*row.enum_values, value])
        return True

    def remove_enum_value(self, row_id: str, value: str) -> bool:
        """Remove an enum value. Removing a value that is not present does nothing."""
        row = self.get_row(row_id)
        if row is None or value not in row.enum_values:
            return False
        self.update_row(row_id, enum_values=[v for v in row.enum_values if v != value])
        return True


class BodyParamsBuilder(ParamsBuilder):
    """Parameters the model collects and sends in the request body."""
    ROW_PREFIX = "body"


class QueryParamsBuilder(ParamsBuilder):
    """Parameters the model collects and sends in the query string."""
    ROW_PREFIX = "query"


# =============================================================================
# Raw Schema
# =============================================================================


class SchemaBuilder:
    """Free-form JSON Schema text for client tool parameters."""

    PLACEHOLDER = '{\n  "type": "object",\n  "properties": {}\n}'

    def __init__(self, value: str = "", on_change: OnChange | None = None) -> None:
        self.value = value
        self._on_change = on_change

    def set_text(self, text: str) -> None:
        self.value = text
        if self._on_change is not None:
            self._on_change(text)

    @property
    def error(self) -> str | None:
        return validate_json_string(self.value).error

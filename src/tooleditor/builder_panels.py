"""
Builder Panels

Textual widgets for the dialog's "Advanced Settings": one row of inputs per
header or parameter. The panels only drive a builder; the builder's own
``on_change`` callback is what writes the JSON text back into the draft.

Every edit posts a BuilderChanged message so the dialog can refresh the
field error labels.
"""

from typing import Any

from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widgets import Button, Checkbox, Input, Label, Select

from tooleditor.builders import DATA_TYPES, HeaderRow, HeadersBuilder, ParamRow, ParamsBuilder

HEADER_TYPES = [("Secret", "secret"), ("Static", "static")]
VALUE_TYPES = [("LLM Prompt", "llm_prompt"), ("Static", "static")]


class BuilderChanged(Message):
    """A builder re-emitted its JSON text."""


# =============================================================================
# Rows
# =============================================================================


class BuilderRow(Vertical):
    """Base for one editable row bound to a builder row id."""

    DEFAULT_CSS = """
    BuilderRow {
        height: auto;
        border: round $primary-background;
        padding: 0 1;
        margin: 0 0 1 0;
    }

    BuilderRow .row-fields {
        height: auto;
    }

    BuilderRow Select {
        width: 20;
    }

    BuilderRow Input {
        width: 1fr;
    }
    """

    class Removed(Message):
        """The row's Delete button was pressed."""

        def __init__(self, row: "BuilderRow") -> None:
            super().__init__()
            self.row = row

    def __init__(self, builder: Any, row_id: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.builder = builder
        self.row_id = row_id
        self.add_class("builder-row")

    def _current_row(self) -> Any:
        return self.builder.get_row(self.row_id)

    def _update_row(self, **changes: Any) -> None:
        self.builder.update_row(self.row_id, **changes)
        self.post_message(BuilderChanged())

    @on(Button.Pressed, ".remove-row")
    def _remove_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        # Removal is left to the panel
        self.post_message(self.Removed(self))


class HeaderRowView(BuilderRow):
    """Type, name and value of one header. Secret headers carry no value here."""

    def __init__(self, builder: HeadersBuilder, row: HeaderRow, **kwargs: Any) -> None:
        super().__init__(builder, row.id, **kwargs)
        self._initial = row

    def compose(self) -> ComposeResult:
        row = self._initial
        with Horizontal(classes="row-fields"):
            yield Select(HEADER_TYPES, value=row.type, allow_blank=False, classes="header-type")
            yield Input(row.name, placeholder="Authorization", classes="header-name")
            yield Input(row.value, placeholder="Bearer token_here", classes="header-value")
            yield Button("Delete", classes="remove-row")

    def on_mount(self) -> None:
        self.query_one(".header-value", Input).display = self._initial.type == "static"

    @on(Select.Changed, ".header-type")
    def _type_changed(self, event: Select.Changed) -> None:
        event.stop()
        row = self._current_row()
        if row is not None and event.value != row.type:
            self._update_row(type=str(event.value))
        self.query_one(".header-value", Input).display = event.value == "static"

    @on(Input.Changed, ".header-name")
    def _name_changed(self, event: Input.Changed) -> None:
        event.stop()
        row = self._current_row()
        if row is not None and event.value != row.name:
            self._update_row(name=event.value)

    @on(Input.Changed, ".header-value")
    def _value_changed(self, event: Input.Changed) -> None:
        event.stop()
        row = self._current_row()
        if row is not None and event.value != row.value:
            self._update_row(value=event.value)


class ParamRowView(BuilderRow):
    """
    One JSON Schema property.

    Layout:
    - data type, identifier, required, delete
    - value type and, for static rows, the fixed value
    - description for the model
    - enum input with one removable button per value
    """

    def __init__(self, builder: ParamsBuilder, row: ParamRow, **kwargs: Any) -> None:
        super().__init__(builder, row.id, **kwargs)
        self._initial = row

    def compose(self) -> ComposeResult:
        row = self._initial
        data_types = [(t.capitalize(), t) for t in DATA_TYPES]
        if row.data_type not in DATA_TYPES:
            data_types.append((row.data_type, row.data_type))

        with Horizontal(classes="row-fields"):
            yield Select(data_types, value=row.data_type, allow_blank=False, classes="param-type")
            yield Input(row.identifier, placeholder="param_name", classes="param-identifier")
            yield Checkbox("Required", row.required, classes="param-required")
            yield Button("Delete", classes="remove-row")
        with Horizontal(classes="row-fields"):
            yield Select(VALUE_TYPES, value=row.value_type, allow_blank=False, classes="param-value-type")
            yield Input(row.static_value, placeholder="Fixed value", classes="param-static")
        yield Input(
            row.description,
            placeholder="Describe how to extract this parameter...",
            classes="param-description",
        )
        with Horizontal(classes="row-fields"):
            yield Input(placeholder="Enter an enum value", classes="enum-input")
            yield Button("+", classes="add-enum")
        yield Horizontal(*self._enum_buttons(row.enum_values), classes="row-fields enum-values")

    def on_mount(self) -> None:
        self.query_one(".param-static", Input).display = self._initial.value_type == "static"

    @staticmethod
    def _enum_buttons(values: list[str]) -> list[Button]:
        return [Button(f"{value} ✕", name=value, classes="enum-value") for value in values]

    def _render_enum_values(self) -> None:
        row = self._current_row()
        container = self.query_one(".enum-values", Horizontal)
        container.remove_children()
        if row is not None and row.enum_values:
            container.mount_all(self._enum_buttons(row.enum_values))

    @on(Select.Changed, ".param-type")
    def _type_changed(self, event: Select.Changed) -> None:
        event.stop()
        row = self._current_row()
        if row is not None and event.value != row.data_type and event.value in DATA_TYPES:
            self._update_row(data_type=str(event.value))

    @on(Input.Changed, ".param-identifier")
    def _identifier_changed(self, event: Input.Changed) -> None:
        event.stop()
        row = self._current_row()
        if row is not None and event.value != row.identifier:
            self._update_row(identifier=event.value)

    @on(Checkbox.Changed, ".param-required")
    def _required_changed(self, event: Checkbox.Changed) -> None:
        event.stop()
        row = self._current_row()
        if row is not None and event.value != row.required:
            self._update_row(required=event.value)

    @on(Select.Changed, ".param-value-type")
    def _value_type_changed(self, event: Select.Changed) -> None:
        event.stop()
        row = self._current_row()
        if row is not None and event.value != row.value_type:
            self._update_row(value_type=str(event.value))
        self.query_one(".param-static", Input).display = event.value == "static"

    @on(Input.Changed, ".param-static")
    def _static_changed(self, event: Input.Changed) -> None:
        event.stop()
        row = self._current_row()
        if row is not None and event.value != row.static_value:
            self._update_row(static_value=event.value)

    @on(Input.Changed, ".param-description")
    def _description_changed(self, event: Input.Changed) -> None:
        event.stop()
        row = self._current_row()
        if row is not None and event.value != row.description:
            self._update_row(description=event.value)

    @on(Button.Pressed, ".add-enum")
    @on(Input.Submitted, ".enum-input")
    def _add_enum_value(self, event: Button.Pressed | Input.Submitted) -> None:
        event.stop()
        enum_input = self.query_one(".enum-input", Input)
        if self.builder.add_enum_value(self.row_id, enum_input.value):
            enum_input.value = ""
            self._render_enum_values()
            self.post_message(BuilderChanged())

    @on(Button.Pressed, ".enum-value")
    def _remove_enum_value(self, event: Button.Pressed) -> None:
        event.stop()
        if self.builder.remove_enum_value(self.row_id, event.button.name or ""):
            self._render_enum_values()
            self.post_message(BuilderChanged())


# =============================================================================
# Panels
# =============================================================================


class BuilderPanel(Vertical):
    """Heading, the rows of one builder and an add button."""

    DEFAULT_CSS = """
    BuilderPanel {
        height: auto;
    }

    BuilderPanel .builder-rows {
        height: auto;
    }
    """

    ADD_LABEL = "Add row"

    def __init__(self, heading: str, builder: Any, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.heading = heading
        self.builder = builder

    def compose(self) -> ComposeResult:
        yield Label(self.heading, classes="field-label")
        yield Vertical(classes="builder-rows")
        yield Button(self.ADD_LABEL, classes="add-row")

    def on_mount(self) -> None:
        self._render_rows()

    def make_row(self, row: Any) -> BuilderRow:
        raise NotImplementedError

    def load(self, builder: Any) -> None:
        """Replace the builder, e.g. after the form was repopulated from JSON."""
        self.builder = builder
        self._render_rows()

    def _render_rows(self) -> None:
        rows = self.query_one(".builder-rows", Vertical)
        rows.remove_children()
        if self.builder.rows:
            rows.mount_all([self.make_row(row) for row in self.builder.rows])

    @on(Button.Pressed, ".add-row")
    def _add_row(self, event: Button.Pressed) -> None:
        event.stop()
        row = self.builder.add_row()
        self.query_one(".builder-rows", Vertical).mount(self.make_row(row))
        self.post_message(BuilderChanged())

    @on(BuilderRow.Removed)
    def _remove_row(self, event: BuilderRow.Removed) -> None:
        event.stop()
        self.builder.remove_row(event.row.row_id)
        event.row.remove()
        self.post_message(BuilderChanged())


class HeadersPanel(BuilderPanel):
    ADD_LABEL = "Add header"

    def make_row(self, row: HeaderRow) -> BuilderRow:
        return HeaderRowView(self.builder, row)


class ParamsPanel(BuilderPanel):
    ADD_LABEL = "Add param"

    def make_row(self, row: ParamRow) -> BuilderRow:
        return ParamRowView(self.builder, row)

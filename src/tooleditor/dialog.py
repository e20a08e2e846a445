"""
Tool Editor Dialog

Modal Textual screen wired to an EditorSession. The screen only mirrors the
session's draft into widgets and forwards widget changes back to the draft;
validation, mode switching and saving all happen in the session.

Dismisses with the saved Tool, or None when cancelled.
"""

import logging
from typing import Any

from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import (
    Button,
    Collapsible,
    Input,
    Label,
    Select,
    SelectionList,
    Static,
    Switch,
    TextArea,
)

from tooleditor.builder_panels import BuilderChanged, HeadersPanel, ParamsPanel
from tooleditor.draft import (
    DESCRIPTION,
    FOLDERS,
    HEADERS,
    NAME,
    PARAMETERS,
    QUERY_PARAMETERS,
    URL,
    EditMode,
)
from tooleditor.folders import document_label
from tooleditor.session import EditorSession
from tooleditor.tool_types import HTTP_METHODS, Tool, ToolKind

logger = logging.getLogger(__name__)

FIELD_ERROR_KEYS = (NAME, DESCRIPTION, URL, HEADERS, QUERY_PARAMETERS, PARAMETERS, FOLDERS)


class ToolEditorScreen(ModalScreen["Tool | None"]):
    """
    Create or edit one tool.

    Shows:
    - Tool kind selector (locked when editing)
    - Form view with the fields of the selected kind
    - JSON view with the tool document
    - Save/Cancel buttons
    """

    DEFAULT_CSS = """
    ToolEditorScreen {
        align: center middle;
    }

    #editor-dialog {
        width: 90;
        height: 90%;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }

    #editor-title {
        text-style: bold;
        width: 100%;
        margin: 0 0 1 0;
    }

    #mode-bar, #editor-buttons {
        height: 3;
    }

    #mode-bar Button, #editor-buttons Button {
        margin: 0 1 0 0;
    }

    #form-view, #json-view {
        height: 1fr;
    }

    .field-label {
        margin: 1 0 0 0;
        text-style: bold;
    }

    .field-error, #json-error {
        color: $error;
    }

    TextArea {
        height: 8;
    }

    #raw-json {
        height: 1fr;
    }

    #folder-list {
        height: 10;
    }

    #system-notice {
        color: $warning;
        margin: 1 0;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=True),
        Binding("ctrl+s", "save", "Save", show=True),
    ]

    def __init__(
        self,
        session: EditorSession,
        tool: Tool | None = None,
        initial_kind: ToolKind | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.session = session
        self.editing = tool
        self.session.open(tool, initial_kind)
        self._schema = self.session.schema_builder()
        self._folder_query = ""

    # -------------------------------------------------------------------------
    # Layout
    # -------------------------------------------------------------------------

    def compose(self) -> ComposeResult:
        draft = self.session.draft
        title = f"Edit Tool: {self.editing.name}" if self.editing else "Create Tool"

        with Vertical(id="editor-dialog"):
            yield Label(title, id="editor-title")

            with Horizontal(id="mode-bar"):
                yield Select(
                    [(kind.label, kind.value) for kind in ToolKind],
                    value=draft.kind.value,
                    allow_blank=False,
                    disabled=draft.kind_locked,
                    id="tool-kind",
                )
                yield Button("Form", id="mode-form")
                yield Button("JSON", id="mode-json")

            with VerticalScroll(id="form-view"):
                yield Label("Name", classes="field-label")
                yield Input(draft.name, placeholder="get_weather", id="tool-name")
                yield Label("", classes=f"field-error error-{NAME}")

                yield Label("Description", classes="field-label")
                yield Input(
                    draft.description,
                    placeholder="Describe when the assistant should use this tool",
                    id="tool-description",
                )
                yield Label("", classes=f"field-error error-{DESCRIPTION}")

                yield Static("System tools are not yet supported", id="system-notice")

                with Vertical(id="webhook-fields"):
                    yield Label("URL", classes="field-label")
                    yield Input(draft.url, placeholder="https://api.example.com/endpoint", id="webhook-url")
                    yield Label("", classes=f"field-error error-{URL}")

                    yield Label("Method", classes="field-label")
                    yield Select(
                        [(method, method) for method in HTTP_METHODS],
                        value=draft.method,
                        allow_blank=False,
                        id="webhook-method",
                    )

                    yield Label("Wait for response", classes="field-label")
                    yield Switch(draft.await_response, id="await-response")

                    with Collapsible(title="Advanced Settings", id="webhook-advanced"):
                        yield HeadersPanel("Headers", self.session.headers_builder(), id="headers")
                        yield Label("", classes=f"field-error error-{HEADERS}")

                        yield ParamsPanel(
                            "Query parameters",
                            self.session.query_params_builder(),
                            id="query-parameters",
                        )
                        yield Label("", classes=f"field-error error-{QUERY_PARAMETERS}")

                        yield ParamsPanel(
                            "Body parameters",
                            self.session.body_params_builder(),
                            id="webhook-parameters",
                        )
                        yield Label("", classes=f"field-error error-{PARAMETERS}")

                with Vertical(id="client-fields"):
                    with Collapsible(title="Advanced Settings", id="client-advanced"):
                        yield Label("Parameters Schema", classes="field-label")
                        yield TextArea(self._schema.value, id="client-parameters")
                        yield Label("", classes=f"field-error error-{PARAMETERS}")

                with Vertical(id="knowledge-fields"):
                    yield Label("Knowledge folders", classes="field-label")
                    yield Input(placeholder="Search folders", id="folder-search")
                    yield SelectionList[str](id="folder-list")
                    yield Label("", id="folder-summary")
                    yield Label("", classes=f"field-error error-{FOLDERS}")
                    yield Button("Upload Files", id="upload-files")

            with Vertical(id="json-view"):
                yield TextArea(draft.raw_json, id="raw-json")
                yield Label("", id="json-error")
                yield Button("See Example", id="load-example")

            with Horizontal(id="editor-buttons"):
                yield Button("Save", variant="primary", id="save")
                yield Button("Cancel", id="cancel")

    def on_mount(self) -> None:
        self._render_folders()
        self._refresh()
        self.query_one("#tool-name", Input).focus()

    # -------------------------------------------------------------------------
    # Draft -> widgets
    # -------------------------------------------------------------------------

    def _refresh(self) -> None:
        """Show the parts of the dialog that match the draft's kind and mode."""
        if not self.session.is_open:
            return
        draft = self.session.draft
        in_form = draft.mode == EditMode.FORM

        self.query_one("#form-view").display = in_form
        self.query_one("#json-view").display = not in_form
        self.query_one("#mode-form", Button).variant = "primary" if in_form else "default"
        self.query_one("#mode-json", Button).variant = "default" if in_form else "primary"

        self.query_one("#webhook-fields").display = draft.kind == ToolKind.WEBHOOK
        self.query_one("#client-fields").display = draft.kind == ToolKind.CLIENT
        self.query_one("#knowledge-fields").display = draft.kind == ToolKind.KNOWLEDGE
        self.query_one("#system-notice").display = draft.kind == ToolKind.SYSTEM
        self.query_one("#folder-search").display = self.session.folder_browser.should_show_search
        self.query_one("#save", Button).disabled = self.session.is_saving

        self._show_errors()

    def _show_errors(self) -> None:
        draft = self.session.draft
        for key in FIELD_ERROR_KEYS:
            message = draft.errors.get(key, "")
            for label in self.query(f".error-{key}").results(Label):
                label.update(message)
                label.display = bool(message)

        json_error = self.query_one("#json-error", Label)
        json_error.update(draft.json_error)
        json_error.display = bool(draft.json_error)

        self.query_one("#folder-summary", Label).update(
            self.session.folder_browser.selection_summary()
        )

    def _load_fields(self) -> None:
        """Copy every draft field into its widget after the form was repopulated."""
        draft = self.session.draft
        self.query_one("#tool-kind", Select).value = draft.kind.value
        self.query_one("#tool-name", Input).value = draft.name
        self.query_one("#tool-description", Input).value = draft.description
        self.query_one("#webhook-url", Input).value = draft.url
        if draft.method in HTTP_METHODS:
            self.query_one("#webhook-method", Select).value = draft.method
        self.query_one("#await-response", Switch).value = draft.await_response
        self.query_one("#headers", HeadersPanel).load(self.session.headers_builder())
        self.query_one("#query-parameters", ParamsPanel).load(self.session.query_params_builder())
        self.query_one("#webhook-parameters", ParamsPanel).load(self.session.body_params_builder())
        self._schema = self.session.schema_builder()
        self.query_one("#client-parameters", TextArea).load_text(draft.client_parameters)
        self._render_folders()

    def _render_folders(self) -> None:
        browser = self.session.folder_browser
        folder_list = self.query_one("#folder-list", SelectionList)
        folder_list.clear_options()
        folder_list.add_options([
            (f"{folder.name} ({document_label(folder)})", folder.id, browser.is_selected(folder.id))
            for folder in browser.filter(self._folder_query)
        ])

    # -------------------------------------------------------------------------
    # Widgets -> draft
    # -------------------------------------------------------------------------

    @on(Select.Changed, "#tool-kind")
    def _kind_changed(self, event: Select.Changed) -> None:
        kind = ToolKind(event.value)
        if kind != self.session.draft.kind:
            self.session.set_kind(kind)
            self._refresh()

    @on(Select.Changed, "#webhook-method")
    def _method_changed(self, event: Select.Changed) -> None:
        if event.value != self.session.draft.method:
            self.session.draft.set_method(str(event.value))

    @on(Input.Changed, "#tool-name")
    def _name_changed(self, event: Input.Changed) -> None:
        if event.value != self.session.draft.name:
            self.session.draft.set_name(event.value)
            self._show_errors()

    @on(Input.Changed, "#tool-description")
    def _description_changed(self, event: Input.Changed) -> None:
        if event.value != self.session.draft.description:
            self.session.draft.set_description(event.value)
            self._show_errors()

    @on(Input.Changed, "#webhook-url")
    def _url_changed(self, event: Input.Changed) -> None:
        if event.value != self.session.draft.url:
            self.session.draft.set_url(event.value)
            self._show_errors()

    @on(Input.Changed, "#folder-search")
    def _folder_search_changed(self, event: Input.Changed) -> None:
        self._folder_query = event.value
        self._render_folders()

    @on(Switch.Changed, "#await-response")
    def _await_response_changed(self, event: Switch.Changed) -> None:
        self.session.draft.set_await_response(event.value)

    @on(TextArea.Changed)
    def _text_changed(self, event: TextArea.Changed) -> None:
        if not self.session.is_open:
            return
        draft = self.session.draft
        text = event.text_area.text
        setters = {
            "client-parameters": (draft.client_parameters, self._schema.set_text),
            "raw-json": (draft.raw_json, draft.set_raw_json),
        }
        current, setter = setters.get(event.text_area.id or "", (text, None))
        if setter is not None and text != current:
            setter(text)
            self._show_errors()

    @on(BuilderChanged)
    def _builder_changed(self, event: BuilderChanged) -> None:
        event.stop()
        if self.session.is_open:
            self._show_errors()

    @on(SelectionList.SelectedChanged, "#folder-list")
    def _folders_changed(self, event: SelectionList.SelectedChanged) -> None:
        if not self.session.is_open:
            return
        checked = set(event.selection_list.selected)
        browser = self.session.folder_browser
        # Only visible folders can change; hidden selections are kept
        for folder in browser.filter(self._folder_query):
            if (folder.id in checked) != browser.is_selected(folder.id):
                self.session.toggle_folder(folder.id)
        self._show_errors()

    # -------------------------------------------------------------------------
    # Buttons and actions
    # -------------------------------------------------------------------------

    @on(Button.Pressed, "#mode-json")
    def _show_json(self) -> None:
        if self.session.draft.mode == EditMode.JSON:
            return
        text = self.session.switch_to_json()
        self.query_one("#raw-json", TextArea).load_text(text)
        self._refresh()

    @on(Button.Pressed, "#mode-form")
    def _show_form(self) -> None:
        if self.session.draft.mode == EditMode.FORM:
            return
        self.run_worker(self._switch_to_form(), name="switch-to-form", group="tool-editor")

    async def _switch_to_form(self) -> None:
        if await self.session.switch_to_form():
            self._load_fields()
        self._refresh()

    @on(Button.Pressed, "#load-example")
    def _load_example(self) -> None:
        text = self.session.synchronizer.load_example()
        self.query_one("#raw-json", TextArea).load_text(text)
        self._show_errors()

    @on(Button.Pressed, "#upload-files")
    def _upload_files(self) -> None:
        if self.session.upload_files():
            self.dismiss(None)

    @on(Button.Pressed, "#save")
    def _save_pressed(self) -> None:
        self.action_save()

    @on(Button.Pressed, "#cancel")
    def _cancel_pressed(self) -> None:
        self.action_cancel()

    def action_save(self) -> None:
        self.run_worker(self._save(), name="save-tool", group="tool-editor")

    async def _save(self) -> None:
        self.query_one("#save", Button).disabled = True
        result = await self.session.save()
        if result.success:
            self.dismiss(result.tool)
            return
        self._refresh()

    def action_cancel(self) -> None:
        if self.session.close():
            logger.debug("Tool editor cancelled")
            self.dismiss(None)

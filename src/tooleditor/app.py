"""
Tool Editor Application

Textual app hosting the tool editor dialog. Saved tools are kept in the
configured persistence collaborator and listed in a table; selecting a row
opens it for editing.
"""

import logging
from typing import Any

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import DataTable, Footer, Header, Label

from tooleditor.collaborators import FolderOwnershipChecker, InMemoryToolStore
from tooleditor.config import EditorConfig
from tooleditor.dialog import ToolEditorScreen
from tooleditor.session import EditorSession
from tooleditor.tool_types import Tool, ToolKind

logger = logging.getLogger(__name__)


class ToolEditorApp(App):
    """
    Tool Editor

    Bindings:
    - n: create a tool of the configured default kind
    - w / c / k: create a webhook, client or knowledge tool
    - enter on a row: edit that tool
    """

    TITLE = "Tool Editor"
    SUB_TITLE = "Client, knowledge and webhook tools"

    DEFAULT_CSS = """
    #saved-label {
        text-style: bold;
        padding: 0 1;
    }

    #saved-tools {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("n", "new_tool", "New Tool", show=True),
        Binding("w", "new_tool('webhook')", "New Webhook", show=True),
        Binding("c", "new_tool('client')", "New Client Tool", show=True),
        Binding("k", "new_tool('knowledge')", "New Knowledge Tool", show=True),
    ]

    def __init__(
        self,
        config: EditorConfig | None = None,
        store: InMemoryToolStore | None = None,
        ownership_checker: FolderOwnershipChecker | None = None,
        initial_tool: Tool | None = None,
        open_on_start: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.config = config or EditorConfig()
        self.store = store or InMemoryToolStore()
        self.ownership_checker = ownership_checker or FolderOwnershipChecker(
            self.config.owned_folder_ids
        )
        self.initial_tool = initial_tool
        self._editing_name: str | None = None
        self.open_on_start = open_on_start or initial_tool is not None
        self.session = EditorSession.from_config(
            self.config, self.store, self.ownership_checker, notify=self._notify
        )

    def compose(self) -> ComposeResult:
        yield Header()
        yield Label("SAVED TOOLS", id="saved-label")
        yield DataTable(id="saved-tools", cursor_type="row")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#saved-tools", DataTable)
        table.add_columns("Name", "Kind", "Description")
        self._refresh_table()
        if self.open_on_start:
            self.open_editor(self.initial_tool)

    def _notify(self, message: str, *, severity: str = "information", **kwargs: Any) -> None:
        self.notify(
            message,
            severity=severity,
            timeout=self.config.notification_timeout,
            **kwargs,
        )

    def _refresh_table(self) -> None:
        table = self.query_one("#saved-tools", DataTable)
        table.clear()
        for tool in self.store.tools.values():
            table.add_row(tool.name, tool.kind.label, tool.description, key=tool.name)

    def open_editor(self, tool: Tool | None = None, kind: ToolKind | None = None) -> None:
        """Push the editor dialog for a new tool or an existing one."""
        if self.session.is_open:
            return
        self._editing_name = tool.name if tool is not None else None
        self.push_screen(ToolEditorScreen(self.session, tool, kind), self._editor_closed)

    def _editor_closed(self, tool: Tool | None) -> None:
        previous, self._editing_name = self._editing_name, None
        if tool is None:
            return
        # A renamed tool replaces the entry it was opened from
        if previous is not None and previous != tool.name:
            self.store.remove(previous)
        logger.info(f"Editor closed after saving {tool.name}")
        self._refresh_table()

    def action_new_tool(self, kind: str | None = None) -> None:
        self.open_editor(kind=ToolKind(kind) if kind else None)

    @on(DataTable.RowSelected, "#saved-tools")
    def _edit_selected(self, event: DataTable.RowSelected) -> None:
        tool = self.store.tools.get(str(event.row_key.value))
        if tool is not None:
            self.open_editor(tool)

"""
Editor Session

One EditorSession backs the tool editor dialog for its whole lifetime. Each
``open`` starts from a brand new draft, so nothing typed in a previous session
leaks into the next one; ``close`` drops the draft again.

Usage:
    session = EditorSession(store, checker, folders, notify=app.notify)
    session.open()                       # new tool
    session.open(existing_tool)          # edit
    result = await session.save()        # closes on success
"""

import logging
from typing import Callable, Iterable

from tooleditor.builders import BodyParamsBuilder, HeadersBuilder, QueryParamsBuilder, SchemaBuilder
from tooleditor.collaborators import Notifier, OwnershipChecker, ToolPersistence, log_notifier
from tooleditor.config import EditorConfig
from tooleditor.draft import EditMode, ToolDraft
from tooleditor.folders import FolderBrowser, KnowledgeFolder
from tooleditor.save import SaveOrchestrator, SaveResult
from tooleditor.sync import FormJsonSynchronizer
from tooleditor.tool_types import Tool, ToolKind

logger = logging.getLogger(__name__)

CLOSE_BLOCKED_MESSAGE = "Please wait for the save to finish"


class EditorSession:
    """
    Lifecycle and wiring for one tool editor.

    Args:
        persistence: Stores saved tools
        ownership_checker: Verifies knowledge folder ownership
        folders: Knowledge folders the user can pick from
        notify: Notification sink, same signature as ``App.notify``
        default_kind: Kind preselected for new tools
        force_knowledge: Lock new tools to the knowledge kind
        indent: Indent of the JSON editor text
        on_close: Called after the editor closes
        on_navigate_upload: Called by "Upload Files" after the editor closes
    """

    def __init__(
        self,
        persistence: ToolPersistence,
        ownership_checker: OwnershipChecker,
        folders: Iterable[KnowledgeFolder] = (),
        notify: Notifier | None = None,
        *,
        default_kind: ToolKind = ToolKind.WEBHOOK,
        force_knowledge: bool = False,
        indent: int = 2,
        on_close: Callable[[], None] | None = None,
        on_navigate_upload: Callable[[], None] | None = None,
    ) -> None:
        self.persistence = persistence
        self.ownership_checker = ownership_checker
        self.folders = tuple(folders)
        self.notify = notify or log_notifier
        self.default_kind = default_kind
        self.force_knowledge = force_knowledge
        self.indent = indent
        self.on_close = on_close
        self.on_navigate_upload = on_navigate_upload

        self.orchestrator = SaveOrchestrator(persistence, ownership_checker, self.notify)
        self._draft: ToolDraft | None = None
        self._sync: FormJsonSynchronizer | None = None
        self.folder_browser = FolderBrowser(self.folders)

    @classmethod
    def from_config(
        cls,
        config: EditorConfig,
        persistence: ToolPersistence,
        ownership_checker: OwnershipChecker,
        notify: Notifier | None = None,
        **kwargs,
    ) -> "EditorSession":
        return cls(
            persistence,
            ownership_checker,
            config.knowledge_folders,
            notify,
            default_kind=config.tool_kind,
            force_knowledge=config.force_knowledge,
            indent=config.json_indent,
            **kwargs,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._draft is not None

    @property
    def is_saving(self) -> bool:
        return self.orchestrator.is_saving

    @property
    def draft(self) -> ToolDraft:
        if self._draft is None:
            raise RuntimeError("Tool editor is not open")
        return self._draft

    @property
    def synchronizer(self) -> FormJsonSynchronizer:
        if self._sync is None:
            raise RuntimeError("Tool editor is not open")
        return self._sync

    def open(self, tool: Tool | None = None, initial_kind: ToolKind | None = None) -> ToolDraft:
        """Start a fresh session, seeded from tool when editing."""
        if tool is not None:
            draft = ToolDraft.from_tool(tool, indent=self.indent)
        elif self.force_knowledge:
            draft = ToolDraft.fresh(ToolKind.KNOWLEDGE, indent=self.indent)
            draft.kind_locked = True
        else:
            draft = ToolDraft.fresh(initial_kind or self.default_kind, indent=self.indent)

        self._draft = draft
        self._sync = FormJsonSynchronizer(draft, self.ownership_checker, self.notify)
        self.folder_browser = FolderBrowser(self.folders, selected=draft.selected_folders)

        action = f"Editing {tool.name}" if tool is not None else "New tool"
        logger.debug(f"{action} ({draft.kind.value})")
        return draft

    def close(self) -> bool:
        """
        Close the editor and drop the draft.

        Returns:
            False if a save is still running; the editor stays open
        """
        if self.orchestrator.is_saving:
            logger.info("Close requested while a save is in flight")
            self.notify(CLOSE_BLOCKED_MESSAGE, severity="warning")
            return False

        self._draft = None
        self._sync = None
        if self.on_close is not None:
            self.on_close()
        return True

    async def save(self) -> SaveResult:
        """Save the draft; the editor closes only if the save succeeds."""
        result = await self.orchestrator.save(self.draft)
        if result.success:
            self.close()
        return result

    def upload_files(self) -> bool:
        """Leave the editor for the document upload page."""
        if not self.close():
            return False
        if self.on_navigate_upload is not None:
            self.on_navigate_upload()
        return True

    # -------------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------------

    def set_kind(self, kind: ToolKind) -> bool:
        return self.draft.set_kind(kind)

    def switch_to_json(self) -> str:
        return self.synchronizer.switch_to_json()

    async def switch_to_form(self) -> bool:
        switched = await self.synchronizer.switch_to_form()
        if switched:
            self.folder_browser.set_selection(self.draft.selected_folders)
        return switched

    async def set_mode(self, mode: EditMode) -> bool:
        """Switch to mode. Returns True if the editor now shows it."""
        if mode == self.draft.mode:
            return True
        if mode == EditMode.JSON:
            self.switch_to_json()
            return True
        return await self.switch_to_form()

    def toggle_folder(self, folder_id: str) -> bool:
        selected = self.draft.toggle_folder(folder_id)
        self.folder_browser.set_selection(self.draft.selected_folders)
        return selected

    # -------------------------------------------------------------------------
    # Builders bound to the draft
    # -------------------------------------------------------------------------

    def headers_builder(self) -> HeadersBuilder:
        return HeadersBuilder(self.draft.headers, on_change=self.draft.set_headers)

    def query_params_builder(self) -> QueryParamsBuilder:
        return QueryParamsBuilder(
            self.draft.query_parameters, on_change=self.draft.set_query_parameters
        )

    def body_params_builder(self) -> BodyParamsBuilder:
        return BodyParamsBuilder(
            self.draft.webhook_parameters, on_change=self.draft.set_webhook_parameters
        )

    def schema_builder(self) -> SchemaBuilder:
        return SchemaBuilder(self.draft.client_parameters, on_change=self.draft.set_client_parameters)

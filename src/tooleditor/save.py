"""
Save Orchestrator

Turns the current draft into a typed tool and hands it to the persistence
collaborator. The representation being shown decides how the draft is read:

- JSON mode: the buffer is validated fail-fast; the first problem goes to the
  JSON error slot.
- Form mode: every field is validated at once and all failing fields are
  marked before the save aborts.

Knowledge tools additionally pass the folder ownership check before they are
persisted. Only one save may be in flight at a time.

Usage:
    from tooleditor.save import SaveOrchestrator

    orchestrator = SaveOrchestrator(store, ownership_checker, notify=app.notify)
    result = await orchestrator.save(draft)
    if result.success:
        ...
"""

import logging
from dataclasses import dataclass
from typing import Any

from tooleditor.collaborators import (
    Notifier,
    OwnershipChecker,
    ToolPersistence,
    check_folder_ownership,
    log_notifier,
)
from tooleditor.draft import FOLDERS, NAME, EditMode, ToolDraft
from tooleditor.errors import (
    EmptyDocumentError,
    InvalidNameError,
    JsonSyntaxError,
    MissingFieldError,
    OwnershipDeniedError,
    PersistenceError,
    SaveInProgressError,
    ToolEditorError,
    UnsupportedToolKindError,
    ValidationFailedError,
)
from tooleditor.sync import form_to_document
from tooleditor.tool_fields import (
    ValidationResult,
    parse_json,
    validate_client_tool,
    validate_knowledge_tool,
    validate_webhook_tool,
)
from tooleditor.tool_name import validate_tool_name
from tooleditor.tool_types import (
    KnowledgeTool,
    Tool,
    ToolKind,
    classify_tool,
    dumps_json,
    text_field,
    tool_from_dict,
)

logger = logging.getLogger(__name__)

FORM_INVALID_MESSAGE = "Please fix the validation errors before saving"
SAVED_MESSAGE = "Tool saved"


@dataclass
class SaveResult:
    """Result of a save attempt."""
    success: bool
    message: str
    tool: Tool | None = None
    error: ToolEditorError | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "message": self.message,
            "tool": self.tool.to_dict() if self.tool is not None else None,
            "error_kind": self.error.kind.value if self.error is not None else None,
        }


# =============================================================================
# Validation Helpers
# =============================================================================


def _document_fragment(value: Any) -> str:
    """Text form of a JSON-bearing value found inside a parsed document."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return dumps_json(value)


def _validate_document(kind: ToolKind, document: dict[str, Any]) -> ValidationResult:
    name = text_field(document, "name")
    description = text_field(document, "description")

    if kind == ToolKind.CLIENT:
        return validate_client_tool(
            name, description, _document_fragment(document.get("parameters"))
        )
    if kind == ToolKind.KNOWLEDGE:
        folder_ids = document.get("documentFolderIds")
        return validate_knowledge_tool(
            name, description, folder_ids if isinstance(folder_ids, list) else []
        )
    return validate_webhook_tool(
        name,
        description,
        text_field(document, "url"),
        headers=_document_fragment(document.get("headers")),
        query_parameters=_document_fragment(document.get("queryParameters")),
        parameters=_document_fragment(document.get("parameters")),
    )


def _validate_form(draft: ToolDraft) -> ValidationResult:
    if draft.kind == ToolKind.CLIENT:
        return validate_client_tool(draft.name, draft.description, draft.client_parameters)
    if draft.kind == ToolKind.KNOWLEDGE:
        return validate_knowledge_tool(draft.name, draft.description, draft.selected_folders)
    return validate_webhook_tool(
        draft.name,
        draft.description,
        draft.url,
        headers=draft.headers,
        query_parameters=draft.query_parameters,
        parameters=draft.webhook_parameters,
    )


def _strict_fragment(text: str, key: str) -> Any:
    if not text.strip():
        return None
    try:
        return parse_json(text)
    except JsonSyntaxError as e:
        raise JsonSyntaxError(f"Invalid JSON in {key}: {e.message}", field=key) from e


def _check_name(name: str) -> None:
    check = validate_tool_name(name)
    if not check.valid:
        raise InvalidNameError(check.error or "Invalid tool name")


def tool_from_json_buffer(text: str) -> Tool:
    """
    Validate a JSON buffer fail-fast and build the tool it describes.

    Raises:
        ToolEditorError: The first problem found, in check order
    """
    if not text or not text.strip():
        raise EmptyDocumentError("JSON cannot be empty")

    try:
        data = parse_json(text)
    except JsonSyntaxError as e:
        raise JsonSyntaxError(f"Invalid JSON syntax: {e.message}") from e

    document = data if isinstance(data, dict) else {}
    for key in ("name", "description"):
        if document.get(key) in (None, ""):
            raise MissingFieldError(f'Missing required field: "{key}"', key)

    _check_name(text_field(document, "name"))
    kind = classify_tool(data)

    result = _validate_document(kind, document)
    if not result.valid:
        raise ValidationFailedError(result.first_error() or FORM_INVALID_MESSAGE, result.errors)

    return tool_from_dict(data)


def tool_from_form(draft: ToolDraft) -> Tool:
    """
    Validate the form fields and build the tool they describe.

    All field errors are reported together through ValidationFailedError.
    """
    result = _validate_form(draft)
    if not result.valid:
        raise ValidationFailedError(FORM_INVALID_MESSAGE, result.errors)

    _check_name(draft.name)
    return tool_from_dict(form_to_document(draft, fragment=_strict_fragment))


# =============================================================================
# Orchestrator
# =============================================================================


class SaveOrchestrator:
    """
    Validates and persists drafts, one save at a time.

    Args:
        persistence: Collaborator that stores the finished tool
        ownership_checker: Collaborator that verifies knowledge folders
        notify: Notification sink, same signature as ``App.notify``
    """

    def __init__(
        self,
        persistence: ToolPersistence,
        ownership_checker: OwnershipChecker,
        notify: Notifier | None = None,
    ) -> None:
        self.persistence = persistence
        self.ownership_checker = ownership_checker
        self.notify = notify or log_notifier
        self._saving = False

    @property
    def is_saving(self) -> bool:
        return self._saving

    def build_tool(self, draft: ToolDraft) -> Tool:
        """Run every synchronous check for the draft's current mode."""
        if draft.kind == ToolKind.SYSTEM:
            raise UnsupportedToolKindError("System tools are not yet supported")

        if draft.mode == EditMode.JSON:
            return tool_from_json_buffer(draft.raw_json)

        draft.clear_field_errors()
        return tool_from_form(draft)

    async def save(self, draft: ToolDraft) -> SaveResult:
        """
        Validate the draft and persist it.

        Failures never raise; they are recorded on the draft, notified and
        returned as an unsuccessful SaveResult.
        """
        if self._saving:
            error = SaveInProgressError("A save is already in progress")
            logger.info("Ignoring save request while another save is running")
            self.notify(error.message, severity="warning")
            return SaveResult(success=False, message=error.message, error=error)

        # Claimed before the first await so a second caller is turned away
        self._saving = True
        try:
            tool = self.build_tool(draft)
            if isinstance(tool, KnowledgeTool):
                await check_folder_ownership(self.ownership_checker, tool.document_folder_ids)
            await self._persist(tool)
        except ToolEditorError as e:
            self._record_failure(draft, e)
            return SaveResult(success=False, message=e.message, error=e)
        finally:
            self._saving = False

        logger.info(f"Saved {tool.kind.value} tool {tool.name}")
        self.notify(SAVED_MESSAGE, severity="information")
        return SaveResult(success=True, message=SAVED_MESSAGE, tool=tool)

    async def _persist(self, tool: Tool) -> None:
        try:
            await self.persistence.save(tool)
        except ToolEditorError:
            raise
        except Exception as e:
            logger.error(f"Failed to save tool {tool.name}: {e}")
            raise PersistenceError(str(e) or "Failed to save tool") from e

    def _record_failure(self, draft: ToolDraft, error: ToolEditorError) -> None:
        if not isinstance(error, PersistenceError):
            logger.info(f"Save rejected ({error.kind.value}): {error.message}")

        if draft.mode == EditMode.JSON:
            draft.json_error = error.message
        elif isinstance(error, ValidationFailedError):
            draft.set_field_errors(error.field_errors)
        elif isinstance(error, InvalidNameError):
            draft.set_field_errors({NAME: error.message})
        elif isinstance(error, JsonSyntaxError) and error.field:
            draft.set_field_errors({error.field: error.message})
        elif isinstance(error, OwnershipDeniedError):
            draft.set_field_errors({FOLDERS: error.message})

        self.notify(error.message, severity="error")

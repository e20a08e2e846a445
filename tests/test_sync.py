"""
Tests for the form <-> JSON synchronizer.
"""

import json
from unittest.mock import AsyncMock, Mock

import pytest

from tooleditor.collaborators import FolderOwnershipChecker, OwnershipResult
from tooleditor.draft import EditMode, ToolDraft
from tooleditor.sync import FormJsonSynchronizer, WEATHER_EXAMPLE, form_to_document
from tooleditor.tool_types import ClientTool, KnowledgeTool, ToolKind, WebhookTool


FIELDS = (
    "kind", "name", "description", "url", "method", "headers", "query_parameters",
    "webhook_parameters", "await_response", "client_parameters", "selected_folders",
)


def snapshot(draft: ToolDraft) -> dict:
    return {name: getattr(draft, name) for name in FIELDS}


@pytest.fixture
def checker() -> FolderOwnershipChecker:
    return FolderOwnershipChecker({"f1", "f2"})


@pytest.fixture
def notify() -> Mock:
    return Mock()


# =============================================================================
# Form -> JSON
# =============================================================================


class TestSwitchToJson:
    """Tests for the form to JSON transition."""

    def test_empty_client_form_shows_example(self, checker, notify) -> None:
        draft = ToolDraft.fresh(ToolKind.CLIENT)
        sync = FormJsonSynchronizer(draft, checker, notify)

        document = json.loads(sync.switch_to_json())

        assert draft.mode == EditMode.JSON
        assert document["type"] == "client"
        assert document["parameters"]["properties"]

    def test_empty_webhook_form_shows_webhook_example(self, checker) -> None:
        draft = ToolDraft.fresh(ToolKind.WEBHOOK)
        document = json.loads(FormJsonSynchronizer(draft, checker).switch_to_json())
        assert document["subtype"] == "webhook"

    def test_serializes_fields(self, checker) -> None:
        draft = ToolDraft.fresh(ToolKind.WEBHOOK)
        draft.set_name("hook")
        draft.set_description("Call it")
        draft.set_url("https://api.x.com")
        draft.set_headers('{"X-Key": "1"}')

        document = json.loads(FormJsonSynchronizer(draft, checker).switch_to_json())

        assert document["name"] == "hook"
        assert document["headers"] == {"X-Key": "1"}
        assert document["awaitResponse"] is True
        assert "queryParameters" not in document

    def test_invalid_fragment_is_kept_verbatim(self) -> None:
        draft = ToolDraft.fresh(ToolKind.CLIENT)
        draft.set_name("ping")
        draft.set_client_parameters('{"type": ')

        assert form_to_document(draft)["parameters"] == '{"type": '


# =============================================================================
# JSON -> Form
# =============================================================================


class TestSwitchToForm:
    """Tests for the JSON to form transition."""

    @pytest.mark.asyncio
    async def test_missing_subtype_keeps_json_mode(self, checker, notify) -> None:
        draft = ToolDraft.fresh(ToolKind.WEBHOOK)
        sync = FormJsonSynchronizer(draft, checker, notify)
        sync.switch_to_json()
        draft.set_raw_json('{"type":"server"}')

        assert await sync.switch_to_form() is False

        assert draft.mode == EditMode.JSON
        assert draft.raw_json == '{"type":"server"}'
        assert draft.json_error == 'Server tools must have a "subtype" field'
        notify.assert_called_once_with(draft.json_error, severity="error")

    @pytest.mark.parametrize("text, message", [
        ('{"name": "a"}', 'Missing required field: "type"'),
        ('{"type": "server", "name": "a"}', 'Server tools must have a "subtype" field'),
        ('{"type": "bogus"}', 'Invalid type: "bogus". Must be "client" or "server"'),
        (
            '{"type": "server", "subtype": "x"}',
            'Invalid subtype: "x". Must be "knowledge" or "webhook"',
        ),
    ])
    @pytest.mark.asyncio
    async def test_unclassifiable_document_keeps_json_mode(self, checker, text, message) -> None:
        draft = ToolDraft.fresh(ToolKind.CLIENT)
        draft.set_name("kept")
        sync = FormJsonSynchronizer(draft, checker)
        sync.switch_to_json()
        draft.set_raw_json(text)

        assert await sync.switch_to_form() is False

        assert draft.mode == EditMode.JSON
        assert draft.raw_json == text
        assert draft.json_error == message
        assert draft.kind == ToolKind.CLIENT
        assert draft.name == "kept"

    @pytest.mark.asyncio
    async def test_syntax_error_keeps_json_mode(self, checker) -> None:
        draft = ToolDraft(mode=EditMode.JSON, raw_json="{oops")
        assert await FormJsonSynchronizer(draft, checker).switch_to_form() is False
        assert draft.mode == EditMode.JSON
        assert draft.json_error

    @pytest.mark.asyncio
    async def test_blank_buffer_goes_straight_to_form(self, checker) -> None:
        draft = ToolDraft(mode=EditMode.JSON, raw_json="  ")
        assert await FormJsonSynchronizer(draft, checker).switch_to_form() is True
        assert draft.mode == EditMode.FORM

    @pytest.mark.asyncio
    async def test_missing_optionals_reset_to_defaults(self, checker, notify) -> None:
        draft = ToolDraft.fresh(ToolKind.WEBHOOK)
        draft.set_method("GET")
        draft.set_await_response(False)
        draft.set_headers('{"a": "b"}')
        draft.mode = EditMode.JSON
        draft.set_raw_json(json.dumps({
            "type": "server",
            "subtype": "webhook",
            "name": "hook",
            "description": "Hook",
            "url": "https://api.x.com",
        }))

        assert await FormJsonSynchronizer(draft, checker, notify).switch_to_form() is True

        assert draft.method == "POST"
        assert draft.await_response is True
        assert draft.headers == ""
        notify.assert_called_once_with("Switched to form editor", severity="information")

    @pytest.mark.asyncio
    async def test_fragments_are_pretty_printed(self, checker) -> None:
        draft = ToolDraft(mode=EditMode.JSON)
        draft.set_raw_json(
            '{"type":"client","name":"p","description":"d","parameters":{"type":"object"}}'
        )
        await FormJsonSynchronizer(draft, checker).switch_to_form()
        assert draft.client_parameters == '{\n  "type": "object"\n}'

    @pytest.mark.asyncio
    async def test_kind_follows_document(self, checker) -> None:
        draft = ToolDraft.fresh(ToolKind.WEBHOOK)
        draft.mode = EditMode.JSON
        draft.set_raw_json('{"type": "client", "name": "p", "description": "d"}')
        await FormJsonSynchronizer(draft, checker).switch_to_form()
        assert draft.kind == ToolKind.CLIENT

    @pytest.mark.asyncio
    async def test_knowledge_ownership_denied(self) -> None:
        checker = Mock()
        checker.check_ownership = AsyncMock(return_value=OwnershipResult(False, "Not yours"))
        draft = ToolDraft(mode=EditMode.JSON)
        draft.set_raw_json(json.dumps({
            "type": "server",
            "subtype": "knowledge",
            "name": "search",
            "description": "Search",
            "documentFolderIds": ["f9"],
        }))

        assert await FormJsonSynchronizer(draft, checker).switch_to_form() is False

        assert draft.mode == EditMode.JSON
        assert draft.json_error == "Not yours"
        # Fields were populated even though the switch was aborted
        assert draft.selected_folders == ["f9"]
        checker.check_ownership.assert_awaited_once_with(["f9"])

    @pytest.mark.asyncio
    async def test_knowledge_without_folders_skips_check(self) -> None:
        checker = Mock()
        checker.check_ownership = AsyncMock()
        draft = ToolDraft(mode=EditMode.JSON)
        draft.set_raw_json(
            '{"type":"server","subtype":"knowledge","name":"s","description":"d"}'
        )

        assert await FormJsonSynchronizer(draft, checker).switch_to_form() is True
        checker.check_ownership.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_checker_exception_is_surfaced(self) -> None:
        checker = Mock()
        checker.check_ownership = AsyncMock(side_effect=RuntimeError("Network down"))
        draft = ToolDraft(mode=EditMode.JSON)
        draft.set_raw_json(
            '{"type":"server","subtype":"knowledge","name":"s","description":"d",'
            '"documentFolderIds":["f1"]}'
        )

        assert await FormJsonSynchronizer(draft, checker).switch_to_form() is False
        assert draft.json_error == "Network down"

    def test_load_example(self, checker) -> None:
        draft = ToolDraft(mode=EditMode.JSON, json_error="old")
        FormJsonSynchronizer(draft, checker).load_example()
        assert json.loads(draft.raw_json) == WEATHER_EXAMPLE
        assert draft.json_error == ""


# =============================================================================
# Round Trips
# =============================================================================


class TestRoundTrip:
    """Form -> JSON -> form keeps every field value."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tool", [
        ClientTool(
            name="ping",
            description="Ping the client",
            parameters={"type": "object", "properties": {"x": {"type": "number"}}},
        ),
        KnowledgeTool(name="search", description="Search docs", document_folder_ids=["f1", "f2"]),
        WebhookTool(
            name="hook",
            description="Call the API",
            url="https://api.x.com/v1",
            method="PUT",
            headers={"Authorization": "Bearer x"},
            query_parameters={"type": "object", "properties": {"q": {"type": "string"}}},
            parameters={"type": "object", "properties": {}},
            await_response=False,
        ),
    ])
    async def test_round_trip(self, tool, checker) -> None:
        draft = ToolDraft.from_tool(tool)
        before = snapshot(draft)
        sync = FormJsonSynchronizer(draft, checker)

        sync.switch_to_json()
        assert await sync.switch_to_form() is True

        assert snapshot(draft) == before
        assert draft.mode == EditMode.FORM

    @pytest.mark.asyncio
    async def test_invalid_fragment_survives_round_trip(self, checker) -> None:
        draft = ToolDraft.fresh(ToolKind.WEBHOOK)
        draft.set_name("hook")
        draft.set_description("Hook")
        draft.set_url("https://api.x.com")
        draft.set_webhook_parameters('{"type": ')
        sync = FormJsonSynchronizer(draft, checker)

        sync.switch_to_json()
        await sync.switch_to_form()

        assert draft.webhook_parameters == '{"type": '

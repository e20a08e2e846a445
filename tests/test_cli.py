"""
Tests for the tooleditor command line interface.
"""

import json

import pytest
import yaml
from click.testing import CliRunner

from tooleditor.cli import cli
from tooleditor.collaborators import InMemoryToolStore
from tooleditor.tool_types import KnowledgeTool, WebhookTool


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_home(monkeypatch, tmp_path):
    monkeypatch.delenv("TOOLEDITOR_CONFIG", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))


def write_json(tmp_path, document) -> str:
    path = tmp_path / "tool.json"
    path.write_text(json.dumps(document))
    return str(path)


class TestEditCommand:
    """Tests for 'tooleditor edit'."""

    @pytest.fixture
    def launched(self, monkeypatch) -> list:
        apps = []

        class RecordingApp:
            def __init__(self, config, initial_tool=None, open_on_start=False) -> None:
                self.config = config
                self.initial_tool = initial_tool
                self.store = InMemoryToolStore()
                apps.append(self)

            def run(self) -> None:
                pass

        monkeypatch.setattr("tooleditor.cli.ToolEditorApp", RecordingApp)
        return apps

    def test_knowledge_tool_opens_without_owned_folders(self, runner, tmp_path, launched) -> None:
        path = write_json(tmp_path, {
            "type": "server",
            "subtype": "knowledge",
            "name": "search",
            "description": "Search",
            "documentFolderIds": ["f2"],
        })

        result = runner.invoke(cli, ["edit", "--tool", path])

        assert result.exit_code == 0
        assert isinstance(launched[0].initial_tool, KnowledgeTool)
        assert launched[0].initial_tool.document_folder_ids == ["f2"]

    def test_invalid_fields_can_be_opened(self, runner, tmp_path, launched) -> None:
        path = write_json(tmp_path, {
            "type": "server",
            "subtype": "webhook",
            "name": "bad name",
            "description": "",
            "url": "ftp://x.com",
        })

        result = runner.invoke(cli, ["edit", "--tool", path])

        assert result.exit_code == 0
        assert isinstance(launched[0].initial_tool, WebhookTool)
        assert launched[0].initial_tool.name == "bad name"

    def test_unparseable_file_is_refused(self, runner, tmp_path, launched) -> None:
        path = tmp_path / "tool.json"
        path.write_text("{oops")

        result = runner.invoke(cli, ["edit", "--tool", str(path)])

        assert result.exit_code == 1
        assert "Cannot open" in result.output
        assert launched == []


class TestValidateCommand:
    """Tests for 'tooleditor validate'."""

    def test_valid_webhook(self, runner, tmp_path) -> None:
        path = write_json(tmp_path, {
            "type": "server",
            "subtype": "webhook",
            "name": "hook",
            "description": "Call the API",
            "url": "https://api.x.com",
        })

        result = runner.invoke(cli, ["validate", path])

        assert result.exit_code == 0
        assert "Valid webhook tool" in result.output

    def test_invalid_url(self, runner, tmp_path) -> None:
        path = write_json(tmp_path, {
            "type": "server",
            "subtype": "webhook",
            "name": "hook",
            "description": "Call the API",
            "url": "ftp://x.com",
        })

        result = runner.invoke(cli, ["validate", path])

        assert result.exit_code == 1
        assert "URL must use HTTP or HTTPS protocol" in result.output

    def test_knowledge_checks_owned_folders(self, runner, tmp_path) -> None:
        config_path = tmp_path / "config.yaml"
        config_path.write_text(yaml.safe_dump({"owned_folder_ids": ["f1"]}))
        path = write_json(tmp_path, {
            "type": "server",
            "subtype": "knowledge",
            "name": "search",
            "description": "Search",
            "documentFolderIds": ["f2"],
        })

        result = runner.invoke(cli, ["validate", path, "--config", str(config_path)])

        assert result.exit_code == 1
        assert "ownership_denied" in result.output

    def test_empty_file(self, runner, tmp_path) -> None:
        path = tmp_path / "empty.json"
        path.write_text("")

        result = runner.invoke(cli, ["validate", str(path)])

        assert result.exit_code == 1
        assert "JSON cannot be empty" in result.output


class TestExampleCommand:
    """Tests for 'tooleditor example'."""

    def test_client_example(self, runner) -> None:
        result = runner.invoke(cli, ["example", "client"])

        assert result.exit_code == 0
        document = json.loads(result.output)
        assert document["type"] == "client"
        assert document["parameters"]["properties"]

    def test_weather_example(self, runner) -> None:
        result = runner.invoke(cli, ["example", "weather"])
        assert json.loads(result.output)["name"] == "get_weather"

    def test_unknown_kind(self, runner) -> None:
        result = runner.invoke(cli, ["example", "system"])
        assert result.exit_code != 0


class TestInitCommand:
    """Tests for 'tooleditor init'."""

    def test_writes_config(self, runner, tmp_path) -> None:
        target = tmp_path / "cfg" / "config.yaml"

        result = runner.invoke(cli, ["init", "--output", str(target)])

        assert result.exit_code == 0
        assert target.exists()
        assert yaml.safe_load(target.read_text())["json_indent"] == 2

    def test_keeps_existing_config(self, runner, tmp_path) -> None:
        target = tmp_path / "config.yaml"
        target.write_text("json_indent: 4\n")

        result = runner.invoke(cli, ["init", "--output", str(target)])

        assert result.exit_code == 0
        assert "already exists" in result.output
        assert target.read_text() == "json_indent: 4\n"

    def test_force_overwrites(self, runner, tmp_path) -> None:
        target = tmp_path / "config.yaml"
        target.write_text("json_indent: 4\n")

        result = runner.invoke(cli, ["init", "--output", str(target), "--force"])

        assert result.exit_code == 0
        assert yaml.safe_load(target.read_text())["json_indent"] == 2

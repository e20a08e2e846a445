"""
Tests for tool editor configuration loading.
"""

import pytest
import yaml

from tooleditor.config import (
    ConfigError,
    ConfigLoader,
    ConfigValidationError,
    EditorConfig,
    get_config,
    init_default_config,
)
from tooleditor.folders import KnowledgeFolder
from tooleditor.tool_types import ToolKind


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep the developer's own config and environment out of the tests."""
    for name in (
        "TOOLEDITOR_CONFIG",
        "TOOLEDITOR_LOG_LEVEL",
        "TOOLEDITOR_DEFAULT_KIND",
        "TOOLEDITOR_FORCE_KNOWLEDGE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))


def write_config(tmp_path, data) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


class TestConfigLoader:
    """Tests for ConfigLoader."""

    def test_defaults_without_file(self, tmp_path) -> None:
        config = ConfigLoader(user_config_path=tmp_path / "missing.yaml").load()

        assert config == EditorConfig()
        assert config.tool_kind == ToolKind.WEBHOOK
        assert config.json_indent == 2

    def test_loads_yaml(self, tmp_path) -> None:
        path = write_config(tmp_path, {
            "default_tool_kind": "client",
            "json_indent": 4,
            "owned_folder_ids": ["f1"],
            "knowledge_folders": [{"id": "f1", "name": "Docs", "document_count": 3}],
        })

        config = ConfigLoader(user_config_path=path).load()

        assert config.tool_kind == ToolKind.CLIENT
        assert config.json_indent == 4
        assert config.owned_folder_ids == ["f1"]
        assert config.knowledge_folders == [KnowledgeFolder("f1", "Docs", 3)]

    def test_config_path_from_env(self, tmp_path, monkeypatch) -> None:
        path = write_config(tmp_path, {"log_level": "debug"})
        monkeypatch.setenv("TOOLEDITOR_CONFIG", path)

        assert ConfigLoader().load().log_level == "DEBUG"

    def test_env_overrides(self, tmp_path, monkeypatch) -> None:
        path = write_config(tmp_path, {"default_tool_kind": "client"})
        monkeypatch.setenv("TOOLEDITOR_DEFAULT_KIND", "knowledge")
        monkeypatch.setenv("TOOLEDITOR_FORCE_KNOWLEDGE", "yes")
        monkeypatch.setenv("TOOLEDITOR_LOG_LEVEL", "warning")

        config = ConfigLoader(user_config_path=path).load()

        assert config.default_tool_kind == "knowledge"
        assert config.force_knowledge is True
        assert config.log_level == "WARNING"

    def test_rejects_system_default_kind(self, tmp_path) -> None:
        path = write_config(tmp_path, {"default_tool_kind": "system"})

        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigLoader(user_config_path=path).load()

        assert exc_info.value.path == "default_tool_kind"
        assert exc_info.value.value == "system"

    def test_rejects_bad_indent(self, tmp_path) -> None:
        path = write_config(tmp_path, {"json_indent": "wide"})
        with pytest.raises(ConfigValidationError):
            ConfigLoader(user_config_path=path).load()

    def test_rejects_folder_without_id(self, tmp_path) -> None:
        path = write_config(tmp_path, {"knowledge_folders": [{"name": "Docs"}]})
        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigLoader(user_config_path=path).load()
        assert exc_info.value.path == "knowledge_folders[0]"

    def test_invalid_yaml(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("json_indent: [unclosed")
        with pytest.raises(ConfigError):
            ConfigLoader(user_config_path=path).load()

    def test_get_config_caches(self, tmp_path) -> None:
        path = write_config(tmp_path, {"json_indent": 3})
        first = get_config(user_config_path=path, reload=True)
        assert get_config() is first
        assert first.json_indent == 3


class TestInitDefaultConfig:
    """Tests for init_default_config."""

    def test_writes_loadable_file(self, tmp_path) -> None:
        path = init_default_config(tmp_path / "nested" / "config.yaml")

        assert path.exists()
        config = ConfigLoader(user_config_path=path).load()
        assert config.owned_folder_ids == ["folder-docs"]
        assert config.knowledge_folders[0].name == "Product Docs"

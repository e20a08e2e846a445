"""
Tool Editor Configuration

Configuration is loaded in layers, later sources overriding earlier ones:
1. Hardcoded defaults
2. User config file (~/.tooleditor/config.yaml or $TOOLEDITOR_CONFIG)
3. Environment variables (TOOLEDITOR_* prefix)

Usage:
    from tooleditor.config import get_config

    config = get_config()
    print(config.default_tool_kind, config.json_indent)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from tooleditor.folders import KnowledgeFolder
from tooleditor.tool_types import ToolKind


# =============================================================================
# Configuration Schema
# =============================================================================


@dataclass
class EditorConfig:
    """Tool editor configuration"""
    default_tool_kind: str = "webhook"
    force_knowledge: bool = False
    json_indent: int = 2
    log_level: str = "INFO"
    notification_timeout: float = 5.0

    # Folders the in-process ownership checker accepts
    owned_folder_ids: list[str] = field(default_factory=list)
    knowledge_folders: list[KnowledgeFolder] = field(default_factory=list)

    @property
    def tool_kind(self) -> ToolKind:
        return ToolKind(self.default_tool_kind)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(Exception):
    """Base configuration error"""
    pass


class ConfigValidationError(ConfigError):
    """Configuration validation error with detailed context"""

    def __init__(self, message: str, path: str = "", value: Any = None):
        self.message = message
        self.path = path
        self.value = value
        full_msg = "Validation error"
        if path:
            full_msg += f" at '{path}'"
        full_msg += f": {message}"
        if value is not None:
            full_msg += f" (got: {repr(value)})"
        super().__init__(full_msg)


# =============================================================================
# Configuration Utilities
# =============================================================================


def expand_path(path: str | Path) -> Path:
    """Expand ~ and environment variables in a path."""
    return Path(os.path.expandvars(str(path))).expanduser()


def validate_numeric_range(
    value: Any,
    min_val: int | float | None = None,
    max_val: int | float | None = None,
    path: str = "",
) -> None:
    """
    Validate that a numeric value is within range.

    Raises:
        ConfigValidationError: If validation fails
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigValidationError(f"Expected numeric value, got {type(value).__name__}", path, value)

    if min_val is not None and value < min_val:
        raise ConfigValidationError(f"Value must be >= {min_val}", path, value)

    if max_val is not None and value > max_val:
        raise ConfigValidationError(f"Value must be <= {max_val}", path, value)


def validate_enum(value: Any, allowed: set[str] | list[str], path: str = "") -> None:
    """
    Validate that a value is in the allowed set.

    Raises:
        ConfigValidationError: If validation fails
    """
    if value not in allowed:
        allowed_str = ", ".join(repr(v) for v in sorted(allowed))
        raise ConfigValidationError(f"Value must be one of: {allowed_str}", path, value)


# =============================================================================
# Configuration Loader
# =============================================================================


class ConfigLoader:
    """
    Loads and validates tool editor configuration.

    Loading order (later sources override earlier ones):
    1. Hardcoded defaults
    2. User config file (~/.tooleditor/config.yaml or $TOOLEDITOR_CONFIG)
    3. Environment variables (TOOLEDITOR_* prefix)
    """

    DEFAULT_USER_CONFIG_PATH = "~/.tooleditor/config.yaml"

    # Map of environment variable names to config fields
    ENV_VAR_MAP: dict[str, str] = {
        "TOOLEDITOR_LOG_LEVEL": "log_level",
        "TOOLEDITOR_DEFAULT_KIND": "default_tool_kind",
        "TOOLEDITOR_FORCE_KNOWLEDGE": "force_knowledge",
    }

    EDITABLE_KINDS = {ToolKind.CLIENT.value, ToolKind.KNOWLEDGE.value, ToolKind.WEBHOOK.value}
    LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

    def __init__(self, user_config_path: Path | str | None = None):
        self.user_config_path = expand_path(user_config_path) if user_config_path else None

    def load(self) -> EditorConfig:
        """
        Load configuration from all sources.

        Raises:
            ConfigError: If the config file is not valid YAML
            ConfigValidationError: If configuration is invalid
        """
        config = EditorConfig()

        user_config_path = self.user_config_path or self._get_user_config_path()
        user_data = self._load_yaml_file(user_config_path)
        if user_data:
            self._apply_config_dict(config, user_data)

        self._apply_env_vars(config)
        self._validate_config(config)
        return config

    def _get_user_config_path(self) -> Path:
        env_path = os.environ.get("TOOLEDITOR_CONFIG")
        if env_path:
            return expand_path(env_path)
        return expand_path(self.DEFAULT_USER_CONFIG_PATH)

    def _load_yaml_file(self, path: Path) -> dict[str, Any] | None:
        if not path.exists():
            return None

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
                return data if isinstance(data, dict) else {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}")

    def _apply_config_dict(self, config: EditorConfig, data: dict[str, Any]) -> None:
        for key, value in data.items():
            if value is None:
                continue

            if key == "knowledge_folders":
                config.knowledge_folders = self._parse_folders(value)
            elif key == "owned_folder_ids":
                if not isinstance(value, list):
                    raise ConfigValidationError("Expected a list of folder ids", key, value)
                config.owned_folder_ids = [str(folder_id) for folder_id in value]
            elif hasattr(config, key):
                setattr(config, key, value)

    def _parse_folders(self, value: Any) -> list[KnowledgeFolder]:
        if not isinstance(value, list):
            raise ConfigValidationError("Expected a list of folders", "knowledge_folders", value)

        folders = []
        for index, item in enumerate(value):
            path = f"knowledge_folders[{index}]"
            if not isinstance(item, dict) or "id" not in item:
                raise ConfigValidationError("Folder entries need an 'id'", path, item)
            try:
                folders.append(KnowledgeFolder.from_dict(item))
            except (TypeError, ValueError) as e:
                raise ConfigValidationError(str(e), path, item)
        return folders

    def _apply_env_vars(self, config: EditorConfig) -> None:
        for env_var, attr in self.ENV_VAR_MAP.items():
            value = os.environ.get(env_var)
            if value is None:
                continue

            if isinstance(getattr(config, attr), bool):
                setattr(config, attr, value.lower() in ("1", "true", "yes", "on"))
            else:
                setattr(config, attr, value)

    def _validate_config(self, config: EditorConfig) -> None:
        config.log_level = str(config.log_level).upper()
        validate_enum(config.log_level, self.LOG_LEVELS, "log_level")

        config.default_tool_kind = str(config.default_tool_kind).lower()
        validate_enum(config.default_tool_kind, self.EDITABLE_KINDS, "default_tool_kind")

        validate_numeric_range(config.json_indent, min_val=0, max_val=8, path="json_indent")
        validate_numeric_range(
            config.notification_timeout, min_val=0, path="notification_timeout"
        )

        if not isinstance(config.force_knowledge, bool):
            raise ConfigValidationError(
                "Expected true or false", "force_knowledge", config.force_knowledge
            )


# =============================================================================
# Global Configuration Instance
# =============================================================================

_global_config: EditorConfig | None = None


def get_config(
    user_config_path: Path | str | None = None,
    reload: bool = False,
) -> EditorConfig:
    """
    Get the global configuration instance.

    Args:
        user_config_path: Optional config file to load instead of the default
        reload: If True, reload configuration even if already loaded
    """
    global _global_config

    if _global_config is None or reload:
        loader = ConfigLoader(user_config_path=user_config_path)
        _global_config = loader.load()

    return _global_config


# =============================================================================
# Initialize Default Configuration
# =============================================================================


def init_default_config(output_path: Path | str | None = None) -> Path:
    """
    Create a default configuration file.

    Args:
        output_path: Optional output path (defaults to ~/.tooleditor/config.yaml)

    Returns:
        Path where configuration was written
    """
    if output_path is None:
        output_path = expand_path(ConfigLoader.DEFAULT_USER_CONFIG_PATH)
    else:
        output_path = expand_path(output_path)

    output_path.parent.mkdir(parents=True, exist_ok=True)

    default_config = {
        "default_tool_kind": "webhook",
        "force_knowledge": False,
        "json_indent": 2,
        "log_level": "INFO",
        "notification_timeout": 5.0,
        "owned_folder_ids": ["folder-docs"],
        "knowledge_folders": [
            {"id": "folder-docs", "name": "Product Docs", "document_count": 12},
        ],
    }

    with open(output_path, "w") as f:
        yaml.dump(default_config, f, default_flow_style=False, sort_keys=False)

    return output_path
